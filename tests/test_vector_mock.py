"""
In-memory vector index - cosine similarity, ranking and replacement semantics.
"""

import pytest

from charforge.core.errors import EmbeddingUnavailable
from charforge.vector.index import IVectorStore, SimpleInMemoryVectorStore, cosine_similarity
from charforge.vector.types import VectorRecord, ScoredVectorRecord


def make_record(record_id, embedding, **metadata):
    return VectorRecord(id=record_id, text=f"{record_id}: text", embedding=embedding, metadata=metadata)


def test_vector_store_interface():
    """Test that SimpleInMemoryVectorStore implements IVectorStore interface."""
    assert isinstance(SimpleInMemoryVectorStore(), IVectorStore)


def test_cosine_self_similarity_is_one():
    assert cosine_similarity([0.3, -1.2, 4.0], [0.3, -1.2, 4.0]) == pytest.approx(1.0)


def test_cosine_is_symmetric():
    a = [1.0, 2.0, 3.0]
    b = [-2.0, 0.5, 1.0]
    assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))


def test_cosine_orthogonal_and_opposite():
    assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)
    assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(-1.0)


def test_cosine_dimension_mismatch():
    with pytest.raises(ValueError):
        cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0])


def test_cosine_zero_norm():
    with pytest.raises(EmbeddingUnavailable):
        cosine_similarity([0.0, 0.0], [1.0, 0.0])


def test_add_single_record():
    """Test adding a single vector record."""
    store = SimpleInMemoryVectorStore()
    store.add(make_record("spells-fireball", [1.0, 0.0, 0.0], key="value"))

    results = store.search([1.0, 0.0, 0.0], top_k=1)
    assert len(results) == 1
    assert isinstance(results[0], ScoredVectorRecord)
    assert results[0].id == "spells-fireball"
    assert results[0].metadata["key"] == "value"
    assert results[0].score == pytest.approx(1.0)


def test_search_orders_by_descending_score():
    store = SimpleInMemoryVectorStore([
        make_record("a", [0.0, 1.0]),
        make_record("b", [1.0, 0.0]),
        make_record("c", [1.0, 1.0]),
    ])

    results = store.search([1.0, 0.1], top_k=3)

    assert [r.id for r in results] == ["b", "c", "a"]
    scores = [r.score for r in results]
    assert scores == sorted(scores, reverse=True)


def test_search_respects_top_k():
    store = SimpleInMemoryVectorStore([make_record(f"r{i}", [1.0, float(i)]) for i in range(10)])

    assert len(store.search([1.0, 0.0], top_k=3)) == 3
    assert len(store.search([1.0, 0.0], top_k=50)) == 10


def test_ties_keep_insertion_order():
    """Equal scores come back in the order the records were added."""
    store = SimpleInMemoryVectorStore([
        make_record("first", [1.0, 0.0]),
        make_record("second", [2.0, 0.0]),
        make_record("third", [3.0, 0.0]),
    ])

    results = store.search([1.0, 0.0], top_k=3)
    assert [r.id for r in results] == ["first", "second", "third"]


def test_search_empty_store():
    assert SimpleInMemoryVectorStore().search([1.0, 0.0], top_k=3) == []


def test_search_invalid_top_k():
    store = SimpleInMemoryVectorStore([make_record("a", [1.0])])
    with pytest.raises(ValueError):
        store.search([1.0], top_k=0)


def test_search_does_not_mutate_records():
    record = make_record("a", [1.0, 2.0])
    store = SimpleInMemoryVectorStore([record])

    store.search([1.0, 2.0], top_k=1)

    assert store.get("a") is record
    assert not hasattr(record, "score")


def test_add_replaces_same_id_without_merging():
    """The newer record wins outright and moves to the end."""
    store = SimpleInMemoryVectorStore()
    old = make_record("spells-1", [1.0, 0.0], version="2014", school="evocation")
    store.add(old)
    store.add(make_record("spells-2", [0.0, 1.0], version="2014"))

    replaced = store.add(make_record("spells-1", [0.5, 0.5], version="2024"))

    assert replaced is old
    assert len(store) == 2
    assert [r.id for r in store.records()] == ["spells-2", "spells-1"]
    assert store.get("spells-1").metadata == {"version": "2024"}


def test_delete_and_clear():
    store = SimpleInMemoryVectorStore([make_record("a", [1.0]), make_record("b", [1.0])])

    store.delete("a")
    assert "a" not in store
    assert len(store) == 1

    store.delete("missing")
    store.clear()
    assert len(store) == 0
