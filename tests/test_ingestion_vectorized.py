"""
Corpus ingestion - text rendering, ids, generation overlay and snapshot output.
"""

import json

import pytest

from charforge.core.config import CorpusGeneration
from charforge.core.errors import EmbeddingUnavailable
from charforge.vector.corpus import CorpusIngestor, category_from_filename, record_id, render_text
from charforge.vector.embeddings import DeterministicHashEmbedding, IEmbeddingProvider
from charforge.vector.snapshot import read_snapshot


class FailingEmbedding(IEmbeddingProvider):
    """Succeeds for the first `succeed` calls, then fails."""

    def __init__(self, succeed=0):
        self.succeed = succeed
        self.calls = 0

    def embed_text(self, text):
        self.calls += 1
        if self.calls > self.succeed:
            raise EmbeddingUnavailable("All embedding models failed", ["nomic-embed-text"])
        return [1.0, 0.5]

    def get_dimension(self):
        return 2


def write_source(directory, category, items):
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"5e-SRD-{category}.json"
    path.write_text(json.dumps(items), encoding="utf-8")
    return path


@pytest.fixture
def corpus(tmp_path):
    base = tmp_path / "2014"
    overlay = tmp_path / "2024"
    write_source(base, "spells", [
        {"index": "1", "name": "Old Fireball", "desc": ["Old text."], "level": 3},
        {"index": "2", "name": "Shield", "desc": ["An invisible barrier."]},
    ])
    write_source(base, "skills", [
        {"index": "acrobatics", "name": "Acrobatics", "description": "Stay on your feet."},
    ])
    write_source(overlay, "spells", [
        {"index": "1", "name": "Fireball", "desc": ["New text."]},
    ])
    return [
        CorpusGeneration(version="2014", directory=base),
        CorpusGeneration(version="2024", directory=overlay),
    ]


def test_category_from_filename():
    assert category_from_filename("5e-SRD-spells.json") == "spells"
    assert category_from_filename("5e-SRD-damage-types.json") == "damage-types"


def test_render_text_desc_list_joined_with_space():
    item = {"name": "Fireball", "desc": ["A bright streak.", "Each creature must save."]}
    assert render_text(item, "spells") == "Fireball: A bright streak. Each creature must save."


def test_render_text_description_category():
    item = {"name": "Blinded", "description": "A blinded creature can't see.", "desc": ["ignored"]}
    assert render_text(item, "conditions") == "Blinded: A blinded creature can't see."


def test_render_text_missing_description_is_empty():
    assert render_text({"name": "Tarrasque"}, "monsters") == "Tarrasque: "


def test_render_text_unknown_category_falls_back():
    assert render_text({"name": "Thing", "desc": "Some desc"}, "oddities") == "Thing: Some desc"
    rendered = render_text({"name": "Table", "rows": [1, 2]}, "oddities")
    assert rendered.startswith("Table: {")
    assert '"rows":[1,2]' in rendered


def test_record_id_uses_index_then_position():
    assert record_id("spells", {"index": "fireball"}, 7) == "spells-fireball"
    assert record_id("spells", {"name": "No index"}, 7) == "spells-7"


def test_overlay_replaces_base_record(corpus):
    """The 2024 spells-1 replaces the 2014 one; nothing is merged."""
    records = CorpusIngestor(DeterministicHashEmbedding(dimension=16)).build(corpus)

    by_id = {r.id: r for r in records}
    assert len(records) == 3
    assert set(by_id) == {"spells-1", "spells-2", "skills-acrobatics"}

    fireball = by_id["spells-1"]
    assert fireball.text == "Fireball: New text."
    assert fireball.metadata["version"] == "2024"
    assert fireball.metadata["source"] == "5e-SRD-spells.json"
    assert fireball.metadata["type"] == "spells"
    assert "level" not in fireball.metadata

    assert by_id["spells-2"].metadata["version"] == "2014"
    assert by_id["skills-acrobatics"].text == "Acrobatics: Stay on your feet."


def test_overlay_record_moves_to_end(corpus):
    records = CorpusIngestor(DeterministicHashEmbedding(dimension=16)).build(corpus)
    assert [r.id for r in records] == ["skills-acrobatics", "spells-2", "spells-1"]


def test_provenance_overrides_source_fields(tmp_path):
    base = tmp_path / "2014"
    write_source(base, "monsters", [{"index": "goblin", "name": "Goblin", "type": "humanoid", "desc": "Small."}])

    records = CorpusIngestor(DeterministicHashEmbedding(dimension=8)).build(
        [CorpusGeneration(version="2014", directory=base)]
    )

    assert records[0].metadata["type"] == "monsters"
    assert records[0].metadata["index"] == "goblin"


def test_build_is_idempotent(corpus, tmp_path):
    ingestor = CorpusIngestor(DeterministicHashEmbedding(dimension=16))
    first = tmp_path / "out1.json"
    second = tmp_path / "out2.json"

    assert ingestor.build_snapshot(corpus, first) == 3
    assert ingestor.build_snapshot(corpus, second) == 3

    assert read_snapshot(first) == read_snapshot(second)


def test_embedding_failure_aborts_without_snapshot(corpus, tmp_path):
    output = tmp_path / "dnd_vectors.json"
    provider = FailingEmbedding(succeed=2)

    with pytest.raises(EmbeddingUnavailable):
        CorpusIngestor(provider).build_snapshot(corpus, output)

    assert not output.exists()


def test_failed_rebuild_keeps_previous_snapshot(corpus, tmp_path):
    output = tmp_path / "dnd_vectors.json"
    CorpusIngestor(DeterministicHashEmbedding(dimension=16)).build_snapshot(corpus, output)
    before = output.read_text()

    with pytest.raises(EmbeddingUnavailable):
        CorpusIngestor(FailingEmbedding()).build_snapshot(corpus, output)

    assert output.read_text() == before


def test_missing_generation_directory(tmp_path):
    missing = CorpusGeneration(version="2014", directory=tmp_path / "nope")
    with pytest.raises(FileNotFoundError):
        CorpusIngestor(DeterministicHashEmbedding()).build([missing])


def test_non_array_source_file(tmp_path):
    base = tmp_path / "2014"
    base.mkdir()
    (base / "5e-SRD-rules.json").write_text('{"name": "not a list"}')

    with pytest.raises(ValueError):
        CorpusIngestor(DeterministicHashEmbedding()).build([CorpusGeneration(version="2014", directory=base)])


class ShiftingEmbedding(IEmbeddingProvider):
    """Returns 3-dim vectors, then switches to 4-dim ones as if a fallback model took over."""

    def __init__(self, switch_after=1):
        self.switch_after = switch_after
        self.calls = 0

    def embed_text(self, text):
        self.calls += 1
        return [1.0, 0.5, 0.25] if self.calls <= self.switch_after else [1.0, 0.5, 0.25, 0.125]

    def get_dimension(self):
        return 3


def test_mixed_dimensions_abort_build(corpus, tmp_path):
    output = tmp_path / "dnd_vectors.json"

    with pytest.raises(EmbeddingUnavailable) as exc_info:
        CorpusIngestor(ShiftingEmbedding(switch_after=1)).build_snapshot(corpus, output)

    assert "dimension 4" in str(exc_info.value)
    assert not output.exists()


def test_mixed_dimensions_across_generations(corpus):
    """Base embedded with one model, overlay with another."""
    with pytest.raises(EmbeddingUnavailable):
        CorpusIngestor(ShiftingEmbedding(switch_after=3)).build(corpus)
