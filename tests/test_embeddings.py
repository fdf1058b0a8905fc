"""
Embedding providers - deterministic hash provider and Ollama candidate-model fallback.
"""

import pytest
from unittest.mock import MagicMock

import httpx
import ollama

from charforge.core.config import EmbeddingConfig
from charforge.core.errors import EmbeddingUnavailable
from charforge.vector.embeddings import IEmbeddingProvider, DeterministicHashEmbedding, OllamaEmbeddingProvider


def test_embedding_interface():
    """Test that the hash provider implements the interface correctly."""
    embedder = DeterministicHashEmbedding(dimension=384)

    assert isinstance(embedder, IEmbeddingProvider)
    assert embedder.get_dimension() == 384


def test_deterministic_embedding():
    """Test that the same input always produces the same output."""
    embedder = DeterministicHashEmbedding(dimension=384)

    vector1 = embedder.embed_text("Hello, world!")
    vector2 = embedder.embed("Hello, world!")

    assert vector1 == vector2
    assert len(vector1) == 384


def test_different_inputs_produce_different_vectors():
    """Test that different inputs produce different vectors."""
    embedder = DeterministicHashEmbedding(dimension=384)

    assert embedder.embed_text("Fireball: A bright streak") != embedder.embed_text("Shield: An invisible barrier")


def test_embedding_with_different_dimensions():
    """Every dimension gets filled, including sizes beyond one digest."""
    assert len(DeterministicHashEmbedding(dimension=5).embed_text("test")) == 5
    assert len(DeterministicHashEmbedding(dimension=512).embed_text("test")) == 512


def test_hash_embedding_values_in_range():
    vector = DeterministicHashEmbedding(dimension=64).embed_text("")
    assert all(-1.0 <= x <= 1.0 for x in vector)
    assert any(x != 0.0 for x in vector)


def make_provider(models, side_effect):
    client = MagicMock()
    client.embeddings.side_effect = side_effect
    config = EmbeddingConfig(endpoint_base_url="http://ollama:11434/", candidate_models=models)
    return OllamaEmbeddingProvider(config, client=client), client


def test_first_model_success():
    provider, client = make_provider(["nomic-embed-text", "all-minilm"], [{"embedding": [0.1, 0.2, 0.3]}])

    vector = provider.embed_text("Elf: Elves are a magical people")

    assert vector == [0.1, 0.2, 0.3]
    client.embeddings.assert_called_once_with(model="nomic-embed-text", prompt="Elf: Elves are a magical people")


def test_falls_back_to_next_model_on_http_error():
    """A 404 on the first model moves on to the second."""
    provider, client = make_provider(
        ["nomic-embed-text", "mxbai-embed-large"],
        [ollama.ResponseError("model not found", 404), {"embedding": [1, 2]}]
    )

    vector = provider.embed_text("Dwarf")

    assert vector == [1.0, 2.0]
    assert all(isinstance(x, float) for x in vector)
    assert [c.kwargs["model"] for c in client.embeddings.call_args_list] == ["nomic-embed-text", "mxbai-embed-large"]


def test_empty_embedding_counts_as_failure():
    provider, client = make_provider(["a", "b"], [{"embedding": []}, {"embedding": [0.5]}])

    assert provider.embed_text("x") == [0.5]
    assert client.embeddings.call_count == 2


def test_all_models_fail_reports_attempts():
    """Each candidate is tried exactly once; the error names every model."""
    provider, client = make_provider(
        ["nomic-embed-text", "mxbai-embed-large", "all-minilm"],
        [
            ollama.ResponseError("model not found", 404),
            httpx.ReadTimeout("timed out"),
            httpx.ConnectError("connection refused"),
        ]
    )

    with pytest.raises(EmbeddingUnavailable) as exc_info:
        provider.embed_text("Human")

    error = exc_info.value
    assert error.attempted_models == ["nomic-embed-text", "mxbai-embed-large", "all-minilm"]
    message = str(error)
    assert "http://ollama:11434" in message
    assert "nomic-embed-text (HTTP 404: model not found)" in message
    assert "mxbai-embed-large (ReadTimeout: timed out)" in message
    assert "all-minilm (ConnectError: connection refused)" in message
    assert client.embeddings.call_count == 3


def test_connection_error_is_handled():
    provider, _ = make_provider(["only"], [ConnectionError("refused")])

    with pytest.raises(EmbeddingUnavailable) as exc_info:
        provider.embed_text("x")
    assert exc_info.value.attempted_models == ["only"]


def test_no_models_configured():
    provider, client = make_provider([], [])

    with pytest.raises(EmbeddingUnavailable) as exc_info:
        provider.embed_text("x")

    assert exc_info.value.attempted_models == []
    client.embeddings.assert_not_called()


def test_get_dimension_probes_once():
    provider, client = make_provider(["m"], [{"embedding": [0.1] * 768}])

    assert provider.get_dimension() == 768
    assert provider.get_dimension() == 768
    assert client.embeddings.call_count == 1
