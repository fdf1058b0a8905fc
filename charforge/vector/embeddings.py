"""
Embedding providers. Text in, fixed-length float vector out.
"""

from abc import ABC, abstractmethod
import hashlib
from typing import List, Optional

import httpx
import ollama

from ..core.config import EmbeddingConfig
from ..core.errors import EmbeddingUnavailable
from util.logging import logger


class IEmbeddingProvider(ABC):
    """Abstract interface for embedding providers."""

    @abstractmethod
    def embed_text(self, text: str) -> List[float]:
        """Generate embedding vector for given text."""
        pass

    @abstractmethod
    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        pass

    def embed(self, text: str) -> List[float]:
        """Alias of embed_text."""
        return self.embed_text(text)


class DeterministicHashEmbedding(IEmbeddingProvider):
    """Deterministic hash-based embedding provider for tests and offline dry runs.

    Every dimension is filled from a SHA-256 stream seeded by the text, so the
    same input always yields the same non-zero vector without a model server.
    """

    def __init__(self, dimension: int = 384):
        self.dimension = dimension

    def embed_text(self, text: str) -> List[float]:
        """Generate deterministic embedding vector using hash function."""
        vector = []
        counter = 0
        while len(vector) < self.dimension:
            digest = hashlib.sha256(f"{counter}:{text}".encode()).hexdigest()
            for i in range(0, len(digest), 8):
                if len(vector) >= self.dimension:
                    break
                value = int(digest[i:i + 8], 16)
                # Map to [-1, 1]
                vector.append((value / (2**32)) * 2 - 1)
            counter += 1

        return vector

    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        return self.dimension


class OllamaEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by an Ollama-compatible /api/embeddings endpoint.

    Candidate models are tried once each, in configured order; the first model
    that returns a non-empty vector wins. When every candidate fails the
    attempted models are reported in EmbeddingUnavailable.
    """

    def __init__(self, config: EmbeddingConfig, client: Optional[ollama.Client] = None):
        self.config = config
        self._client = client
        self._dimension = None

    @property
    def client(self) -> ollama.Client:
        if self._client is None:
            self._client = ollama.Client(
                host=self.config.endpoint_base_url,
                timeout=self.config.timeout_seconds,
            )
        return self._client

    def embed_text(self, text: str) -> List[float]:
        """
        Embed text with the first candidate model that succeeds.

        Args:
            text: Text to embed

        Returns:
            Embedding vector as a list of floats

        Raises:
            EmbeddingUnavailable: If no candidate model produced an embedding
        """
        if not self.config.candidate_models:
            raise EmbeddingUnavailable("No embedding models configured", attempted_models=[])

        attempted = []
        failures = []

        for model in self.config.candidate_models:
            attempted.append(model)
            try:
                response = self.client.embeddings(model=model, prompt=text)
            except ollama.ResponseError as e:
                error = f"HTTP {e.status_code}: {e.error}"
            except (httpx.HTTPError, ConnectionError) as e:
                error = f"{e.__class__.__name__}: {e}"
            else:
                embedding = response.get("embedding") or []
                if embedding:
                    logger.log_embedding_attempt(model)
                    return [float(x) for x in embedding]
                error = "empty embedding returned"

            logger.log_embedding_attempt(model, status="failed", error=error)
            failures.append(f"{model} ({error})")

        raise EmbeddingUnavailable(
            f"All embedding models failed at {self.config.endpoint_base_url}: " + "; ".join(failures),
            attempted_models=attempted,
        )

    def get_dimension(self) -> int:
        """Get the dimension by embedding a probe string once."""
        if self._dimension is None:
            self._dimension = len(self.embed_text("dimension probe"))
        return self._dimension
