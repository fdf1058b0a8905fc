"""
In-memory vector index with brute-force cosine similarity search.
"""

from abc import ABC, abstractmethod
from typing import Iterator, List, Optional, Sequence
import numpy as np

from ..core.errors import EmbeddingUnavailable
from .types import VectorRecord, ScoredVectorRecord


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine of the angle between two vectors.

    Raises:
        ValueError: If the vectors differ in length
        EmbeddingUnavailable: If either vector has zero norm
    """
    vec_a = np.asarray(a, dtype=np.float64)
    vec_b = np.asarray(b, dtype=np.float64)

    if vec_a.shape != vec_b.shape:
        raise ValueError(f"Vector dimension {vec_a.shape[0]} does not match dimension {vec_b.shape[0]}")

    norm_a = np.linalg.norm(vec_a)
    norm_b = np.linalg.norm(vec_b)
    if norm_a == 0 or norm_b == 0:
        raise EmbeddingUnavailable("Cosine similarity is undefined for a zero-norm embedding")

    return float(np.dot(vec_a, vec_b) / (norm_a * norm_b))


class IVectorStore(ABC):
    """Abstract interface for vector storage operations."""

    @abstractmethod
    def add(self, record: VectorRecord) -> Optional[VectorRecord]:
        """Add a single vector record, returning any record it replaced."""
        pass

    @abstractmethod
    def batch_add(self, records: List[VectorRecord]) -> None:
        """Add multiple vector records to the store."""
        pass

    @abstractmethod
    def search(self, query_vector: Sequence[float], top_k: int = 5) -> List[ScoredVectorRecord]:
        """Search for similar vectors and return ranked results."""
        pass

    @abstractmethod
    def delete(self, record_id: str) -> None:
        """Delete a vector record by ID."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Clear all records from the store."""
        pass


class SimpleInMemoryVectorStore(IVectorStore):
    """Ordered in-memory implementation of IVectorStore using cosine similarity.

    Records keep insertion order. Adding a record whose id already exists
    removes the old record entirely and appends the new one at the end.
    """

    def __init__(self, records: Optional[List[VectorRecord]] = None):
        self._records = {}  # record_id -> VectorRecord, insertion ordered
        if records:
            self.batch_add(records)

    def add(self, record: VectorRecord) -> Optional[VectorRecord]:
        """Add a single vector record, replacing (not merging) any same-id record."""
        replaced = self._records.pop(record.id, None)
        self._records[record.id] = record
        return replaced

    def batch_add(self, records: List[VectorRecord]) -> None:
        """Add multiple vector records to the store."""
        for record in records:
            self.add(record)

    def search(self, query_vector: Sequence[float], top_k: int = 5) -> List[ScoredVectorRecord]:
        """Rank every record against the query, highest score first.

        Ties keep insertion order (sorted() is stable, including with reverse=True).
        """
        if top_k < 1:
            raise ValueError(f"top_k must be >= 1, got {top_k}")
        if not self._records:
            return []

        scored = [
            ScoredVectorRecord.from_record(record, cosine_similarity(query_vector, record.embedding))
            for record in self._records.values()
        ]
        ranked = sorted(scored, key=lambda item: item.score, reverse=True)
        return ranked[:top_k]

    def delete(self, record_id: str) -> None:
        """Delete a vector record by ID."""
        self._records.pop(record_id, None)

    def clear(self) -> None:
        """Clear all records from the store."""
        self._records.clear()

    def get(self, record_id: str) -> Optional[VectorRecord]:
        return self._records.get(record_id)

    @property
    def dimension(self) -> Optional[int]:
        """Embedding length of the stored records, None when empty."""
        for record in self._records.values():
            return len(record.embedding)
        return None

    def records(self) -> List[VectorRecord]:
        """All records in insertion order."""
        return list(self._records.values())

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record_id: str) -> bool:
        return record_id in self._records

    def __iter__(self) -> Iterator[VectorRecord]:
        return iter(list(self._records.values()))
