"""
Record types held by the vector store.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List


@dataclass
class VectorRecord:
    """Represents an embedded corpus entry with metadata."""

    id: str
    """Deterministic identifier, '{category}-{local index}'"""

    text: str
    """The 'name: description' text that was embedded"""

    embedding: List[float]
    """The vector representation of the text"""

    metadata: Dict[str, Any] = field(default_factory=dict)
    """Provenance (name, type, version, source) plus the original source fields"""

    def to_dict(self) -> Dict[str, Any]:
        """Convert record to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'VectorRecord':
        """Create record from dictionary (snapshot load)."""
        return cls(
            id=data["id"],
            text=data["text"],
            embedding=[float(x) for x in data["embedding"]],
            metadata=dict(data.get("metadata") or {}),
        )


@dataclass
class ScoredVectorRecord(VectorRecord):
    """A vector record ranked against one query vector."""

    score: float = 0.0
    """Cosine similarity to the query, in [-1, 1]"""

    @classmethod
    def from_record(cls, record: VectorRecord, score: float) -> 'ScoredVectorRecord':
        return cls(
            id=record.id,
            text=record.text,
            embedding=record.embedding,
            metadata=record.metadata,
            score=score,
        )
