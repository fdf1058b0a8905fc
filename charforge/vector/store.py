"""
Snapshot-backed vector store answering text queries.
"""

from pathlib import Path
from typing import List, Optional, Union

from ..core.errors import EmbeddingUnavailable, StoreNotFound
from .embeddings import IEmbeddingProvider
from .index import SimpleInMemoryVectorStore
from .snapshot import read_snapshot
from .types import VectorRecord, ScoredVectorRecord
from util.logging import logger


class VectorStore:
    """
    Read-only view over a persisted snapshot.

    Queries embed the text with the configured provider and rank every stored
    record by cosine similarity. Records are loaded once and never mutated by
    queries, so one instance can serve concurrent readers.

    Example:
        >>> store = VectorStore(provider, snapshot_path="data/dnd_vectors.json")
        >>> hits = store.query("How does a wizard prepare spells?", top_k=3)
    """

    def __init__(
        self,
        embedding_provider: IEmbeddingProvider,
        snapshot_path: Optional[Union[str, Path]] = None,
        records: Optional[List[VectorRecord]] = None,
    ):
        """
        Args:
            embedding_provider: Provider used to embed query text
            snapshot_path: Snapshot file produced by corpus ingestion
            records: Pre-loaded records; takes the place of a snapshot file
        """
        self.embedding_provider = embedding_provider
        self.snapshot_path = Path(snapshot_path) if snapshot_path is not None else None
        self._index = SimpleInMemoryVectorStore(records) if records is not None else None

    def load(self) -> List[VectorRecord]:
        """
        Deserialize the persisted snapshot.

        Raises:
            StoreNotFound: If no snapshot has been built yet
        """
        if self.snapshot_path is None:
            if self._index is not None:
                return self._index.records()
            raise StoreNotFound("Vector store has no snapshot path and no records")

        records = read_snapshot(self.snapshot_path)
        self._index = SimpleInMemoryVectorStore(records)
        logger.log_operation("vector.load", "success", {
            "path": str(self.snapshot_path),
            "record_count": len(records)
        })
        return records

    def _ensure_loaded(self) -> SimpleInMemoryVectorStore:
        if self._index is None:
            self.load()
        return self._index

    def query(self, text: str, top_k: int = 3) -> List[ScoredVectorRecord]:
        """
        Rank stored records against a text query.

        Args:
            text: Query text
            top_k: Maximum number of results, at least 1

        Returns:
            Records ordered by descending score, at most top_k of them

        Raises:
            ValueError: If top_k < 1
            StoreNotFound: If no snapshot exists
            EmbeddingUnavailable: If the query cannot be embedded, or its
                embedding dimension differs from the stored records
        """
        if top_k < 1:
            raise ValueError(f"top_k must be >= 1, got {top_k}")

        index = self._ensure_loaded()
        if len(index) == 0:
            logger.log_vector_query(text, top_k, 0, {"empty_store": True})
            return []

        query_vector = self.embedding_provider.embed(text)
        if len(query_vector) != index.dimension:
            raise EmbeddingUnavailable(
                f"Query embedding has dimension {len(query_vector)} but the store holds "
                f"dimension {index.dimension}; rebuild the snapshot with the current embedding model"
            )

        results = index.search(query_vector, top_k)

        logger.log_vector_query(text, top_k, len(results), {
            "top_score": round(results[0].score, 4) if results else None
        })
        return results

    def __len__(self) -> int:
        return len(self._ensure_loaded())
