"""
Vector retrieval over the SRD corpus - embeddings, in-memory index, snapshot store.
"""

from .index import IVectorStore, SimpleInMemoryVectorStore, cosine_similarity
from .store import VectorStore
from .snapshot import read_snapshot, write_snapshot
from .types import VectorRecord, ScoredVectorRecord
from .embeddings import IEmbeddingProvider, DeterministicHashEmbedding, OllamaEmbeddingProvider
from .corpus import CorpusIngestor, render_text, record_id

__all__ = [
    'IVectorStore',
    'SimpleInMemoryVectorStore',
    'cosine_similarity',
    'VectorStore',
    'read_snapshot',
    'write_snapshot',
    'VectorRecord',
    'ScoredVectorRecord',
    'IEmbeddingProvider',
    'DeterministicHashEmbedding',
    'OllamaEmbeddingProvider',
    'CorpusIngestor',
    'render_text',
    'record_id'
]
