"""
Retrieval layer: text normalization, the local embedding cache, cosine
similarity ranking and syncing records into remote vector stores.
"""

from helpcopilot.rag.embedding_store import EmbeddingStore, list_collections
from helpcopilot.rag.exceptions import (
    DimensionMismatchError,
    RagError,
    VectorIndexFailedError,
    VectorIndexTimeoutError,
)
from helpcopilot.rag.normalizer import normalize
from helpcopilot.rag.schemas import (
    CollectionInfo,
    EmbeddingRecord,
    PublishSummary,
    RemoteVectorIndex,
    VectorIndexStatus,
)
from helpcopilot.rag.similarity import cosine_similarity, rank
from helpcopilot.rag.vector_store_service import VectorStoreService, partition

__all__ = [
    "CollectionInfo",
    "DimensionMismatchError",
    "EmbeddingRecord",
    "EmbeddingStore",
    "PublishSummary",
    "RagError",
    "RemoteVectorIndex",
    "VectorIndexFailedError",
    "VectorIndexStatus",
    "VectorIndexTimeoutError",
    "VectorStoreService",
    "cosine_similarity",
    "list_collections",
    "normalize",
    "partition",
    "rank",
]
