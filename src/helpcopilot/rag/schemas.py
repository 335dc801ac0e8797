"""Pydantic schemas for the retrieval layer."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class EmbeddingRecord(BaseModel):
    """One command's normalized help text and its embedding.

    Persisted as {"Command", "Text", "Embedding"}.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    item_id: str = Field(..., alias="Command")
    text: str = Field(..., alias="Text")
    embedding: list[float] = Field(..., alias="Embedding")


class CollectionInfo(BaseModel):
    """A collection directory in the local embedding cache."""

    name: str
    path: Path
    versions: list[str] = Field(default_factory=list)


class VectorIndexStatus(str, Enum):
    """Lifecycle of a remote vector index."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    EXPIRED = "expired"


class RemoteVectorIndex(BaseModel):
    """A provider-side vector store holding one collection version."""

    id: str
    name: str
    status: VectorIndexStatus
    file_count: int = 0


class PublishSummary(BaseModel):
    """Outcome of publishing records to a remote vector index."""

    vector_index_id: str
    batches: list[int] = Field(default_factory=list)
    uploaded: int = 0
    skipped: int = 0
    file_ids: list[str] = Field(default_factory=list)
    aborted: bool = False
