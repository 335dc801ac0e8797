"""Service for syncing local help records into OpenAI vector stores."""

import tempfile
import threading
import time
from pathlib import Path
from typing import Callable, Iterator, Sequence, TypeVar

import openai
from openai import OpenAI

from helpcopilot.ai.openai.client import openai_errors
from helpcopilot.rag.exceptions import VectorIndexFailedError, VectorIndexTimeoutError
from helpcopilot.rag.schemas import (
    EmbeddingRecord,
    PublishSummary,
    RemoteVectorIndex,
    VectorIndexStatus,
)
from helpcopilot.utils.logger import logger

T = TypeVar("T")

DEFAULT_BATCH_SIZE = 100
DEFAULT_MAX_TOTAL_FILES = 10000


def partition(items: Sequence[T], size: int) -> Iterator[list[T]]:
    """Split items into consecutive chunks of at most ``size``."""
    if size <= 0:
        raise ValueError("batch size must be positive")
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


class VectorStoreService:
    """Service for managing one remote vector store per collection version."""

    def __init__(
        self,
        client: OpenAI,
        poll_interval: float = 1.0,
        timeout: float = 120.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the vector store service.

        Args:
            client: OpenAI client
            poll_interval: Seconds between status polls
            timeout: Ceiling in seconds for an index to become ready
            sleep: Sleep function (swapped out in tests)
        """
        self.client = client
        self.poll_interval = poll_interval
        self.timeout = timeout
        self._sleep = sleep
        self._lock = threading.Lock()
        self._processed_total = 0

    @staticmethod
    def index_name(collection: str, version: str) -> str:
        return f"{collection} v{version}"

    @property
    def processed_total(self) -> int:
        with self._lock:
            return self._processed_total

    @staticmethod
    def _to_index(vector_store) -> RemoteVectorIndex:
        file_counts = getattr(vector_store, "file_counts", None)
        return RemoteVectorIndex(
            id=vector_store.id,
            name=vector_store.name or "",
            status=VectorIndexStatus(vector_store.status),
            file_count=getattr(file_counts, "total", 0) or 0,
        )

    def list_indexes(self) -> list[RemoteVectorIndex]:
        """List every vector store on the account, following pagination."""
        indexes = []
        cursor: str | None = None

        while True:
            kwargs = {"limit": 100}
            if cursor:
                kwargs["after"] = cursor
            with openai_errors("Listing vector indexes"):
                response = self.client.vector_stores.list(**kwargs)

            for vs in response.data or []:
                indexes.append(self._to_index(vs))

            if not getattr(response, "has_more", False) or not response.data:
                break
            cursor = getattr(response, "last_id", None) or response.data[-1].id

        return indexes

    def find_index(self, name: str) -> RemoteVectorIndex | None:
        for index in self.list_indexes():
            if index.name == name:
                return index
        return None

    def wait_for_index(self, index: RemoteVectorIndex) -> RemoteVectorIndex:
        """Poll until the index is completed.

        Raises:
            VectorIndexFailedError: If the index ends in a failed or expired state
            VectorIndexTimeoutError: If the timeout elapses first
        """
        deadline = time.monotonic() + self.timeout
        while True:
            if index.status == VectorIndexStatus.COMPLETED:
                return index
            if index.status in (VectorIndexStatus.FAILED, VectorIndexStatus.EXPIRED):
                raise VectorIndexFailedError(
                    f"Vector index '{index.name}' ({index.id}) is {index.status.value}"
                )
            if time.monotonic() >= deadline:
                raise VectorIndexTimeoutError(index.name, self.timeout)

            logger.info(
                "Waiting for vector index", vector_index_id=index.id, status=index.status.value
            )
            self._sleep(self.poll_interval)
            with openai_errors("Polling vector index"):
                vector_store = self.client.vector_stores.retrieve(index.id)
            index = self._to_index(vector_store)

    def ensure_index(self, collection: str, version: str) -> RemoteVectorIndex:
        """Get the index for a collection version, creating it if absent.

        Returns:
            RemoteVectorIndex: The index once its status is completed
        """
        name = self.index_name(collection, version)
        index = self.find_index(name)

        if index is None:
            logger.info("Creating new vector index", index_name=name)
            with openai_errors("Creating vector index"):
                vector_store = self.client.vector_stores.create(name=name)
            index = self._to_index(vector_store)
            logger.info("Created vector index", vector_index_id=index.id, index_name=name)
        else:
            logger.info("Found existing vector index", vector_index_id=index.id, index_name=name)

        return self.wait_for_index(index)

    def delete_index(self, index_id: str) -> bool:
        with openai_errors("Deleting vector index"):
            result = self.client.vector_stores.delete(index_id)
        logger.info("Deleted vector index", vector_index_id=index_id)
        return bool(getattr(result, "deleted", True))

    def _upload_batch(
        self, batch: list[EmbeddingRecord], summary: PublishSummary
    ) -> list[str]:
        file_ids = []
        with tempfile.TemporaryDirectory(prefix="helpcopilot-") as tmp:
            for record in batch:
                if not record.text.strip():
                    logger.warning("Skipping record with empty text", item_id=record.item_id)
                    summary.skipped += 1
                    continue

                path = Path(tmp) / f"{record.item_id}.txt"
                path.write_text(record.text, encoding="utf-8")
                try:
                    with open(path, "rb") as f:
                        uploaded = self.client.files.create(file=f, purpose="assistants")
                except openai.OpenAIError as e:
                    logger.warning(
                        "Failed to upload record, skipping",
                        item_id=record.item_id,
                        error=str(e),
                    )
                    summary.skipped += 1
                    continue
                file_ids.append(uploaded.id)
        return file_ids

    def _attach_batch(self, index: RemoteVectorIndex, file_ids: list[str]) -> None:
        with openai_errors("Attaching file batch"):
            batch = self.client.vector_stores.file_batches.create(
                vector_store_id=index.id, file_ids=file_ids
            )
        batch_id = getattr(batch, "id", None)
        if not batch_id:
            logger.warning(
                "File batch attach returned no handle; not waiting for it",
                vector_index_id=index.id,
                file_count=len(file_ids),
            )
            return

        with openai_errors("Polling file batch"):
            batch = self.client.vector_stores.file_batches.poll(
                batch_id, vector_store_id=index.id
            )
        if batch.status == "failed":
            raise VectorIndexFailedError(
                f"File batch {batch_id} failed for vector index '{index.name}'"
            )
        logger.info(
            "Attached file batch",
            vector_index_id=index.id,
            batch_id=batch_id,
            status=batch.status,
        )

    def publish(
        self,
        index: RemoteVectorIndex,
        records: Sequence[EmbeddingRecord],
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_total_files: int = DEFAULT_MAX_TOTAL_FILES,
    ) -> PublishSummary:
        """Upload record texts and attach them to the index batch by batch.

        Batches run strictly in order. Once ``max_total_files`` records have
        been processed by this service instance, remaining batches are
        dropped and the summary is marked aborted.

        Args:
            index: Target index
            records: Records to publish
            batch_size: Files per upload batch
            max_total_files: Cumulative ceiling for this service instance

        Returns:
            PublishSummary: Batch sizes, upload and skip counts
        """
        summary = PublishSummary(vector_index_id=index.id)

        for batch in partition(records, batch_size):
            with self._lock:
                remaining = max_total_files - self._processed_total
                if remaining <= 0:
                    summary.aborted = True
                elif len(batch) > remaining:
                    batch = batch[:remaining]
                    summary.aborted = True
                self._processed_total += max(0, min(len(batch), remaining))

            if remaining <= 0:
                logger.warning(
                    "File ceiling reached, dropping remaining batches",
                    max_total_files=max_total_files,
                )
                break

            summary.batches.append(len(batch))
            file_ids = self._upload_batch(batch, summary)
            if file_ids:
                self._attach_batch(index, file_ids)
                summary.uploaded += len(file_ids)
                summary.file_ids.extend(file_ids)

            logger.info(
                "Published batch",
                batch=len(summary.batches),
                size=len(batch),
                uploaded=len(file_ids),
            )

            if summary.aborted:
                logger.warning(
                    "File ceiling reached, dropping remaining batches",
                    max_total_files=max_total_files,
                )
                break

        return summary
