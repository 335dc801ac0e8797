"""
Local on-disk embedding cache.

Layout:
    <base_path>/<collection>/<version>/<item_id>.json

Each file holds one EmbeddingRecord as {"Command", "Text", "Embedding"}.
The active version of a collection is the greatest directory name by plain
string comparison, so "9.0.0" sorts after "10.0.0".
"""

import json
from pathlib import Path
from typing import Sequence

from pydantic import ValidationError

from helpcopilot.rag.schemas import CollectionInfo, EmbeddingRecord
from helpcopilot.utils.logger import logger

RECORD_SUFFIX = ".json"


class EmbeddingStore:
    """File-per-record embedding cache grouped by collection and version."""

    def __init__(self, base_path: Path):
        self.base_path = Path(base_path)

    def _record_path(self, collection: str, version: str, item_id: str) -> Path:
        for part in (collection, version, item_id):
            if not part or "/" in part or "\\" in part or part in (".", ".."):
                raise ValueError(f"Invalid cache path segment: {part!r}")
        return self.base_path / collection / version / f"{item_id}{RECORD_SUFFIX}"

    def exists(self, collection: str, version: str, item_id: str) -> bool:
        return self._record_path(collection, version, item_id).exists()

    def write(
        self,
        collection: str,
        version: str,
        item_id: str,
        text: str,
        embedding: Sequence[float],
        force: bool = False,
    ) -> bool:
        """Persist one record.

        Args:
            collection: Collection (module) name
            version: Collection version string
            item_id: Command name
            text: Normalized help text
            embedding: Embedding vector
            force: Overwrite an existing record

        Returns:
            bool: True if the file was written, False if an existing record was kept
        """
        path = self._record_path(collection, version, item_id)
        if path.exists() and not force:
            logger.debug("Embedding record exists, skipping", path=str(path))
            return False

        path.parent.mkdir(parents=True, exist_ok=True)
        record = EmbeddingRecord(item_id=item_id, text=text, embedding=list(embedding))
        path.write_text(
            json.dumps(record.model_dump(by_alias=True)), encoding="utf-8"
        )
        return True

    def versions(self, collection: str) -> list[str]:
        collection_dir = self.base_path / collection
        if not collection_dir.is_dir():
            return []
        return sorted(p.name for p in collection_dir.iterdir() if p.is_dir())

    def latest_version(self, collection: str) -> str | None:
        """Greatest version directory name by string sort, or None."""
        versions = self.versions(collection)
        return versions[-1] if versions else None

    def read_version(self, collection: str, version: str) -> list[EmbeddingRecord]:
        """Load every record of one collection version, skipping unreadable files."""
        version_dir = self.base_path / collection / version
        if not version_dir.is_dir():
            return []

        records = []
        for path in sorted(version_dir.glob(f"*{RECORD_SUFFIX}")):
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
                records.append(EmbeddingRecord.model_validate(data))
            except (OSError, json.JSONDecodeError, ValidationError) as e:
                logger.warning(
                    "Skipping unreadable embedding record", path=str(path), error=str(e)
                )
        return records

    def read_latest(self, collection: str) -> list[EmbeddingRecord]:
        """Load the records of the active (latest) version of a collection.

        Returns an empty list when the collection has never been cached.
        """
        version = self.latest_version(collection)
        if version is None:
            return []
        records = self.read_version(collection, version)
        logger.info(
            "Loaded embedding records",
            collection=collection,
            version=version,
            count=len(records),
        )
        return records

    def embedding_table(self, collection: str) -> dict[str, list[float]]:
        """Map item_id -> embedding for the latest version of a collection."""
        return {r.item_id: r.embedding for r in self.read_latest(collection)}

    def list_collections(self) -> list[CollectionInfo]:
        """One entry per immediate subdirectory of the cache root."""
        if not self.base_path.is_dir():
            return []
        return [
            CollectionInfo(name=p.name, path=p, versions=self.versions(p.name))
            for p in sorted(self.base_path.iterdir())
            if p.is_dir()
        ]


def list_collections(base_path: Path) -> list[CollectionInfo]:
    return EmbeddingStore(base_path).list_collections()
