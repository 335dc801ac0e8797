"""
Conversation session cache.

One entry per (credential fingerprint, assistant name). The conversation
thread is created as soon as an entry is; the assistant handle is filled in
by the first chat turn. Entries are evicted least-recently-used once the
cache grows past its capacity.
"""

import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable

from openai import OpenAI

from helpcopilot.ai.openai.client import openai_errors
from helpcopilot.assistants.schemas import AssistantHandle
from helpcopilot.exceptions import ConfigurationError
from helpcopilot.rag.embedding_store import EmbeddingStore
from helpcopilot.utils.logger import logger

SessionKey = tuple[str, str]


@dataclass
class SessionCacheEntry:
    """Cached conversation state for one credential and assistant."""

    thread_id: str
    assistant_name: str
    assistant: AssistantHandle | None = None
    collection: str | None = None
    vector_index_id: str | None = None
    embedding_table: dict[str, list[float]] = field(default_factory=dict)


class SessionCache:
    """Thread-safe LRU cache of chat sessions."""

    def __init__(
        self,
        client: OpenAI,
        store: EmbeddingStore,
        capacity: int | None = 128,
        rebuild: Callable[[str], object] | None = None,
    ):
        """Initialize the cache.

        Args:
            client: OpenAI client used to create conversation threads
            store: Local embedding cache backing retrieval hints
            capacity: Max entries kept; None keeps every entry
            rebuild: Called with a collection name when its local cache is empty
        """
        self.client = client
        self.store = store
        self.capacity = capacity
        self.rebuild = rebuild
        self._entries: OrderedDict[SessionKey, SessionCacheEntry] = OrderedDict()
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: SessionKey) -> bool:
        with self._lock:
            return key in self._entries

    def _create_thread(self, vector_index_id: str | None) -> str:
        kwargs = {}
        if vector_index_id:
            kwargs["tool_resources"] = {"file_search": {"vector_store_ids": [vector_index_id]}}
        with openai_errors("Creating thread"):
            thread = self.client.beta.threads.create(**kwargs)
        return thread.id

    def _load_embedding_table(self, collection: str) -> dict[str, list[float]]:
        table = self.store.embedding_table(collection)
        if not table and self.rebuild is not None:
            logger.info("Local embedding cache empty, rebuilding", collection=collection)
            self.rebuild(collection)
            table = self.store.embedding_table(collection)
        if not table:
            logger.warning("No local embeddings available for hints", collection=collection)
        return table

    def get_or_create_session(
        self,
        fingerprint: str,
        assistant_name: str,
        want_hints: bool = False,
        collection: str | None = None,
        vector_index_id: str | None = None,
    ) -> SessionCacheEntry:
        """Return the session for a credential and assistant, creating it if needed.

        When ``want_hints`` is set the embedding table is reloaded from the
        local store on every call, so records added since the session was
        created are picked up.

        Raises:
            ConfigurationError: If hints are wanted but no collection is known
        """
        key = (fingerprint, assistant_name)

        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = SessionCacheEntry(
                    thread_id=self._create_thread(vector_index_id),
                    assistant_name=assistant_name,
                    collection=collection,
                    vector_index_id=vector_index_id,
                )
                self._entries[key] = entry
                logger.info(
                    "Created chat session",
                    assistant_name=assistant_name,
                    thread_id=entry.thread_id,
                )
                self._evict()
            else:
                self._entries.move_to_end(key)
                if collection:
                    entry.collection = collection

            if want_hints:
                if not entry.collection:
                    raise ConfigurationError(
                        "Retrieval hints need a module name to load local embeddings from"
                    )
                entry.embedding_table = self._load_embedding_table(entry.collection)

            return entry

    def _evict(self) -> None:
        if self.capacity is None:
            return
        while len(self._entries) > self.capacity:
            (_, name), evicted = self._entries.popitem(last=False)
            logger.info("Evicted chat session", assistant_name=name, thread_id=evicted.thread_id)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
