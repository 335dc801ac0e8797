"""
Explicit runtime context.

Everything that would otherwise be process-wide state (provider config, the
OpenAI client, the session cache, the usage accumulator, the vector store
publish counter) hangs off one CopilotContext that callers create once and
pass to every operation.
"""

import time
from typing import Callable

from openai import OpenAI

from helpcopilot.ai.openai.client import create_openai_client, credential_fingerprint
from helpcopilot.ai.openai.config import (
    ConfigStore,
    ProviderConfig,
    ProviderEnvSettings,
    resolve_provider_config,
)
from helpcopilot.ai.usage import UsageTracker
from helpcopilot.assistants.service import AssistantService
from helpcopilot.chat.service import ChatService
from helpcopilot.chat.session_cache import SessionCache
from helpcopilot.config import AppSettings, get_app_settings
from helpcopilot.docs.introspection import ModuleHelpProvider
from helpcopilot.rag.cache_builder import build_local_cache
from helpcopilot.rag.embedding_store import EmbeddingStore
from helpcopilot.rag.vector_store_service import VectorStoreService


class CopilotContext:
    """Settings, provider config and lazily built services for one process."""

    def __init__(
        self,
        settings: AppSettings,
        provider: ProviderConfig,
        client: OpenAI | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = settings
        self.provider = provider
        self.config_store = ConfigStore(settings.config_dir)
        self.store = EmbeddingStore(settings.config_dir)
        self.usage = UsageTracker()
        self._client = client
        self.sleep = sleep
        self._vector_stores: VectorStoreService | None = None
        self._assistants: AssistantService | None = None
        self._sessions: SessionCache | None = None
        self._chat: ChatService | None = None

    @classmethod
    def from_environment(
        cls,
        settings: AppSettings | None = None,
        env: ProviderEnvSettings | None = None,
    ) -> "CopilotContext":
        """Build a context from the persisted config file or environment variables."""
        settings = settings or get_app_settings()
        provider = resolve_provider_config(ConfigStore(settings.config_dir), env)
        return cls(settings, provider)

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = create_openai_client(self.provider, self.settings.request_timeout)
        return self._client

    @property
    def fingerprint(self) -> str:
        return credential_fingerprint(self.provider)

    def use_provider(self, provider: ProviderConfig) -> None:
        """Switch to a new provider config, dropping anything bound to the old client."""
        self.provider = provider
        self._client = None
        self._vector_stores = None
        self._assistants = None
        self._sessions = None
        self._chat = None

    @property
    def vector_stores(self) -> VectorStoreService:
        if self._vector_stores is None:
            self._vector_stores = VectorStoreService(
                self.client,
                poll_interval=self.settings.index_poll_interval,
                timeout=self.settings.index_timeout_seconds,
                sleep=self.sleep,
            )
        return self._vector_stores

    @property
    def assistants(self) -> AssistantService:
        if self._assistants is None:
            self._assistants = AssistantService(self.client, self.vector_stores)
        return self._assistants

    @property
    def sessions(self) -> SessionCache:
        if self._sessions is None:
            self._sessions = SessionCache(
                self.client,
                self.store,
                capacity=self.settings.session_capacity,
                rebuild=self.rebuild_local_cache,
            )
        return self._sessions

    @property
    def chat_service(self) -> ChatService:
        if self._chat is None:
            self._chat = ChatService(
                self.client,
                self.settings,
                assistants=self.assistants,
                usage=self.usage,
                sleep=self.sleep,
            )
        return self._chat

    def chat_model(self) -> str:
        # Azure addresses models by deployment name
        if self.provider.is_azure and self.provider.deployment:
            return self.provider.deployment
        return self.settings.chat_model

    def embedding_model(self) -> str:
        return self.settings.embedding_model

    def rebuild_local_cache(self, module: str, force: bool = False) -> int:
        return build_local_cache(
            ModuleHelpProvider(module),
            self.store,
            self.client,
            self.embedding_model(),
            force=force,
            usage=self.usage,
        )
