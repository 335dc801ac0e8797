"""OpenAI module for AI operations."""

from helpcopilot.ai.openai.client import (
    create_openai_client,
    credential_fingerprint,
    embed_text,
    embed_texts,
    openai_errors,
)
from helpcopilot.ai.openai.config import (
    ApiType,
    AuthType,
    ConfigStore,
    ProviderConfig,
    ProviderEnvSettings,
    resolve_provider_config,
)
from helpcopilot.ai.openai.exceptions import (
    OpenAIAuthenticationError,
    OpenAIError,
    OpenAIRateLimitError,
    OpenAIRunError,
    from_openai_error,
)

__all__ = [
    "ApiType",
    "AuthType",
    "ConfigStore",
    "ProviderConfig",
    "ProviderEnvSettings",
    "resolve_provider_config",
    "create_openai_client",
    "credential_fingerprint",
    "embed_text",
    "embed_texts",
    "openai_errors",
    "OpenAIError",
    "OpenAIAuthenticationError",
    "OpenAIRunError",
    "OpenAIRateLimitError",
    "from_openai_error",
]
