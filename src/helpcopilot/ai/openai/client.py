"""OpenAI client construction and embedding helpers."""

import hashlib
from contextlib import contextmanager
from typing import Iterator

import httpx
import openai
from openai import AzureOpenAI, OpenAI

from helpcopilot.ai.openai.config import AuthType, ProviderConfig
from helpcopilot.ai.openai.exceptions import OpenAIAuthenticationError, from_openai_error
from helpcopilot.ai.usage import UsageTracker
from helpcopilot.utils.logger import logger

DEFAULT_AZURE_API_VERSION = "2024-05-01-preview"


def create_openai_client(
    config: ProviderConfig, request_timeout: int = 120
) -> OpenAI:
    """Build a sync OpenAI or AzureOpenAI client from a provider config.

    Args:
        config: Resolved provider config
        request_timeout: HTTP timeout in seconds

    Returns:
        OpenAI: Client instance (AzureOpenAI is a subclass)

    Raises:
        ConfigurationError: If no API key is configured
        OpenAIAuthenticationError: If the SDK refuses the configuration
    """
    api_key = config.require_api_key()
    timeout = httpx.Timeout(timeout=request_timeout, connect=10.0)

    try:
        if config.is_azure:
            if not config.api_base:
                raise OpenAIAuthenticationError(
                    "Azure OpenAI requires ApiBase (the resource endpoint)"
                )
            azure_kwargs = {
                "azure_endpoint": config.api_base,
                "api_version": config.api_version or DEFAULT_AZURE_API_VERSION,
                "azure_deployment": config.deployment,
                "timeout": timeout,
            }
            if config.auth_type == AuthType.AZURE_AD:
                client = AzureOpenAI(azure_ad_token=api_key, **azure_kwargs)
            else:
                client = AzureOpenAI(api_key=api_key, **azure_kwargs)
        else:
            client = OpenAI(
                api_key=api_key,
                base_url=config.api_base or None,
                organization=config.organization or None,
                timeout=timeout,
            )
    except OpenAIAuthenticationError:
        raise
    except Exception as e:
        logger.error("[OPENAI] Failed to initialize client", error=str(e))
        raise OpenAIAuthenticationError(
            f"Failed to configure OpenAI client: {e}", e
        ) from e

    logger.info(
        "[OPENAI] Client initialized",
        api_type=config.api_type.value,
        timeout_seconds=request_timeout,
    )
    return client


def credential_fingerprint(config: ProviderConfig) -> str:
    """Stable, non-reversible identifier for the credential in use."""
    material = f"{config.api_type.value}|{config.api_base or ''}|{config.api_key or ''}"
    return hashlib.sha256(material.encode("utf-8")).hexdigest()[:16]


@contextmanager
def openai_errors(action: str) -> Iterator[None]:
    """Re-raise openai SDK exceptions from the wrapped block as OpenAIError subclasses."""
    try:
        yield
    except openai.OpenAIError as e:
        logger.error("[OPENAI] Request failed", action=action, error=str(e))
        raise from_openai_error(action, e) from e


def embed_texts(
    client: OpenAI,
    texts: list[str],
    model: str,
    usage: UsageTracker | None = None,
) -> list[list[float]]:
    """Embed several texts in one request, preserving input order."""
    with openai_errors("Embedding request"):
        response = client.embeddings.create(model=model, input=texts)
    data = sorted(response.data, key=lambda item: item.index)
    if usage is not None and getattr(response, "usage", None) is not None:
        usage.add(model, prompt_tokens=response.usage.total_tokens)
    logger.debug("[EMBEDDER] Generated embeddings", count=len(data), model=model)
    return [list(item.embedding) for item in data]


def embed_text(
    client: OpenAI, text: str, model: str, usage: UsageTracker | None = None
) -> list[float]:
    return embed_texts(client, [text], model, usage=usage)[0]
