from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_RETRIEVAL_REMINDER = (
    "\n\nUse the retrieval documents attached to this assistant to answer. "
    "If they do not cover the question, say so."
)


def default_config_dir() -> Path:
    return Path.home() / ".helpcopilot"


class AppSettings(BaseSettings):
    """Application settings.

    All settings can be configured via environment variables with the
    HELPCOPILOT_ prefix or a local .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="HELPCOPILOT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    config_dir: Path = Field(
        default_factory=default_config_dir,
        description="Directory holding config.json and the local embedding cache",
    )
    chat_model: str = Field(
        default="gpt-4o-mini",
        description="Model (or Azure deployment) used when creating assistants",
    )
    embedding_model: str = Field(
        default="text-embedding-3-small",
        description="Embedding model (or Azure deployment) for local hints",
    )
    hint_count: int = Field(
        default=5, gt=0, description="Number of retrieved suggestions prefixed to a hinted turn"
    )
    max_output_tokens: int = Field(
        default=2048, gt=0, description="Max completion tokens per assistant run"
    )
    max_rate_limit_retries: int = Field(
        default=5, ge=0, description="Retries of a run that was silently rate limited"
    )
    default_rate_limit_wait: float = Field(
        default=60.0, ge=0.0, description="Backoff when no wait time can be parsed"
    )
    retrieval_reminder: str = Field(
        default=DEFAULT_RETRIEVAL_REMINDER,
        description="Text appended to unhinted turns to push the model towards file search",
    )
    session_capacity: int | None = Field(
        default=128,
        gt=0,
        description="Max cached chat sessions before least-recently-used eviction (None = unbounded)",
    )
    index_poll_interval: float = Field(
        default=1.0, gt=0.0, description="Seconds between vector index status polls"
    )
    index_timeout_seconds: float = Field(
        default=120.0, gt=0.0, description="Ceiling for waiting on a vector index"
    )
    publish_batch_size: int = Field(
        default=100, gt=0, description="Files uploaded per vector store file batch"
    )
    max_total_files: int = Field(
        default=10000, gt=0, description="Files published per process before further batches are dropped"
    )
    request_timeout: int = Field(
        default=120, gt=0, description="HTTP request timeout in seconds"
    )


@lru_cache
def get_app_settings() -> AppSettings:
    """Get cached application settings instance.

    Returns:
        AppSettings: Cached settings instance
    """
    return AppSettings()
