"""OpenAI / Azure OpenAI provider configuration and persistence."""

import json
from enum import Enum
from pathlib import Path

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from helpcopilot.exceptions import ConfigurationError
from helpcopilot.utils.logger import logger

CONFIG_FILE_NAME = "config.json"


class AuthType(str, Enum):
    """How requests are authenticated against the provider."""

    OPENAI = "openai"
    AZURE = "azure"
    AZURE_AD = "azure_ad"


class ApiType(str, Enum):
    """Which provider flavour the API key belongs to."""

    OPENAI = "OpenAI"
    AZURE = "Azure"


class ProviderConfig(BaseModel):
    """Provider connection settings.

    Serialized with the PascalCase keys of the persisted config file
    (ApiKey, ApiBase, ...), populated by either name or alias.
    """

    model_config = ConfigDict(populate_by_name=True, use_enum_values=False)

    api_key: str | None = Field(default=None, alias="ApiKey")
    api_base: str | None = Field(default=None, alias="ApiBase")
    deployment: str | None = Field(default=None, alias="Deployment")
    api_type: ApiType = Field(default=ApiType.OPENAI, alias="ApiType")
    api_version: str | None = Field(default=None, alias="ApiVersion")
    auth_type: AuthType = Field(default=AuthType.OPENAI, alias="AuthType")
    organization: str | None = Field(default=None, alias="Organization")
    default_assistant: str | None = Field(default=None, alias="DefaultAssistant")

    @property
    def is_azure(self) -> bool:
        return self.api_type == ApiType.AZURE

    def require_api_key(self) -> str:
        """Return the API key or raise a ConfigurationError when missing."""
        if not self.api_key:
            raise ConfigurationError(
                "No API key configured. Run 'helpcopilot configure-provider --api-key ...' "
                "or set OPENAI_API_KEY / AZURE_OPENAI_API_KEY."
            )
        return self.api_key

    def masked(self) -> "ProviderConfig":
        """Copy of the config safe to print."""
        key = self.api_key
        if key:
            key = f"{key[:3]}...{key[-4:]}" if len(key) > 8 else "****"
        return self.model_copy(update={"api_key": key})

    def to_file_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class ProviderEnvSettings(BaseSettings):
    """Provider settings read from the conventional OpenAI / Azure variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("OPENAI_API_KEY", "AZURE_OPENAI_API_KEY"),
    )
    api_base: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "OPENAI_API_BASE", "OPENAI_BASE_URL", "AZURE_OPENAI_ENDPOINT"
        ),
    )
    deployment: str | None = Field(
        default=None,
        validation_alias=AliasChoices("AZURE_OPENAI_DEPLOYMENT", "OPENAI_DEPLOYMENT"),
    )
    api_version: str | None = Field(
        default=None,
        validation_alias=AliasChoices("OPENAI_API_VERSION", "AZURE_OPENAI_API_VERSION"),
    )
    api_type: str | None = Field(
        default=None, validation_alias=AliasChoices("OPENAI_API_TYPE")
    )
    organization: str | None = Field(
        default=None, validation_alias=AliasChoices("OPENAI_ORGANIZATION", "OPENAI_ORG_ID")
    )

    def to_provider_config(self) -> ProviderConfig:
        is_azure = (self.api_type or "").lower() == "azure" or bool(
            self.api_base and ".openai.azure.com" in self.api_base
        )
        return ProviderConfig(
            api_key=self.api_key,
            api_base=self.api_base,
            deployment=self.deployment,
            api_version=self.api_version,
            api_type=ApiType.AZURE if is_azure else ApiType.OPENAI,
            auth_type=AuthType.AZURE if is_azure else AuthType.OPENAI,
            organization=self.organization,
        )


class ConfigStore:
    """Reads and writes the persisted provider config file."""

    def __init__(self, config_dir: Path):
        self.config_dir = Path(config_dir)

    @property
    def path(self) -> Path:
        return self.config_dir / CONFIG_FILE_NAME

    def load(self) -> ProviderConfig | None:
        """Load the persisted config, or None when nothing was saved yet."""
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return ProviderConfig.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as e:
            raise ConfigurationError(
                f"Config file {self.path} is not valid: {e}", e
            ) from e

    def save(self, config: ProviderConfig) -> Path:
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps(config.to_file_dict(), indent=2), encoding="utf-8"
        )
        logger.info("Saved provider config", path=str(self.path))
        return self.path

    def reset(self) -> bool:
        """Delete the persisted config. Returns True when a file was removed."""
        if self.path.exists():
            self.path.unlink()
            logger.info("Removed provider config", path=str(self.path))
            return True
        return False


def resolve_provider_config(
    store: ConfigStore, env: ProviderEnvSettings | None = None
) -> ProviderConfig:
    """Prefer the persisted config file, falling back to environment variables.

    A file without an API key only holds preferences such as the default
    assistant; those are laid over the environment config.
    """
    persisted = store.load()
    if persisted is not None and persisted.api_key:
        return persisted
    env = env if env is not None else ProviderEnvSettings()
    config = env.to_provider_config()
    if persisted is not None:
        config = config.model_copy(update={"default_assistant": persisted.default_assistant})
    return config
