"""
Symlog Configuration

Centralized configuration using Pydantic Settings.
All configuration is loaded from environment variables with sensible defaults.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMSettings(BaseSettings):
    """Generator provider configuration."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="", extra="ignore"
    )

    # Anthropic (PRIMARY PROVIDER)
    anthropic_api_key: str | None = Field(default=None, alias="ANTHROPIC_API_KEY")
    anthropic_model: str = Field(default="claude-sonnet-4-20250514", alias="ANTHROPIC_MODEL")

    # OpenAI (FALLBACK)
    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")
    openai_model: str = Field(default="gpt-4o", alias="OPENAI_MODEL")

    temperature: float = Field(default=0.0, ge=0.0, le=2.0, alias="LLM_TEMPERATURE")
    max_tokens: int = Field(default=2048, ge=1, alias="LLM_MAX_TOKENS")

    default_provider: Literal["anthropic", "openai"] = Field(
        default="anthropic", alias="LLM_DEFAULT_PROVIDER"
    )


class ConversationSettings(BaseSettings):
    """Retry, iteration and linkage policy for the conversation engine."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="SYMLOG_", extra="ignore"
    )

    # Shared budget: tool round-trips and validation retries both count
    max_iterations: int = Field(default=5, ge=1, le=20)
    max_validation_attempts: int = Field(default=3, ge=1, le=10)
    backoff_base_ms: int = Field(default=100, ge=0)
    backoff_cap_ms: int = Field(default=1000, ge=0)
    generator_timeout_seconds: float = Field(default=30.0, gt=0.0)

    history_window: int = Field(default=20, ge=1)
    recent_records_limit: int = Field(default=5, ge=0, le=50)

    link_confidence_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    draft_ttl_hours: float = Field(default=24.0, gt=0.0)

    # On the last validation attempt, keep whatever validates instead of failing the turn
    accept_partial_on_final_attempt: bool = Field(default=True)


class StorageSettings(BaseSettings):
    """Storage configuration."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="", extra="ignore"
    )

    data_path: Path = Field(default=Path("~/.symlog"), alias="SYMLOG_DATA_PATH")
    db_path: Path = Field(default=Path("~/.symlog/symlog.db"), alias="SYMLOG_DB_PATH")

    @field_validator("data_path", "db_path", mode="before")
    @classmethod
    def resolve_path(cls, v: str | Path) -> Path:
        """Resolve path and expand user."""
        return Path(v).expanduser().resolve()


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="", extra="ignore"
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", alias="LOG_LEVEL"
    )
    log_format: Literal["json", "text"] = Field(default="text", alias="LOG_FORMAT")


class FeatureFlags(BaseSettings):
    """Feature flags for optional functionality."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="", extra="ignore"
    )

    debug: bool = Field(default=False, alias="SYMLOG_DEBUG")


class Settings(BaseSettings):
    """
    Main symlog settings aggregator.

    Usage:
        from symlog.config import get_settings
        settings = get_settings()
        print(settings.conversation.max_iterations)
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Sub-settings (composed)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    conversation: ConversationSettings = Field(default_factory=ConversationSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    features: FeatureFlags = Field(default_factory=FeatureFlags)


# Singleton pattern for settings
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance (singleton)."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (useful for testing)."""
    global _settings
    _settings = None
