"""Application Settings and Configuration

Pydantic-based settings management using environment variables.
Settings are loaded from environment variables with support for .env files,
type validation, and sensible defaults. All settings are frozen and immutable
after initialization.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.shared.messages import ErrorMessages
from ..domain.shared.types import BusyTimeoutMs, ConnectionTimeoutS, HttpTimeoutS


class DatabaseSettings(BaseModel):
    """Database configuration."""

    model_config = SettingsConfigDict(frozen=True, strict=True, populate_by_name=True)

    url: str = Field(
        default="sqlite:///data/requests.db",
        validation_alias=AliasChoices("url", "database_url", "db_url"),
    )
    busy_timeout_ms: BusyTimeoutMs = Field(
        default=5000,
        validation_alias=AliasChoices("busy_timeout_ms", "busy_timeout"),
    )
    connection_timeout_s: ConnectionTimeoutS = Field(
        default=10,
        validation_alias=AliasChoices("connection_timeout_s", "connection_timeout"),
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate database URL format."""
        if not v.startswith("sqlite://"):
            raise ValueError(ErrorMessages.INVALID_DATABASE_URL)
        return v


class QueueSettings(BaseModel):
    """Request admission defaults. Persisted operator values take precedence."""

    model_config = SettingsConfigDict(frozen=True, strict=True, populate_by_name=True)

    standard_max_duration_seconds: int = Field(
        default=300,
        ge=1,
        le=86_400,
        validation_alias=AliasChoices("standard_max_duration_seconds", "max_duration"),
    )
    elevated_max_duration_seconds: int = Field(
        default=600,
        ge=1,
        le=86_400,
        validation_alias=AliasChoices("elevated_max_duration_seconds", "donation_max_duration"),
    )
    archive_page_size: int = Field(default=50, ge=1, le=1000)


class YouTubeSettings(BaseModel):
    """Metadata resolver configuration."""

    model_config = SettingsConfigDict(frozen=True, strict=True, populate_by_name=True)

    api_key: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices("api_key", "youtube_api_key"),
    )
    backend: Literal["auto", "api", "ytdlp"] = "auto"
    timeout_s: HttpTimeoutS = 10.0

    @property
    def use_api(self) -> bool:
        if self.backend == "auto":
            return bool(self.api_key.get_secret_value())
        return self.backend == "api"


class SpotifySettings(BaseModel):
    """Secondary catalog configuration."""

    model_config = SettingsConfigDict(frozen=True, strict=True, populate_by_name=True)

    client_id: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices("client_id", "spotify_client_id"),
    )
    client_secret: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices("client_secret", "spotify_client_secret"),
    )
    max_results_per_query: int = Field(default=5, ge=1, le=50)
    market: str | None = None
    timeout_s: HttpTimeoutS = 10.0

    @property
    def has_credentials(self) -> bool:
        return bool(self.client_id.get_secret_value() and self.client_secret.get_secret_value())


class TwitchSettings(BaseModel):
    """Identity directory configuration."""

    model_config = SettingsConfigDict(frozen=True, strict=True, populate_by_name=True)

    client_id: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices("client_id", "twitch_client_id"),
    )
    client_secret: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices("client_secret", "twitch_client_secret"),
    )
    timeout_s: HttpTimeoutS = 5.0

    @property
    def has_credentials(self) -> bool:
        return bool(self.client_id.get_secret_value() and self.client_secret.get_secret_value())


class Settings(BaseSettings):
    """Application settings container.

    Automatically loads configuration from environment variables.

    Environment variable naming:
    - ENVIRONMENT, DEBUG, LOG_LEVEL (top-level)
    - DATABASE__URL, QUEUE__STANDARD_MAX_DURATION_SECONDS, etc. (nested)
    - YOUTUBE__API_KEY, SPOTIFY__CLIENT_ID, TWITCH__CLIENT_ID, etc. (nested)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        strict=True,
    )

    environment: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    queue: QueueSettings = Field(default_factory=QueueSettings)
    youtube: YouTubeSettings = Field(default_factory=YouTubeSettings)
    spotify: SpotifySettings = Field(default_factory=SpotifySettings)
    twitch: TwitchSettings = Field(default_factory=TwitchSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                ErrorMessages.INVALID_LOG_LEVEL.format(level=v, valid_levels=valid_levels)
            )
        return v_upper


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are automatically loaded from:
    1. .env file (if present)
    2. Environment variables
    3. Default values
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
