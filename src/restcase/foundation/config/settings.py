"""Environment-based configuration using pydantic-settings.

Provides type-safe, validated configuration from environment variables
with sensible defaults. Supports .env files and nested configuration.

Example:
    >>> from restcase.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.http.timeout
    30.0
    >>> settings.logging.level
    'INFO'

    # Or with environment variables:
    # RESTCASE_CLIENT_ENDPOINT=https://api.example.com
    # RESTCASE_CACHE_RETENTION=60000
    # RESTCASE_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, NonNegativeFloat, PositiveFloat, PositiveInt, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """Where requests are sent."""

    model_config = SettingsConfigDict(
        env_prefix="RESTCASE_CLIENT_",
        extra="ignore",
    )

    endpoint: str = Field(default="", description="API base URL (i.e. https://api.domain.ext)")
    cors_proxy: str | None = Field(default=None, description="Proxy endpoint that replaces `endpoint` when set")
    cors_prefix: str | None = Field(default=None, description="Path prefix injected once into every template url")

    @field_validator("cors_prefix", mode="before")
    @classmethod
    def _strip_slashes(cls, v: str | None) -> str | None:
        """Stored without surrounding slashes; the leading one is added on injection."""
        return (v.strip("/") or None) if isinstance(v, str) else v

    @computed_field
    @property
    def base_url(self) -> str:
        """Endpoint requests are resolved against (the CORS proxy wins when configured)."""
        return self.cors_proxy or self.endpoint


class CacheSettings(BaseSettings):
    """Store-level cache defaults."""

    model_config = SettingsConfigDict(
        env_prefix="RESTCASE_CACHE_",
        extra="ignore",
    )

    retention: NonNegativeFloat | None = Field(
        default=None,
        description="Default retention in milliseconds (unset = entries never expire)",
    )
    evict_on_error: bool = False
    max_entries: PositiveInt | None = Field(default=None, description="Max entries kept by the memory store")


class HttpSettings(BaseSettings):
    """HTTP client default configuration."""

    model_config = SettingsConfigDict(
        env_prefix="RESTCASE_HTTP_",
        extra="ignore",
    )

    timeout: PositiveFloat = Field(default=30.0, description="Default request timeout in seconds")
    verify_ssl: bool = True
    follow_redirects: bool = True
    user_agent: str = "restcase-http/1.0"


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="RESTCASE_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "none"] = "console"

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class RestcaseSettings(BaseSettings):
    """Root settings for restcase clients.

    Loads configuration from environment variables with RESTCASE_ prefix.
    Supports nested configuration and .env files.

    Example environment variables:
        RESTCASE_CLIENT_ENDPOINT=https://api.example.com
        RESTCASE_CLIENT_CORS_PREFIX=relay
        RESTCASE_CACHE_RETENTION=3600000
        RESTCASE_HTTP_TIMEOUT=60
        RESTCASE_LOG_FORMAT=json
    """

    model_config = SettingsConfigDict(
        env_prefix="RESTCASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    client: ClientSettings = Field(default_factory=ClientSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    http: HttpSettings = Field(default_factory=HttpSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache(maxsize=1)
def get_settings() -> RestcaseSettings:
    """Get the global settings instance (cached)."""
    return RestcaseSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing).

    After calling this, the next get_settings() call will
    reload configuration from environment.
    """
    get_settings.cache_clear()
