"""Configuration management using pydantic-settings.

Provides environment-based configuration with type safety and validation.
"""

from .settings import (
    CacheSettings,
    ClientSettings,
    HttpSettings,
    LoggingSettings,
    RestcaseSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "CacheSettings",
    "ClientSettings",
    "HttpSettings",
    "LoggingSettings",
    "RestcaseSettings",
    "clear_settings_cache",
    "get_settings",
]
