"""
Configuration management using pydantic-settings.

Settings are loaded from URLCACHE_* environment variables and .env files.
The cache itself never reads them implicitly: they are converted into an
explicit CacheConfig value that is passed to the CacheManager.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_NAMESPACE = "urlcache"

# Subfolder under <root>/<namespace> that holds cached files
CACHE_SUBFOLDER = "cache"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Optional:
        URLCACHE_CACHE_ROOT: Base directory instead of the platform data dir
        URLCACHE_CACHE_NAMESPACE: Application namespace for the cache
        URLCACHE_USER_AGENT: User-Agent header sent on fetches
        URLCACHE_LOG_LEVEL: Logging level
        URLCACHE_LOG_FILE: JSON lines log file
    """

    model_config = SettingsConfigDict(
        env_prefix="URLCACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    CACHE_ROOT: Path | None = Field(
        default=None, description="Base directory for cache namespaces"
    )
    CACHE_NAMESPACE: str | None = Field(
        default=None, description="Application namespace"
    )
    USER_AGENT: str | None = Field(
        default=None, description="User-Agent header for fetches"
    )

    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    LOG_FILE: Path | None = Field(default=None, description="JSON lines log file")

    @field_validator("CACHE_NAMESPACE", "USER_AGENT")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        """Treat blank strings as unset."""
        if v is None or not v.strip():
            return None
        return v.strip()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Raises:
        ValidationError: If settings are invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()


@dataclass(frozen=True)
class CacheConfig:
    """Explicit, immutable configuration for one CacheManager.

    Attributes:
        namespace: Application namespace; blank or None means DEFAULT_NAMESPACE.
        root: Base directory; None means the platform user data directory.
        user_agent: User-Agent header; None means the built-in default.
    """

    namespace: str | None = None
    root: Path | None = None
    user_agent: str | None = None

    @property
    def resolved_namespace(self) -> str:
        """Namespace after trimming, falling back to the default."""
        if self.namespace and self.namespace.strip():
            return self.namespace.strip()
        return DEFAULT_NAMESPACE

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> CacheConfig:
        """Build a config from environment settings."""
        settings = settings or get_settings()
        return cls(
            namespace=settings.CACHE_NAMESPACE,
            root=settings.CACHE_ROOT,
            user_agent=settings.USER_AGENT,
        )
