"""
Tests for configuration module.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from urlcache.config import (
    DEFAULT_NAMESPACE,
    CacheConfig,
    Settings,
    clear_settings_cache,
    get_settings,
)
from urlcache.exceptions import ConfigurationError
from urlcache.fetch import default_user_agent
from urlcache.logging import reset_logging
from urlcache.manager import CacheManager


class TestSettings:
    """Tests for Settings loading and validation."""

    def test_settings_loads_from_env(self, mock_env_vars: dict[str, str]) -> None:
        settings = get_settings()

        assert settings.CACHE_ROOT == Path(mock_env_vars["URLCACHE_CACHE_ROOT"])
        assert settings.CACHE_NAMESPACE == "envapp"
        assert settings.USER_AGENT == "TestAgent/1.0"
        assert settings.LOG_LEVEL == "DEBUG"

    def test_defaults(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)
        assert settings.CACHE_ROOT is None
        assert settings.CACHE_NAMESPACE is None
        assert settings.USER_AGENT is None
        assert settings.LOG_LEVEL == "INFO"
        assert settings.LOG_FILE is None

    def test_blank_namespace_is_unset(self) -> None:
        with patch.dict(os.environ, {"URLCACHE_CACHE_NAMESPACE": "   "}, clear=True):
            settings = Settings(_env_file=None)
        assert settings.CACHE_NAMESPACE is None

    def test_invalid_log_level(self) -> None:
        with patch.dict(os.environ, {"URLCACHE_LOG_LEVEL": "LOUD"}, clear=True):
            with pytest.raises(ValidationError):
                Settings(_env_file=None)

    def test_get_settings_is_cached(self, mock_env_vars: dict[str, str]) -> None:
        assert get_settings() is get_settings()
        clear_settings_cache()
        assert get_settings() == get_settings()


class TestCacheConfig:
    """Tests for the explicit config value."""

    def test_resolved_namespace_default(self) -> None:
        assert CacheConfig().resolved_namespace == DEFAULT_NAMESPACE
        assert CacheConfig(namespace=" ").resolved_namespace == DEFAULT_NAMESPACE

    def test_config_is_immutable(self) -> None:
        config = CacheConfig(namespace="a")
        with pytest.raises(AttributeError):
            config.namespace = "b"  # type: ignore[misc]

    def test_from_settings(self, mock_env_vars: dict[str, str]) -> None:
        config = CacheConfig.from_settings()
        assert config.namespace == "envapp"
        assert config.root == Path(mock_env_vars["URLCACHE_CACHE_ROOT"])
        assert config.user_agent == "TestAgent/1.0"


class TestManagerFromSettings:
    """Tests for building a manager from the environment."""

    def test_manager_uses_env_settings(self, mock_env_vars: dict[str, str]) -> None:
        cache = CacheManager.from_settings()
        root = Path(mock_env_vars["URLCACHE_CACHE_ROOT"])
        assert cache.directory == root / "envapp" / "cache"
        assert cache.fetcher.user_agent == "TestAgent/1.0"

    def test_manager_default_user_agent(self, temp_dir: Path) -> None:
        cache = CacheManager(CacheConfig(root=temp_dir))
        assert cache.fetcher.user_agent == default_user_agent()

    def test_log_file_setting_is_applied(
        self, mock_env_vars: dict[str, str], temp_dir: Path
    ) -> None:
        log_file = temp_dir / "cache.jsonl"
        with patch.dict(os.environ, {"URLCACHE_LOG_FILE": str(log_file)}):
            clear_settings_cache()
            try:
                CacheManager.from_settings()
                handlers = logging.getLogger("urlcache").handlers
                assert any(
                    isinstance(h, logging.FileHandler) and Path(h.baseFilename) == log_file
                    for h in handlers
                )
            finally:
                reset_logging()

    def test_invalid_env_raises_configuration_error(self) -> None:
        with patch.dict(os.environ, {"URLCACHE_LOG_LEVEL": "LOUD"}, clear=False):
            clear_settings_cache()
            with pytest.raises(ConfigurationError):
                CacheManager.from_settings()
