"""
Pytest configuration and fixtures for urlcache tests.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Generator
from unittest.mock import patch

import httpx
import pytest

from urlcache.config import CacheConfig, clear_settings_cache
from urlcache.fetch import Fetcher
from urlcache.logging import reset_logging
from urlcache.manager import CacheManager

from helpers import APP_NAME, FakeRemote, KeepAliveServer, TrickleServer

PROXY_ENV_VARS = ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY")


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for cache roots."""
    return tmp_path


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
def fetcher(remote: FakeRemote) -> Fetcher:
    """Fetcher wired to the fake remote for both blocking and async calls."""
    return Fetcher(transport=httpx.MockTransport(remote))


@pytest.fixture
def manager(temp_dir: Path, fetcher: Fetcher) -> Generator[CacheManager, None, None]:
    """CacheManager for the "myapp" namespace under a temporary root."""
    cache = CacheManager(CacheConfig(namespace=APP_NAME, root=temp_dir), fetcher=fetcher)
    yield cache
    cache.close()


@pytest.fixture
def mock_env_vars(temp_dir: Path) -> Generator[dict[str, str], None, None]:
    """Provide URLCACHE_* environment variables for testing."""
    env_vars = {
        "URLCACHE_CACHE_ROOT": str(temp_dir / "root"),
        "URLCACHE_CACHE_NAMESPACE": "envapp",
        "URLCACHE_USER_AGENT": "TestAgent/1.0",
        "URLCACHE_LOG_LEVEL": "DEBUG",
    }

    with patch.dict(os.environ, env_vars, clear=False):
        clear_settings_cache()
        yield env_vars


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Automatically reset settings cache before and after each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def reset_logging_config() -> Generator[None, None, None]:
    """Undo any logging setup a test (or from_settings) applied."""
    yield
    reset_logging()


@pytest.fixture
def no_proxy(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep loopback requests off any proxy configured in the environment."""
    for name in PROXY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
        monkeypatch.delenv(name.lower(), raising=False)


@pytest.fixture
def trickle_server(no_proxy: None) -> Generator[TrickleServer, None, None]:
    """Local server that drips a 10 byte body one byte every 0.2 s."""
    server = TrickleServer(body_size=10, interval=0.2)
    server.start()
    yield server
    server.stop()


@pytest.fixture
def keep_alive_server(no_proxy: None) -> Generator[KeepAliveServer, None, None]:
    """Local HTTP/1.1 keep-alive server echoing the request path."""
    server = KeepAliveServer()
    server.start()
    yield server
    server.stop()
