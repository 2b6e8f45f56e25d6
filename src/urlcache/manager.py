"""
Cache manager: the fetch/store/invalidate protocol.

Every operation runs the same steps (validate, check store, fetch on miss,
write, return) in a blocking form and an ``_async`` form. The two forms
share key derivation, path resolution and miss handling and differ only in
how the fetch and file I/O execute.
"""

from __future__ import annotations

import base64
from pathlib import Path
from types import TracebackType

from pydantic import ValidationError

from urlcache.config import CACHE_SUBFOLDER, CacheConfig, Settings, get_settings
from urlcache.exceptions import (
    CacheInitError,
    CacheNotFoundError,
    ConfigurationError,
    InvalidInputError,
)
from urlcache.fetch import Fetcher
from urlcache.folders import local_user_data_path
from urlcache.keys import key_for
from urlcache.logging import get_logger, log_context, setup_logging
from urlcache.store import LocalStore
from urlcache.types import CacheEntry, CacheTarget, IdInput, as_target

logger = get_logger(__name__)


class CacheManager:
    """Local, content-addressed cache for remote files.

    Files are stored under ``<root>/<namespace>/cache/<sha3-512 hex>``. The
    filesystem is the only state: there is no in-memory index and no lock,
    so concurrent misses for one key may both fetch; the last write wins.
    """

    def __init__(
        self,
        config: CacheConfig | None = None,
        fetcher: Fetcher | None = None,
    ) -> None:
        """Initialize the manager and create its cache directory.

        Args:
            config: Cache configuration. Defaults to CacheConfig().
            fetcher: Fetcher to use on misses. Defaults to one built from config.

        Raises:
            CacheInitError: If the namespace is unusable or the directory
                cannot be created.
        """
        self.config = config or CacheConfig()
        self.namespace = self.config.resolved_namespace
        if self.namespace in (".", "..") or any(
            sep in self.namespace for sep in ("/", "\\")
        ):
            raise CacheInitError(
                "Invalid cache namespace", context={"namespace": self.namespace}
            )

        try:
            directory = local_user_data_path(
                self.namespace, CACHE_SUBFOLDER, create=True, base=self.config.root
            )
        except OSError as e:
            raise CacheInitError(
                "Unable to create cache directory",
                context={
                    "namespace": self.namespace,
                    "root": str(self.config.root) if self.config.root else None,
                    "error": str(e),
                },
            ) from e

        self.store = LocalStore(directory)
        self.fetcher = fetcher or Fetcher(user_agent=self.config.user_agent)
        logger.debug("Cache initialized", directory=str(directory))

    @classmethod
    def create(cls, namespace: str | None = None) -> CacheManager:
        """Create a manager for a namespace under the platform data directory."""
        return cls(CacheConfig(namespace=namespace))

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> CacheManager:
        """Create a manager from URLCACHE_* environment settings.

        Also applies the configured log level and log file.

        Raises:
            ConfigurationError: If the environment settings are invalid.
        """
        try:
            settings = settings or get_settings()
        except ValidationError as e:
            raise ConfigurationError(
                "Invalid cache settings", context={"error": str(e)}
            ) from e
        setup_logging(log_level=settings.LOG_LEVEL, log_file=settings.LOG_FILE)
        return cls(CacheConfig.from_settings(settings))

    @property
    def directory(self) -> Path:
        """Directory that holds this namespace's cached files."""
        return self.store.directory

    # Lifecycle

    def close(self) -> None:
        self.fetcher.close()

    async def aclose(self) -> None:
        await self.fetcher.aclose()

    def __enter__(self) -> CacheManager:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    async def __aenter__(self) -> CacheManager:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    # Shared steps

    def _source(self, target: CacheTarget, key: str) -> str:
        """URL to fetch for a target on a miss."""
        if target.source is None:
            raise CacheNotFoundError(
                "Not cached and no source URL to fetch from",
                context={"cache_id": target.identity, "path": str(self.store.resolve(key))},
            )
        return target.source

    @staticmethod
    def _require_source(target: CacheTarget) -> None:
        if isinstance(target, IdInput) and target.url is None:
            raise InvalidInputError(
                "Refresh needs a source URL", context={"cache_id": target.cache_id}
            )

    def entry(self, target: str | CacheTarget) -> CacheEntry:
        """Snapshot of a target's key, path and presence."""
        key = key_for(as_target(target))
        return CacheEntry(key=key, path=self.store.resolve(key), exists=self.store.exists(key))

    def is_cached(self, target: str | CacheTarget) -> bool:
        return self.entry(target).exists

    def keys(self) -> list[str]:
        """Keys currently cached in this namespace."""
        return self.store.keys()

    # Blocking API

    def _load(self, target: CacheTarget, key: str) -> tuple[bytes | None, Path]:
        """Return (fetched bytes or None on a hit, path)."""
        path = self.store.resolve(key)
        if self.store.exists(key):
            logger.debug("Cache hit", key=key[:12])
            return None, path

        logger.info("Cache miss, fetching", key=key[:12])
        return self._fetch_and_store(target, key)

    def _fetch_and_store(self, target: CacheTarget, key: str) -> tuple[bytes, Path]:
        url = self._source(target, key)
        logger.debug("Fetching", key=key[:12], url=url[:80])
        data = self.fetcher.fetch(url, token=target.token)
        return data, self.store.write(key, data)

    def get_file_data(self, target: str | CacheTarget) -> bytes:
        """Get a file's bytes, fetching and caching them on a miss.

        Args:
            target: A URL (validated) or an IdInput.

        Raises:
            InvalidUrlError: If a URL target is malformed. Nothing is fetched
                or written.
            FetchFailedError: If the fetch fails.
            FetchTimeoutError: If the fetch times out.
            CacheIOError: If the store cannot read or write.
        """
        target = as_target(target)
        with log_context(namespace=self.namespace, operation="get_file_data"):
            key = key_for(target)
            data, _ = self._load(target, key)
            if data is None:
                try:
                    data = self.store.read(key)
                except CacheNotFoundError:
                    logger.info("Cached file vanished, fetching again", key=key[:12])
                    data, _ = self._fetch_and_store(target, key)
            return data

    def get_file_data_base64(self, target: str | CacheTarget) -> str:
        """Same as get_file_data(), base64 encoded."""
        return base64.b64encode(self.get_file_data(target)).decode("ascii")

    def get_file_path(self, target: str | CacheTarget) -> Path:
        """Get the local path of a file, fetching and caching it on a miss."""
        target = as_target(target)
        with log_context(namespace=self.namespace, operation="get_file_path"):
            _, path = self._load(target, key_for(target))
            return path

    def invalidate_cache(self, target: str | CacheTarget) -> None:
        """Delete a cached file. Succeeds if it is already absent."""
        target = as_target(target)
        with log_context(namespace=self.namespace, operation="invalidate_cache"):
            key = key_for(target)
            if self.store.delete(key):
                logger.info("Invalidated", key=key[:12])

    def refresh_cache(self, target: str | CacheTarget) -> Path:
        """Invalidate, then fetch and store again regardless of cache state.

        Returns:
            Path of the freshly written file.
        """
        target = as_target(target)
        with log_context(namespace=self.namespace, operation="refresh_cache"):
            key = key_for(target)
            self._require_source(target)
            self.store.delete(key)
            _, path = self._fetch_and_store(target, key)
            return path

    # Async API

    async def _load_async(
        self, target: CacheTarget, key: str
    ) -> tuple[bytes | None, Path]:
        path = self.store.resolve(key)
        if self.store.exists(key):
            logger.debug("Cache hit", key=key[:12])
            return None, path

        logger.info("Cache miss, fetching", key=key[:12])
        return await self._fetch_and_store_async(target, key)

    async def _fetch_and_store_async(
        self, target: CacheTarget, key: str
    ) -> tuple[bytes, Path]:
        url = self._source(target, key)
        logger.debug("Fetching", key=key[:12], url=url[:80])
        data = await self.fetcher.fetch_async(url, token=target.token)
        return data, await self.store.write_async(key, data)

    async def get_file_data_async(self, target: str | CacheTarget) -> bytes:
        """Async form of get_file_data()."""
        target = as_target(target)
        with log_context(namespace=self.namespace, operation="get_file_data"):
            key = key_for(target)
            data, _ = await self._load_async(target, key)
            if data is None:
                try:
                    data = await self.store.read_async(key)
                except CacheNotFoundError:
                    logger.info("Cached file vanished, fetching again", key=key[:12])
                    data, _ = await self._fetch_and_store_async(target, key)
            return data

    async def get_file_data_base64_async(self, target: str | CacheTarget) -> str:
        """Async form of get_file_data_base64()."""
        data = await self.get_file_data_async(target)
        return base64.b64encode(data).decode("ascii")

    async def get_file_path_async(self, target: str | CacheTarget) -> Path:
        """Async form of get_file_path()."""
        target = as_target(target)
        with log_context(namespace=self.namespace, operation="get_file_path"):
            _, path = await self._load_async(target, key_for(target))
            return path

    async def invalidate_cache_async(self, target: str | CacheTarget) -> None:
        """Async form of invalidate_cache()."""
        target = as_target(target)
        with log_context(namespace=self.namespace, operation="invalidate_cache"):
            key = key_for(target)
            if await self.store.delete_async(key):
                logger.info("Invalidated", key=key[:12])

    async def refresh_cache_async(self, target: str | CacheTarget) -> Path:
        """Async form of refresh_cache()."""
        target = as_target(target)
        with log_context(namespace=self.namespace, operation="refresh_cache"):
            key = key_for(target)
            self._require_source(target)
            await self.store.delete_async(key)
            _, path = await self._fetch_and_store_async(target, key)
            return path
