"""
Local file store for cached resources.

Files live flat in one directory, named by cache key, holding the raw
fetched bytes. Writes go to a temporary file in the same directory and are
renamed into place, so readers only ever see complete files.
"""

from __future__ import annotations

import asyncio
import os
import tempfile
from pathlib import Path

from urlcache.exceptions import CacheIOError, CacheNotFoundError
from urlcache.logging import get_logger

logger = get_logger(__name__)

TEMP_SUFFIX = ".tmp"


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


# mkstemp creates 0600 files; cached files get the usual umask-derived mode
FILE_MODE = 0o666 & ~_current_umask()


class LocalStore:
    """Byte store keyed by cache key under a single directory."""

    def __init__(self, directory: str | Path) -> None:
        """Initialize the store.

        Args:
            directory: Directory that holds the cached files. It is created
                on first write if missing.
        """
        self.directory = Path(directory)

    def resolve(self, key: str) -> Path:
        """Get the path for a cache key. Does not touch the filesystem."""
        return self.directory / key

    def exists(self, key: str) -> bool:
        """Check whether a readable regular file is cached for the key.

        A failing stat is reported as a miss so the caller fetches again.
        """
        path = self.resolve(key)
        try:
            return path.is_file() and os.access(path, os.R_OK)
        except OSError as e:
            logger.warning(
                "Issue checking cached file, treating as miss",
                path=str(path),
                error=str(e),
            )
            return False

    def read(self, key: str) -> bytes:
        """Read cached bytes.

        Raises:
            CacheNotFoundError: If no file is cached for the key.
            CacheIOError: On any other read error.
        """
        path = self.resolve(key)
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise CacheNotFoundError(
                "Cached file not found",
                context={"key": key, "path": str(path)},
            ) from e
        except OSError as e:
            raise CacheIOError(
                "Failed to read cached file",
                context={"key": key, "path": str(path), "error": str(e)},
            ) from e

    def write(self, key: str, data: bytes) -> Path:
        """Atomically write bytes for a key.

        Returns:
            Final path of the cached file.

        Raises:
            CacheIOError: If the directory, temp file or rename fails.
        """
        path = self.resolve(key)
        tmp_name: str | None = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.directory, prefix=f".{key[:16]}.", suffix=TEMP_SUFFIX
            )
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.chmod(tmp_name, FILE_MODE)
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            raise CacheIOError(
                "Failed to write cached file",
                context={"key": key, "path": str(path), "error": str(e)},
            ) from e
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)

        logger.debug("Stored file", key=key[:12], size=len(data))
        return path

    def delete(self, key: str) -> bool:
        """Remove the cached file for a key.

        Returns:
            True if a file was removed, False if it was already absent.

        Raises:
            CacheIOError: If the file exists but cannot be removed.
        """
        path = self.resolve(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise CacheIOError(
                "Failed to delete cached file",
                context={"key": key, "path": str(path), "error": str(e)},
            ) from e
        return True

    def keys(self) -> list[str]:
        """List cached keys. The directory listing is the index."""
        if not self.directory.is_dir():
            return []
        return sorted(
            p.name
            for p in self.directory.iterdir()
            if p.is_file() and not p.name.startswith(".") and not p.name.endswith(TEMP_SUFFIX)
        )

    async def read_async(self, key: str) -> bytes:
        return await asyncio.to_thread(self.read, key)

    async def write_async(self, key: str, data: bytes) -> Path:
        return await asyncio.to_thread(self.write, key, data)

    async def delete_async(self, key: str) -> bool:
        return await asyncio.to_thread(self.delete, key)
