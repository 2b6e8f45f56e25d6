"""
Exception hierarchy for the URL file cache.

All exceptions inherit from FileCacheError, which carries optional
structured context (offending URL, id, path, transport or OS reason)
for logging and diagnostics.
"""

from __future__ import annotations

from typing import Any


class FileCacheError(Exception):
    """Base exception for all cache errors.

    Attributes:
        message: Human-readable error message.
        context: Optional structured context for logging/debugging.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx_str})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class ConfigurationError(FileCacheError):
    """Raised when settings cannot be turned into a usable cache config."""

    pass


class CacheInitError(FileCacheError):
    """Raised when the cache directory cannot be created or accessed.

    Context should include:
        - namespace: The requested namespace
        - path: The directory that could not be created
        - error: The underlying OS error text
    """

    pass


class InvalidInputError(FileCacheError):
    """Raised when a cache target is unusable before any I/O happens.

    Examples:
        - Empty or blank explicit cache id
        - Refresh requested for an id with no source URL
    """

    pass


class InvalidUrlError(InvalidInputError):
    """Raised when a URL fails validation in URL mode.

    Context should include:
        - url: The rejected URL
        - reason: What was missing or malformed
    """

    pass


class FetchFailedError(FileCacheError):
    """Raised when a network retrieval does not succeed.

    Context should include:
        - url: The URL that was being fetched
        - status_code: HTTP status code, for non-2xx responses
        - reason: Reason phrase or transport error text
    """

    @property
    def status_code(self) -> int | None:
        """HTTP status code, if the failure was a response status."""
        return self.context.get("status_code")


class FetchTimeoutError(FileCacheError):
    """Raised when a fetch exceeds the fixed request timeout.

    Context should include:
        - url: The URL that was being fetched
        - timeout: The timeout in seconds
    """

    pass


class CacheIOError(FileCacheError):
    """Raised when a read, write, rename or delete in the store fails.

    Context should include:
        - key: The cache key
        - path: The file path involved
        - error: The underlying OS error text
    """

    pass


class CacheNotFoundError(CacheIOError):
    """Raised when a cached file is read but not present."""

    pass
