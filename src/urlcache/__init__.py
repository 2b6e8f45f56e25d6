"""
urlcache - a local, content-addressed cache for remote files.

A URL (or an explicit id) is hashed with SHA3-512 into a stable file name.
The file is downloaded on first access and served from disk afterwards.
"""

__version__ = "0.1.0"

from urlcache.config import CacheConfig, Settings, get_settings
from urlcache.exceptions import (
    CacheInitError,
    CacheIOError,
    CacheNotFoundError,
    ConfigurationError,
    FetchFailedError,
    FetchTimeoutError,
    FileCacheError,
    InvalidInputError,
    InvalidUrlError,
)
from urlcache.fetch import Fetcher
from urlcache.keys import derive_key
from urlcache.manager import CacheManager
from urlcache.store import LocalStore
from urlcache.types import CacheEntry, CacheTarget, IdInput, UrlInput

__all__ = [
    "__version__",
    "CacheConfig",
    "CacheEntry",
    "CacheInitError",
    "CacheIOError",
    "CacheManager",
    "CacheNotFoundError",
    "CacheTarget",
    "ConfigurationError",
    "FetchFailedError",
    "FetchTimeoutError",
    "Fetcher",
    "FileCacheError",
    "IdInput",
    "InvalidInputError",
    "InvalidUrlError",
    "LocalStore",
    "Settings",
    "UrlInput",
    "derive_key",
    "get_settings",
]
