"""
Core types for the URL file cache.

- UrlInput / IdInput: tagged cache targets. A URL target is validated and
  names its own file; an id target names the file explicitly and skips
  URL validation.
- CacheEntry: snapshot of one key's state on disk.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Union


@dataclass(frozen=True)
class UrlInput:
    """A cache target addressed by its URL.

    The URL is validated, hashed into the cache key, and fetched on a miss.
    """

    url: str
    token: str | None = None

    @property
    def identity(self) -> str:
        return self.url

    @property
    def source(self) -> str | None:
        return self.url


@dataclass(frozen=True)
class IdInput:
    """A cache target addressed by an explicit identifier.

    The id is hashed into the cache key. ``url`` is the fetch source used on
    a miss or refresh; it is not validated before the fetch.
    """

    cache_id: str
    url: str | None = None
    token: str | None = None

    @property
    def identity(self) -> str:
        return self.cache_id

    @property
    def source(self) -> str | None:
        return self.url


CacheTarget = Union[UrlInput, IdInput]


def as_target(target: str | CacheTarget) -> CacheTarget:
    """Coerce a plain string into a URL target."""
    if isinstance(target, (UrlInput, IdInput)):
        return target
    return UrlInput(target)


@dataclass(frozen=True)
class CacheEntry:
    """A cache key, its file path, and whether the file exists right now."""

    key: str
    path: Path
    exists: bool
