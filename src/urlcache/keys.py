"""
Cache key derivation.

A cache key is the lowercase hex SHA3-512 digest of the UTF-8 bytes of a
URL or explicit id. URL targets are validated first so that malformed
input fails before any network or disk activity.
"""

from __future__ import annotations

import hashlib
from urllib.parse import urlsplit

from urlcache.exceptions import InvalidInputError, InvalidUrlError
from urlcache.types import CacheTarget, IdInput

# 512-bit digest, hex encoded
KEY_LENGTH = 128


def derive_key(value: str) -> str:
    """Hash a URL or id into a cache key."""
    return hashlib.sha3_512(value.encode("utf-8")).hexdigest()


def validate_url(url: str) -> str:
    """Check that a URL has a scheme and a host.

    Returns:
        The URL unchanged.

    Raises:
        InvalidUrlError: If the URL cannot be parsed or lacks a scheme or host.
    """
    if not url or not url.strip():
        raise InvalidUrlError("URL is empty", context={"url": url, "reason": "empty"})

    try:
        parts = urlsplit(url)
        host = parts.hostname
    except ValueError as e:
        raise InvalidUrlError(
            f"Malformed URL: {url}", context={"url": url, "reason": str(e)}
        ) from e

    if not parts.scheme:
        raise InvalidUrlError(
            f"URL has no scheme: {url}", context={"url": url, "reason": "missing scheme"}
        )
    if not host:
        raise InvalidUrlError(
            f"URL has no host: {url}", context={"url": url, "reason": "missing host"}
        )
    return url


def key_for(target: CacheTarget) -> str:
    """Derive the cache key for a target.

    URL targets are validated; id targets only need a non-blank id.

    Raises:
        InvalidUrlError: For a malformed URL target.
        InvalidInputError: For a blank id target.
    """
    if isinstance(target, IdInput):
        if not target.cache_id or not target.cache_id.strip():
            raise InvalidInputError(
                "Cache id is empty", context={"cache_id": target.cache_id}
            )
        return derive_key(target.cache_id)

    return derive_key(validate_url(target.url))
