"""
HTTP fetcher for cache misses and refreshes.

One GET per call, a fixed 10 second timeout, a default User-Agent, and no
retries. The blocking and async forms share request building and response
classification but each owns its own httpx client.
"""

from __future__ import annotations

import asyncio
import os
import platform
import time

import httpx

from urlcache import __version__
from urlcache.exceptions import FetchFailedError, FetchTimeoutError
from urlcache.logging import get_logger

logger = get_logger(__name__)

# Request timeout in seconds, applied to the whole request
REQUEST_TIMEOUT = 10.0


def default_user_agent() -> str:
    """Build the default User-Agent, e.g. ``Mozilla/5.0 (unix; linux; x86_64) urlcache/0.1.0``."""
    family = "windows" if os.name == "nt" else "unix"
    system = platform.system().lower() or "unknown"
    arch = platform.machine() or "unknown"
    return f"Mozilla/5.0 ({family}; {system}; {arch}) urlcache/{__version__}"


class Fetcher:
    """Retrieves the bytes behind a URL.

    Features:
    - Blocking fetch() and async fetch_async() with identical semantics
    - Default User-Agent unless the caller passes one
    - Optional bearer token per request
    - Non-2xx, transport and timeout failures mapped to cache errors
    """

    def __init__(
        self,
        user_agent: str | None = None,
        transport: httpx.BaseTransport | None = None,
        async_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            user_agent: User-Agent header value. Defaults to default_user_agent().
            transport: Optional httpx transport for the blocking client.
            async_transport: Optional httpx transport for the async client.
                Defaults to ``transport`` when that also supports async.
        """
        self.user_agent = user_agent or default_user_agent()
        self._transport = transport
        if async_transport is None and isinstance(transport, httpx.AsyncBaseTransport):
            async_transport = transport
        self._async_transport = async_transport
        self._client: httpx.Client | None = None
        self._async_client: httpx.AsyncClient | None = None
        self._async_loop: asyncio.AbstractEventLoop | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create the blocking HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                timeout=REQUEST_TIMEOUT,
                follow_redirects=True,
                headers={"User-Agent": self.user_agent},
                transport=self._transport,
            )
        return self._client

    def _get_async_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client for the running event loop.

        Pooled connections belong to the loop that opened them, so a client
        created under another loop is dropped and replaced.
        """
        loop = asyncio.get_running_loop()
        if self._async_client is not None and self._async_loop is not loop:
            logger.debug("Event loop changed, replacing async HTTP client")
            self._async_client = None
        if self._async_client is None:
            self._async_loop = loop
            self._async_client = httpx.AsyncClient(
                timeout=REQUEST_TIMEOUT,
                follow_redirects=True,
                headers={"User-Agent": self.user_agent},
                transport=self._async_transport,
            )
        return self._async_client

    def close(self) -> None:
        """Close the blocking HTTP client."""
        if self._client:
            self._client.close()
            self._client = None

    async def aclose(self) -> None:
        """Close both HTTP clients."""
        if self._async_client:
            if self._async_loop is asyncio.get_running_loop():
                await self._async_client.aclose()
            self._async_client = None
            self._async_loop = None
        self.close()

    @staticmethod
    def _request_headers(
        headers: dict[str, str] | None, token: str | None
    ) -> dict[str, str]:
        merged = dict(headers or {})
        if token:
            merged["Authorization"] = f"Bearer {token}"
        return merged

    @staticmethod
    def _check_status(url: str, response: httpx.Response) -> None:
        if not response.is_success:
            raise FetchFailedError(
                f"Fetch of {url} failed with HTTP {response.status_code}",
                context={
                    "url": url,
                    "status_code": response.status_code,
                    "reason": response.reason_phrase,
                },
            )

    @staticmethod
    def _timeout_error(url: str) -> FetchTimeoutError:
        return FetchTimeoutError(
            f"Fetch of {url} timed out",
            context={"url": url, "timeout": REQUEST_TIMEOUT},
        )

    @staticmethod
    def _transport_error(url: str, error: Exception) -> FetchFailedError:
        return FetchFailedError(
            f"Fetch of {url} failed",
            context={"url": url, "reason": f"{type(error).__name__}: {error}"},
        )

    def fetch(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        token: str | None = None,
    ) -> bytes:
        """Fetch a URL, blocking until the full body is read.

        The body is streamed against a deadline of REQUEST_TIMEOUT seconds
        from the start of the call, so a server trickling bytes cannot hold
        the call open past it.

        Args:
            url: URL to fetch.
            headers: Extra request headers; these override the defaults.
            token: Optional bearer token.

        Returns:
            Raw response body.

        Raises:
            FetchTimeoutError: If the request exceeds REQUEST_TIMEOUT.
            FetchFailedError: On a non-2xx status or a transport error.
        """
        client = self._get_client()
        deadline = time.monotonic() + REQUEST_TIMEOUT
        chunks: list[bytes] = []
        try:
            with client.stream(
                "GET",
                url,
                headers=self._request_headers(headers, token),
                timeout=REQUEST_TIMEOUT,
            ) as response:
                self._check_status(url, response)
                for chunk in response.iter_bytes():
                    if time.monotonic() > deadline:
                        raise self._timeout_error(url)
                    chunks.append(chunk)
        except httpx.TimeoutException as e:
            raise self._timeout_error(url) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise self._transport_error(url, e) from e

        body = b"".join(chunks)
        logger.debug("Fetched", url=url[:80], size=len(body))
        return body

    async def fetch_async(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        token: str | None = None,
    ) -> bytes:
        """Fetch a URL without blocking the event loop.

        Same arguments, result and errors as fetch(). Cancellation propagates
        unchanged.
        """
        client = self._get_async_client()
        try:
            response = await asyncio.wait_for(
                client.get(url, headers=self._request_headers(headers, token)),
                timeout=REQUEST_TIMEOUT,
            )
        except (httpx.TimeoutException, asyncio.TimeoutError) as e:
            raise self._timeout_error(url) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise self._transport_error(url, e) from e

        self._check_status(url, response)
        logger.debug("Fetched", url=url[:80], size=len(response.content))
        return response.content
