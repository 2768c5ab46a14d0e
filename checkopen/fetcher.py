"""Rate-limited HTTP fetching for restaurant pages."""

from __future__ import annotations

import asyncio
import logging
import random
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Callable, Optional
from urllib.parse import urlparse

import httpx

from .config import DEFAULT_JITTER, DEFAULT_MIN_INTERVAL, DEFAULT_TIMEOUT, DEFAULT_USER_AGENT
from .errors import FetchError, FetchTimeoutError, HTTPStatusError, NetworkError, RateLimitedError

logger = logging.getLogger(__name__)

DEFAULT_ACCEPT_HEADER = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
)
DEFAULT_ACCEPT_LANGUAGE = "th-TH,th;q=0.9,en-US;q=0.8,en;q=0.7"


@dataclass(slots=True)
class FetchResult:
    """Describes the outcome of fetching a URL."""

    url: str
    status_code: int | None
    body: bytes
    encoding: str | None
    error: FetchError | None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def text(self) -> str:
        try:
            return self.body.decode(self.encoding or "utf-8", errors="replace")
        except LookupError:
            # Unknown charset label from the server
            return self.body.decode("utf-8", errors="replace")

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


class RateLimiter:
    """Serializes requests and enforces spacing plus random jitter between them.

    One instance is meant to be shared by every caller hitting the same
    origin. ``parallelism`` bounds the number of requests in flight; the
    spacing clock is reset when a request finishes, whether it failed or not.
    """

    def __init__(
        self,
        *,
        parallelism: int = 1,
        min_interval: float = DEFAULT_MIN_INTERVAL,
        jitter: float = DEFAULT_JITTER,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if parallelism < 1:
            raise ValueError("parallelism must be >= 1")
        if min_interval < 0 or jitter < 0:
            raise ValueError("min_interval and jitter must be >= 0")

        self._semaphore = asyncio.Semaphore(parallelism)
        self._min_interval = min_interval
        self._jitter = jitter
        self._clock = clock
        self._last_request_ts: float | None = None

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        async with self._semaphore:
            if self._last_request_ts is not None:
                since_last = self._clock() - self._last_request_ts
                wait_for = max(0.0, self._min_interval - since_last)
                if wait_for > 0:
                    await asyncio.sleep(wait_for)
            if self._jitter:
                await asyncio.sleep(random.uniform(0.0, self._jitter))
            try:
                yield
            finally:
                self._last_request_ts = self._clock()


class Fetcher:
    """Async page fetcher with browser-like headers and a shared rate limiter."""

    def __init__(
        self,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = DEFAULT_TIMEOUT,
        rate_limiter: Optional[RateLimiter] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        headers = {
            "User-Agent": user_agent,
            "Accept": DEFAULT_ACCEPT_HEADER,
            "Accept-Language": DEFAULT_ACCEPT_LANGUAGE,
        }

        self._client = httpx.AsyncClient(
            headers=headers,
            timeout=httpx.Timeout(timeout),
            http2=True,
            follow_redirects=True,
            transport=transport,
        )
        self._rate_limiter = rate_limiter or RateLimiter()

    async def __aenter__(self) -> "Fetcher":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch(self, url: str) -> FetchResult:
        """Fetch *url* once, classifying any failure into ``FetchResult.error``."""

        async with self._rate_limiter.slot():
            logger.debug("GET %s", url)
            try:
                response = await self._client.get(url, headers=_referer_for(url))
            except httpx.TimeoutException as exc:
                return self._failed(url, None, FetchTimeoutError(url, f"timed out fetching {url}: {exc}"))
            except (httpx.RequestError, httpx.InvalidURL) as exc:
                return self._failed(url, None, NetworkError(url, f"error fetching {url}: {exc}"))

        status = response.status_code
        if status == 429:
            return self._failed(url, status, RateLimitedError(url))
        if not response.is_success:
            return self._failed(url, status, HTTPStatusError(url, status))

        return FetchResult(
            url=url,
            status_code=status,
            body=response.content,
            encoding=response.charset_encoding,
            error=None,
        )

    @staticmethod
    def _failed(url: str, status_code: int | None, error: FetchError) -> FetchResult:
        logger.warning("Fetch failed: %s", error)
        return FetchResult(url=url, status_code=status_code, body=b"", encoding=None, error=error)


def _referer_for(url: str) -> dict[str, str]:
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        return {}
    return {"Referer": f"{parsed.scheme}://{parsed.netloc}/"}
