"""Tests for the rate-limited fetcher."""

import asyncio
import time

import httpx
import pytest

from checkopen.errors import FetchTimeoutError, HTTPStatusError, NetworkError, RateLimitedError
from checkopen.fetcher import FetchResult, Fetcher, RateLimiter

URL = "https://www.wongnai.com/restaurants/12345-somtam"


def fetch_once(handler, url: str = URL, **kwargs) -> FetchResult:
    kwargs.setdefault("rate_limiter", RateLimiter(min_interval=0.0, jitter=0.0))

    async def go():
        async with Fetcher(transport=httpx.MockTransport(handler), **kwargs) as fetcher:
            return await fetcher.fetch(url)

    return asyncio.run(go())


class TestFetcher:
    """Tests for single fetches and error classification."""

    def test_success(self):
        result = fetch_once(lambda request: httpx.Response(200, html="<h1>สวัสดี</h1>"))
        assert result.ok
        assert result.status_code == 200
        assert result.text == "<h1>สวัสดี</h1>"
        result.raise_for_error()

    def test_browser_headers(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.headers)
            return httpx.Response(200, text="")

        fetch_once(handler, user_agent="TestBrowser/1.0")
        assert seen["user-agent"] == "TestBrowser/1.0"
        assert seen["accept-language"].startswith("th-TH")
        assert "text/html" in seen["accept"]
        assert seen["referer"] == "https://www.wongnai.com/"

    def test_rate_limited(self):
        result = fetch_once(lambda request: httpx.Response(429))
        assert isinstance(result.error, RateLimitedError)
        assert result.error.rate_limited
        assert result.status_code == 429
        with pytest.raises(RateLimitedError):
            result.raise_for_error()

    def test_http_error(self):
        result = fetch_once(lambda request: httpx.Response(404))
        assert isinstance(result.error, HTTPStatusError)
        assert not isinstance(result.error, RateLimitedError)
        assert result.error.status_code == 404
        assert not result.error.rate_limited
        assert result.body == b""

    def test_connection_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        result = fetch_once(handler)
        assert type(result.error) is NetworkError
        assert result.status_code is None

    def test_timeout(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("read timed out", request=request)

        result = fetch_once(handler)
        assert isinstance(result.error, FetchTimeoutError)
        assert isinstance(result.error, NetworkError)

    def test_declared_charset(self):
        body = "ปิดแล้ว".encode("tis-620")
        result = fetch_once(
            lambda request: httpx.Response(
                200, content=body, headers={"content-type": "text/html; charset=tis-620"}
            )
        )
        assert result.text == "ปิดแล้ว"

    def test_unknown_charset_falls_back_to_utf8(self):
        result = FetchResult(url=URL, status_code=200, body="ok".encode(), encoding="x-bogus", error=None)
        assert result.text == "ok"


class TestRateLimiter:
    """Tests for request spacing and serialization."""

    def test_rejects_bad_settings(self):
        with pytest.raises(ValueError):
            RateLimiter(parallelism=0)
        with pytest.raises(ValueError):
            RateLimiter(min_interval=-1)

    def test_one_request_in_flight(self):
        in_flight = 0
        peak = 0

        async def handler(request: httpx.Request) -> httpx.Response:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return httpx.Response(200, text="ok")

        async def go():
            limiter = RateLimiter(min_interval=0.0, jitter=0.0)
            async with Fetcher(transport=httpx.MockTransport(handler), rate_limiter=limiter) as fetcher:
                return await asyncio.gather(*(fetcher.fetch(URL) for _ in range(4)))

        results = asyncio.run(go())
        assert all(result.ok for result in results)
        assert peak == 1

    def test_minimum_spacing(self):
        stamps = []

        def handler(request: httpx.Request) -> httpx.Response:
            stamps.append(time.monotonic())
            return httpx.Response(200, text="ok")

        async def go():
            limiter = RateLimiter(min_interval=0.05, jitter=0.0)
            async with Fetcher(transport=httpx.MockTransport(handler), rate_limiter=limiter) as fetcher:
                await asyncio.gather(fetcher.fetch(URL), fetcher.fetch(URL), fetcher.fetch(URL))

        asyncio.run(go())
        gaps = [later - earlier for earlier, later in zip(stamps, stamps[1:])]
        assert len(gaps) == 2
        assert all(gap >= 0.045 for gap in gaps)

    def test_failed_requests_still_count_for_spacing(self):
        stamps = []

        def handler(request: httpx.Request) -> httpx.Response:
            stamps.append(time.monotonic())
            raise httpx.ConnectError("down", request=request)

        async def go():
            limiter = RateLimiter(min_interval=0.05, jitter=0.0)
            async with Fetcher(transport=httpx.MockTransport(handler), rate_limiter=limiter) as fetcher:
                await fetcher.fetch(URL)
                await fetcher.fetch(URL)

        asyncio.run(go())
        assert stamps[1] - stamps[0] >= 0.045
