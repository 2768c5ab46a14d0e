"""Shared test fixtures and configuration."""

import asyncio
import json

import httpx
import pytest

from checkopen.checker import StatusChecker
from checkopen.fetcher import Fetcher, RateLimiter

BASE_URL = "https://www.wongnai.com/restaurants/{id}"


@pytest.fixture
def wn_page():
    """Build a restaurant page carrying a ``window._wn`` state blob."""

    def build(*, name="Somtam Nua", hours=None, body="", value=None) -> str:
        if value is None:
            value = {"name": name}
            if hours is not None:
                value["workingHoursStatus"] = hours
        state = {"store": {"business": {"value": value}}}
        blob = json.dumps(state, ensure_ascii=False)
        return (
            "<html><head><script>window._wn = "
            f"{blob};</script></head><body>{body}</body></html>"
        )

    return build


@pytest.fixture
def sleeps() -> list:
    """Backoff delays requested by the checker, in order."""
    return []


@pytest.fixture
def make_checker(sleeps):
    def factory(handler, *, max_retries: int = 3) -> StatusChecker:
        async def fake_sleep(seconds: float) -> None:
            sleeps.append(seconds)

        fetcher = Fetcher(
            transport=httpx.MockTransport(handler),
            rate_limiter=RateLimiter(min_interval=0.0, jitter=0.0),
        )
        return StatusChecker(fetcher, base_url=BASE_URL, max_retries=max_retries, sleep=fake_sleep)

    return factory


@pytest.fixture
def run_lookup(make_checker):
    """Run one lookup against a mocked site and return the status."""

    def run(handler, restaurant_id: str = "12345-somtam", **kwargs):
        checker = make_checker(handler, **kwargs)

        async def go():
            async with checker:
                return await checker.lookup(restaurant_id)

        return asyncio.run(go())

    return run
