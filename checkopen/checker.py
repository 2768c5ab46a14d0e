"""Restaurant status lookup: fetch, extract and retry."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from .config import DEFAULT_BASE_URL, DEFAULT_MAX_RETRIES, Settings, build_status_url
from .errors import (
    FetchError,
    HTTPStatusError,
    LookupFailedError,
    NetworkError,
    StructuredDataError,
)
from .fetcher import Fetcher, RateLimiter
from .models import CanonicalStatus, Signal
from .status import build_status
from .structured import extract_structured
from .text import extract_from_text

logger = logging.getLogger(__name__)

# Attempt n (n >= 1) waits 2**n seconds: 2, 4, 8, ...
BACKOFF = wait_exponential(multiplier=2, exp_base=2)


def extract_signal(html: str) -> Optional[Signal]:
    """Run the structured extractor, falling back to the text extractor."""

    try:
        signal = extract_structured(html)
    except StructuredDataError as exc:
        logger.warning("Ignoring malformed state blob: %s", exc)
        signal = None

    if signal is not None:
        return signal
    return extract_from_text(html)


def is_retryable(exc: BaseException) -> bool:
    """Network failures, timeouts, 429 and 5xx responses are worth another try."""

    if isinstance(exc, NetworkError):
        return True
    if isinstance(exc, HTTPStatusError):
        return exc.rate_limited or exc.status_code >= 500
    return False


class StatusChecker:
    """Looks up whether a restaurant is currently open."""

    def __init__(
        self,
        fetcher: Fetcher,
        *,
        base_url: str = DEFAULT_BASE_URL,
        max_retries: int = DEFAULT_MAX_RETRIES,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self._fetcher = fetcher
        self._base_url = base_url
        self._max_retries = max_retries
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings: Settings) -> "StatusChecker":
        limiter = RateLimiter(min_interval=settings.min_interval, jitter=settings.jitter)
        fetcher = Fetcher(
            user_agent=settings.user_agent,
            timeout=settings.timeout,
            rate_limiter=limiter,
        )
        return cls(fetcher, base_url=settings.base_url, max_retries=settings.max_retries)

    async def __aenter__(self) -> "StatusChecker":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._fetcher.aclose()

    async def lookup(self, restaurant_id: str) -> CanonicalStatus:
        """Return the current status of *restaurant_id*.

        Retries fetch failures with exponential backoff. A page that loads but
        carries no recognizable status is final and yields ``unknown``.
        Raises ``LookupFailedError`` once the fetch keeps failing.
        """

        url = build_status_url(self._base_url, restaurant_id)
        restaurant_id = restaurant_id.strip()

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_retries + 1),
            wait=BACKOFF,
            retry=retry_if_exception(is_retryable),
            before_sleep=_log_retry,
            sleep=self._sleep,
        )

        attempts = 0
        signal: Optional[Signal] = None
        try:
            async for attempt in retrying:
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    signal = await self._attempt(url)
        except RetryError as exc:
            error = exc.last_attempt.exception()
            raise LookupFailedError(restaurant_id, attempts, str(error)) from error
        except FetchError as exc:
            # Non-retryable fetch errors (e.g. 404) are re-raised by tenacity as-is
            raise LookupFailedError(restaurant_id, attempts, str(exc)) from exc

        status = build_status(restaurant_id, signal)
        logger.info(
            "Status for %s: %s (%s, attempt %d)",
            restaurant_id,
            status.status.value,
            signal.source if signal else "no signal",
            attempts,
        )
        return status

    async def _attempt(self, url: str) -> Optional[Signal]:
        result = await self._fetcher.fetch(url)
        result.raise_for_error()
        return extract_signal(result.text)


def _log_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
    logger.warning(
        "Attempt %d failed (%s); retrying in %.0fs",
        retry_state.attempt_number,
        error,
        delay,
    )
