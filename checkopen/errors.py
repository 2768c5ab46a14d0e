"""Error taxonomy for the restaurant status checker."""

from __future__ import annotations


class CheckOpenError(Exception):
    """Base class for every error raised by the status checker."""


class FetchError(CheckOpenError):
    """A single page fetch failed."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(message)
        self.url = url


class NetworkError(FetchError):
    """Connection-level failure (DNS, refused connection, protocol error)."""


class FetchTimeoutError(NetworkError):
    """The request did not complete within the per-request timeout."""


class HTTPStatusError(FetchError):
    """The remote site answered with a non-2xx status."""

    def __init__(self, url: str, status_code: int) -> None:
        super().__init__(url, f"HTTP {status_code} for {url}")
        self.status_code = status_code

    @property
    def rate_limited(self) -> bool:
        return self.status_code == 429


class RateLimitedError(HTTPStatusError):
    """HTTP 429 Too Many Requests."""

    def __init__(self, url: str) -> None:
        super().__init__(url, 429)


class ParseError(CheckOpenError):
    """Page content could not be decoded."""


class StructuredDataError(ParseError):
    """The embedded ``window._wn`` blob is not valid JSON."""


class LookupFailedError(CheckOpenError):
    """Raised when a status lookup gives up after fetch failures.

    The last fetch error is chained as ``__cause__``.
    """

    def __init__(self, restaurant_id: str, attempts: int, reason: str) -> None:
        noun = "attempt" if attempts == 1 else "attempts"
        super().__init__(
            f"failed to fetch status for {restaurant_id!r} after {attempts} {noun}: {reason}"
        )
        self.restaurant_id = restaurant_id
        self.attempts = attempts
        self.reason = reason
