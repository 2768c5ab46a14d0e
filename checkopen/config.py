"""Environment-driven settings for the restaurant status checker."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping
from urllib.parse import quote

DEFAULT_BASE_URL = "https://www.wongnai.com/restaurants/{id}"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
DEFAULT_TIMEOUT = 15.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_MIN_INTERVAL = 2.0
DEFAULT_JITTER = 1.0
DEFAULT_PORT = 8080


@dataclass(slots=True)
class Settings:
    base_url: str = DEFAULT_BASE_URL
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    min_interval: float = DEFAULT_MIN_INTERVAL
    jitter: float = DEFAULT_JITTER
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables, falling back to defaults."""

        env = os.environ if environ is None else environ
        return cls(
            base_url=env.get("CHECKOPEN_BASE_URL") or DEFAULT_BASE_URL,
            user_agent=env.get("CHECKOPEN_USER_AGENT") or DEFAULT_USER_AGENT,
            timeout=_number(env, "CHECKOPEN_TIMEOUT", DEFAULT_TIMEOUT, float),
            max_retries=_number(env, "CHECKOPEN_MAX_RETRIES", DEFAULT_MAX_RETRIES, int),
            min_interval=_number(env, "CHECKOPEN_MIN_INTERVAL", DEFAULT_MIN_INTERVAL, float),
            jitter=_number(env, "CHECKOPEN_JITTER", DEFAULT_JITTER, float),
            host=env.get("HOST") or "0.0.0.0",
            port=_number(env, "PORT", DEFAULT_PORT, int),
            log_level=env.get("LOG_LEVEL") or "INFO",
        )


def build_status_url(template: str, restaurant_id: str) -> str:
    """Substitute the percent-encoded *restaurant_id* into *template*."""

    restaurant_id = restaurant_id.strip()
    if not restaurant_id:
        raise ValueError("restaurant id must not be empty")
    return template.replace("{id}", quote(restaurant_id, safe=""))


def _number(env: Mapping[str, str], name: str, default, kind):
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = kind(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {raw!r}")
    return value
