"""Check whether Wongnai restaurants are open right now."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Sequence, TextIO

from .checker import StatusChecker
from .config import Settings
from .errors import LookupFailedError


def main(argv: Sequence[str] | None = None) -> int:
    """Execute the CLI."""

    settings = Settings.from_env()
    args = _parse_args(argv, settings)
    _configure_logging(args.log_level)

    settings.max_retries = args.max_retries
    settings.timeout = args.timeout
    settings.base_url = args.base_url

    ids = [value.strip() for value in args.restaurant_ids if value.strip()]
    if not ids:
        raise SystemExit("At least one non-empty restaurant id must be given")

    failures = asyncio.run(_check_all(ids, settings, sys.stdout))
    if failures:
        logging.warning("%d of %d lookups failed", failures, len(ids))
        return 1
    return 0


async def _check_all(ids: Sequence[str], settings: Settings, out: TextIO) -> int:
    failures = 0
    async with StatusChecker.from_settings(settings) as checker:
        for restaurant_id in ids:
            try:
                status = await checker.lookup(restaurant_id)
            except LookupFailedError as exc:
                failures += 1
                payload = {
                    "restaurant_id": restaurant_id,
                    "error": str(exc),
                    "attempts": exc.attempts,
                }
            else:
                payload = status.to_dict()
            out.write(json.dumps(payload, ensure_ascii=False) + "\n")
            out.flush()
    return failures


def _parse_args(argv: Sequence[str] | None, settings: Settings) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("restaurant_ids", nargs="+", metavar="ID", help="Wongnai restaurant id")
    parser.add_argument(
        "--max-retries",
        type=int,
        default=settings.max_retries,
        help="Retries after the first attempt when fetching fails",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=settings.timeout,
        help="Per-request timeout in seconds",
    )
    parser.add_argument(
        "--base-url",
        default=settings.base_url,
        help="Page URL template; {id} is replaced with the restaurant id",
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        help="Logging level (DEBUG, INFO, WARNING, ...)",
    )
    return parser.parse_args(argv)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(levelname)s %(message)s",
    )


if __name__ == "__main__":
    sys.exit(main())
