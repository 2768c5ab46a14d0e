"""Extraction of the ``window._wn`` state blob embedded in restaurant pages."""

from __future__ import annotations

import json
import re
from typing import Any, Optional

from .errors import StructuredDataError
from .models import Signal, StatusLabel

# First assignment only; the object ends at the first "};"
STATE_BLOB_PATTERN = re.compile(r"window\._wn\s*=\s*({.+?});", re.DOTALL)

BUSINESS_PATH = ("store", "business", "value")
WORKING_HOURS_KEY = "workingHoursStatus"


class _Missing:
    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


def dig(tree: Any, *keys: str) -> Any:
    """Follow *keys* through nested dicts, returning ``MISSING`` at the first gap."""

    node = tree
    for key in keys:
        if not isinstance(node, dict) or key not in node:
            return MISSING
        node = node[key]
    return node


def extract_structured(body: str) -> Optional[Signal]:
    """Read the open/closed status from the embedded state blob.

    Returns ``None`` when the page carries no blob or the blob lacks the
    business status fields. Raises ``StructuredDataError`` when the blob is
    present but is not valid JSON.
    """

    if not body:
        return None

    match = STATE_BLOB_PATTERN.search(body)
    if match is None:
        return None

    try:
        tree = json.loads(match.group(1))
    except (ValueError, RecursionError) as exc:
        # Oversized integers and very deep nesting fail outside JSONDecodeError
        raise StructuredDataError(f"invalid window._wn payload: {exc}") from exc

    business = dig(tree, *BUSINESS_PATH)
    hours = dig(business, WORKING_HOURS_KEY)
    if not isinstance(hours, dict):
        return None

    is_open = _typed(hours.get("open"), bool)
    message = _typed(hours.get("message"), str)
    closing_soon = _typed(hours.get("closingSoon"), bool)
    if is_open is None and message is None and closing_soon is None:
        return None

    if closing_soon:
        state = StatusLabel.CLOSING_SOON
    elif is_open:
        state = StatusLabel.OPEN
    else:
        state = StatusLabel.CLOSED

    return Signal(
        state=state,
        name=_typed(dig(business, "name"), str),
        message=message,
        # The site's message doubles as the "open until" display value
        open_until=message,
        source="structured",
    )


def _typed(value: Any, kind: type) -> Any:
    return value if isinstance(value, kind) else None
