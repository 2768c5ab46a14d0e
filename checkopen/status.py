"""Collapse an extracted signal into the caller-facing status record."""

from __future__ import annotations

from typing import Optional

from .models import CanonicalStatus, Signal, StatusLabel

NO_STATUS_MESSAGE = "no status information found"


def build_status(restaurant_id: str, signal: Optional[Signal]) -> CanonicalStatus:
    """Return the canonical status for *restaurant_id*.

    Pure function. A missing signal yields ``unknown``; the message is always
    populated. ``is_open`` is derived from the label so the two never disagree.
    """

    if signal is None:
        return CanonicalStatus(
            restaurant_id=restaurant_id,
            name="",
            is_open=False,
            status=StatusLabel.UNKNOWN,
            message=NO_STATUS_MESSAGE,
        )

    return CanonicalStatus(
        restaurant_id=restaurant_id,
        name=signal.name or "",
        is_open=signal.state.is_open,
        status=signal.state,
        open_until=signal.open_until or None,
        message=signal.message or NO_STATUS_MESSAGE,
    )
