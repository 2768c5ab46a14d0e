"""Data models shared across the restaurant status checker."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class StatusLabel(str, Enum):
    OPEN = "open"
    CLOSING_SOON = "closing_soon"
    CLOSED = "closed"
    UNKNOWN = "unknown"

    @property
    def is_open(self) -> bool:
        return self in (StatusLabel.OPEN, StatusLabel.CLOSING_SOON)

    @property
    def thai(self) -> str:
        """Display text used on the Thai site."""
        return _THAI_LABELS[self]


_THAI_LABELS = {
    StatusLabel.OPEN: "เปิดอยู่",
    StatusLabel.CLOSING_SOON: "กำลังจะปิด",
    StatusLabel.CLOSED: "ปิดแล้ว",
    StatusLabel.UNKNOWN: "ไม่พบข้อมูล",
}


@dataclass(frozen=True, slots=True)
class Signal:
    """An open/closed finding from one extraction strategy."""

    state: StatusLabel
    name: Optional[str] = None
    message: Optional[str] = None
    open_until: Optional[str] = None
    source: str = "unknown"


@dataclass(frozen=True, slots=True)
class CanonicalStatus:
    """Final status for one restaurant, as returned to callers."""

    restaurant_id: str
    name: str
    is_open: bool
    status: StatusLabel
    open_until: Optional[str] = None
    message: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "restaurant_id": self.restaurant_id,
            "name": self.name,
            "is_open": self.is_open,
            "status": self.status.value,
            "status_text": self.status.thai,
        }
        # Optional keys are omitted rather than sent as null
        if self.open_until:
            payload["open_until"] = self.open_until
        if self.message:
            payload["message"] = self.message
        return payload
