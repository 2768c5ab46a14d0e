"""Open/closed detection from the rendered text of a restaurant page."""

from __future__ import annotations

import re
from typing import Optional

from bs4 import BeautifulSoup

from .models import Signal, StatusLabel

_TIME = r"(\d{1,2}[:.]\d{2})"

# "เปิดอยู่ จนถึง 21:00" / "Open until 21:00". The until/closes connector is required
# so "Open 10:00 - 22:00" (opening hours) is not read as a closing time.
OPEN_PATTERN = re.compile(
    r"(?:เปิดอยู่|\bopen(?:\s+now)?\b)"
    r"\s*[·•,\-–]?\s*(?:จนถึง|ถึง|ปิด|until|till|closes(?:\s+at)?)(?:\s*เวลา)?"
    r"\s*" + _TIME + r"?",
    re.IGNORECASE,
)

CLOSING_SOON_PATTERN = re.compile(
    r"(?:กำลังจะปิด|ใกล้ปิด|closing\s+soon)"
    r"(?:\s*[·•,\-–]?\s*(?:เวลา|ตอน|ใน|ปิด|at)?\s*" + _TIME + r")?",
    re.IGNORECASE,
)

# "ปิด" is also the tail of "เปิด" (open), so it must not follow "เ"
CLOSED_PATTERN = re.compile(
    r"(?<!เ)ปิดแล้ว|(?<!เ)ปิดอยู่|\bclosed(?:\s+now)?\b",
    re.IGNORECASE,
)

CLOSING_SOON_MESSAGE = "closing soon"
CLOSED_MESSAGE = "closed"

_STRIP_TAGS = ("script", "style", "noscript", "template")


def render_page(html: str) -> tuple[Optional[str], str]:
    """Return the first ``<h1>`` text and the visible page text."""

    if not html:
        return None, ""

    soup = BeautifulSoup(html, "lxml")
    for tag in soup(_STRIP_TAGS):
        tag.decompose()

    heading = None
    h1 = soup.find("h1")
    if h1 is not None:
        heading = _normalize_whitespace(h1.get_text(" ", strip=True)) or None

    return heading, _normalize_whitespace(soup.get_text(" ", strip=True))


def extract_from_text(html: str) -> Optional[Signal]:
    """Detect the status from localized phrases in the rendered page.

    Patterns are tried in order (open with a closing time, closing soon,
    closed) and the first one that matches decides. A page mentioning both
    "open until 21:00" and "closed" therefore reads as open.
    """

    name, text = render_page(html)
    if not text:
        return None

    for match in OPEN_PATTERN.finditer(text):
        if match.group(1):
            until = _normalize_time(match.group(1))
            return Signal(
                state=StatusLabel.OPEN,
                name=name,
                message=f"open until {until}",
                open_until=until,
                source="text",
            )

    match = CLOSING_SOON_PATTERN.search(text)
    if match is not None:
        if match.group(1):
            until = _normalize_time(match.group(1))
            return Signal(
                state=StatusLabel.CLOSING_SOON,
                name=name,
                message=f"{CLOSING_SOON_MESSAGE}, open until {until}",
                open_until=until,
                source="text",
            )
        return Signal(
            state=StatusLabel.CLOSING_SOON,
            name=name,
            message=CLOSING_SOON_MESSAGE,
            source="text",
        )

    if CLOSED_PATTERN.search(text):
        return Signal(state=StatusLabel.CLOSED, name=name, message=CLOSED_MESSAGE, source="text")

    return None


def _normalize_time(value: str) -> str:
    hours, minutes = re.split(r"[:.]", value, maxsplit=1)
    return f"{int(hours):02d}:{minutes}"


def _normalize_whitespace(value: str) -> str:
    return re.sub(r"\s+", " ", value).strip()
