"""Free-text date normalization for scraped calendar cards.

The calendar renders dates like ``"Monday, March 3, 2025 2:30pm"`` or, for
multi-day events, ``"Monday, March 3, 2025 to March 4, 2025"``. Only the start
of a range is kept. Results are naive datetimes in the server's local time;
no timezone conversion is attempted.
"""
from __future__ import annotations

import re
from datetime import datetime
from typing import Optional

from loguru import logger

MONTHS = {
    "january": 1, "jan": 1,
    "february": 2, "feb": 2,
    "march": 3, "mar": 3,
    "april": 4, "apr": 4,
    "may": 5,
    "june": 6, "jun": 6,
    "july": 7, "jul": 7,
    "august": 8, "aug": 8,
    "september": 9, "sept": 9, "sep": 9,
    "october": 10, "oct": 10,
    "november": 11, "nov": 11,
    "december": 12, "dec": 12,
}

# "to" as a standalone word; "October" or "Tonight" must not split
_RANGE_SEPARATOR = re.compile(r"\s+to(?:\s+|$)")

_DATE_PATTERN = re.compile(
    r"(?P<weekday>[A-Za-z]+),\s+(?P<month>[A-Za-z]+)\.?\s+(?P<day>\d{1,2}),\s+(?P<year>\d{4})"
    r"(?:\s+(?P<hour>\d{1,2})(?::(?P<minute>\d{2}))?\s*(?P<meridian>[ap]\.?m\.?)?)?",
    re.IGNORECASE,
)


class UnparsableDate(ValueError):
    """Raised when a date string does not follow the calendar's format."""


def strip_range(text: str) -> str:
    """Keep only the start of a ranged date string."""
    return _RANGE_SEPARATOR.split(text, maxsplit=1)[0].strip()


def to_24_hour(hour: int, meridian: Optional[str]) -> int:
    if not meridian:
        return hour
    meridian = meridian.replace(".", "").lower()
    if meridian == "am" and hour == 12:
        return 0
    if meridian == "pm" and hour < 12:
        return hour + 12
    return hour


def normalize_event_date(text: str) -> datetime:
    """Parse a calendar date string, raising ``UnparsableDate`` on bad input."""
    if not isinstance(text, str) or not text.strip():
        raise UnparsableDate(f"empty date text: {text!r}")

    main = strip_range(text)
    match = _DATE_PATTERN.search(main)
    if not match:
        raise UnparsableDate(f"date text does not match expected format: {text!r}")

    month = MONTHS.get(match.group("month").lower())
    if month is None:
        raise UnparsableDate(f"unknown month {match.group('month')!r} in {text!r}")

    hour = 0
    minute = 0
    if match.group("hour") is not None:
        hour = to_24_hour(int(match.group("hour")), match.group("meridian"))
        minute = int(match.group("minute") or 0)

    try:
        return datetime(
            int(match.group("year")),
            month,
            int(match.group("day")),
            hour,
            minute,
        )
    except ValueError as e:
        raise UnparsableDate(f"invalid date {text!r}: {e}") from e


def parse_event_date(text: str) -> Optional[datetime]:
    """Parse a calendar date string; ``None`` means the event should be dropped."""
    try:
        return normalize_event_date(text)
    except UnparsableDate as e:
        logger.warning(f"Unparsable event date: {e}")
        return None
