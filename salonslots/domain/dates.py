"""
Date and time helpers shared by every availability computation.

All "today"/"now" arithmetic goes through this module so that the customer
booking flow and the admin calendar derive the venue-local day the same way.
"""

from datetime import datetime
from typing import Optional

import pendulum
from pendulum import DateTime

from .models import CalendarDate

WEEKDAY_KEYS = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")

WEEKDAY_NAMES = {
    0: "Monday",
    1: "Tuesday",
    2: "Wednesday",
    3: "Thursday",
    4: "Friday",
    5: "Saturday",
    6: "Sunday",
}


def to_venue_time(now: datetime, timezone: Optional[str] = None) -> datetime:
    """
    Express ``now`` in venue-local wall clock terms.

    Naive datetimes are taken to already be venue-local. Aware datetimes are
    converted when a venue timezone is given.
    """
    if timezone and now.tzinfo is not None:
        if not isinstance(now, DateTime):
            now = pendulum.instance(now)
        return now.in_timezone(timezone)
    return now


def venue_today(now: datetime, timezone: Optional[str] = None) -> CalendarDate:
    """The venue-local calendar day containing ``now``."""
    local = to_venue_time(now, timezone)
    return CalendarDate(local.year, local.month, local.day)


def seconds_since_midnight(now: datetime, timezone: Optional[str] = None) -> int:
    local = to_venue_time(now, timezone)
    return local.hour * 3600 + local.minute * 60 + local.second


def weekday_from_key(key: str) -> int:
    """Map ``mon``..``sun`` (or a full English day name) to 0..6."""
    normalized = key.strip().lower()[:3]
    if normalized not in WEEKDAY_KEYS:
        raise ValueError(f"Unknown weekday '{key}'")
    return WEEKDAY_KEYS.index(normalized)


def format_day(day: CalendarDate) -> str:
    """Format a day for display, e.g. ``Tuesday, 25.11.2025``."""
    return f"{WEEKDAY_NAMES[day.weekday]}, {day.to_pendulum().format('DD.MM.YYYY')}"
