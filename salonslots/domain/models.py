"""
Domain models for calendar days, venue-local times, bookings and slot availability.
"""

from dataclasses import dataclass, field
from datetime import date as stdlib_date, datetime
from enum import Enum
from typing import Iterator, List, Optional, Tuple

import pendulum

MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True, order=True)
class CalendarDate:
    """
    A day in the venue's local calendar.

    Only ever built from explicit (year, month, day) fields, never by
    truncating a UTC timestamp.
    """
    year: int
    month: int
    day: int

    def __post_init__(self):
        # Raises ValueError for impossible dates such as 2025-02-30
        pendulum.date(self.year, self.month, self.day)

    @classmethod
    def from_date(cls, value: stdlib_date) -> "CalendarDate":
        """Build from a plain date object (datetimes are rejected)."""
        if isinstance(value, datetime):
            raise TypeError(
                "CalendarDate cannot be built from a datetime; "
                "derive the venue-local day with dates.venue_today() instead"
            )
        return cls(value.year, value.month, value.day)

    @classmethod
    def parse(cls, value: str) -> "CalendarDate":
        """Parse a ``YYYY-MM-DD`` string field by field."""
        parts = value.strip().split("-")
        if len(parts) != 3 or not all(part.isdigit() for part in parts):
            raise ValueError(f"Invalid date '{value}', expected YYYY-MM-DD")
        year, month, day = (int(part) for part in parts)
        return cls(year, month, day)

    @property
    def weekday(self) -> int:
        """Day of week, 0=Monday … 6=Sunday."""
        return self.to_pendulum().weekday()

    def add_days(self, days: int) -> "CalendarDate":
        shifted = self.to_pendulum().add(days=days)
        return CalendarDate(shifted.year, shifted.month, shifted.day)

    def to_pendulum(self) -> pendulum.Date:
        return pendulum.date(self.year, self.month, self.day)

    def isoformat(self) -> str:
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"

    def __str__(self) -> str:
        return self.isoformat()


@dataclass(frozen=True, order=True)
class LocalTime:
    """
    A 24-hour venue-local wall clock time with minute precision.

    ``24:00`` is accepted as the end of the day so that a venue can close at
    midnight and a late booking can be clipped to the day boundary.
    """
    hour: int
    minute: int = 0

    def __post_init__(self):
        if not 0 <= self.minute <= 59:
            raise ValueError(f"Minute must be between 0 and 59, got {self.minute}")
        if not 0 <= self.hour <= 24 or (self.hour == 24 and self.minute != 0):
            raise ValueError(f"Invalid time {self.hour:02d}:{self.minute:02d}")

    @classmethod
    def from_minutes(cls, total_minutes: int) -> "LocalTime":
        if not 0 <= total_minutes <= MINUTES_PER_DAY:
            raise ValueError(f"{total_minutes} minutes is outside a single day")
        return cls(total_minutes // 60, total_minutes % 60)

    @classmethod
    def parse(cls, value: str) -> "LocalTime":
        """
        Parse ``HH:MM`` (or ``HH:MM:SS`` with zero seconds, as the booking
        backend serialises time columns).
        """
        parts = value.strip().split(":")
        if len(parts) not in (2, 3) or not all(part.isdigit() for part in parts):
            raise ValueError(f"Invalid time '{value}', expected HH:MM")
        if len(parts) == 3 and int(parts[2]) != 0:
            raise ValueError(f"Invalid time '{value}', seconds are not supported")
        return cls(int(parts[0]), int(parts[1]))

    @property
    def total_minutes(self) -> int:
        return self.hour * 60 + self.minute

    def add_minutes(self, minutes: int) -> "LocalTime":
        return LocalTime.from_minutes(self.total_minutes + minutes)

    def format(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"

    def __str__(self) -> str:
        return self.format()


@dataclass(frozen=True)
class OperatingWindow:
    """
    Opening hours of one resource on one weekday.

    Invariant: when ``is_open`` is true, ``opens_at`` is before ``closes_at``.
    When it is false the times carry no meaning.
    """
    weekday: int
    opens_at: LocalTime = LocalTime(0, 0)
    closes_at: LocalTime = LocalTime(0, 0)
    is_open: bool = True

    def __post_init__(self):
        if self.weekday not in range(7):
            raise ValueError(f"Weekday must be between 0 and 6, got {self.weekday}")
        if self.is_open and self.opens_at >= self.closes_at:
            raise ValueError(
                f"Opening time {self.opens_at} must be before closing time {self.closes_at}"
            )

    @classmethod
    def closed(cls, weekday: int) -> "OperatingWindow":
        return cls(weekday=weekday, is_open=False)

    def __str__(self) -> str:
        if not self.is_open:
            return "closed"
        return f"{self.opens_at} - {self.closes_at}"


@dataclass(frozen=True)
class SlotCandidate:
    """One discrete bookable start time for a service of a given duration."""
    date: CalendarDate
    start: LocalTime
    duration_minutes: int

    @property
    def end_minutes(self) -> int:
        """End as minutes since midnight; may exceed a day for late starts."""
        return self.start.total_minutes + self.duration_minutes


@dataclass(frozen=True)
class OccupiedInterval:
    """
    Half-open ``[start, end)`` range blocked by an existing booking.
    """
    start: LocalTime
    end: LocalTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    @classmethod
    def from_booking(cls, start: LocalTime, duration_minutes: int) -> "OccupiedInterval":
        """Build from a booking start and duration, clipped at the end of the day."""
        end_minutes = min(start.total_minutes + duration_minutes, MINUTES_PER_DAY)
        return cls(start=start, end=LocalTime.from_minutes(end_minutes))

    def overlaps(self, start_minutes: int, end_minutes: int) -> bool:
        """Half-open overlap test; touching intervals do not overlap."""
        return start_minutes < self.end.total_minutes and self.start.total_minutes < end_minutes

    def __str__(self) -> str:
        return f"{self.start} - {self.end}"


class BookingStatus(str, Enum):
    """
    Booking lifecycle states as reported by the backend.

    Only ``cancelled`` frees the booked time. Unrecognised values map to
    ``UNKNOWN``, which still occupies time.
    """
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    IN_PROGRESS = "in-progress"
    CHECKED_OUT = "checked_out"
    COMPLETED = "completed"
    NO_SHOW = "no_show"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value):
        normalized = str(value).strip().lower().replace("_", "-").replace(" ", "-")
        if normalized == "canceled":
            return cls.CANCELLED
        for member in cls:
            if member.value.replace("_", "-") == normalized:
                return member
        return cls.UNKNOWN


@dataclass(frozen=True)
class Booking:
    """An existing appointment as exposed by the booking store."""
    booking_id: str
    resource_id: str
    date: CalendarDate
    start_time: LocalTime
    duration_minutes: int
    status: BookingStatus = BookingStatus.CONFIRMED
    service_id: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.duration_minutes, bool) or not isinstance(self.duration_minutes, int):
            raise ValueError(f"Booking duration must be whole minutes, got {self.duration_minutes!r}")
        if self.duration_minutes <= 0:
            raise ValueError(f"Booking duration must be greater than zero, got {self.duration_minutes}")
        if self.start_time.total_minutes >= MINUTES_PER_DAY:
            raise ValueError(f"Booking cannot start at {self.start_time}")

    @property
    def occupies_time(self) -> bool:
        return self.status is not BookingStatus.CANCELLED

    def occupied_interval(self) -> OccupiedInterval:
        return OccupiedInterval.from_booking(self.start_time, self.duration_minutes)


@dataclass(frozen=True)
class BookingRequest:
    """A proposed booking handed to the booking store for atomic creation."""
    resource_id: str
    date: CalendarDate
    start_time: LocalTime
    service_id: str
    duration_minutes: int

    def __str__(self) -> str:
        return f"{self.resource_id} {self.date} {self.start_time}"


class UnavailableReason(str, Enum):
    EXCEEDS_CLOSING = "exceeds_closing"
    OVERLAPS_BOOKING = "overlaps_booking"
    TOO_SOON = "too_soon"


@dataclass(frozen=True)
class SlotAvailability:
    """A candidate slot together with its availability verdict."""
    slot: SlotCandidate
    available: bool
    reason: Optional[UnavailableReason] = None


@dataclass(frozen=True)
class AvailabilityResult:
    """
    The full candidate grid for one day, ordered by start time.

    Unavailable slots are kept so callers can render them as disabled.
    """
    entries: Tuple[SlotAvailability, ...] = field(default_factory=tuple)

    def __post_init__(self):
        starts = [entry.slot.start for entry in self.entries]
        if any(earlier >= later for earlier, later in zip(starts, starts[1:])):
            raise ValueError("Availability entries must be strictly ascending by start time")

    @classmethod
    def empty(cls) -> "AvailabilityResult":
        return cls(entries=())

    def __iter__(self) -> Iterator[SlotAvailability]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __getitem__(self, index: int) -> SlotAvailability:
        return self.entries[index]

    @property
    def is_empty(self) -> bool:
        return not self.entries

    def starts(self) -> List[LocalTime]:
        return [entry.slot.start for entry in self.entries]

    def available_slots(self) -> List[SlotCandidate]:
        return [entry.slot for entry in self.entries if entry.available]

    def entry_at(self, start: LocalTime) -> Optional[SlotAvailability]:
        for entry in self.entries:
            if entry.slot.start == start:
                return entry
        return None
