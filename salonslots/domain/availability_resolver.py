"""
Core business logic for deciding which slots of a day can be booked.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O). "Now" is always
passed in, so every result is reproducible from its inputs.
"""

import math
from dataclasses import replace
from datetime import datetime
from numbers import Real
from typing import Dict, Iterable, List, Optional

from .dates import seconds_since_midnight, venue_today
from .exceptions import InvalidDuration
from .models import (
    AvailabilityResult,
    CalendarDate,
    LocalTime,
    OccupiedInterval,
    OperatingWindow,
    SlotAvailability,
    SlotCandidate,
    UnavailableReason,
)
from .slot_generator import DEFAULT_STEP_MINUTES, SlotGenerator, validate_step

# Minimum notice for same-day bookings
DEFAULT_LEAD_TIME_MINUTES = 30


def validate_duration(duration_minutes) -> int:
    """
    Return the duration as whole minutes or raise ``InvalidDuration``.

    Bools, non-numbers, non-finite values, fractional minutes and values
    of zero or less are rejected rather than coerced.
    """
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, Real):
        raise InvalidDuration(f"Service duration must be a number of minutes, got {duration_minutes!r}")
    if not math.isfinite(duration_minutes):
        raise InvalidDuration(f"Service duration must be finite, got {duration_minutes!r}")
    if duration_minutes <= 0:
        raise InvalidDuration(f"Service duration must be greater than zero, got {duration_minutes!r}")
    if int(duration_minutes) != duration_minutes:
        raise InvalidDuration(f"Service duration must be whole minutes, got {duration_minutes!r}")
    return int(duration_minutes)


class AvailabilityResolver:
    """
    Turns a raw slot grid into a per-slot availability verdict.

    Rules, in evaluation order:
    1. Closed day -> empty result (``resolve_day`` only)
    2. Past date -> empty result
    3. Duration fit: the service must finish by closing time
    4. Overlap: ``[start, start + duration)`` must not touch an occupied
       interval, using half-open comparison so back-to-back bookings work
    5. Lead time (same day only): start must be later than now + lead time

    A slot excluded by any rule stays excluded; the reason recorded is the
    first rule that hit.
    """

    def __init__(
        self,
        lead_time_minutes: int = DEFAULT_LEAD_TIME_MINUTES,
        generator: Optional[SlotGenerator] = None,
        timezone: Optional[str] = None,
    ):
        if isinstance(lead_time_minutes, bool) or not isinstance(lead_time_minutes, int) or lead_time_minutes < 0:
            raise ValueError(f"lead_time_minutes must be a non-negative integer, got {lead_time_minutes!r}")
        self.lead_time_minutes = lead_time_minutes
        self.generator = generator or SlotGenerator()
        self.timezone = timezone

    def resolve_day(
        self,
        window: OperatingWindow,
        occupied_intervals: Iterable[OccupiedInterval],
        service_duration_minutes: int,
        date: CalendarDate,
        now: datetime,
        step_minutes: int = DEFAULT_STEP_MINUTES,
    ) -> AvailabilityResult:
        """
        Resolve availability for a whole day starting from its operating window.

        Closed days and past dates short-circuit before any grid is built.
        """
        duration = validate_duration(service_duration_minutes)
        validate_step(step_minutes)

        if not window.is_open:
            return AvailabilityResult.empty()

        if date < venue_today(now, self.timezone):
            return AvailabilityResult.empty()

        candidates = self.generator.candidates(
            window=window,
            date=date,
            duration_minutes=duration,
            step_minutes=step_minutes,
        )

        return self.resolve(
            candidates=candidates,
            occupied_intervals=occupied_intervals,
            service_duration_minutes=duration,
            date=date,
            now=now,
            closes_at=window.closes_at,
        )

    def resolve(
        self,
        candidates: Iterable[SlotCandidate],
        occupied_intervals: Iterable[OccupiedInterval],
        service_duration_minutes: int,
        date: CalendarDate,
        now: datetime,
        closes_at: LocalTime,
    ) -> AvailabilityResult:
        """
        Mark each candidate available or unavailable.

        Args:
            candidates: Grid of candidate slots for ``date``
            occupied_intervals: Intervals blocked by existing bookings that day
            service_duration_minutes: Length of the service being booked
            date: Venue-local day being resolved
            now: Current venue-local instant
            closes_at: Closing time of the day's operating window

        Returns:
            AvailabilityResult covering every distinct candidate start

        Raises:
            InvalidDuration: If the service duration is not usable
        """
        duration = validate_duration(service_duration_minutes)

        today = venue_today(now, self.timezone)
        if date < today:
            return AvailabilityResult.empty()

        occupied: List[OccupiedInterval] = list(occupied_intervals)
        unique = self._unique_by_start(candidates, duration)

        cutoff_seconds: Optional[int] = None
        if date == today:
            cutoff_seconds = seconds_since_midnight(now, self.timezone) + self.lead_time_minutes * 60

        entries = []
        for candidate in unique:
            reason = self._exclusion_reason(candidate, occupied, closes_at, cutoff_seconds)
            entries.append(
                SlotAvailability(slot=candidate, available=reason is None, reason=reason)
            )

        return AvailabilityResult(entries=tuple(entries))

    @staticmethod
    def _unique_by_start(
        candidates: Iterable[SlotCandidate],
        duration_minutes: int,
    ) -> List[SlotCandidate]:
        """Drop repeated start times (first wins) and sort ascending."""
        by_start: Dict[LocalTime, SlotCandidate] = {}
        for candidate in candidates:
            if candidate.start in by_start:
                continue
            if candidate.duration_minutes != duration_minutes:
                candidate = replace(candidate, duration_minutes=duration_minutes)
            by_start[candidate.start] = candidate
        return sorted(by_start.values(), key=lambda c: c.start)

    @staticmethod
    def _exclusion_reason(
        candidate: SlotCandidate,
        occupied: List[OccupiedInterval],
        closes_at: LocalTime,
        cutoff_seconds: Optional[int],
    ) -> Optional[UnavailableReason]:
        start_minutes = candidate.start.total_minutes
        end_minutes = candidate.end_minutes

        if end_minutes > closes_at.total_minutes:
            return UnavailableReason.EXCEEDS_CLOSING

        if any(interval.overlaps(start_minutes, end_minutes) for interval in occupied):
            return UnavailableReason.OVERLAPS_BOOKING

        if cutoff_seconds is not None and start_minutes * 60 <= cutoff_seconds:
            return UnavailableReason.TOO_SOON

        return None
