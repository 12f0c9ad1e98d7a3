"""
Application services for resolving and booking salon slots.

The service coordinates fetching bookings and opening hours via store
adapters and delegates the actual availability decision to the domain-level
``AvailabilityResolver``. Both the customer booking flow and the admin
calendar go through it, so they always apply the same rules and differ only
in their grid step.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Protocol, Sequence

import pendulum

from ..domain.availability_resolver import AvailabilityResolver, validate_duration
from ..domain.dates import to_venue_time, venue_today
from ..domain.exceptions import AvailabilityUnknown, BookingStoreError, SlotConflict, SlotNotOffered
from ..domain.ledger import BookingLedgerView
from ..domain.models import (
    AvailabilityResult,
    Booking,
    BookingRequest,
    CalendarDate,
    LocalTime,
    SlotCandidate,
)
from ..domain.operating_calendar import OperatingCalendar
from ..domain.slot_generator import ADMIN_CALENDAR_STEP_MINUTES, DEFAULT_STEP_MINUTES, validate_step

logger = logging.getLogger(__name__)


class BookingStoreProtocol(Protocol):
    """Protocol describing the booking store behaviour needed by the service."""

    def get_bookings(self, resource_id: str, date: CalendarDate) -> List[Booking]:
        """Return the bookings of a resource on a day."""

    def create_booking(self, request: BookingRequest) -> Booking:
        """Atomically create a booking or raise ``SlotConflict``."""


@dataclass(frozen=True)
class BookingOutcome:
    """Result of a booking attempt."""
    booking: Optional[Booking]
    conflict: bool = False
    alternatives: List[SlotCandidate] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.booking is not None


class AvailabilityService:
    """
    Orchestrates store access and availability resolution.

    Dependency inversion toward protocols makes it easy to plug in the real
    booking backend or the in-memory mock in tests.
    """

    def __init__(
        self,
        operating_calendar: OperatingCalendar,
        booking_store: BookingStoreProtocol,
        resolver: Optional[AvailabilityResolver] = None,
        timezone: str = "UTC",
        step_minutes: int = DEFAULT_STEP_MINUTES,
        admin_step_minutes: int = ADMIN_CALENDAR_STEP_MINUTES,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._calendar = operating_calendar
        self._booking_store = booking_store
        self._resolver = resolver or AvailabilityResolver()
        self.timezone = timezone
        self.step_minutes = step_minutes
        self.admin_step_minutes = admin_step_minutes
        self._clock = clock or (lambda: pendulum.now(self.timezone))

    def now(self, now: Optional[datetime] = None) -> datetime:
        """The current instant expressed in venue-local time."""
        return to_venue_time(now if now is not None else self._clock(), self.timezone)

    def today(self, now: Optional[datetime] = None) -> CalendarDate:
        return venue_today(self.now(now))

    def availability(
        self,
        *,
        resource_id: str,
        date: CalendarDate,
        service_duration_minutes: int,
        now: Optional[datetime] = None,
        step_minutes: Optional[int] = None,
    ) -> AvailabilityResult:
        """
        Resolve the full slot grid of a resource on a day.

        Closed days and past dates return an empty result without touching
        the booking store.

        Raises:
            InvalidDuration: If the service duration is not usable
            InvalidStep: If the grid step is not a positive number of minutes
            AvailabilityUnknown: If existing bookings could not be fetched
        """
        duration = validate_duration(service_duration_minutes)
        step = validate_step(self.step_minutes if step_minutes is None else step_minutes)
        current = self.now(now)

        window = self._calendar.window_or_closed(resource_id, date.weekday)
        if not window.is_open or date < venue_today(current):
            return AvailabilityResult.empty()

        ledger = self.fetch_ledger(resource_id=resource_id, date=date)

        return self._resolver.resolve_day(
            window=window,
            occupied_intervals=ledger.occupied_intervals(),
            service_duration_minutes=duration,
            date=date,
            now=current,
            step_minutes=step,
        )

    def fetch_ledger(self, *, resource_id: str, date: CalendarDate) -> BookingLedgerView:
        """
        Fetch a fresh snapshot of a resource's bookings for a day.

        Raises:
            AvailabilityUnknown: If the booking store could not be read
        """
        try:
            bookings = self._booking_store.get_bookings(resource_id, date)
        except BookingStoreError as exc:
            logger.warning("Could not fetch bookings for %s on %s: %s", resource_id, date, exc)
            raise AvailabilityUnknown(
                f"Could not determine availability for {resource_id} on {date}"
            ) from exc

        return BookingLedgerView(resource_id, date, bookings)

    def book(
        self,
        *,
        resource_id: str,
        date: CalendarDate,
        start_time: LocalTime,
        service_id: str,
        service_duration_minutes: int,
        now: Optional[datetime] = None,
    ) -> BookingOutcome:
        """
        Book a slot, re-resolving the day if another request won the race.

        Raises:
            SlotNotOffered: If the slot is not currently available at all
            AvailabilityUnknown: If existing bookings could not be fetched
            BookingStoreError: If creation failed for a reason other than a conflict
        """
        request = BookingRequest(
            resource_id=resource_id,
            date=date,
            start_time=start_time,
            service_id=service_id,
            duration_minutes=validate_duration(service_duration_minutes),
        )

        current = self.now(now)
        result = self.availability(
            resource_id=resource_id,
            date=date,
            service_duration_minutes=request.duration_minutes,
            now=current,
        )
        entry = result.entry_at(start_time)
        if entry is None:
            raise SlotNotOffered(request, "not on the slot grid for that day")
        if not entry.available:
            raise SlotNotOffered(request, entry.reason.value)

        try:
            booking = self._booking_store.create_booking(request)
        except SlotConflict:
            logger.info("Slot %s was taken concurrently; offering alternatives", request)
            refreshed = self.availability(
                resource_id=resource_id,
                date=date,
                service_duration_minutes=request.duration_minutes,
                now=current,
            )
            return BookingOutcome(
                booking=None,
                conflict=True,
                alternatives=refreshed.available_slots(),
            )

        logger.info("Booked %s as %s", request, booking.booking_id)
        return BookingOutcome(booking=booking)

    def day_board(
        self,
        *,
        resource_ids: Sequence[str],
        date: CalendarDate,
        service_duration_minutes: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Dict[str, AvailabilityResult]:
        """
        Admin calendar view: every resource's grid for one day at the admin step.

        Without a service duration each grid cell is checked for one step's
        worth of time.
        """
        duration = validate_duration(
            self.admin_step_minutes if service_duration_minutes is None else service_duration_minutes
        )
        current = self.now(now)

        return {
            resource_id: self.availability(
                resource_id=resource_id,
                date=date,
                service_duration_minutes=duration,
                now=current,
                step_minutes=self.admin_step_minutes,
            )
            for resource_id in resource_ids
        }

    def open_dates(
        self,
        *,
        resource_id: str,
        start_date: Optional[CalendarDate] = None,
        days: int = 14,
        now: Optional[datetime] = None,
    ) -> List[CalendarDate]:
        """
        Days a booking wizard's date picker should enable.

        Past days and closed (or unconfigured) weekdays are left out. Bookings
        are not consulted, so an open day may still turn out fully booked.
        """
        today = self.today(now)
        first = max(start_date or today, today)

        dates = []
        for offset in range(days):
            day = first.add_days(offset)
            if self._calendar.window_or_closed(resource_id, day.weekday).is_open:
                dates.append(day)
        return dates
