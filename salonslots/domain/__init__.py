"""
Domain layer - Pure business logic without external dependencies.
"""

from .availability_resolver import (
    DEFAULT_LEAD_TIME_MINUTES,
    AvailabilityResolver,
    validate_duration,
)
from .ledger import BookingLedgerView
from .models import (
    AvailabilityResult,
    Booking,
    BookingRequest,
    BookingStatus,
    CalendarDate,
    LocalTime,
    OccupiedInterval,
    OperatingWindow,
    SlotAvailability,
    SlotCandidate,
    UnavailableReason,
)
from .operating_calendar import OperatingCalendar, OperatingHoursStoreProtocol
from .slot_generator import ADMIN_CALENDAR_STEP_MINUTES, DEFAULT_STEP_MINUTES, SlotGenerator

__all__ = [
    "ADMIN_CALENDAR_STEP_MINUTES",
    "DEFAULT_LEAD_TIME_MINUTES",
    "DEFAULT_STEP_MINUTES",
    "AvailabilityResolver",
    "AvailabilityResult",
    "Booking",
    "BookingLedgerView",
    "BookingRequest",
    "BookingStatus",
    "CalendarDate",
    "LocalTime",
    "OccupiedInterval",
    "OperatingCalendar",
    "OperatingHoursStoreProtocol",
    "OperatingWindow",
    "SlotAvailability",
    "SlotCandidate",
    "SlotGenerator",
    "UnavailableReason",
    "validate_duration",
]
