"""
Domain-specific exception hierarchy for the slot engine.
"""

from typing import Optional


class SlotEngineError(Exception):
    """Base class for all application-level errors."""


class ConfigNotFound(SlotEngineError):
    """Raised when a resource has no operating hours for a weekday."""

    def __init__(self, resource_id: str, weekday: int):
        self.resource_id = resource_id
        self.weekday = weekday
        super().__init__(
            f"No operating hours configured for resource '{resource_id}' on weekday {weekday}"
        )


class InvalidDuration(SlotEngineError, ValueError):
    """Raised when a service duration is not a positive, finite number of minutes."""


class InvalidStep(SlotEngineError, ValueError):
    """Raised when a slot grid step is not a positive number of minutes."""


class SlotConflict(SlotEngineError):
    """Raised by a booking store when the requested slot was taken by another request."""

    def __init__(self, request, message: Optional[str] = None):
        self.request = request
        super().__init__(message or f"Slot {request} is no longer available")


class BookingStoreError(SlotEngineError):
    """Raised when bookings cannot be fetched from or written to the booking store."""


class AvailabilityUnknown(SlotEngineError):
    """Raised when availability could not be determined because inputs were unavailable."""


class SlotNotOffered(SlotEngineError):
    """Raised when a booking is requested for a slot that is not currently available."""

    def __init__(self, request, reason: str):
        self.request = request
        self.reason = reason
        super().__init__(f"Slot {request} cannot be booked: {reason}")
