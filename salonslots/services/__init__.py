"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability_service import AvailabilityService, BookingOutcome, BookingStoreProtocol

__all__ = ["AvailabilityService", "BookingOutcome", "BookingStoreProtocol"]
