"""
Adapters layer - External integrations (booking backend, configured hours).
"""

from .booking_api_client import BookingApiClient
from .mock_booking_store import MockBookingStore
from .operating_hours import ConfigOperatingHoursStore

__all__ = ["BookingApiClient", "ConfigOperatingHoursStore", "MockBookingStore"]
