"""
In-memory booking store for running without the booking backend.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from ..domain.exceptions import SlotConflict
from ..domain.ledger import BookingLedgerView
from ..domain.models import Booking, BookingRequest, BookingStatus, CalendarDate
from .booking_api_client import parse_booking_records

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = Path(__file__).parent / "mock_bookings.json"


class MockBookingStore:
    """
    Booking store that keeps bookings in memory.

    Seed data is loaded from a JSON file using the backend's record format.
    Records may carry ``day_offset`` instead of ``date``; the offset is
    applied to ``today`` so the sample data always lands in the near future.
    Creation is an atomic check-and-insert under a lock, mirroring what the
    real backend guarantees.
    """

    def __init__(
        self,
        bookings: Optional[Iterable[Booking]] = None,
        data_file: Optional[Path] = None,
        today: Optional[CalendarDate] = None,
    ):
        self._lock = threading.Lock()
        self._bookings: List[Booking] = list(bookings or [])
        self._next_id = 1

        if data_file is not None or bookings is None:
            self._bookings.extend(self._load_data_file(data_file or DEFAULT_DATA_FILE, today))

    def _load_data_file(self, data_file: Path, today: Optional[CalendarDate]) -> List[Booking]:
        """Load seed bookings from a JSON file."""
        if not data_file.exists():
            logger.warning("Mock booking data file %s not found; starting empty", data_file)
            return []

        with open(data_file, "r", encoding="utf-8") as f:
            records: List[Dict[str, Any]] = json.load(f)

        resolved = []
        for record in records:
            if "day_offset" in record:
                if today is None:
                    logger.warning("Skipping relative mock booking %r: no reference day", record.get("id"))
                    continue
                record = dict(record, date=today.add_days(int(record["day_offset"])).isoformat())
            resolved.append(record)

        return parse_booking_records(resolved)

    def get_bookings(self, resource_id: str, date: CalendarDate) -> List[Booking]:
        with self._lock:
            return [
                booking for booking in self._bookings
                if booking.resource_id == resource_id and booking.date == date
            ]

    def create_booking(self, request: BookingRequest) -> Booking:
        """
        Create a booking unless it overlaps an existing one.

        Raises:
            SlotConflict: If the slot is already taken
        """
        with self._lock:
            ledger = BookingLedgerView(request.resource_id, request.date, self._bookings)
            if ledger.conflicts_with(request.start_time, request.duration_minutes):
                raise SlotConflict(request)

            booking = Booking(
                booking_id=f"MOCK-{self._next_id:03d}",
                resource_id=request.resource_id,
                date=request.date,
                start_time=request.start_time,
                duration_minutes=request.duration_minutes,
                status=BookingStatus.PENDING,
                service_id=request.service_id,
            )
            self._next_id += 1
            self._bookings.append(booking)
            return booking

    @property
    def bookings(self) -> List[Booking]:
        with self._lock:
            return list(self._bookings)
