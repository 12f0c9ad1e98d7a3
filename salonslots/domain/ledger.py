"""
Read-only view over the existing bookings of one resource on one day.
"""

from typing import Iterable, List

from .models import Booking, CalendarDate, LocalTime, OccupiedInterval


class BookingLedgerView:
    """
    Snapshot of bookings used to derive the occupied intervals of a day.

    Bookings for other resources or days and cancelled bookings are ignored,
    so the view can be built straight from a loosely filtered store response.
    """

    def __init__(self, resource_id: str, date: CalendarDate, bookings: Iterable[Booking]):
        self.resource_id = resource_id
        self.date = date
        self._bookings: List[Booking] = [
            booking for booking in bookings
            if booking.resource_id == resource_id
            and booking.date == date
            and booking.occupies_time
        ]

    @property
    def bookings(self) -> List[Booking]:
        return list(self._bookings)

    def occupied_intervals(self) -> List[OccupiedInterval]:
        """Occupied intervals sorted by start time."""
        intervals = [booking.occupied_interval() for booking in self._bookings]
        return sorted(intervals, key=lambda interval: (interval.start, interval.end))

    def conflicts_with(self, start: LocalTime, duration_minutes: int) -> bool:
        """Check whether ``[start, start + duration)`` hits any booking."""
        start_minutes = start.total_minutes
        end_minutes = start_minutes + duration_minutes
        return any(
            interval.overlaps(start_minutes, end_minutes)
            for interval in self.occupied_intervals()
        )

    def __len__(self) -> int:
        return len(self._bookings)
