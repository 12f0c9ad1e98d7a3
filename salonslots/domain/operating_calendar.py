"""
Operating calendar: which weekdays a resource is open, and when.
"""

import logging
from typing import Optional, Protocol

from .exceptions import ConfigNotFound
from .models import CalendarDate, OperatingWindow

logger = logging.getLogger(__name__)


class OperatingHoursStoreProtocol(Protocol):
    """Read side of wherever opening hours are configured."""

    def get_window(self, resource_id: str, weekday: int) -> Optional[OperatingWindow]:
        """Return the window for a resource/weekday, or None if not configured."""


class OperatingCalendar:
    """
    Answers "is this resource open on this weekday, and if so when?".

    The store is consulted on every call; hours may change between requests.
    """

    def __init__(self, store: OperatingHoursStoreProtocol):
        self._store = store

    def window_for(self, resource_id: str, weekday: int) -> OperatingWindow:
        """
        Look up the operating window of a resource on a weekday.

        Raises:
            ConfigNotFound: If nothing is configured for that resource/weekday
        """
        if weekday not in range(7):
            raise ValueError(f"Weekday must be between 0 and 6, got {weekday}")

        window = self._store.get_window(resource_id, weekday)
        if window is None:
            raise ConfigNotFound(resource_id, weekday)
        return window

    def window_for_date(self, resource_id: str, day: CalendarDate) -> OperatingWindow:
        return self.window_for(resource_id, day.weekday)

    def window_or_closed(self, resource_id: str, weekday: int) -> OperatingWindow:
        """
        Like ``window_for`` but treats missing configuration as a closed day.

        A booker cannot tell "no hours configured" from "closed", so neither
        is surfaced as a failure.
        """
        try:
            return self.window_for(resource_id, weekday)
        except ConfigNotFound as exc:
            logger.warning("%s; treating the day as closed", exc)
            return OperatingWindow.closed(weekday)
