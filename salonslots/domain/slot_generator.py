"""
Fixed-step grid of candidate start times for one day.
"""

from typing import Iterator, List

from .exceptions import InvalidStep
from .models import CalendarDate, LocalTime, OperatingWindow, SlotCandidate

# Customer booking flow grid
DEFAULT_STEP_MINUTES = 15

# Admin calendar day view grid
ADMIN_CALENDAR_STEP_MINUTES = 30


def validate_step(step_minutes: int) -> int:
    if isinstance(step_minutes, bool) or not isinstance(step_minutes, int):
        raise InvalidStep(f"step_minutes must be an integer, got {step_minutes!r}")
    if step_minutes <= 0:
        raise InvalidStep(f"step_minutes must be greater than zero, got {step_minutes}")
    return step_minutes


class SlotGenerator:
    """
    Enumerates candidate start times inside an operating window.

    The grid depends only on the window and the step. Service duration is
    deliberately ignored here so one grid serves services of any length;
    the resolver applies the duration.
    """

    def generate(
        self,
        window: OperatingWindow,
        step_minutes: int = DEFAULT_STEP_MINUTES,
    ) -> Iterator[LocalTime]:
        """
        Yield every ``opens_at + k * step`` strictly before ``closes_at``.

        Each call returns a fresh iterator. A closed window yields nothing.
        """
        validate_step(step_minutes)
        return self._iterate(window, step_minutes)

    @staticmethod
    def _iterate(window: OperatingWindow, step_minutes: int) -> Iterator[LocalTime]:
        if not window.is_open:
            return

        current = window.opens_at.total_minutes
        closes = window.closes_at.total_minutes

        while current < closes:
            yield LocalTime.from_minutes(current)
            current += step_minutes

    def candidates(
        self,
        window: OperatingWindow,
        date: CalendarDate,
        duration_minutes: int,
        step_minutes: int = DEFAULT_STEP_MINUTES,
    ) -> List[SlotCandidate]:
        """Wrap the grid for ``date`` as slot candidates of a given duration."""
        return [
            SlotCandidate(date=date, start=start, duration_minutes=duration_minutes)
            for start in self.generate(window, step_minutes)
        ]
