"""
Operating-hours store backed by the application configuration.
"""

from typing import Optional

from ..config import AppConfig, parse_hours_entry
from ..domain.dates import WEEKDAY_KEYS
from ..domain.models import OperatingWindow


class ConfigOperatingHoursStore:
    """
    Serves operating windows from ``config.yaml``.

    Venue hours apply to every resource; a therapist's own entries replace
    the venue entry for that weekday. A weekday missing from both is
    reported as not configured (None).
    """

    def __init__(self, config: AppConfig):
        self.config = config

    def get_window(self, resource_id: str, weekday: int) -> Optional[OperatingWindow]:
        hours = self.config.weekly_hours_for(resource_id)
        day_key = WEEKDAY_KEYS[weekday]

        if day_key not in hours:
            return None

        return parse_hours_entry(weekday, hours[day_key])
