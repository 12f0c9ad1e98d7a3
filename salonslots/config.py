"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import Dict, List, Optional

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.dates import WEEKDAY_KEYS, weekday_from_key
from .domain.models import LocalTime, OperatingWindow
from .domain.slot_generator import ADMIN_CALENDAR_STEP_MINUTES, DEFAULT_STEP_MINUTES
from .domain.availability_resolver import DEFAULT_LEAD_TIME_MINUTES

CLOSED_MARKERS = ("closed", "off", "")

# Weekday key -> "HH:MM-HH:MM", or None/"closed" for a day off
WeeklyHours = Dict[str, Optional[str]]


def default_weekly_hours() -> WeeklyHours:
    """Monday to Saturday 09:00-18:00, closed on Sunday."""
    hours: WeeklyHours = {key: "09:00-18:00" for key in WEEKDAY_KEYS[:6]}
    hours["sun"] = None
    return hours


def parse_hours_entry(weekday: int, value: Optional[str]) -> OperatingWindow:
    """
    Turn one weekly-hours entry into an OperatingWindow.

    Args:
        weekday: 0=Monday … 6=Sunday
        value: ``"HH:MM-HH:MM"``, or None / ``"closed"`` for a day off

    Raises:
        ValueError: If the entry cannot be parsed
    """
    if value is None or str(value).strip().lower() in CLOSED_MARKERS:
        return OperatingWindow.closed(weekday)

    parts = str(value).split("-")
    if len(parts) != 2:
        raise ValueError(f"Invalid hours '{value}', expected HH:MM-HH:MM or 'closed'")

    return OperatingWindow(
        weekday=weekday,
        opens_at=LocalTime.parse(parts[0]),
        closes_at=LocalTime.parse(parts[1]),
    )


def normalize_weekly_hours(value: WeeklyHours) -> WeeklyHours:
    """Normalise weekday keys to ``mon``..``sun`` and validate every entry."""
    normalized: WeeklyHours = {}
    for key, hours in value.items():
        weekday = weekday_from_key(str(key))
        day_key = WEEKDAY_KEYS[weekday]
        if day_key in normalized:
            raise ValueError(f"Duplicate hours entry for '{day_key}'")
        window = parse_hours_entry(weekday, hours)
        normalized[day_key] = hours if window.is_open else None
    return normalized


class BookingDefaults(BaseModel):
    """Default settings for availability resolution."""
    step_minutes: int = DEFAULT_STEP_MINUTES
    admin_step_minutes: int = ADMIN_CALENDAR_STEP_MINUTES
    lead_time_minutes: int = DEFAULT_LEAD_TIME_MINUTES
    default_duration_minutes: int = 60

    @field_validator("step_minutes", "admin_step_minutes", "default_duration_minutes")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("value must be greater than zero")
        return value

    @field_validator("lead_time_minutes")
    @classmethod
    def validate_lead_time(cls, value: int) -> int:
        if value < 0:
            raise ValueError("lead_time_minutes cannot be negative")
        return value


class VenueConfig(BaseModel):
    """The salon itself: name, timezone and default opening hours."""
    name: str = "Salon"
    timezone: str = "Asia/Kuala_Lumpur"
    hours: WeeklyHours = Field(default_factory=default_weekly_hours)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        try:
            pendulum.timezone(value)
        except Exception as exc:
            raise ValueError(f"Unknown timezone '{value}'") from exc
        return value

    @field_validator("hours")
    @classmethod
    def validate_hours(cls, value: WeeklyHours) -> WeeklyHours:
        return normalize_weekly_hours(value)


class ApiConfig(BaseModel):
    """Booking backend connection settings."""
    base_url: str = "http://localhost:8000/api"
    timeout_seconds: float = 10.0
    retries: int = 3
    backoff_seconds: float = 0.5
    token: Optional[str] = None

    @field_validator("retries")
    @classmethod
    def validate_retries(cls, value: int) -> int:
        if value < 1:
            raise ValueError("retries must be at least 1")
        return value

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class Therapist(BaseModel):
    """Therapist (bookable resource) configuration."""
    id: str
    name: str
    hours: Optional[WeeklyHours] = None  # Overrides venue hours per weekday

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value) -> str:
        return str(value)

    @field_validator("hours")
    @classmethod
    def validate_hours(cls, value: Optional[WeeklyHours]) -> Optional[WeeklyHours]:
        if value is None:
            return None
        return normalize_weekly_hours(value)


class Service(BaseModel):
    """Bookable service with its duration."""
    id: str
    name: str
    duration_minutes: int

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value) -> str:
        return str(value)

    @field_validator("duration_minutes")
    @classmethod
    def validate_duration(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("duration_minutes must be greater than zero")
        return value


class AppConfig(BaseModel):
    """Application configuration."""
    venue: VenueConfig = Field(default_factory=VenueConfig)
    booking: BookingDefaults = Field(default_factory=BookingDefaults)
    api: ApiConfig = Field(default_factory=ApiConfig)
    therapists: List[Therapist] = Field(default_factory=list)
    services: List[Service] = Field(default_factory=list)
    mock_data_file: Optional[Path] = None

    @field_validator("therapists")
    @classmethod
    def validate_therapists(cls, value: List[Therapist]) -> List[Therapist]:
        """Ensure therapist ids and names are unique."""
        seen_ids: set[str] = set()
        seen_names: set[str] = set()
        for therapist in value:
            name_key = therapist.name.lower()
            if therapist.id in seen_ids:
                raise ValueError(f"Duplicate therapist id detected: {therapist.id}")
            if name_key in seen_names:
                raise ValueError(f"Duplicate therapist name detected: {therapist.name}")
            seen_ids.add(therapist.id)
            seen_names.add(name_key)
        return value

    @model_validator(mode="after")
    def validate_services_unique(self) -> "AppConfig":
        ids = [service.id for service in self.services]
        if len(ids) != len(set(ids)):
            raise ValueError("Duplicate service ids detected")
        return self

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        config = cls(**data)

        # Relative mock data paths are resolved against the config file
        if config.mock_data_file and not config.mock_data_file.is_absolute():
            config.mock_data_file = config_path.parent / config.mock_data_file

        return config

    def find_therapist(self, therapist_id: str) -> Optional[Therapist]:
        for therapist in self.therapists:
            if therapist.id == str(therapist_id):
                return therapist
        return None

    def find_therapist_by_name(self, name: str) -> Optional[Therapist]:
        for therapist in self.therapists:
            if therapist.name.lower() == name.lower():
                return therapist
        return None

    def resolve_therapist(self, identifier: str) -> Therapist:
        """
        Resolve a therapist by id or (case-insensitive) name.

        Raises:
            ValueError: If identifier cannot be resolved
        """
        therapist = self.find_therapist(identifier) or self.find_therapist_by_name(identifier)
        if therapist:
            return therapist

        raise ValueError(
            f"Unknown therapist: '{identifier}'. "
            f"Use a configured therapist id or name."
        )

    def find_service(self, service_id: str) -> Optional[Service]:
        for service in self.services:
            if service.id == str(service_id):
                return service
        return None

    def weekly_hours_for(self, therapist_id: str) -> WeeklyHours:
        """Venue hours with the therapist's own entries layered on top."""
        hours = dict(self.venue.hours)
        therapist = self.find_therapist(therapist_id)
        if therapist and therapist.hours:
            hours.update(therapist.hours)
        return hours


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
