"""
REST client for the salon booking backend.
"""

import logging
import time
from typing import Any, Callable, Dict, List, Optional

import requests

from ..domain.exceptions import BookingStoreError, SlotConflict
from ..domain.models import Booking, BookingRequest, BookingStatus, CalendarDate, LocalTime

logger = logging.getLogger(__name__)

# Worth retrying: the backend may recover on its own
TRANSIENT_STATUS_CODES = {502, 503, 504}


def parse_booking_record(record: Dict[str, Any]) -> Booking:
    """
    Parse one booking as serialised by the backend into our domain model.

    Record format:
    {
        "id": 12,
        "therapist_id": 3,
        "date": "2025-11-25",
        "start_time": "10:00:00",
        "status": "confirmed",
        "service": {"id": 301, "duration": 60}
    }

    A flat ``duration`` / ``duration_minutes`` is accepted when no nested
    service is present.

    Raises:
        KeyError: If a required field is missing
        ValueError: If a field cannot be parsed
    """
    service = record.get("service") or {}
    duration = (
        service.get("duration")
        or service.get("duration_minutes")
        or record.get("duration")
        or record.get("duration_minutes")
    )
    if duration is None:
        raise KeyError("duration")

    raw_date = str(record["date"])
    # Date columns may arrive as midnight timestamps; the calendar day is the
    # literal date part, never a timezone-converted instant
    if "T" in raw_date:
        raw_date = raw_date.split("T", 1)[0]

    service_id = service.get("id", record.get("service_id"))

    raw_status = str(record.get("status") or "confirmed")
    status = BookingStatus(raw_status.lower())
    if status is BookingStatus.UNKNOWN:
        logger.warning(
            "Booking %r has unrecognised status %r; treating its time as occupied",
            record.get("id"),
            raw_status,
        )

    # Booking validates the duration and start time
    return Booking(
        booking_id=str(record["id"]),
        resource_id=str(record["therapist_id"]),
        date=CalendarDate.parse(raw_date),
        start_time=LocalTime.parse(str(record["start_time"])),
        duration_minutes=int(duration),
        status=status,
        service_id=str(service_id) if service_id is not None else None,
    )


def parse_booking_records(records: List[Dict[str, Any]]) -> List[Booking]:
    """Parse a list of records, skipping (and logging) malformed ones."""
    bookings: List[Booking] = []

    for record in records:
        try:
            bookings.append(parse_booking_record(record))
        except (KeyError, ValueError, TypeError) as exc:
            logger.warning("Could not parse booking record %r: %s", record.get("id"), exc)
            continue

    return bookings


def booking_request_payload(request: BookingRequest) -> Dict[str, Any]:
    return {
        "therapist_id": request.resource_id,
        "service_id": request.service_id,
        "date": request.date.isoformat(),
        "start_time": request.start_time.format(),
    }


class BookingApiClient:
    """
    Client for the backend ``/bookings`` resource.

    Reads are retried with exponential backoff on transient failures;
    creation is not retried since it is not idempotent.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout_seconds: float = 10.0,
        retries: int = 3,
        backoff_seconds: float = 0.5,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the booking API client.

        Args:
            base_url: Backend API root, e.g. ``http://localhost:8000/api``
            token: Optional bearer token
            timeout_seconds: Per-request timeout
            retries: Total attempts for reads
            backoff_seconds: Initial delay between read attempts
            session: Optional pre-configured requests session
            sleep: Delay function, replaceable in tests
        """
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.retries = max(1, retries)
        self.backoff_seconds = backoff_seconds
        self.session = session or requests.Session()
        self._sleep = sleep
        self.headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if token:
            self.headers["Authorization"] = f"Bearer {token}"

    def get_bookings(self, resource_id: str, date: CalendarDate) -> List[Booking]:
        """
        Get the bookings of a therapist on a day.

        Raises:
            BookingStoreError: If the bookings could not be fetched
        """
        url = f"{self.base_url}/bookings"
        params = {"therapist_id": resource_id, "date": date.isoformat()}

        data = self._get_with_retry(url, params)

        records = data.get("data", []) if isinstance(data, dict) else data
        if not isinstance(records, list):
            raise BookingStoreError(f"Unexpected bookings payload from {url}")

        return parse_booking_records(records)

    def create_booking(self, request: BookingRequest) -> Booking:
        """
        Ask the backend to create a booking atomically.

        Raises:
            SlotConflict: If the backend reports the slot as taken (HTTP 409)
            BookingStoreError: For any other failure
        """
        url = f"{self.base_url}/bookings"

        try:
            response = self.session.post(
                url,
                headers=self.headers,
                json=booking_request_payload(request),
                timeout=self.timeout_seconds,
            )
        except requests.exceptions.RequestException as exc:
            raise BookingStoreError(f"Failed to create booking: {exc}") from exc

        if response.status_code == 409:
            raise SlotConflict(request)

        try:
            response.raise_for_status()
            data = response.json()
        except (requests.exceptions.RequestException, ValueError) as exc:
            raise BookingStoreError(f"Failed to create booking: {exc}") from exc

        record = data.get("data", data) if isinstance(data, dict) else data
        try:
            return parse_booking_record(record)
        except (KeyError, ValueError, TypeError, AttributeError) as exc:
            raise BookingStoreError(f"Unexpected booking payload: {exc}") from exc

    def _get_with_retry(self, url: str, params: Dict[str, str]) -> Any:
        delay = self.backoff_seconds
        last_error: Optional[Exception] = None

        for attempt in range(1, self.retries + 1):
            try:
                response = self.session.get(
                    url,
                    headers=self.headers,
                    params=params,
                    timeout=self.timeout_seconds,
                )
                if response.status_code in TRANSIENT_STATUS_CODES:
                    raise requests.exceptions.HTTPError(
                        f"{response.status_code} from {url}", response=response
                    )
                response.raise_for_status()
                return response.json()

            except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as exc:
                last_error = exc
            except requests.exceptions.HTTPError as exc:
                status = exc.response.status_code if exc.response is not None else None
                if status not in TRANSIENT_STATUS_CODES:
                    raise BookingStoreError(f"Failed to fetch bookings: {exc}") from exc
                last_error = exc
            except (requests.exceptions.RequestException, ValueError) as exc:
                raise BookingStoreError(f"Failed to fetch bookings: {exc}") from exc

            if attempt < self.retries:
                logger.warning(
                    "Fetching bookings failed (attempt %d/%d): %s; retrying in %.1fs",
                    attempt, self.retries, last_error, delay,
                )
                self._sleep(delay)
                delay *= 2

        raise BookingStoreError(
            f"Failed to fetch bookings after {self.retries} attempts: {last_error}"
        ) from last_error
