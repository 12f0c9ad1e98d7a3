"""
Tests for the booking backend REST client and the mock booking store.
"""

import json
from typing import Any, List

import pytest
import requests

from salonslots.adapters.booking_api_client import BookingApiClient, parse_booking_record, parse_booking_records
from salonslots.adapters.mock_booking_store import MockBookingStore
from salonslots.domain.exceptions import BookingStoreError, SlotConflict
from salonslots.domain.models import BookingRequest, BookingStatus, CalendarDate, LocalTime

DAY = CalendarDate(2025, 11, 25)

RECORD = {
    "id": 12,
    "therapist_id": 3,
    "date": "2025-11-25",
    "start_time": "10:00:00",
    "status": "confirmed",
    "service": {"id": 301, "duration": 60},
}


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error", response=self)


class FakeSession:
    """Replays queued responses (or raises queued exceptions)."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.requests: List[dict] = []

    def _next(self, method, url, **kwargs):
        self.requests.append({"method": method, "url": url, **kwargs})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    def get(self, url, **kwargs):
        return self._next("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self._next("POST", url, **kwargs)


def _client(session: FakeSession, **kwargs):
    sleeps: List[float] = []
    client = BookingApiClient(
        base_url="http://localhost:8000/api/",
        session=session,
        sleep=sleeps.append,
        **kwargs,
    )
    return client, sleeps


def _request() -> BookingRequest:
    return BookingRequest(
        resource_id="3",
        date=DAY,
        start_time=LocalTime(10, 0),
        service_id="301",
        duration_minutes=60,
    )


class TestParseBookingRecord:
    """Tests for booking record parsing."""

    def test_nested_service_duration(self):
        """Test the backend's nested service format."""
        booking = parse_booking_record(RECORD)

        assert booking.booking_id == "12"
        assert booking.resource_id == "3"
        assert booking.date == DAY
        assert booking.start_time == LocalTime(10, 0)
        assert booking.duration_minutes == 60
        assert booking.status is BookingStatus.CONFIRMED
        assert booking.service_id == "301"

    def test_flat_duration_and_midnight_timestamp_date(self):
        """Test flat durations and dates serialised as timestamps."""
        record = {
            "id": "BK1",
            "therapist_id": "1",
            "date": "2025-11-25T00:00:00.000000Z",
            "start_time": "09:30",
            "duration": 45,
            "status": "in-progress",
        }

        booking = parse_booking_record(record)

        assert booking.date == DAY
        assert booking.duration_minutes == 45
        assert booking.status is BookingStatus.IN_PROGRESS

    def test_missing_duration(self):
        """Test that records without any duration are rejected."""
        with pytest.raises(KeyError):
            parse_booking_record({k: v for k, v in RECORD.items() if k != "service"})

    def test_checked_in_and_unknown_statuses_are_kept(self):
        """Test that front-desk states parse and still block time."""
        checked_in = parse_booking_record({**RECORD, "status": "checked_in"})
        unknown = parse_booking_record({**RECORD, "status": "rescheduled"})

        assert checked_in.status is BookingStatus.CHECKED_IN
        assert checked_in.occupies_time
        assert unknown.status is BookingStatus.UNKNOWN
        assert unknown.occupies_time

    def test_negative_duration_is_rejected(self):
        """Test that a negative duration is a parse error."""
        record = {**RECORD, "service": {"id": 301, "duration": -30}}

        with pytest.raises(ValueError):
            parse_booking_record(record)

    def test_start_at_midnight_is_rejected(self):
        """Test that 24:00 is not accepted as a booking start."""
        with pytest.raises(ValueError):
            parse_booking_record({**RECORD, "start_time": "24:00"})

    def test_malformed_records_are_skipped(self):
        """Test that bad records are dropped while valid ones survive."""
        records = [
            {**RECORD, "id": 1, "service": {"id": 301, "duration": -30}},
            {**RECORD, "id": 2, "start_time": "24:00"},
            {**RECORD, "id": 3, "status": "checked_in"},
        ]

        bookings = parse_booking_records(records)

        assert [booking.booking_id for booking in bookings] == ["3"]


class TestGetBookings:
    """Tests for BookingApiClient.get_bookings."""

    def test_list_payload(self):
        """Test a plain JSON list response and the request parameters."""
        session = FakeSession(FakeResponse(200, [RECORD]))
        client, _ = _client(session, token="secret")

        bookings = client.get_bookings("3", DAY)

        assert len(bookings) == 1
        sent = session.requests[0]
        assert sent["url"] == "http://localhost:8000/api/bookings"
        assert sent["params"] == {"therapist_id": "3", "date": "2025-11-25"}
        assert sent["headers"]["Authorization"] == "Bearer secret"

    def test_wrapped_payload_skips_malformed_records(self):
        """Test a {"data": [...]} response with one bad record."""
        bad = dict(RECORD, id=13, start_time="not a time")
        session = FakeSession(FakeResponse(200, {"data": [RECORD, bad]}))
        client, _ = _client(session)

        bookings = client.get_bookings("3", DAY)

        assert [b.booking_id for b in bookings] == ["12"]

    def test_retries_transient_failures(self):
        """Test exponential backoff on connection errors and 503s."""
        session = FakeSession(
            requests.exceptions.ConnectionError("refused"),
            FakeResponse(503),
            FakeResponse(200, [RECORD]),
        )
        client, sleeps = _client(session, retries=3, backoff_seconds=0.5)

        bookings = client.get_bookings("3", DAY)

        assert len(bookings) == 1
        assert sleeps == [0.5, 1.0]

    def test_gives_up_after_retries(self):
        """Test that persistent failures become BookingStoreError."""
        session = FakeSession(
            requests.exceptions.Timeout("slow"),
            requests.exceptions.Timeout("slow"),
        )
        client, sleeps = _client(session, retries=2)

        with pytest.raises(BookingStoreError, match="after 2 attempts"):
            client.get_bookings("3", DAY)
        assert len(sleeps) == 1

    def test_client_errors_are_not_retried(self):
        """Test that a 404 fails immediately."""
        session = FakeSession(FakeResponse(404))
        client, sleeps = _client(session, retries=3)

        with pytest.raises(BookingStoreError):
            client.get_bookings("3", DAY)
        assert sleeps == []
        assert len(session.requests) == 1


class TestCreateBooking:
    """Tests for BookingApiClient.create_booking."""

    def test_created(self):
        """Test a successful creation."""
        session = FakeSession(FakeResponse(201, {"data": dict(RECORD, status="pending")}))
        client, _ = _client(session)

        booking = client.create_booking(_request())

        assert booking.status is BookingStatus.PENDING
        assert session.requests[0]["json"] == {
            "therapist_id": "3",
            "service_id": "301",
            "date": "2025-11-25",
            "start_time": "10:00",
        }

    def test_conflict(self):
        """Test that HTTP 409 is reported as SlotConflict."""
        client, _ = _client(FakeSession(FakeResponse(409, {"message": "taken"})))

        with pytest.raises(SlotConflict) as exc_info:
            client.create_booking(_request())
        assert exc_info.value.request == _request()

    def test_other_failures(self):
        """Test that non-conflict failures are distinct from SlotConflict."""
        client, _ = _client(FakeSession(FakeResponse(500)))

        with pytest.raises(BookingStoreError):
            client.create_booking(_request())

        client, _ = _client(FakeSession(requests.exceptions.ConnectionError("down")))
        with pytest.raises(BookingStoreError):
            client.create_booking(_request())


class TestMockBookingStore:
    """Tests for the JSON-backed mock store."""

    def test_loads_relative_days(self, tmp_path):
        """Test day_offset records resolved against today."""
        data_file = tmp_path / "bookings.json"
        data_file.write_text(json.dumps([
            {"id": "A", "therapist_id": "1", "day_offset": 1, "start_time": "10:00", "duration": 60},
            {"id": "B", "therapist_id": "1", "date": "2025-11-24", "start_time": "12:00", "duration": 30},
        ]), encoding="utf-8")

        store = MockBookingStore(data_file=data_file, today=CalendarDate(2025, 11, 24))

        assert [b.booking_id for b in store.get_bookings("1", DAY)] == ["A"]
        assert [b.booking_id for b in store.get_bookings("1", CalendarDate(2025, 11, 24))] == ["B"]

    def test_bundled_sample_data(self):
        """Test that the bundled sample bookings load."""
        store = MockBookingStore(today=CalendarDate(2025, 11, 24))

        assert len(store.bookings) == 5

    def test_missing_file_starts_empty(self, tmp_path):
        """Test a missing data file."""
        store = MockBookingStore(data_file=tmp_path / "nope.json")

        assert store.bookings == []
