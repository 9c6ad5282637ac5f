"""
In-memory store and calendar client for running without Supabase/Google.
"""

import copy
import json
import uuid
from datetime import date as Date
from pathlib import Path
from typing import Any, Dict, List, Optional

import pendulum
from pendulum import DateTime

from ..domain.exceptions import CalendarAPIError
from ..domain.models import TimeRange
from ..domain.records import Booking, Service, Worker

DATA_FILE = Path(__file__).parent / "mock_salon_data.json"


def load_mock_data(data_file: Path = DATA_FILE) -> Dict[str, Any]:
    """Load the bundled mock data set (empty collections if missing)."""
    if data_file.exists():
        with open(data_file, "r", encoding="utf-8") as f:
            return json.load(f)
    return {"settings": {}, "workers": [], "bookings": [], "calendar_events": []}


def _resolve_times(entry: Dict[str, Any], timezone: str) -> Dict[str, Any]:
    """
    Turn a relative entry (``day_offset`` + ``start``/``end`` as HH:MM) into
    absolute ``start_time``/``end_time`` ISO strings. Absolute entries pass
    through unchanged.
    """
    if "start_time" in entry:
        return entry

    resolved = dict(entry)
    day = pendulum.today(timezone).add(days=int(resolved.pop("day_offset", 0)))
    for src, dst in (("start", "start_time"), ("end", "end_time")):
        hour, minute = (int(part) for part in resolved.pop(src).split(":"))
        resolved[dst] = day.set(hour=hour, minute=minute).to_iso8601_string()
    resolved.setdefault("booking_date", day.to_date_string())
    return resolved


class MockStore:
    """
    Store that keeps settings, workers and bookings in memory.

    Mirrors the ``SupabaseStore`` interface so services and the CLI can run
    against it unchanged.
    """

    def __init__(self, data: Dict[str, Any] | None = None, timezone: str = "UTC"):
        data = copy.deepcopy(data) if data is not None else load_mock_data()
        self.timezone = timezone
        self.settings: Dict[str, Any] = dict(data.get("settings", {}))
        self.services: Dict[str, Service] = {
            row["id"]: Service.model_validate(row) for row in data.get("services", [])
        }
        self.workers: Dict[str, Worker] = {
            row["id"]: Worker.model_validate(row) for row in data.get("workers", [])
        }
        self.bookings: Dict[str, Booking] = {}
        for row in data.get("bookings", []):
            booking = Booking.model_validate(_resolve_times(dict(row), timezone))
            booking_id = booking.id or str(uuid.uuid4())
            self.bookings[booking_id] = booking.model_copy(update={"id": booking_id})

    def get_setting(self, key: str) -> Optional[Any]:
        return copy.deepcopy(self.settings.get(key))

    def set_setting(self, key: str, value: Any) -> None:
        self.settings[key] = copy.deepcopy(value)

    def get_service(self, service_id: str) -> Optional[Service]:
        service = self.services.get(service_id)
        return service if service and service.is_active else None

    def list_workers(self, worker_id: str | None = None) -> List[Worker]:
        return [
            worker for worker in self.workers.values()
            if worker.is_active and (worker_id is None or worker.id == worker_id)
        ]

    def get_worker(self, worker_id: str) -> Optional[Worker]:
        return self.workers.get(worker_id)

    def update_worker(self, worker_id: str, fields: Dict[str, Any]) -> None:
        worker = self.workers[worker_id]
        self.workers[worker_id] = worker.model_copy(update=fields)

    def list_bookings(self, booking_date: Date, worker_id: str | None = None) -> List[Booking]:
        day = booking_date.isoformat()
        return [
            booking for booking in self.bookings.values()
            if booking.booking_date == day
            and booking.status != "cancelled"
            and (worker_id is None or booking.worker_id == worker_id)
        ]

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        return self.bookings.get(booking_id)

    def insert_booking(self, booking: Booking) -> Booking:
        stored = booking.model_copy(update={"id": booking.id or str(uuid.uuid4())})
        self.bookings[stored.id] = stored
        return stored

    def update_booking(self, booking_id: str, fields: Dict[str, Any]) -> None:
        booking = self.bookings[booking_id]
        self.bookings[booking_id] = booking.model_copy(update=fields)


class MockCalendarClient:
    """
    Calendar client that serves busy times from the mock data set.

    Calendars listed in ``failing_calendars`` raise CalendarAPIError so the
    degraded path can be exercised.
    """

    def __init__(
        self,
        data: Dict[str, Any] | None = None,
        timezone: str = "UTC",
        failing_calendars: List[str] | None = None,
    ):
        data = copy.deepcopy(data) if data is not None else load_mock_data()
        self.timezone = timezone
        self.events = [
            _resolve_times(dict(event), timezone)
            for event in data.get("calendar_events", [])
        ]
        self.failing_calendars = set(failing_calendars or [])
        self.created_events: Dict[str, Dict[str, Any]] = {}

    def refresh_access_token(self, refresh_token: str) -> str:
        return f"mock-access-{refresh_token}"

    def get_free_busy(
        self,
        access_token: str,
        calendar_id: str,
        time_min: DateTime,
        time_max: DateTime,
        timezone: str = "UTC",
    ) -> List[TimeRange]:
        if calendar_id in self.failing_calendars:
            raise CalendarAPIError(f"Mock calendar {calendar_id} unavailable")

        busy: List[TimeRange] = []
        for event in self.events:
            if event.get("calendarId") != calendar_id:
                continue
            start = pendulum.parse(event["start_time"]).in_timezone(timezone)
            end = pendulum.parse(event["end_time"]).in_timezone(timezone)
            if start < time_max and end > time_min:
                busy.append(TimeRange(start=start, end=end))
        return busy

    def create_event(
        self,
        access_token: str,
        calendar_id: str,
        summary: str,
        start: DateTime,
        end: DateTime,
        description: str = "",
        attendee_email: str | None = None,
    ) -> str:
        event_id = f"mock-event-{len(self.created_events) + 1}"
        self.created_events[event_id] = {
            "calendarId": calendar_id,
            "summary": summary,
            "start": start,
            "end": end,
        }
        return event_id

    def delete_event(self, access_token: str, calendar_id: str, event_id: str) -> None:
        self.created_events.pop(event_id, None)
