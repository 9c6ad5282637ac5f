"""
Application services for computing appointment availability.

The service fetches business hours, bookings and calendar busy data via
adapter protocols and delegates the slot arithmetic to the domain-level
``compute_slots``. The booking-conflict path and the calendar-backed path
share that one function and differ only in the buffer they pass.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date as Date
from typing import Any, Callable, Dict, List, Optional, Protocol

import pendulum
from pendulum import DateTime

from ..domain.exceptions import (
    AuthenticationError,
    BookingStoreError,
    CalendarAPIError,
    WorkerNotFoundError,
)
from ..domain.models import BusinessHours, TimeRange, TimeSlot
from ..domain.records import Booking, Service, Worker
from ..domain.slot_calculator import DEFAULT_STEP_MINUTES, SlotCalculator
from .settings_cache import SettingsCache

logger = logging.getLogger(__name__)

DEFAULT_CALENDAR_BUFFER_MINUTES = 15
CLOSED_MESSAGE = "Business is closed on this day"


class BookingStoreProtocol(Protocol):
    """Persistence the availability and booking services rely on."""

    def get_service(self, service_id: str) -> Optional[Service]:
        """Return an active service or None."""

    def list_workers(self, worker_id: str | None = None) -> List[Worker]:
        """Return active workers, optionally filtered to one id."""

    def get_worker(self, worker_id: str) -> Optional[Worker]:
        """Return a worker by id, active or not."""

    def update_worker(self, worker_id: str, fields: Dict[str, Any]) -> None:
        """Persist changed worker columns."""

    def list_bookings(self, booking_date: Date, worker_id: str | None = None) -> List[Booking]:
        """Return non-cancelled bookings on a day."""

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        """Return one booking or None."""

    def insert_booking(self, booking: Booking) -> Booking:
        """Persist a new booking and return the stored row."""

    def update_booking(self, booking_id: str, fields: Dict[str, Any]) -> None:
        """Persist changed booking columns."""


class CalendarClientProtocol(Protocol):
    """Calendar operations needed by the services."""

    def refresh_access_token(self, refresh_token: str) -> str:
        """Return a fresh access token."""

    def get_free_busy(
        self,
        access_token: str,
        calendar_id: str,
        time_min: DateTime,
        time_max: DateTime,
        timezone: str = "UTC",
    ) -> List[TimeRange]:
        """Return busy ranges for one calendar."""

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
        """Create an event and return its id."""

    def delete_event(self, access_token: str, calendar_id: str, event_id: str) -> None:
        """Delete an event."""


@dataclass
class WorkerAvailability:
    worker_id: str
    worker_name: str
    calendar_connected: bool
    slots: List[TimeSlot] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "worker_id": self.worker_id,
            "worker_name": self.worker_name,
            "calendar_connected": self.calendar_connected,
            "slots": [slot.to_dict() for slot in self.slots],
        }


@dataclass
class AvailabilityResponse:
    date: str
    business_hours: BusinessHours
    workers: List[WorkerAvailability] = field(default_factory=list)
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "date": self.date,
            "business_hours": self.business_hours.to_dict(),
            "workers": [worker.to_dict() for worker in self.workers],
        }
        if self.message:
            payload["message"] = self.message
        return payload


class AvailabilityService:
    """
    Orchestrates settings, booking and calendar lookups for slot calculation.

    Dependency inversion toward protocols makes it easy to plug in the
    Supabase/Google adapters or the in-memory mocks in tests.
    """

    def __init__(
        self,
        store: BookingStoreProtocol,
        settings: SettingsCache,
        calendar_client: CalendarClientProtocol | None = None,
        timezone: str = "UTC",
        step_minutes: int = DEFAULT_STEP_MINUTES,
        calendar_buffer_minutes: int = DEFAULT_CALENDAR_BUFFER_MINUTES,
        clock: Callable[[], DateTime] | None = None,
    ) -> None:
        self._store = store
        self._settings = settings
        self._calendar_client = calendar_client
        self.timezone = timezone
        self._default_step = step_minutes
        self._default_buffer = calendar_buffer_minutes
        self._clock = clock or (lambda: pendulum.now(self.timezone))

    @property
    def store(self) -> BookingStoreProtocol:
        return self._store

    @property
    def calendar_client(self) -> CalendarClientProtocol | None:
        return self._calendar_client

    def now(self) -> DateTime:
        return self._clock()

    def calculator(self) -> SlotCalculator:
        """Build a calculator from the current (cached) settings."""
        return SlotCalculator(
            business_hours=self._settings.business_hours(),
            timezone=self.timezone,
            step_minutes=self._settings.booking_setting("step_minutes", self._default_step),
            clock=self._clock,
        )

    def calendar_buffer_minutes(self) -> int:
        buffer_minutes = self._settings.booking_setting(
            "calendar_buffer_minutes", self._default_buffer
        )
        if buffer_minutes < 0:
            logger.warning("Ignoring negative calendar buffer %d", buffer_minutes)
            return self._default_buffer
        return buffer_minutes

    def business_hours_for(self, date: Date) -> BusinessHours:
        return self._settings.business_hours().for_date(date)

    def local_availability(
        self,
        date: Date,
        service_duration_minutes: int,
        worker_id: str | None = None,
    ) -> List[TimeSlot]:
        """
        Slots for ``date`` checked against stored bookings only (no buffer).
        """
        bookings = self._store.list_bookings(date, worker_id)
        busy = [booking.time_range() for booking in bookings]
        logger.debug(
            "Local availability for %s (worker=%s): %d busy interval(s)",
            date, worker_id, len(busy),
        )
        return self.calculator().find_slots(date, busy, service_duration_minutes)

    def calendar_availability(
        self,
        date: Date,
        service_duration_minutes: int = 60,
        worker_id: str | None = None,
    ) -> AvailabilityResponse:
        """
        Per-worker slots for ``date`` checked against calendar free/busy data.

        Raises:
            WorkerNotFoundError: If ``worker_id`` is given but not active
        """
        calculator = self.calculator()
        hours = calculator.hours_for(date)
        response = AvailabilityResponse(date=date.isoformat(), business_hours=hours)

        if hours.closed:
            response.message = CLOSED_MESSAGE
            return response

        workers = self._store.list_workers(worker_id)
        if worker_id and not workers:
            raise WorkerNotFoundError(f"Worker not found: {worker_id}")

        buffer_minutes = self.calendar_buffer_minutes()

        for worker in workers:
            busy = self.fetch_calendar_busy(worker, date)
            slots = calculator.find_slots(
                date,
                busy,
                service_duration_minutes,
                buffer_minutes=buffer_minutes,
            )
            response.workers.append(
                WorkerAvailability(
                    worker_id=worker.id,
                    worker_name=worker.name,
                    calendar_connected=worker.calendar_connected,
                    slots=slots,
                )
            )

        return response

    def fetch_calendar_busy(self, worker: Worker, date: Date) -> List[TimeRange]:
        """
        Busy ranges from the worker's calendar for the whole day.

        Any calendar failure degrades to an empty list (all business-hour
        slots open) rather than failing the request.
        """
        if not worker.has_calendar() or self._calendar_client is None:
            return []

        access_token = self.worker_access_token(worker)
        day_start = pendulum.datetime(date.year, date.month, date.day, tz=self.timezone)

        try:
            return self._calendar_client.get_free_busy(
                access_token,
                worker.google_calendar_id or worker.email,
                day_start,
                day_start.end_of("day"),
                timezone=self.timezone,
            )
        except CalendarAPIError as exc:
            logger.error("Error fetching availability for worker %s: %s", worker.id, exc)
            return []

    def worker_access_token(self, worker: Worker) -> str:
        """
        Refresh the worker's access token when possible and persist it.
        Falls back to the stored token if the refresh fails.
        """
        token = worker.google_access_token or ""
        if not worker.google_refresh_token or self._calendar_client is None:
            return token

        try:
            fresh = self._calendar_client.refresh_access_token(worker.google_refresh_token)
        except AuthenticationError as exc:
            logger.warning("Token refresh failed for worker %s: %s", worker.id, exc)
            return token

        if fresh != token:
            try:
                self._store.update_worker(worker.id, {"google_access_token": fresh})
            except BookingStoreError as exc:
                logger.warning("Could not persist refreshed token for %s: %s", worker.id, exc)
        return fresh

    def available_dates(self, start_date: Date, days_to_check: int = 30) -> List[str]:
        """ISO dates within the window on which the salon is open."""
        return [
            day.isoformat()
            for day in self.calculator().open_dates(start_date, days_to_check)
        ]
