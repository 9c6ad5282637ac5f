"""
Booking creation and cancellation.

A chosen start time is re-validated against the bookings visible at write
time before insertion. The check and the insert are not one transaction,
so two concurrent submissions for the same slot can both succeed.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import pendulum
from pendulum import DateTime
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from ..domain.exceptions import (
    BookingNotFoundError,
    CalendarAPIError,
    ServiceNotFoundError,
    SlotUnavailableError,
    WorkerNotFoundError,
)
from ..domain.records import Booking, Worker
from .availability import AvailabilityService

logger = logging.getLogger(__name__)


class BookingRequest(BaseModel):
    """What a client submits from the booking form."""
    model_config = ConfigDict(str_strip_whitespace=True)

    service_id: str
    worker_id: str
    client_name: str = Field(min_length=1)
    client_email: EmailStr
    client_phone: str = ""
    notes: Optional[str] = None
    start_time: str

    @field_validator("start_time")
    @classmethod
    def validate_start_time(cls, value: str) -> str:
        """Ensure the start time is an ISO 8601 timestamp."""
        if not isinstance(pendulum.parse(value), DateTime):
            raise ValueError(f"start_time must be a timestamp, got {value!r}")
        return value


class BookingService:
    """Creates and cancels bookings on top of the availability service."""

    def __init__(self, availability: AvailabilityService) -> None:
        self._availability = availability
        self._store = availability.store
        self._calendar_client = availability.calendar_client

    def create_booking(self, request: BookingRequest) -> Booking:
        """
        Validate the chosen slot, store the booking and mirror it to the
        worker's calendar.

        Raises:
            ServiceNotFoundError: If the service is unknown or inactive
            WorkerNotFoundError: If the worker is unknown or inactive
            SlotUnavailableError: If the slot is outside business hours,
                in the past, or conflicts with an existing booking
        """
        service = self._store.get_service(request.service_id)
        if service is None:
            raise ServiceNotFoundError(f"Service not found: {request.service_id}")

        worker = self._get_worker(request.worker_id)

        tz = self._availability.timezone
        start = pendulum.parse(request.start_time, tz=tz).in_timezone(tz)
        end = start.add(minutes=service.duration_minutes)
        booking_date = start.date()

        slots = self._availability.local_availability(
            booking_date, service.duration_minutes, worker_id=worker.id
        )
        chosen = next((slot for slot in slots if slot.start == start), None)

        if chosen is None:
            raise SlotUnavailableError(
                f"{start.format('YYYY-MM-DD HH:mm')} is not a bookable slot for {service.name}"
            )
        if not chosen.available:
            raise SlotUnavailableError(
                f"{start.format('YYYY-MM-DD HH:mm')} is no longer available"
            )

        booking = self._store.insert_booking(
            Booking(
                worker_id=worker.id,
                service_id=service.id,
                client_name=request.client_name,
                client_email=request.client_email,
                client_phone=request.client_phone,
                notes=request.notes,
                booking_date=booking_date.isoformat(),
                start_time=start,
                end_time=end,
                total_price=service.base_price,
            )
        )
        logger.info(
            "Booked %s with %s at %s (booking %s)",
            service.name, worker.name, start.to_iso8601_string(), booking.id,
        )

        event_id = self._sync_calendar_event(worker, booking, service.name)
        if event_id:
            self._store.update_booking(booking.id, {"google_calendar_event_id": event_id})
            booking = booking.model_copy(update={"google_calendar_event_id": event_id})

        return booking

    def cancel_booking(self, booking_id: str) -> Booking:
        """
        Mark a booking cancelled and remove its calendar event.

        Raises:
            BookingNotFoundError: If the booking does not exist
        """
        booking = self._store.get_booking(booking_id)
        if booking is None:
            raise BookingNotFoundError(f"Booking not found: {booking_id}")

        if booking.status == "cancelled":
            return booking

        fields: Dict[str, Any] = {
            "status": "cancelled",
            "cancelled_at": self._availability.now().in_timezone("UTC").to_iso8601_string(),
        }

        if booking.google_calendar_event_id:
            # Deactivated workers still own the events created for them
            worker = self._store.get_worker(booking.worker_id)
            if worker and self._delete_calendar_event(worker, booking.google_calendar_event_id):
                fields["google_calendar_event_id"] = None

        self._store.update_booking(booking_id, fields)
        logger.info("Cancelled booking %s", booking_id)

        return booking.model_copy(
            update={
                "status": "cancelled",
                "google_calendar_event_id": fields.get(
                    "google_calendar_event_id", booking.google_calendar_event_id
                ),
            }
        )

    def _get_worker(self, worker_id: str) -> Worker:
        workers = self._store.list_workers(worker_id)
        if not workers:
            raise WorkerNotFoundError(f"Worker not found: {worker_id}")
        return workers[0]

    def _sync_calendar_event(self, worker: Worker, booking: Booking, service_name: str) -> str | None:
        if not worker.has_calendar() or self._calendar_client is None:
            return None

        description = (
            f"Client: {booking.client_name}\n"
            f"Email: {booking.client_email}\n"
            f"Phone: {booking.client_phone}"
        )
        if booking.notes:
            description += f"\nNotes: {booking.notes}"

        try:
            return self._calendar_client.create_event(
                self._availability.worker_access_token(worker),
                worker.google_calendar_id or worker.email,
                f"{service_name} - {booking.client_name}",
                booking.start_time,
                booking.end_time,
                description=description,
                attendee_email=booking.client_email,
            )
        except CalendarAPIError as exc:
            logger.error("Could not create calendar event for booking %s: %s", booking.id, exc)
            return None

    def _delete_calendar_event(self, worker: Worker, event_id: str) -> bool:
        if not worker.has_calendar() or self._calendar_client is None:
            return False

        try:
            self._calendar_client.delete_event(
                self._availability.worker_access_token(worker),
                worker.google_calendar_id or worker.email,
                event_id,
            )
        except CalendarAPIError as exc:
            logger.error("Could not delete calendar event %s: %s", event_id, exc)
            return False
        return True
