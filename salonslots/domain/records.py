"""
Database row models for workers and bookings.
"""

from typing import Any, Dict, Optional

import pendulum
from pendulum import DateTime
from pydantic import BaseModel, ConfigDict, field_validator

from .models import TimeRange

BOOKING_STATUSES = ("confirmed", "completed", "cancelled")


def _parse_timestamp(value: Any) -> DateTime:
    if isinstance(value, DateTime):
        return value
    parsed = pendulum.parse(str(value))
    if not isinstance(parsed, DateTime):
        raise ValueError(f"Not a timestamp: {value!r}")
    return parsed


class Service(BaseModel):
    """A bookable service (haircut, braids, ...)."""
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    duration_minutes: int
    base_price: Optional[float] = None
    is_active: bool = True


class Worker(BaseModel):
    """A stylist/worker row as stored in the ``workers`` table."""
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    email: str = ""
    google_calendar_id: Optional[str] = None
    google_access_token: Optional[str] = None
    google_refresh_token: Optional[str] = None
    calendar_connected: bool = False
    is_active: bool = True

    def has_calendar(self) -> bool:
        """True when free/busy data can be requested for this worker."""
        return bool(self.calendar_connected and self.google_access_token)


class Booking(BaseModel):
    """A row of the ``bookings`` table."""
    model_config = ConfigDict(extra="ignore", arbitrary_types_allowed=True)

    id: Optional[str] = None
    worker_id: str
    service_id: str
    client_name: str
    client_email: str
    client_phone: str = ""
    notes: Optional[str] = None
    booking_date: str
    start_time: DateTime
    end_time: DateTime
    status: str = "confirmed"
    total_price: Optional[float] = None
    google_calendar_event_id: Optional[str] = None
    cancelled_at: Optional[str] = None

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def validate_timestamp(cls, value: Any) -> DateTime:
        return _parse_timestamp(value)

    @field_validator("status")
    @classmethod
    def validate_status(cls, value: str) -> str:
        if value not in BOOKING_STATUSES:
            raise ValueError(f"status must be one of {BOOKING_STATUSES}, got {value!r}")
        return value

    def time_range(self) -> TimeRange:
        return TimeRange(start=self.start_time, end=self.end_time)

    def to_row(self) -> Dict[str, Any]:
        """Serialize for insertion into the database."""
        row = self.model_dump(exclude={"start_time", "end_time"}, exclude_none=True)
        row["start_time"] = self.start_time.in_timezone("UTC").to_iso8601_string()
        row["end_time"] = self.end_time.in_timezone("UTC").to_iso8601_string()
        return row
