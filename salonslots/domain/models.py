"""
Domain models for business hours, busy intervals and appointment slots.
"""

from dataclasses import dataclass, field
from datetime import date as Date, time
from typing import Any, Dict, Mapping

import pendulum
from pendulum import DateTime

WEEKDAY_NAMES = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


def parse_time_of_day(value: str | time) -> time:
    """
    Parse a wall-clock time such as ``"09:00"`` or ``"09:00:00"``.

    Raises:
        ValueError: If the value is not a valid time of day
    """
    if isinstance(value, time):
        return value

    parts = str(value).strip().split(":")
    if len(parts) not in (2, 3) or not all(part.isdigit() for part in parts):
        raise ValueError(f"Invalid time of day: {value!r} (expected HH:MM)")

    hour, minute = int(parts[0]), int(parts[1])
    second = int(parts[2]) if len(parts) == 3 else 0
    return time(hour=hour, minute=minute, second=second)


def weekday_name(day: Date) -> str:
    """Return the lowercase English weekday name for a date."""
    return WEEKDAY_NAMES[day.weekday()]


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable half-open time range ``[start, end)``.

    Used for busy intervals (existing bookings or calendar conflicts).

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another."""
        return self.start < other.end and self.end > other.start

    def padded(self, minutes: int) -> "TimeRange":
        """Return the range widened by ``minutes`` on both sides."""
        if not minutes:
            return self
        return TimeRange(
            start=self.start.subtract(minutes=minutes),
            end=self.end.add(minutes=minutes),
        )

    def __str__(self) -> str:
        return f"{self.start.format('YYYY-MM-DD HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class BusinessHours:
    """
    Opening hours for a single weekday.
    """
    start: time
    end: time
    closed: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BusinessHours":
        """Build from a settings row such as ``{"start": "09:00", "end": "18:00"}``."""
        return cls(
            start=parse_time_of_day(data["start"]),
            end=parse_time_of_day(data["end"]),
            closed=bool(data.get("closed", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": self.start.strftime("%H:%M"),
            "end": self.end.strftime("%H:%M"),
            "closed": self.closed,
        }

    def get_hours_for_day(self, day: Date, timezone: str) -> TimeRange | None:
        """
        Get the absolute opening window on a specific day.
        Returns None if closed or if the window is empty.
        """
        if self.closed:
            return None

        start = pendulum.datetime(
            day.year, day.month, day.day,
            self.start.hour, self.start.minute, self.start.second,
            tz=timezone,
        )
        end = pendulum.datetime(
            day.year, day.month, day.day,
            self.end.hour, self.end.minute, self.end.second,
            tz=timezone,
        )

        if start >= end:
            return None

        return TimeRange(start=start, end=end)


DEFAULT_BUSINESS_HOURS: Dict[str, BusinessHours] = {
    "monday": BusinessHours(start=time(9, 0), end=time(18, 0)),
    "tuesday": BusinessHours(start=time(9, 0), end=time(18, 0)),
    "wednesday": BusinessHours(start=time(9, 0), end=time(18, 0)),
    "thursday": BusinessHours(start=time(9, 0), end=time(18, 0)),
    "friday": BusinessHours(start=time(9, 0), end=time(18, 0)),
    "saturday": BusinessHours(start=time(9, 0), end=time(14, 0)),
    "sunday": BusinessHours(start=time(9, 0), end=time(14, 0), closed=True),
}


@dataclass(frozen=True)
class WeeklyBusinessHours:
    """
    Business hours for the whole week, keyed by lowercase weekday name.

    Weekdays that are not configured fall back to ``DEFAULT_BUSINESS_HOURS``.
    """
    days: Dict[str, BusinessHours] = field(default_factory=dict)

    @classmethod
    def default(cls) -> "WeeklyBusinessHours":
        return cls(days=dict(DEFAULT_BUSINESS_HOURS))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "WeeklyBusinessHours":
        """
        Parse the ``business_hours`` settings value.

        Unknown keys are ignored; malformed entries raise ValueError.
        """
        days: Dict[str, BusinessHours] = {}
        for name, raw in (data or {}).items():
            key = str(name).lower()
            if key not in WEEKDAY_NAMES or not raw:
                continue
            try:
                days[key] = BusinessHours.from_dict(raw)
            except KeyError as exc:
                raise ValueError(f"Business hours for {key} missing field {exc}") from exc
        return cls(days=days)

    def for_weekday(self, name: str) -> BusinessHours:
        return self.days.get(name) or DEFAULT_BUSINESS_HOURS[name]

    def for_date(self, day: Date) -> BusinessHours:
        """Get the hours that apply on a given calendar day."""
        return self.for_weekday(weekday_name(day))

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return {name: self.for_weekday(name).to_dict() for name in WEEKDAY_NAMES}


@dataclass(frozen=True)
class TimeSlot:
    """
    A candidate appointment interval.
    """
    start: DateTime
    end: DateTime
    available: bool

    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() / 60)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize in the shape the booking front end consumes."""
        return {
            "startTime": self.start.in_timezone("UTC").to_iso8601_string(),
            "endTime": self.end.in_timezone("UTC").to_iso8601_string(),
            "available": self.available,
        }

    def format_display(self) -> str:
        """
        Format the slot for display.
        Format: HH:MM – HH:MM (available|unavailable)
        """
        status = "available" if self.available else "unavailable"
        return f"{self.start.format('HH:mm')} – {self.end.format('HH:mm')} ({status})"
