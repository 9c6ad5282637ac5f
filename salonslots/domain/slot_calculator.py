"""
Core business logic for calculating appointment slots.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O). Both the
booking-based path and the calendar-backed path call into it.
"""

from datetime import date as Date
from typing import Callable, Iterable, List

import pendulum
from pendulum import DateTime

from .models import BusinessHours, TimeRange, TimeSlot, WeeklyBusinessHours

DEFAULT_STEP_MINUTES = 30


def compute_slots(
    date: Date,
    business_hours: BusinessHours,
    busy_intervals: Iterable[TimeRange],
    service_duration_minutes: int,
    step_minutes: int = DEFAULT_STEP_MINUTES,
    buffer_minutes: int = 0,
    *,
    timezone: str = "UTC",
    now: DateTime | None = None,
) -> List[TimeSlot]:
    """
    Generate the slots for one business day.

    Algorithm:
    1. Closed day (or empty opening window) -> no slots
    2. Walk candidate starts from opening time at ``step_minutes`` cadence
    3. Keep a candidate only if it ends no later than closing time
    4. Mark it unavailable if it overlaps any busy interval widened by
       ``buffer_minutes``, or if it starts before ``now``

    Args:
        date: Calendar day to generate slots for
        business_hours: Opening hours that apply on ``date``
        busy_intervals: Existing bookings/calendar conflicts, any order
        service_duration_minutes: Length of every slot
        step_minutes: Cadence between candidate slot starts
        buffer_minutes: Symmetric padding around each busy interval
        timezone: Timezone the business hours are expressed in
        now: Reference time for the past-slot rule (defaults to current time)

    Returns:
        Slots in ascending start order
    """
    if service_duration_minutes <= 0 or step_minutes <= 0:
        return []

    day = business_hours.get_hours_for_day(date, timezone)
    if day is None:
        return []

    if now is None:
        now = pendulum.now(timezone)

    padded_busy = [busy.padded(buffer_minutes) for busy in busy_intervals]

    slots: List[TimeSlot] = []
    cursor = day.start

    while cursor.add(minutes=service_duration_minutes) <= day.end:
        slot_end = cursor.add(minutes=service_duration_minutes)

        # Half-open overlap: touching a busy edge is not a conflict
        conflict = any(
            cursor < busy.end and slot_end > busy.start
            for busy in padded_busy
        )
        in_past = cursor < now

        slots.append(
            TimeSlot(start=cursor, end=slot_end, available=not conflict and not in_past)
        )

        cursor = cursor.add(minutes=step_minutes)

    return slots


class SlotCalculator:
    """
    Slot calculation bound to the salon's weekly hours and slot settings.

    The calendar-backed path uses a non-zero ``buffer_minutes``; the
    booking-conflict path uses zero. Everything else is shared.
    """

    def __init__(
        self,
        business_hours: WeeklyBusinessHours,
        timezone: str = "UTC",
        step_minutes: int = DEFAULT_STEP_MINUTES,
        clock: Callable[[], DateTime] | None = None,
    ):
        self.business_hours = business_hours
        self.timezone = timezone
        self.step_minutes = step_minutes
        self._clock = clock or (lambda: pendulum.now(self.timezone))

    def hours_for(self, date: Date) -> BusinessHours:
        return self.business_hours.for_date(date)

    def find_slots(
        self,
        date: Date,
        busy_intervals: Iterable[TimeRange],
        service_duration_minutes: int,
        buffer_minutes: int = 0,
    ) -> List[TimeSlot]:
        """Compute slots for ``date`` using the weekday's business hours."""
        return compute_slots(
            date,
            self.hours_for(date),
            busy_intervals,
            service_duration_minutes,
            step_minutes=self.step_minutes,
            buffer_minutes=buffer_minutes,
            timezone=self.timezone,
            now=self._clock(),
        )

    def open_dates(self, start_date: Date, days_to_check: int = 30) -> List[Date]:
        """
        List the days in ``[start_date, start_date + days_to_check)`` that
        are not closed.
        """
        current = pendulum.date(start_date.year, start_date.month, start_date.day)
        dates: List[Date] = []

        for _ in range(max(days_to_check, 0)):
            if not self.hours_for(current).closed:
                dates.append(current)
            current = current.add(days=1)

        return dates
