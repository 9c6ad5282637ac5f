"""
Shared fixtures: a small salon on Monday 2099-03-09 (Africa/Nairobi, UTC+3).
"""

import pendulum
import pytest

from salonslots.adapters.mock_backend import MockCalendarClient, MockStore
from salonslots.services.availability import AvailabilityService
from salonslots.services.booking import BookingService
from salonslots.services.settings_cache import SettingsCache

TZ = "Africa/Nairobi"
MONDAY = pendulum.date(2099, 3, 9)
SUNDAY = pendulum.date(2099, 3, 15)


def salon_data():
    return {
        "settings": {},
        "services": [
            {"id": "svc-cut", "name": "Haircut", "duration_minutes": 45, "base_price": 800},
            {"id": "svc-nails", "name": "Gel manicure", "duration_minutes": 60, "base_price": 1200},
            {"id": "svc-old", "name": "Perm", "duration_minutes": 90, "is_active": False},
        ],
        "workers": [
            {
                "id": "w-amina",
                "name": "Amina",
                "email": "amina@salon.example",
                "google_calendar_id": "amina-cal",
                "google_access_token": "old-token",
                "google_refresh_token": "r1",
                "calendar_connected": True,
            },
            {"id": "w-grace", "name": "Grace", "email": "grace@salon.example"},
            {"id": "w-otieno", "name": "Otieno", "is_active": False},
        ],
        "bookings": [
            {
                "id": "b-1",
                "worker_id": "w-amina",
                "service_id": "svc-cut",
                "client_name": "Wanjiru",
                "client_email": "wanjiru@example.com",
                "booking_date": "2099-03-09",
                "start_time": "2099-03-09T10:00:00+03:00",
                "end_time": "2099-03-09T10:45:00+03:00",
            },
            {
                "id": "b-2",
                "worker_id": "w-grace",
                "service_id": "svc-nails",
                "client_name": "Njeri",
                "client_email": "njeri@example.com",
                "booking_date": "2099-03-09",
                "start_time": "2099-03-09T13:00:00+03:00",
                "end_time": "2099-03-09T14:00:00+03:00",
            },
            {
                "id": "b-3",
                "worker_id": "w-grace",
                "service_id": "svc-cut",
                "client_name": "Akinyi",
                "client_email": "akinyi@example.com",
                "booking_date": "2099-03-09",
                "start_time": "2099-03-09T15:00:00+03:00",
                "end_time": "2099-03-09T15:45:00+03:00",
                "status": "cancelled",
            },
        ],
        "calendar_events": [
            {
                "calendarId": "amina-cal",
                "start_time": "2099-03-09T07:00:00Z",
                "end_time": "2099-03-09T07:45:00Z",
            },
            {
                "calendarId": "other-cal",
                "start_time": "2099-03-09T09:00:00Z",
                "end_time": "2099-03-09T12:00:00Z",
            },
        ],
    }


def at(hhmm: str, day: str = "2099-03-09"):
    return pendulum.parse(f"{day} {hhmm}", tz=TZ)


@pytest.fixture
def store():
    return MockStore(salon_data(), timezone=TZ)


@pytest.fixture
def calendar():
    return MockCalendarClient(salon_data(), timezone=TZ)


@pytest.fixture
def clock():
    """Mutable clock; set ``clock.now`` to move time."""
    class Clock:
        now = pendulum.datetime(2099, 3, 1, tz=TZ)

        def __call__(self):
            return self.now

    return Clock()


@pytest.fixture
def availability(store, calendar, clock):
    return AvailabilityService(
        store=store,
        settings=SettingsCache(store),
        calendar_client=calendar,
        timezone=TZ,
        clock=clock,
    )


@pytest.fixture
def bookings(availability):
    return BookingService(availability)
