"""
Tests for the AvailabilityService orchestration layer.
"""

from datetime import time

import pytest

from conftest import MONDAY, SUNDAY, TZ, at, salon_data
from salonslots.adapters.mock_backend import MockCalendarClient, MockStore
from salonslots.domain.exceptions import AuthenticationError, BookingStoreError, WorkerNotFoundError
from salonslots.services.availability import CLOSED_MESSAGE, AvailabilityService
from salonslots.services.settings_cache import SettingsCache


def slot_at(slots, hhmm):
    return next(slot for slot in slots if slot.start == at(hhmm))


class TestLocalAvailability:
    """Booking-conflict path (no buffer)."""

    def test_worker_bookings_block_overlapping_slots(self, availability):
        slots = availability.local_availability(MONDAY, 60, worker_id="w-amina")

        assert not slot_at(slots, "09:30").available
        assert not slot_at(slots, "10:30").available
        assert slot_at(slots, "09:00").available
        assert slot_at(slots, "11:00").available
        # Grace's booking does not affect Amina
        assert slot_at(slots, "13:00").available

    def test_all_workers_when_no_filter(self, availability):
        slots = availability.local_availability(MONDAY, 60)

        assert not slot_at(slots, "10:00").available
        assert not slot_at(slots, "13:00").available

    def test_cancelled_bookings_are_ignored(self, availability):
        slots = availability.local_availability(MONDAY, 45, worker_id="w-grace")

        assert slot_at(slots, "15:00").available

    def test_closed_day(self, availability):
        assert availability.local_availability(SUNDAY, 60) == []

    def test_settings_override_business_hours(self, store, availability):
        store.set_setting("business_hours", {"monday": {"start": "12:00", "end": "14:00"}})

        slots = availability.local_availability(MONDAY, 60, worker_id="w-amina")

        assert [s.start.format("HH:mm") for s in slots] == ["12:00", "12:30", "13:00"]

    def test_business_hours_for(self, availability):
        assert availability.business_hours_for(MONDAY).end == time(18, 0)
        assert availability.business_hours_for(SUNDAY).closed


class TestCalendarAvailability:
    """Calendar-backed path (buffered)."""

    def test_closed_day_has_message_and_no_workers(self, availability):
        response = availability.calendar_availability(SUNDAY, 60)

        assert response.workers == []
        assert response.message == CLOSED_MESSAGE
        assert response.to_dict()["message"] == CLOSED_MESSAGE

    def test_only_active_workers_are_listed(self, availability):
        response = availability.calendar_availability(MONDAY, 60)

        assert [w.worker_id for w in response.workers] == ["w-amina", "w-grace"]
        assert response.date == "2099-03-09"

    def test_calendar_busy_is_buffered(self, availability):
        """Busy 10:00-10:45 with a 15 minute buffer blocks 09:00 through 10:30."""
        response = availability.calendar_availability(MONDAY, 60, worker_id="w-amina")
        slots = response.workers[0].slots

        assert not slot_at(slots, "09:00").available
        assert not slot_at(slots, "10:30").available
        assert slot_at(slots, "11:00").available

    def test_worker_without_calendar_has_all_slots_open(self, availability):
        response = availability.calendar_availability(MONDAY, 60, worker_id="w-grace")

        assert response.workers[0].calendar_connected is False
        assert all(slot.available for slot in response.workers[0].slots)

    def test_buffer_from_settings(self, store, availability):
        store.set_setting("booking_settings", {"calendar_buffer_minutes": 0})

        slots = availability.calendar_availability(MONDAY, 60, worker_id="w-amina").workers[0].slots

        assert slot_at(slots, "09:00").available
        assert slot_at(slots, "11:00").available
        assert not slot_at(slots, "09:30").available

    def test_negative_buffer_setting_is_ignored(self, store, availability):
        store.set_setting("booking_settings", {"calendar_buffer_minutes": -600})

        slots = availability.calendar_availability(MONDAY, 60, worker_id="w-amina").workers[0].slots

        assert availability.calendar_buffer_minutes() == 15
        assert not slot_at(slots, "09:00").available
        assert slot_at(slots, "11:00").available

    def test_unknown_worker(self, availability):
        with pytest.raises(WorkerNotFoundError):
            availability.calendar_availability(MONDAY, 60, worker_id="w-nobody")

    def test_inactive_worker_is_not_found(self, availability):
        with pytest.raises(WorkerNotFoundError):
            availability.calendar_availability(MONDAY, 60, worker_id="w-otieno")

    def test_calendar_failure_degrades_to_open_slots(self, store, clock):
        failing = MockCalendarClient(salon_data(), timezone=TZ, failing_calendars=["amina-cal"])
        service = AvailabilityService(
            store=store,
            settings=SettingsCache(store),
            calendar_client=failing,
            timezone=TZ,
            clock=clock,
        )

        slots = service.calendar_availability(MONDAY, 60, worker_id="w-amina").workers[0].slots

        assert all(slot.available for slot in slots)

    def test_refreshed_token_is_persisted(self, store, availability):
        availability.calendar_availability(MONDAY, 60, worker_id="w-amina")

        assert store.workers["w-amina"].google_access_token == "mock-access-r1"

    def test_failed_refresh_keeps_old_token(self, store, calendar, availability):
        def refuse(refresh_token):
            raise AuthenticationError("invalid_grant")

        calendar.refresh_access_token = refuse

        slots = availability.calendar_availability(MONDAY, 60, worker_id="w-amina").workers[0].slots

        assert store.workers["w-amina"].google_access_token == "old-token"
        assert not slot_at(slots, "10:00").available

    def test_token_persist_failure_is_not_fatal(self, store, availability):
        def broken(worker_id, fields):
            raise BookingStoreError("read-only replica")

        store.update_worker = broken

        response = availability.calendar_availability(MONDAY, 60, worker_id="w-amina")

        assert response.workers

    def test_response_serializes(self, availability):
        payload = availability.calendar_availability(MONDAY, 60).to_dict()

        assert payload["business_hours"] == {"start": "09:00", "end": "18:00", "closed": False}
        assert {"worker_id", "worker_name", "calendar_connected", "slots"} <= set(payload["workers"][0])
        assert {"startTime", "endTime", "available"} == set(payload["workers"][0]["slots"][0])


class TestAvailableDates:

    def test_skips_sundays(self, availability):
        dates = availability.available_dates(MONDAY, days_to_check=14)

        assert len(dates) == 12
        assert "2099-03-15" not in dates
        assert dates[0] == "2099-03-09"

    def test_respects_settings(self, store, availability):
        store.set_setting("business_hours", {"saturday": {"start": "09:00", "end": "14:00", "closed": True}})

        dates = availability.available_dates(MONDAY, days_to_check=7)

        assert dates == [
            "2099-03-09", "2099-03-10", "2099-03-11", "2099-03-12", "2099-03-13",
        ]


def test_mock_store_loads_bundled_data():
    """The bundled data set resolves relative times and parses cleanly."""
    store = MockStore(timezone=TZ)

    assert store.list_workers()
    assert store.get_service("svc-cut").duration_minutes == 45
