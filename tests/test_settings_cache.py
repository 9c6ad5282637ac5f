"""
Tests for the read-through settings cache.
"""

from datetime import time
from typing import Any, Dict, List

from salonslots.domain.exceptions import BookingStoreError
from salonslots.services.settings_cache import SettingsCache


class CountingStore:
    """Settings store that records reads."""

    def __init__(self, values: Dict[str, Any] | None = None, fail: bool = False):
        self.values = dict(values or {})
        self.reads: List[str] = []
        self.fail = fail

    def get_setting(self, key):
        self.reads.append(key)
        if self.fail:
            raise BookingStoreError("database unreachable")
        return self.values.get(key)

    def set_setting(self, key, value):
        self.values[key] = value


class TestSettingsCache:
    """Tests for SettingsCache."""

    def test_reads_through_once(self):
        store = CountingStore({"business_hours": {"monday": {"start": "10:00", "end": "15:00"}}})
        cache = SettingsCache(store)

        cache.business_hours()
        cache.business_hours()

        assert store.reads == ["business_hours"]

    def test_missing_value_is_cached_too(self):
        store = CountingStore()
        cache = SettingsCache(store)

        assert cache.get("business_hours") is None
        assert cache.get("business_hours", {}) == {}
        assert store.reads == ["business_hours"]

    def test_missing_value_returns_default_every_time(self):
        cache = SettingsCache(CountingStore())

        assert cache.get("booking_settings", {"step_minutes": 15}) == {"step_minutes": 15}
        assert cache.get("booking_settings", {"step_minutes": 15}) == {"step_minutes": 15}

    def test_update_invalidates(self):
        store = CountingStore({"business_hours": {"monday": {"start": "10:00", "end": "15:00"}}})
        cache = SettingsCache(store)
        assert cache.business_hours().for_weekday("monday").start == time(10, 0)

        cache.update("business_hours", {"monday": {"start": "11:00", "end": "15:00"}})

        assert cache.business_hours().for_weekday("monday").start == time(11, 0)
        assert store.reads == ["business_hours", "business_hours"]

    def test_invalidate_all(self):
        store = CountingStore({"a": 1, "b": 2})
        cache = SettingsCache(store)
        cache.get("a")
        cache.get("b")

        cache.invalidate()
        cache.get("a")

        assert store.reads == ["a", "b", "a"]

    def test_unset_business_hours_use_defaults(self):
        cache = SettingsCache(CountingStore())

        hours = cache.business_hours()

        assert hours.for_weekday("saturday").end == time(14, 0)
        assert hours.for_weekday("sunday").closed

    def test_malformed_business_hours_use_defaults(self):
        cache = SettingsCache(CountingStore({"business_hours": {"monday": {"start": "late"}}}))

        assert cache.business_hours().for_weekday("monday").start == time(9, 0)

    def test_store_failure_falls_back_and_retries(self):
        store = CountingStore(fail=True)
        cache = SettingsCache(store)

        assert cache.business_hours().for_weekday("monday").end == time(18, 0)
        cache.business_hours()

        assert store.reads == ["business_hours", "business_hours"]

    def test_booking_setting(self):
        cache = SettingsCache(CountingStore({"booking_settings": {"calendar_buffer_minutes": "20"}}))

        assert cache.booking_setting("calendar_buffer_minutes", 15) == 20
        assert cache.booking_setting("step_minutes", 30) == 30

    def test_booking_setting_ignores_garbage(self):
        cache = SettingsCache(CountingStore({"booking_settings": {"step_minutes": "often"}}))

        assert cache.booking_setting("step_minutes", 30) == 30
