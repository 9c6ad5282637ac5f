"""
Read-through cache over the key/value ``system_settings`` table.

Business hours and booking settings are read on demand and kept until an
admin update (or an explicit ``invalidate``) drops them.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

from ..domain.exceptions import BookingStoreError
from ..domain.models import WeeklyBusinessHours

logger = logging.getLogger(__name__)

BUSINESS_HOURS_KEY = "business_hours"
BOOKING_SETTINGS_KEY = "booking_settings"


class SettingsStoreProtocol(Protocol):
    """Key/value settings persistence."""

    def get_setting(self, key: str) -> Optional[Any]:
        """Return the JSON value stored under ``key`` or None."""

    def set_setting(self, key: str, value: Any) -> None:
        """Upsert the JSON value stored under ``key``."""


_MISSING = object()


class SettingsCache:
    """Caches setting values per key until invalidated."""

    def __init__(
        self,
        store: SettingsStoreProtocol,
        fallback_hours: WeeklyBusinessHours | None = None,
    ) -> None:
        self._store = store
        self._fallback_hours = fallback_hours or WeeklyBusinessHours.default()
        self._values: Dict[str, Any] = {}

    def get(self, key: str, default: Any = None) -> Any:
        """
        Return the setting value, reading through to the store on a miss.

        A store failure is logged and ``default`` is returned without being
        cached, so the next call retries.
        """
        cached = self._values.get(key, _MISSING)
        if cached is not _MISSING:
            return default if cached is None else cached

        try:
            value = self._store.get_setting(key)
        except BookingStoreError as exc:
            logger.warning("Could not read setting %s: %s", key, exc)
            return default

        self._values[key] = value
        return default if value is None else value

    def update(self, key: str, value: Any) -> None:
        """Write a new value through to the store and drop the cached copy."""
        self._store.set_setting(key, value)
        self.invalidate(key)

    def invalidate(self, key: str | None = None) -> None:
        """Drop one cached key, or everything when ``key`` is None."""
        if key is None:
            self._values.clear()
        else:
            self._values.pop(key, None)

    def business_hours(self) -> WeeklyBusinessHours:
        """Weekly hours from settings, falling back per weekday to defaults."""
        raw = self.get(BUSINESS_HOURS_KEY)
        if not raw:
            return self._fallback_hours

        try:
            configured = WeeklyBusinessHours.from_dict(raw)
        except (TypeError, ValueError) as exc:
            logger.warning("Ignoring malformed business_hours setting: %s", exc)
            return self._fallback_hours

        days = dict(self._fallback_hours.days)
        days.update(configured.days)
        return WeeklyBusinessHours(days=days)

    def booking_setting(self, name: str, default: int) -> int:
        """Read an integer field from the ``booking_settings`` value."""
        raw = self.get(BOOKING_SETTINGS_KEY) or {}
        value = raw.get(name, default) if isinstance(raw, dict) else default
        try:
            return int(value)
        except (TypeError, ValueError):
            logger.warning("Ignoring non-integer booking setting %s=%r", name, value)
            return default
