"""
Supabase-backed store for settings, workers and bookings.
"""

from __future__ import annotations

import logging
from datetime import date as Date
from typing import Any, Dict, List, Optional

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client

from ..domain.exceptions import BookingStoreError
from ..domain.records import Booking, Service, Worker

logger = logging.getLogger(__name__)

WORKER_COLUMNS = (
    "id, name, email, google_calendar_id, google_access_token, "
    "google_refresh_token, calendar_connected, is_active"
)


class SupabaseStore:
    """
    Reads and writes the ``system_settings``, ``workers`` and ``bookings``
    tables through the Supabase client.
    """

    def __init__(self, url: str = "", key: str = "", client: Client | None = None):
        """
        Args:
            url: Supabase project URL
            key: Service-role key
            client: Pre-built client (takes precedence over url/key)
        """
        if client is None:
            if not (url and key):
                raise BookingStoreError("Supabase url and key must be configured")
            client = create_client(url, key)
        self.client = client

    def _execute(self, query, action: str):
        try:
            return query.execute()
        except (APIError, httpx.HTTPError) as exc:
            raise BookingStoreError(f"Failed to {action}: {exc}") from exc

    # Settings

    def get_setting(self, key: str) -> Optional[Any]:
        response = self._execute(
            self.client.table("system_settings").select("value").eq("key", key).limit(1),
            f"read setting {key}",
        )
        rows = response.data or []
        return rows[0].get("value") if rows else None

    def set_setting(self, key: str, value: Any) -> None:
        self._execute(
            self.client.table("system_settings").upsert({"key": key, "value": value}),
            f"write setting {key}",
        )
        logger.info("Updated setting %s", key)

    # Services

    def get_service(self, service_id: str) -> Optional[Service]:
        response = self._execute(
            self.client.table("services")
            .select("id, name, duration_minutes, base_price, is_active")
            .eq("id", service_id)
            .eq("is_active", True)
            .limit(1),
            f"fetch service {service_id}",
        )
        rows = response.data or []
        return Service.model_validate(rows[0]) if rows else None

    # Workers

    def list_workers(self, worker_id: str | None = None) -> List[Worker]:
        """Return active workers, optionally just the one with ``worker_id``."""
        query = self.client.table("workers").select(WORKER_COLUMNS).eq("is_active", True)
        if worker_id:
            query = query.eq("id", worker_id)
        response = self._execute(query, "fetch workers")
        return [Worker.model_validate(row) for row in response.data or []]

    def get_worker(self, worker_id: str) -> Optional[Worker]:
        """Return a worker by id whether or not it is active."""
        response = self._execute(
            self.client.table("workers").select(WORKER_COLUMNS).eq("id", worker_id).limit(1),
            f"fetch worker {worker_id}",
        )
        rows = response.data or []
        return Worker.model_validate(rows[0]) if rows else None

    def update_worker(self, worker_id: str, fields: Dict[str, Any]) -> None:
        self._execute(
            self.client.table("workers").update(fields).eq("id", worker_id),
            f"update worker {worker_id}",
        )

    # Bookings

    def list_bookings(self, booking_date: Date, worker_id: str | None = None) -> List[Booking]:
        """Return the non-cancelled bookings on ``booking_date``."""
        query = (
            self.client.table("bookings")
            .select("*")
            .eq("booking_date", booking_date.isoformat())
            .neq("status", "cancelled")
        )
        if worker_id:
            query = query.eq("worker_id", worker_id)
        response = self._execute(query, "fetch bookings")
        return [Booking.model_validate(row) for row in response.data or []]

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        response = self._execute(
            self.client.table("bookings").select("*").eq("id", booking_id).limit(1),
            f"fetch booking {booking_id}",
        )
        rows = response.data or []
        return Booking.model_validate(rows[0]) if rows else None

    def insert_booking(self, booking: Booking) -> Booking:
        response = self._execute(
            self.client.table("bookings").insert(booking.to_row()),
            "insert booking",
        )
        rows = response.data or []
        if not rows:
            raise BookingStoreError("Insert returned no booking row")
        return Booking.model_validate(rows[0])

    def update_booking(self, booking_id: str, fields: Dict[str, Any]) -> None:
        self._execute(
            self.client.table("bookings").update(fields).eq("id", booking_id),
            f"update booking {booking_id}",
        )
