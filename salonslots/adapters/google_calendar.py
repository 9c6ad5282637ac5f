"""
Google Calendar API client for free/busy lookups and booking sync.
"""

import logging
from typing import Any, Dict, List

import pendulum
import requests
from pendulum import DateTime

from ..domain.exceptions import AuthenticationError, CalendarAPIError
from ..domain.models import TimeRange

logger = logging.getLogger(__name__)


class GoogleCalendarClient:
    """
    Client for Google Calendar operations.

    Uses the ``/freeBusy`` endpoint for availability and the events
    endpoints to mirror bookings into a worker's calendar.
    """

    CALENDAR_API_ENDPOINT = "https://www.googleapis.com/calendar/v3"
    TOKEN_ENDPOINT = "https://oauth2.googleapis.com/token"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        session: requests.Session | None = None,
        timeout: int = 30,
    ):
        """
        Initialize the Google Calendar client.

        Args:
            client_id: OAuth client ID used for refresh-token grants
            client_secret: OAuth client secret
            session: Optional requests session (injectable for tests)
            timeout: Request timeout in seconds
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self.session = session or requests.Session()
        self.timeout = timeout

    @staticmethod
    def _headers(access_token: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }

    def refresh_access_token(self, refresh_token: str) -> str:
        """
        Exchange a refresh token for a fresh access token.

        Raises:
            AuthenticationError: If Google rejects the refresh
        """
        try:
            response = self.session.post(
                self.TOKEN_ENDPOINT,
                data={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "refresh_token": refresh_token,
                    "grant_type": "refresh_token",
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise AuthenticationError(f"Failed to refresh Google access token: {e}") from e

        token = data.get("access_token")
        if not token:
            raise AuthenticationError("Token refresh response contained no access_token")
        return token

    def get_free_busy(
        self,
        access_token: str,
        calendar_id: str,
        time_min: DateTime,
        time_max: DateTime,
        timezone: str = "UTC",
    ) -> List[TimeRange]:
        """
        Get busy ranges for one calendar.

        Args:
            access_token: Valid Google access token
            calendar_id: Calendar to query
            time_min: Start of the query window
            time_max: End of the query window
            timezone: IANA timezone the ranges are converted to

        Returns:
            List of busy TimeRange objects

        Raises:
            CalendarAPIError: If API call fails
        """
        url = f"{self.CALENDAR_API_ENDPOINT}/freeBusy"

        payload = {
            "timeMin": time_min.in_timezone("UTC").to_iso8601_string(),
            "timeMax": time_max.in_timezone("UTC").to_iso8601_string(),
            "items": [{"id": calendar_id}],
        }

        try:
            response = self.session.post(
                url,
                headers=self._headers(access_token),
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise CalendarAPIError(f"Failed to fetch calendar availability: {e}") from e

        return self._parse_free_busy_response(data, calendar_id, timezone)

    def _parse_free_busy_response(
        self,
        response_data: Dict[str, Any],
        calendar_id: str,
        timezone: str,
    ) -> List[TimeRange]:
        """
        Parse the freeBusy response into our domain model.

        Response format:
        {
            "calendars": {
                "abc@group.calendar.google.com": {
                    "busy": [
                        {"start": "2025-03-10T09:00:00Z", "end": "2025-03-10T10:00:00Z"}
                    ]
                }
            }
        }
        """
        calendar = response_data.get("calendars", {}).get(calendar_id, {})

        errors = calendar.get("errors")
        if errors:
            reasons = ", ".join(err.get("reason", "unknown") for err in errors)
            raise CalendarAPIError(f"Calendar {calendar_id} returned errors: {reasons}")

        busy_ranges: List[TimeRange] = []

        for item in calendar.get("busy", []):
            try:
                start = self._parse_datetime(item["start"], timezone)
                end = self._parse_datetime(item["end"], timezone)
                busy_ranges.append(TimeRange(start=start, end=end))
            except (KeyError, ValueError) as e:
                logger.warning("Could not parse busy item %r: %s", item, e)
                continue

        return busy_ranges

    def _parse_datetime(self, datetime_str: str, timezone: str) -> DateTime:
        """
        Parse an RFC 3339 timestamp to a pendulum DateTime in ``timezone``.
        """
        dt = pendulum.parse(datetime_str)

        if isinstance(dt, DateTime):
            return dt.in_timezone(timezone)

        raise ValueError(f"Could not parse datetime: {datetime_str}")

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
        """
        Create a calendar event and return its id.

        Raises:
            CalendarAPIError: If the event cannot be created
        """
        url = f"{self.CALENDAR_API_ENDPOINT}/calendars/{calendar_id}/events"
        payload: Dict[str, Any] = {
            "summary": summary,
            "description": description,
            "start": {"dateTime": start.to_iso8601_string(), "timeZone": start.timezone_name},
            "end": {"dateTime": end.to_iso8601_string(), "timeZone": end.timezone_name},
            "reminders": {
                "useDefault": False,
                "overrides": [
                    {"method": "email", "minutes": 24 * 60},
                    {"method": "popup", "minutes": 30},
                ],
            },
        }
        if attendee_email:
            payload["attendees"] = [{"email": attendee_email}]

        try:
            response = self.session.post(
                url,
                headers=self._headers(access_token),
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise CalendarAPIError(f"Failed to create calendar event: {e}") from e

        event_id = data.get("id")
        if not event_id:
            raise CalendarAPIError("Calendar event response contained no id")
        return event_id

    def delete_event(self, access_token: str, calendar_id: str, event_id: str) -> None:
        """
        Delete a calendar event. An already-deleted event is not an error.

        Raises:
            CalendarAPIError: If the deletion fails
        """
        url = f"{self.CALENDAR_API_ENDPOINT}/calendars/{calendar_id}/events/{event_id}"

        try:
            response = self.session.delete(
                url,
                headers=self._headers(access_token),
                timeout=self.timeout,
            )
            if response.status_code in (404, 410):
                logger.info("Calendar event %s already gone", event_id)
                return
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise CalendarAPIError(f"Failed to delete calendar event: {e}") from e
