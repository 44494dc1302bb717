"""Google Calendar API client.

Lists upcoming events of a calendar.

## API Documentation

https://developers.google.com/calendar/api/v3/reference/events/list

## Authentication

Uses ``google.oauth2.credentials.Credentials`` built from the stored token.
Access tokens are refreshed automatically when they expire.

## Threading

``googleapiclient`` calls are blocking and ``httplib2.Http`` is not thread
safe, so every request gets its own authorized transport. Callers run
``list_upcoming_events`` in a worker thread.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import httplib2
from google.oauth2.credentials import Credentials
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build

logger = logging.getLogger(__name__)


@dataclass
class CalendarEvent:
    """A calendar event, read-only view over one API item."""

    id: str
    summary: str
    start: datetime | None = None
    end: datetime | None = None
    start_date: str | None = None  # For all-day events (YYYY-MM-DD)
    end_date: str | None = None
    is_all_day: bool = False
    raw_data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> CalendarEvent:
        """Create from Google Calendar API response."""
        start_data = data.get("start", {})
        end_data = data.get("end", {})

        # Determine if all-day event
        is_all_day = "date" in start_data

        start = None
        end = None
        start_date = None
        end_date = None

        if is_all_day:
            start_date = start_data.get("date")
            end_date = end_data.get("date")
        else:
            start_str = start_data.get("dateTime")
            end_str = end_data.get("dateTime")
            if start_str:
                start = datetime.fromisoformat(start_str.replace("Z", "+00:00"))
            if end_str:
                end = datetime.fromisoformat(end_str.replace("Z", "+00:00"))

        return cls(
            id=data.get("id", ""),
            summary=data.get("summary") or "",
            start=start,
            end=end,
            start_date=start_date,
            end_date=end_date,
            is_all_day=is_all_day,
            raw_data=data,
        )


class GoogleCalendarClient:
    """Client for Google Calendar API.

    Example:
        ```python
        client = GoogleCalendarClient(credentials)

        events = client.list_upcoming_events("primary", max_results=10)
        ```
    """

    def __init__(self, credentials: Credentials):
        """Initialize the client.

        Args:
            credentials: Authorized google-auth credentials
        """
        self._credentials = credentials

        # Build service
        self._service = build(
            "calendar",
            "v3",
            credentials=credentials,
            cache_discovery=False,
        )

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    def _new_http(self) -> AuthorizedHttp:
        return AuthorizedHttp(self._credentials, http=httplib2.Http())

    def list_upcoming_events(
        self,
        calendar_id: str,
        max_results: int,
        time_min: datetime | None = None,
    ) -> list[CalendarEvent]:
        """List the next events of a calendar.

        Recurring events are expanded into single instances and ordered by
        start time, as returned by the API.

        Args:
            calendar_id: Calendar ID (use 'primary' for primary calendar)
            max_results: Maximum events to return
            time_min: Earliest end time to include (default: now)

        Returns:
            Events in ascending start time order

        Raises:
            googleapiclient.errors.HttpError: If the API rejects the request
            google.auth.exceptions.RefreshError: If the token cannot be refreshed
        """
        if time_min is None:
            time_min = datetime.now(timezone.utc)

        request = self._service.events().list(
            calendarId=calendar_id,
            timeMin=time_min.isoformat(),
            maxResults=max_results,
            singleEvents=True,
            orderBy="startTime",
        )
        result = request.execute(http=self._new_http())

        return [CalendarEvent.from_api(item) for item in result.get("items", [])]
