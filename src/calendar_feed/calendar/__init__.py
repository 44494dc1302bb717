"""Calendar integration module.

Polls Google Calendar for registered calendars and reports filtered events.

## Google Calendar API

Uses the Google Calendar API v3 ``events.list`` with ``singleEvents`` and
``orderBy=startTime``:
- https://developers.google.com/calendar/api/v3/reference

## Polling

Every subscription runs its own loop: fetch, filter, emit, wait. Fetch
errors are classified and reported, and the loop keeps polling.
"""

from calendar_feed.calendar.errors import classify_fetch_error
from calendar_feed.calendar.google_calendar import (
    CalendarEvent,
    GoogleCalendarClient,
)
from calendar_feed.calendar.poller import (
    CalendarError,
    CalendarEvents,
    CalendarPoller,
    CalendarResult,
)

__all__ = [
    "classify_fetch_error",
    "CalendarEvent",
    "GoogleCalendarClient",
    "CalendarError",
    "CalendarEvents",
    "CalendarPoller",
    "CalendarResult",
]
