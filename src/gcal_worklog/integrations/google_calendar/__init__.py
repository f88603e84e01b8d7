"""Google Calendar integration helpers."""

from gcal_worklog.integrations.google_calendar.auth import (
    AccessTokenProvider,
    StaticTokenProvider,
    load_token_provider,
)
from gcal_worklog.integrations.google_calendar.schemas import (
    CalendarEventRecord,
    CalendarListEntry,
)
from gcal_worklog.integrations.google_calendar.service import GoogleCalendarService

__all__ = [
    "AccessTokenProvider",
    "CalendarEventRecord",
    "CalendarListEntry",
    "GoogleCalendarService",
    "StaticTokenProvider",
    "load_token_provider",
]
