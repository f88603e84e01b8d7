"""
Remote event store interface consumed by the worklog core.
"""

from datetime import datetime
from typing import Any, Protocol

from gcal_worklog.integrations.google_calendar.schemas import (
    CalendarEventRecord,
    CalendarListEntry,
)


class CalendarStore(Protocol):
    """Opaque event store with list/insert/patch operations.

    ``list_events`` returns events in ascending start order only; there is
    no descending or "latest" query.
    """

    async def list_calendars(self) -> list[CalendarListEntry]:
        """List calendars visible to the authenticated identity."""
        ...

    async def create_calendar(self, title: str) -> CalendarListEntry:
        """Create a calendar titled ``title``."""
        ...

    async def list_events(
        self,
        calendar_id: str,
        *,
        time_min: datetime,
        time_max: datetime,
        time_zone: str | None = None,
    ) -> list[CalendarEventRecord]:
        """List events of a calendar in a time range."""
        ...

    async def insert_event(
        self, calendar_id: str, body: dict[str, Any]
    ) -> CalendarEventRecord:
        """Create an event."""
        ...

    async def patch_event(
        self, calendar_id: str, event_id: str, body: dict[str, Any]
    ) -> CalendarEventRecord:
        """Update the given fields of an event."""
        ...
