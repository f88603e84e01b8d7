"""Inactivity policy: has an open session lapsed?"""

from datetime import UTC, datetime, timedelta

from gcal_worklog.errors import MalformedTimestamp
from gcal_worklog.integrations.google_calendar.schemas import (
    CalendarEventRecord,
    parse_api_datetime,
)


def last_activity_at(event: CalendarEventRecord) -> datetime:
    """Last modification of ``event``, falling back to its creation time.

    Raises:
        MalformedTimestamp: the server timestamp is missing or unparsable.
    """
    field = "updated" if event.updated else "created"
    raw = event.updated or event.created
    parsed = parse_api_datetime(raw) if isinstance(raw, str) else None
    if parsed is None:
        raise MalformedTimestamp(raw, field)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed


def is_lapsed(
    event: CalendarEventRecord, now: datetime, threshold_minutes: int
) -> bool:
    """True when more than ``threshold_minutes`` passed since the last activity."""
    if now.tzinfo is None:
        raise MalformedTimestamp(now.isoformat(), "now")
    return now - last_activity_at(event) > timedelta(minutes=threshold_minutes)
