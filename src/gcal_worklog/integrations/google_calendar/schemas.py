"""Typed data objects for Google Calendar integration service."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field

# Key of the private extended property carrying the session marker.
SESSION_MARKER_KEY = "completed"


def parse_api_datetime(value: Any) -> datetime | None:
    """Parse an RFC 3339 value or a ``{"dateTime": ...}`` block, None if unparsable."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, dict):
        if "dateTime" in value:
            raw = value.get("dateTime")
        elif "date" in value:
            raw = f"{value.get('date')}T00:00:00"
        else:
            return None
    else:
        raw = value

    if isinstance(raw, str):
        candidate = raw.strip()
        if candidate.endswith("Z"):
            candidate = candidate[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(candidate)
        except ValueError:
            return None
    return None


def encode_session_marker(completed: bool) -> dict[str, dict[str, str]]:
    """Build the ``extendedProperties`` block for the session marker"""
    return {"private": {SESSION_MARKER_KEY: "true" if completed else "false"}}


def decode_session_marker(extended_properties: Any) -> bool | None:
    """Return the marker value, or None when the event carries no valid marker."""
    if not isinstance(extended_properties, dict):
        return None
    private = extended_properties.get("private")
    if not isinstance(private, dict):
        return None
    value = private.get(SESSION_MARKER_KEY)
    if value == "true":
        return True
    if value == "false":
        return False
    return None


def _aware(value: datetime | None, time_zone: str | None) -> datetime | None:
    # all-day events carry a bare date
    if value is None or value.tzinfo is not None:
        return value
    try:
        return value.replace(tzinfo=ZoneInfo(time_zone) if time_zone else UTC)
    except (ZoneInfoNotFoundError, ValueError):
        return value.replace(tzinfo=UTC)


def event_time(value: datetime, time_zone: str) -> dict[str, str]:
    return {"dateTime": value.isoformat(), "timeZone": time_zone}


class CalendarListEntry(BaseModel):
    """Metadata about a calendar returned by the list API."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    calendar_id: str = Field(alias="id")
    summary: str | None = None
    access_role: str | None = Field(default=None, alias="accessRole")
    primary: bool = False
    time_zone: str | None = Field(default=None, alias="timeZone")


class CalendarEventRecord(BaseModel):
    """Normalized Google Calendar event as seen by the worklog."""

    model_config = ConfigDict(populate_by_name=True)

    event_id: str = Field(alias="id")
    summary: str | None = None
    description: str = ""
    html_link: str | None = None
    status: str | None = None

    start_time: datetime | None = None
    end_time: datetime | None = None
    time_zone: str | None = None

    # server timestamps are kept verbatim; the inactivity policy parses them
    created: str | None = None
    updated: str | None = None

    completed: bool | None = None

    raw: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> CalendarEventRecord:
        start_info = payload.get("start") or {}
        time_zone = start_info.get("timeZone") if isinstance(start_info, dict) else None
        return cls(
            event_id=payload["id"],
            summary=payload.get("summary"),
            description=payload.get("description") or "",
            html_link=payload.get("htmlLink"),
            status=payload.get("status"),
            start_time=_aware(parse_api_datetime(start_info), time_zone),
            end_time=_aware(parse_api_datetime(payload.get("end")), time_zone),
            time_zone=time_zone,
            created=payload.get("created"),
            updated=payload.get("updated"),
            completed=decode_session_marker(payload.get("extendedProperties")),
            raw=payload,
        )

    @property
    def is_open(self) -> bool:
        """True when the event carries the open session marker."""
        return self.completed is False


def build_event_body(
    *,
    summary: str,
    description: str,
    start: datetime,
    end: datetime,
    time_zone: str,
    completed: bool,
) -> dict[str, Any]:
    """Request body for ``events.insert``"""
    return {
        "summary": summary,
        "description": description,
        "start": event_time(start, time_zone),
        "end": event_time(end, time_zone),
        "extendedProperties": encode_session_marker(completed),
    }


def build_patch_body(
    *,
    time_zone: str,
    summary: str | None = None,
    description: str | None = None,
    end: datetime | None = None,
    completed: bool | None = None,
) -> dict[str, Any]:
    """Request body for ``events.patch`` holding only the given fields"""
    body: dict[str, Any] = {}
    if summary is not None:
        body["summary"] = summary
    if description is not None:
        body["description"] = description
    if end is not None:
        body["end"] = event_time(end, time_zone)
    if completed is not None:
        body["extendedProperties"] = encode_session_marker(completed)
    return body
