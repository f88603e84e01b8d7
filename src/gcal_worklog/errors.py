"""Exceptions raised by the work session logger."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gcal_worklog.integrations.google_calendar.schemas import (
        CalendarEventRecord,
    )


class WorklogError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(WorklogError):
    """A required option is missing or malformed."""


class TransportError(WorklogError):
    """The calendar API could not be reached or rejected the request."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        url: str | None = None,
        payload: object | None = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.url = url
        self.payload = payload

    @property
    def is_transient(self) -> bool:
        """True for rate limiting, server errors and connection failures."""
        if self.status is None:
            return True
        return self.status == 429 or self.status >= 500


class NoOpenSession(WorklogError):
    """No open session event exists inside the lookback window."""

    def __init__(self, calendar_id: str, lookback_days: int) -> None:
        super().__init__(
            f"No open work session found in calendar {calendar_id!r} "
            f"during the past {lookback_days} days"
        )
        self.calendar_id = calendar_id
        self.lookback_days = lookback_days


class MalformedTimestamp(WorklogError):
    """A server timestamp could not be parsed."""

    def __init__(self, value: object, field: str = "updated") -> None:
        super().__init__(f"Unparsable {field} timestamp: {value!r}")
        self.value = value
        self.field = field


class MultipleOpenSessions(UserWarning):
    """More than one event is marked open; one was picked deterministically.

    Delivered to the ``on_anomaly`` callback and logged, never raised.
    """

    def __init__(
        self,
        candidates: list[CalendarEventRecord],
        chosen: CalendarEventRecord,
    ) -> None:
        super().__init__(
            f"{len(candidates)} open session events found, using {chosen.event_id}"
        )
        self.candidates = candidates
        self.chosen = chosen
