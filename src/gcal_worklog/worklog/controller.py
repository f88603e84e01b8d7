"""
Session controller: start, report activity on and conclude work sessions.

Every remote call is awaited before the next one is issued. In
particular a lapsed session is fully closed before the replacement
session is created, and the replacement exists before the activity is
recorded on it.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import Any

from gcal_worklog.config import WorklogOptions
from gcal_worklog.errors import NoOpenSession
from gcal_worklog.integrations.google_calendar import (
    GoogleCalendarService,
    load_token_provider,
)
from gcal_worklog.integrations.google_calendar.schemas import (
    CalendarEventRecord,
    build_event_body,
    build_patch_body,
)
from gcal_worklog.utils.error_handler import critical_operation
from gcal_worklog.utils.logger import log_event_link
from gcal_worklog.utils.mixins import LoggerMixin
from gcal_worklog.worklog.calendar_resolver import CalendarResolver
from gcal_worklog.worklog.description import add_activity_line
from gcal_worklog.worklog.inactivity import is_lapsed, last_activity_at
from gcal_worklog.worklog.interfaces import CalendarStore
from gcal_worklog.worklog.session_resolver import AnomalyCallback, SessionStateResolver

# duration of a freshly started session event
PLACEHOLDER_DURATION = timedelta(seconds=1)

Clock = Callable[[], datetime]


class SessionController(LoggerMixin):
    """Maps start/activity/end onto a single open event per session.

    ``start`` does not look for an already open session; calling it while
    one is open leaves two open events, which the resolver tolerates by
    picking the most recently started one.
    """

    def __init__(
        self,
        options: WorklogOptions,
        store: CalendarStore,
        *,
        clock: Clock | None = None,
        on_anomaly: AnomalyCallback | None = None,
    ) -> None:
        self.options = options
        self.store = store
        self._clock = clock
        self.calendar_resolver = CalendarResolver(store)
        self.session_resolver = SessionStateResolver(
            store,
            lookback=options.lookback,
            time_zone=options.time_zone,
            on_anomaly=on_anomaly,
        )
        self._calendar_id: str | None = None

    def _log_context(self) -> dict[str, Any]:
        return {"calendar": self.options.calendar}

    def now(self) -> datetime:
        """Current time in the configured zone"""
        tz = self.options.tz
        if self._clock is None:
            return datetime.now(tz)
        current = self._clock()
        if current.tzinfo is None:
            current = current.replace(tzinfo=tz)
        return current.astimezone(tz)

    async def calendar_id(self) -> str:
        """Resolve the calendar once and reuse its id afterwards."""
        if self._calendar_id is None:
            self._calendar_id = await self.calendar_resolver.resolve(
                self.options.calendar
            )
        return self._calendar_id

    async def find_open_session(
        self, as_of: datetime | None = None
    ) -> CalendarEventRecord:
        """Return the open session event.

        Raises:
            NoOpenSession: nothing is open inside the lookback window.
        """
        calendar_id = await self.calendar_id()
        return await self._require_open_session(calendar_id, as_of or self.now())

    # === Public operations ===

    @critical_operation("start work session")
    async def start(self, summary: str | None = None) -> CalendarEventRecord:
        """Create a new open session event."""
        calendar_id = await self.calendar_id()
        return await self._open_session(calendar_id, self.now(), summary)

    @critical_operation("report activity")
    async def report_activity(
        self, message: str, summary: str | None = None
    ) -> CalendarEventRecord:
        """Record ``message`` on the open session.

        A lapsed session is closed and a fresh one is started first, so the
        activity is recorded on the new session rather than lost.

        Raises:
            NoOpenSession: there is no open session to report against.
        """
        calendar_id = await self.calendar_id()
        now = self.now()
        event = await self._require_open_session(calendar_id, now)

        if is_lapsed(event, now, self.options.minutes_until_inactivity):
            self.logger.info(
                "Possible inactivity detected, closing previous session",
                event_id=event.event_id,
            )
            await self._close_lapsed(calendar_id, event, now)
            event = await self._open_session(calendar_id, now)

        return await self._record_activity(calendar_id, event, now, message, summary)

    async def report_file_change(self, file_name: str) -> CalendarEventRecord:
        """Report an activity describing a changed file."""
        return await self.report_activity(
            self.options.text("changed_file", file_name=file_name)
        )

    @critical_operation("end work session")
    async def end(self, summary: str | None = None) -> CalendarEventRecord:
        """Close the open session.

        A lapsed session is closed with an inactivity notice instead of the
        concluded line; ``summary`` applies either way.

        Raises:
            NoOpenSession: there is no open session to conclude.
        """
        calendar_id = await self.calendar_id()
        now = self.now()
        event = await self._require_open_session(calendar_id, now)

        if is_lapsed(event, now, self.options.minutes_until_inactivity):
            return await self._close_lapsed(calendar_id, event, now, summary)

        concluded = self.options.text("activity_concluded")
        body = build_patch_body(
            time_zone=self.options.time_zone,
            summary=summary or concluded,
            description=add_activity_line(now, concluded, event.description),
            end=self._extended_end(event, now),
            completed=True,
        )
        closed = await self.store.patch_event(calendar_id, event.event_id, body)
        log_event_link(self.logger, "Work logged", closed, verbose=self.options.verbose)
        return closed

    # === Mutations ===

    async def _require_open_session(
        self, calendar_id: str, as_of: datetime
    ) -> CalendarEventRecord:
        event = await self.session_resolver.find_open_session(calendar_id, as_of)
        if event is None:
            raise NoOpenSession(calendar_id, self.options.lookback_days)
        return event

    async def _open_session(
        self, calendar_id: str, now: datetime, summary: str | None = None
    ) -> CalendarEventRecord:
        started = self.options.text("activity_started")
        body = build_event_body(
            summary=summary or started,
            description=add_activity_line(now, started),
            start=now,
            end=now + PLACEHOLDER_DURATION,
            time_zone=self.options.time_zone,
            completed=False,
        )
        event = await self.store.insert_event(calendar_id, body)
        log_event_link(
            self.logger, "Start event created", event, verbose=self.options.verbose
        )
        return event

    async def _record_activity(
        self,
        calendar_id: str,
        event: CalendarEventRecord,
        now: datetime,
        message: str,
        summary: str | None,
    ) -> CalendarEventRecord:
        body = build_patch_body(
            time_zone=self.options.time_zone,
            summary=summary or self.options.text("activity_in_progress"),
            description=add_activity_line(now, message, event.description),
            end=self._extended_end(event, now),
        )
        updated = await self.store.patch_event(calendar_id, event.event_id, body)
        log_event_link(self.logger, "Work logged", updated, verbose=self.options.verbose)
        return updated

    async def _close_lapsed(
        self,
        calendar_id: str,
        event: CalendarEventRecord,
        now: datetime,
        summary: str | None = None,
    ) -> CalendarEventRecord:
        # the event keeps its end at the last reported activity
        last_activity = last_activity_at(event).astimezone(self.options.tz)
        notice = self.options.text(
            "possible_inactivity",
            start=f"{last_activity:%H:%M}",
            end=f"{now:%H:%M}",
        )
        body = build_patch_body(
            time_zone=self.options.time_zone,
            summary=summary or self.options.text("activity_concluded"),
            description=add_activity_line(now, notice, event.description),
            completed=True,
        )
        closed = await self.store.patch_event(calendar_id, event.event_id, body)
        log_event_link(
            self.logger,
            "Session closed due to inactivity",
            closed,
            verbose=self.options.verbose,
        )
        return closed

    @staticmethod
    def _extended_end(event: CalendarEventRecord, now: datetime) -> datetime:
        if event.start_time is None:
            return now
        return max(now, event.start_time + PLACEHOLDER_DURATION)


@asynccontextmanager
async def open_session_controller(
    options: WorklogOptions | None = None,
    *,
    on_anomaly: AnomalyCallback | None = None,
    **overrides: Any,
) -> AsyncIterator[SessionController]:
    """Build a controller backed by the Google Calendar API.

    Options and credential files are validated before any remote call;
    the HTTP session is closed on exit. Logging is not configured here:
    applications call :func:`gcal_worklog.utils.setup_logging` once at
    startup.
    """
    options = options or WorklogOptions.build(**overrides)
    token_provider = load_token_provider(
        options.credentials_path,
        options.token_path,
        timeout_seconds=options.request_timeout_seconds,
    )
    service = GoogleCalendarService(
        token_provider,
        timeout_seconds=options.request_timeout_seconds,
        max_attempts=options.max_retries,
    )
    try:
        yield SessionController(options, service, on_anomaly=on_anomaly)
    finally:
        await service.close()
