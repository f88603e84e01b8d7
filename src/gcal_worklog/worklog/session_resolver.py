"""
Session state resolver.

The event store cannot filter on the session marker and only lists in
ascending start order, so the open session is found by scanning a
bounded lookback window.
"""

from collections.abc import Callable
from datetime import datetime, timedelta

from gcal_worklog.errors import MultipleOpenSessions
from gcal_worklog.integrations.google_calendar.schemas import CalendarEventRecord
from gcal_worklog.utils.mixins import LoggerMixin
from gcal_worklog.worklog.interfaces import CalendarStore

AnomalyCallback = Callable[[MultipleOpenSessions], None]


def _recency_key(event: CalendarEventRecord) -> tuple[float, str]:
    started = event.start_time.timestamp() if event.start_time else float("-inf")
    return started, event.event_id


def pick_open_session(
    events: list[CalendarEventRecord],
) -> tuple[CalendarEventRecord | None, list[CalendarEventRecord]]:
    """Select the open event with the latest start, ties broken by id.

    Returns the chosen event (None when nothing is open) and every open
    candidate, most recent first.
    """
    candidates = sorted(
        (event for event in events if event.is_open),
        key=_recency_key,
        reverse=True,
    )
    return (candidates[0] if candidates else None), candidates


class SessionStateResolver(LoggerMixin):
    """Finds the single open session event of a calendar"""

    def __init__(
        self,
        store: CalendarStore,
        *,
        lookback: timedelta,
        time_zone: str | None = None,
        on_anomaly: AnomalyCallback | None = None,
    ) -> None:
        self.store = store
        self.lookback = lookback
        self.time_zone = time_zone
        self.on_anomaly = on_anomaly

    async def find_open_session(
        self, calendar_id: str, as_of: datetime
    ) -> CalendarEventRecord | None:
        """Return the open session event as of ``as_of``, or None when there is none."""
        window_start = as_of - self.lookback
        events = await self.store.list_events(
            calendar_id,
            time_min=window_start,
            time_max=as_of,
            time_zone=self.time_zone,
        )

        # the API matches on overlap; keep events that started inside the window
        in_window = [
            event
            for event in events
            if event.status != "cancelled"
            and event.start_time is not None
            and window_start <= event.start_time <= as_of
        ]

        chosen, candidates = pick_open_session(in_window)
        if chosen is None:
            self.logger.debug(
                "No open session in window",
                calendar_id=calendar_id,
                scanned=len(in_window),
            )
            return None

        if len(candidates) > 1:
            anomaly = MultipleOpenSessions(candidates, chosen)
            self.logger.warning(
                "Multiple open sessions found",
                calendar_id=calendar_id,
                event_ids=[event.event_id for event in candidates],
                chosen=chosen.event_id,
            )
            if self.on_anomaly is not None:
                self.on_anomaly(anomaly)

        return chosen
