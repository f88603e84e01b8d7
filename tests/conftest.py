"""
Shared fixtures and collection settings.

- Test environment variables are set for every test (autouse)
- ``src`` is added to ``sys.path`` so ``import gcal_worklog`` resolves
  without an installed distribution
- ``FakeCalendarStore`` mimics the Calendar API in memory
"""

from __future__ import annotations

import copy
import itertools
import sys
from collections.abc import Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest

_SRC = Path(__file__).resolve().parents[1] / "src"
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

from gcal_worklog.config import WorklogOptions, clear_settings_cache  # noqa: E402
from gcal_worklog.integrations.google_calendar.schemas import (  # noqa: E402
    CalendarEventRecord,
    CalendarListEntry,
    encode_session_marker,
)

T0 = datetime(2024, 5, 1, 9, 0, tzinfo=UTC)


def rfc3339(value: datetime) -> str:
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")


class FakeClock:
    """Mutable clock passed to controllers and the fake store."""

    def __init__(self, start: datetime = T0) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **delta: float) -> datetime:
        self.current = self.current + timedelta(**delta)
        return self.current


class FakeCalendarStore:
    """In-memory stand-in for the Calendar API.

    ``list_events`` matches on overlap and sorts by start like the real
    API; ``created``/``updated`` come from the shared clock.
    """

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.calendars: list[dict[str, Any]] = []
        self.events: dict[str, list[dict[str, Any]]] = {}
        self.calls: list[str] = []
        self.failures: dict[str, Exception] = {}
        self._ids = itertools.count(1)

    def _enter(self, name: str) -> None:
        self.calls.append(name)
        if name in self.failures:
            raise self.failures.pop(name)

    # === CalendarStore ===

    async def list_calendars(self) -> list[CalendarListEntry]:
        self._enter("list_calendars")
        return [CalendarListEntry.model_validate(item) for item in self.calendars]

    async def create_calendar(self, title: str) -> CalendarListEntry:
        self._enter("create_calendar")
        calendar = {"id": f"cal-{next(self._ids)}@group.calendar.google.com", "summary": title}
        self.calendars.append(calendar)
        return CalendarListEntry.model_validate(calendar)

    async def list_events(
        self,
        calendar_id: str,
        *,
        time_min: datetime,
        time_max: datetime,
        time_zone: str | None = None,
    ) -> list[CalendarEventRecord]:
        self._enter("list_events")
        records = [
            CalendarEventRecord.from_api(copy.deepcopy(item))
            for item in self.events.get(calendar_id, [])
        ]
        hits = [
            record
            for record in records
            if record.start_time < time_max
            and (record.end_time or record.start_time) > time_min
        ]
        return sorted(hits, key=lambda record: record.start_time)

    async def insert_event(
        self, calendar_id: str, body: dict[str, Any]
    ) -> CalendarEventRecord:
        self._enter("insert_event")
        event_id = f"evt-{next(self._ids)}"
        stamp = rfc3339(self.clock())
        event = copy.deepcopy(body)
        event.update(
            id=event_id,
            created=stamp,
            updated=stamp,
            status="confirmed",
            htmlLink=f"https://calendar.google.com/event?eid={event_id}",
        )
        self.events.setdefault(calendar_id, []).append(event)
        return CalendarEventRecord.from_api(copy.deepcopy(event))

    async def patch_event(
        self, calendar_id: str, event_id: str, body: dict[str, Any]
    ) -> CalendarEventRecord:
        self._enter("patch_event")
        event = self.raw_event(calendar_id, event_id)
        for key, value in body.items():
            if key == "extendedProperties":
                private = event.setdefault(key, {}).setdefault("private", {})
                private.update(value.get("private", {}))
            else:
                event[key] = copy.deepcopy(value)
        event["updated"] = rfc3339(self.clock())
        return CalendarEventRecord.from_api(copy.deepcopy(event))

    # === helpers ===

    def raw_event(self, calendar_id: str, event_id: str) -> dict[str, Any]:
        for event in self.events.get(calendar_id, []):
            if event["id"] == event_id:
                return event
        raise KeyError(event_id)

    def records(self, calendar_id: str) -> list[CalendarEventRecord]:
        return [
            CalendarEventRecord.from_api(copy.deepcopy(item))
            for item in self.events.get(calendar_id, [])
        ]

    def seed_event(
        self,
        calendar_id: str,
        *,
        event_id: str,
        start: datetime,
        end: datetime | None = None,
        completed: bool | None = False,
        updated: datetime | str | None = None,
        description: str = "",
        status: str = "confirmed",
    ) -> dict[str, Any]:
        end = end or start + timedelta(seconds=1)
        stamp = updated if isinstance(updated, str) else rfc3339(updated or end)
        event: dict[str, Any] = {
            "id": event_id,
            "summary": "seeded",
            "description": description,
            "status": status,
            "start": {"dateTime": start.isoformat(), "timeZone": "UTC"},
            "end": {"dateTime": end.isoformat(), "timeZone": "UTC"},
            "created": rfc3339(start),
            "updated": stamp,
        }
        if completed is not None:
            event["extendedProperties"] = encode_session_marker(completed)
        self.events.setdefault(calendar_id, []).append(event)
        return event


@pytest.fixture(autouse=True)
def _test_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Set test environment variables and reset the settings cache.

    ``monkeypatch`` restores the environment after each test.
    """
    for name in (
        "WORKLOG_CREDENTIALS_PATH",
        "WORKLOG_TOKEN_PATH",
        "WORKLOG_CALENDAR",
        "WORKLOG_MINUTES_UNTIL_INACTIVITY",
        "WORKLOG_TIME_ZONE",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("WORKLOG_LOG_LEVEL", "DEBUG")

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> FakeCalendarStore:
    fake = FakeCalendarStore(clock)
    fake.calendars.append({"id": "worklog@group.calendar.google.com", "summary": "Espressivo"})
    return fake


@pytest.fixture
def calendar_id() -> str:
    return "worklog@group.calendar.google.com"


@pytest.fixture
def options() -> WorklogOptions:
    return WorklogOptions(
        credentials_path=Path("credentials.json"),
        token_path=Path("token.json"),
        calendar="Espressivo",
        minutes_until_inactivity=10,
    )
