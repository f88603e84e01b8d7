"""Tests for the inactivity policy"""

from datetime import UTC, datetime, timedelta

import pytest

from gcal_worklog.errors import MalformedTimestamp
from gcal_worklog.integrations.google_calendar.schemas import CalendarEventRecord
from gcal_worklog.worklog.inactivity import is_lapsed, last_activity_at

LAST = datetime(2024, 5, 1, 9, 5, tzinfo=UTC)


def make_event(**fields) -> CalendarEventRecord:
    return CalendarEventRecord(event_id="evt-1", completed=False, **fields)


def test_last_activity_prefers_updated() -> None:
    event = make_event(created="2024-05-01T09:00:00Z", updated="2024-05-01T09:05:00.000Z")
    assert last_activity_at(event) == LAST


def test_last_activity_falls_back_to_created() -> None:
    event = make_event(created="2024-05-01T09:05:00Z")
    assert last_activity_at(event) == LAST


@pytest.mark.parametrize(
    ("elapsed", "expected"),
    [
        (timedelta(minutes=5), False),
        (timedelta(minutes=10), False),
        (timedelta(minutes=10, milliseconds=1), True),
        (timedelta(minutes=11), True),
    ],
)
def test_threshold_is_exclusive(elapsed: timedelta, expected: bool) -> None:
    event = make_event(updated="2024-05-01T09:05:00Z")
    assert is_lapsed(event, LAST + elapsed, 10) is expected


def test_lapse_is_monotonic_in_elapsed_time() -> None:
    event = make_event(updated="2024-05-01T09:05:00Z")
    results = [
        is_lapsed(event, LAST + timedelta(seconds=seconds), 10)
        for seconds in range(0, 1800, 30)
    ]
    first_lapsed = results.index(True)
    assert all(results[first_lapsed:])
    assert not any(results[:first_lapsed])


def test_other_time_zones_compare_by_instant() -> None:
    event = make_event(updated="2024-05-01T11:05:00+02:00")
    assert is_lapsed(event, LAST + timedelta(minutes=9), 10) is False


@pytest.mark.parametrize(
    "fields",
    [
        {"updated": "yesterday-ish"},
        {"created": "not a timestamp"},
        {},
    ],
)
def test_malformed_timestamps_raise(fields) -> None:
    with pytest.raises(MalformedTimestamp):
        is_lapsed(make_event(**fields), LAST, 10)


def test_naive_now_is_rejected() -> None:
    event = make_event(updated="2024-05-01T09:05:00Z")
    with pytest.raises(MalformedTimestamp):
        is_lapsed(event, datetime(2024, 5, 1, 9, 20), 10)
