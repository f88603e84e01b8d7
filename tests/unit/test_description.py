"""Tests for the activity description log"""

from datetime import UTC, datetime

import pytest

from gcal_worklog.worklog.description import (
    activity_lines,
    add_activity_line,
    format_activity_line,
    last_activity_message,
    parse_activity_line,
)

AT = datetime(2024, 5, 1, 9, 5, tzinfo=UTC)


def test_first_line_has_no_leading_newline() -> None:
    assert add_activity_line(AT, "Started working on X") == "09:05 – Started working on X"


def test_lines_are_appended_in_order() -> None:
    description = add_activity_line(AT, "one")
    description = add_activity_line(AT.replace(minute=6), "two", description)
    description = add_activity_line(AT.replace(minute=7), "three", description)

    assert activity_lines(description) == [
        "09:05 – one",
        "09:06 – two",
        "09:07 – three",
    ]


@pytest.mark.parametrize(
    "message",
    ["edit A", "Changed file src/app.py", "naïve – dash inside", "  padded  ", ""],
)
def test_last_message_round_trip(message: str) -> None:
    description = add_activity_line(AT, "Started working on X")
    description = add_activity_line(AT, message, description)

    assert last_activity_message(description) == message


def test_embedded_newlines_are_folded() -> None:
    assert format_activity_line(AT, "first\nsecond") == "09:05 – first second"


def test_foreign_lines_are_not_parsed() -> None:
    assert parse_activity_line("incomplete work (leave this here)") is None
    assert parse_activity_line("ab:cd – nope") is None
    assert last_activity_message("") is None


def test_parse_activity_line() -> None:
    assert parse_activity_line("23:59 – late") == ("23:59", "late")
