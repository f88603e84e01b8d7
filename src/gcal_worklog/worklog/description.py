"""
Activity description log.

An open session event's description is a newline-joined list of
``HH:MM – <message>`` lines, one per reported activity. Lines are only
ever appended.
"""

from datetime import datetime

LINE_SEPARATOR = " – "


def format_activity_line(at: datetime, message: str) -> str:
    """Format one log line; embedded newlines are folded into spaces."""
    flat = " ".join(message.splitlines()) if "\n" in message or "\r" in message else message
    return f"{at:%H:%M}{LINE_SEPARATOR}{flat}"


def add_activity_line(at: datetime, message: str, prior_description: str | None = None) -> str:
    """Append a log line to ``prior_description``."""
    line = format_activity_line(at, message)
    if not prior_description:
        return line
    return f"{prior_description}\n{line}"


def parse_activity_line(line: str) -> tuple[str, str] | None:
    """Split a log line into ``(HH:MM, message)``, None for foreign text."""
    clock, sep, message = line.partition(LINE_SEPARATOR)
    if not sep or len(clock) != 5 or clock[2] != ":":
        return None
    if not (clock[:2].isdigit() and clock[3:].isdigit()):
        return None
    return clock, message


def activity_lines(description: str | None) -> list[str]:
    if not description:
        return []
    return description.split("\n")


def last_activity_message(description: str | None) -> str | None:
    lines = activity_lines(description)
    if not lines:
        return None
    parsed = parse_activity_line(lines[-1])
    return parsed[1] if parsed else None
