"""
Work session logging on a calendar
"""

from gcal_worklog.worklog.calendar_resolver import CalendarResolver
from gcal_worklog.worklog.controller import SessionController, open_session_controller
from gcal_worklog.worklog.description import (
    add_activity_line,
    last_activity_message,
    parse_activity_line,
)
from gcal_worklog.worklog.inactivity import is_lapsed, last_activity_at
from gcal_worklog.worklog.interfaces import CalendarStore
from gcal_worklog.worklog.session_resolver import SessionStateResolver

__all__ = [
    "CalendarResolver",
    "CalendarStore",
    "SessionController",
    "SessionStateResolver",
    "add_activity_line",
    "is_lapsed",
    "last_activity_at",
    "last_activity_message",
    "open_session_controller",
    "parse_activity_line",
]
