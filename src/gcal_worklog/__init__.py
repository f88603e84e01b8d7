"""
gcal-worklog: record work sessions as Google Calendar events
"""

from gcal_worklog.config import SessionStrings, WorklogOptions
from gcal_worklog.errors import (
    ConfigurationError,
    MalformedTimestamp,
    MultipleOpenSessions,
    NoOpenSession,
    TransportError,
    WorklogError,
)
from gcal_worklog.worklog import SessionController, open_session_controller

__version__ = "0.3.0"

__all__ = [
    "__version__",
    "ConfigurationError",
    "MalformedTimestamp",
    "MultipleOpenSessions",
    "NoOpenSession",
    "SessionController",
    "SessionStrings",
    "TransportError",
    "WorklogError",
    "WorklogOptions",
    "open_session_controller",
]
