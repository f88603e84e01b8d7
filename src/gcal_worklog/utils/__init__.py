"""Utility modules for gcal-worklog"""

from .error_handler import critical_operation, log_failure
from .logger import get_logger, log_event_link, setup_logging
from .mixins import LoggerMixin

__all__ = [
    "get_logger",
    "setup_logging",
    "log_event_link",
    "critical_operation",
    "log_failure",
    "LoggerMixin",
]
