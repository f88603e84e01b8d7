"""Configuration module for gcal-worklog"""

from gcal_worklog.config.options import (
    SessionStrings,
    WorklogOptions,
    render_string,
)
from gcal_worklog.config.settings import (
    Settings,
    clear_settings_cache,
    get_settings,
    override_settings,
)

__all__ = [
    "Settings",
    "get_settings",
    "clear_settings_cache",
    "override_settings",
    "SessionStrings",
    "WorklogOptions",
    "render_string",
]
