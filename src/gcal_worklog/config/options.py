"""Immutable options record for a session controller.

The record is assembled once with the precedence
caller override > environment settings > built-in default and never
mutated afterwards.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import timedelta
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from gcal_worklog.config.settings import Settings, get_settings
from gcal_worklog.errors import ConfigurationError

StringTemplate = str | Callable[..., str]

_REQUIRED_OPTIONS = ("credentials_path", "calendar")

# fields each string is rendered with, used to check overrides up front
_SAMPLE_FIELDS: dict[str, dict[str, str]] = {
    "activity_started": {},
    "activity_in_progress": {},
    "activity_concluded": {},
    "possible_inactivity": {"start": "09:00", "end": "09:30"},
    "changed_file": {"file_name": "README.md"},
}


def render_string(template: StringTemplate, project: str, **fields: Any) -> str:
    """Render an overridable string for ``project``.

    Literal templates are ``str.format`` strings receiving ``project`` plus
    ``fields``; callables are called as ``template(project, **fields)``.
    """
    if callable(template):
        return str(template(project, **fields))
    return template.format(project=project, **fields)


class SessionStrings(BaseModel):
    """Texts used for event summaries and description lines"""

    model_config = ConfigDict(frozen=True, extra="forbid")

    activity_started: StringTemplate = "Started working on {project}"
    activity_in_progress: StringTemplate = "Working on {project}"
    activity_concluded: StringTemplate = "Worked on {project}"
    possible_inactivity: StringTemplate = (
        "Possible inactivity detected from {start} to {end}"
    )
    changed_file: StringTemplate = "Changed file {file_name}"

    @model_validator(mode="after")
    def _renderable(self) -> SessionStrings:
        for name, fields in _SAMPLE_FIELDS.items():
            try:
                render_string(getattr(self, name), "project", **fields)
            except (KeyError, IndexError, ValueError, TypeError, AttributeError) as exc:
                raise ValueError(
                    f"{name} cannot be rendered: {type(exc).__name__}: {exc}"
                ) from exc
        return self


class WorklogOptions(BaseModel):
    """Validated configuration for one calendar worklog."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    credentials_path: Path
    token_path: Path | None = None
    calendar: str = Field(min_length=1)
    minutes_until_inactivity: int = Field(default=10, gt=0)
    lookback_days: int = Field(default=31, gt=0)
    time_zone: str = "UTC"
    verbose: bool = False
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    max_retries: int = Field(default=3, ge=1)
    strings: SessionStrings = Field(default_factory=SessionStrings)

    @field_validator("time_zone")
    @classmethod
    def _known_time_zone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown time zone {value!r}") from exc
        return value

    @classmethod
    def build(
        cls,
        settings: Settings | None = None,
        *,
        strings: SessionStrings | Mapping[str, StringTemplate] | None = None,
        **overrides: Any,
    ) -> WorklogOptions:
        """Merge caller overrides over ``settings`` and validate eagerly.

        Raises:
            ConfigurationError: a required option is missing or a value is invalid.
        """
        settings = settings or get_settings()

        unknown = set(overrides) - (set(cls.model_fields) - {"strings"})
        if unknown:
            raise ConfigurationError(f"Unknown options: {', '.join(sorted(unknown))}")

        values: dict[str, Any] = {
            name: getattr(settings, name)
            for name in cls.model_fields
            if name != "strings" and hasattr(settings, name)
        }
        values.update({k: v for k, v in overrides.items() if v is not None})

        missing = [name for name in _REQUIRED_OPTIONS if not values.get(name)]
        if missing:
            raise ConfigurationError(
                f"Missing required options: {', '.join(missing)}"
            )

        try:
            if strings is None:
                values["strings"] = SessionStrings()
            elif isinstance(strings, SessionStrings):
                values["strings"] = strings
            else:
                values["strings"] = SessionStrings(**dict(strings))
            return cls(**values)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid worklog options: {exc}") from exc

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.time_zone)

    @property
    def lookback(self) -> timedelta:
        return timedelta(days=self.lookback_days)

    def text(self, name: str, **fields: Any) -> str:
        """Render the string ``name`` for this calendar."""
        return render_string(getattr(self.strings, name), self.calendar, **fields)
