"""Find-or-create the calendar a worklog writes to."""

from gcal_worklog.utils.mixins import LoggerMixin
from gcal_worklog.worklog.interfaces import CalendarStore


class CalendarResolver(LoggerMixin):
    """Resolves a calendar title to its identifier.

    Two callers racing on creation can produce duplicate calendars; there
    is no lock to prevent it.
    """

    def __init__(self, store: CalendarStore) -> None:
        self.store = store

    async def resolve(self, name: str) -> str:
        """Return the id of the first calendar titled ``name``, creating it if needed."""
        calendars = await self.store.list_calendars()
        for calendar in calendars:
            if calendar.summary == name:
                self.logger.debug(
                    "Found calendar", title=name, calendar_id=calendar.calendar_id
                )
                return calendar.calendar_id

        self.logger.info(
            "Creating calendar", title=name, visible_calendars=len(calendars)
        )
        created = await self.store.create_calendar(name)
        self.logger.info(
            "Created calendar", title=name, calendar_id=created.calendar_id
        )
        return created.calendar_id
