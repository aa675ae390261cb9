from __future__ import annotations
from datetime import datetime
import logging
from typing import Any, Iterable, Optional

import caldav
from caldav.elements import dav

from .calendar import Calendar
from .models import Event
from .providers import ICloudSession

logger = logging.getLogger(__name__)

ICLOUD_CALDAV_URL = "https://caldav.icloud.com/"
_ICAL_COMPAT_MSG = "Ical data was modified to avoid compatibility issues"


class _IcalCompatibilityFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return _ICAL_COMPAT_MSG not in record.getMessage()


def _install_ical_compatibility_filter() -> None:
    root_logger = logging.getLogger()
    if any(isinstance(f, _IcalCompatibilityFilter) for f in root_logger.filters):
        return
    root_logger.addFilter(_IcalCompatibilityFilter())


def _calendar_name(cal: Any) -> str:
    return getattr(cal, "name", None) or cal.get_properties([dav.DisplayName()]).get(dav.DisplayName(), "")


def _as_datetime(value: Any) -> datetime:
    # date-only values come back for all-day events
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, datetime.min.time())


def vevent_to_event(vevent: Any) -> Event:
    title = str(vevent.summary.value) if hasattr(vevent, "summary") else "(No title)"
    location = str(vevent.location.value) if hasattr(vevent, "location") else ""

    dtstart = vevent.dtstart.value
    dtend = vevent.dtend.value if hasattr(vevent, "dtend") else dtstart

    return Event(
        summary=title,
        location=location,
        start=_as_datetime(dtstart),
        end=_as_datetime(dtend),
        raw_start=dtstart.isoformat(),
        raw_end=dtend.isoformat(),
        all_day=not isinstance(dtstart, datetime),
        source="icloud",
    )


class ICloudCalendarProvider:
    def __init__(self, calendar_name: str, client_factory: Optional[Any] = None) -> None:
        self.calendar_name = calendar_name
        self._client_factory = client_factory or caldav.DAVClient

    def _calendar(self, session: ICloudSession) -> Any:
        _install_ical_compatibility_filter()
        client = self._client_factory(
            url=ICLOUD_CALDAV_URL,
            username=session.username,
            password=session.app_password,
        )
        for cal in client.principal().calendars():
            if _calendar_name(cal) == self.calendar_name:
                return cal
        raise LookupError(f"iCloud calendar {self.calendar_name!r} not found")

    def add_events(self, events: Iterable[Event], session: ICloudSession) -> None:
        cal = self._calendar(session)
        pushed = 0
        for e in events:
            if e.start is None or e.end is None:
                logger.warning("Skipping %r: start/end not parsed (%r, %r)", e.summary, e.raw_start, e.raw_end)
                continue
            if e.all_day:
                dtstart, dtend = e.start.date(), e.end.date()
            else:
                dtstart, dtend = e.start, e.end
            cal.save_event(dtstart=dtstart, dtend=dtend, summary=e.summary, location=e.location)
            pushed += 1
        logger.info("Pushed %d events to iCloud calendar %s", pushed, self.calendar_name)

    def fetch(self, session: ICloudSession) -> Calendar:
        cal = self._calendar(session)
        result = Calendar(name=self.calendar_name, service="icloud")
        for r in cal.events():
            vevent = getattr(r.vobject_instance, "vevent", None)
            if vevent is None:
                continue
            result.add_event(vevent_to_event(vevent))
        return result
