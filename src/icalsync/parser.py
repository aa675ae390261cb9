from __future__ import annotations
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List, NamedTuple, Optional, Tuple, Union

from .calendar import Calendar
from .models import Event

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class CalendarMetadata(NamedTuple):
    service: Optional[str]
    name: Optional[str]


def parse_ics_date(value: str) -> Tuple[Optional[datetime], bool]:
    """
    Parse an iCalendar basic-format date.

    Accepts YYYYMMDD (all-day, naive midnight), YYYYMMDDTHHMMSS (floating,
    naive) and YYYYMMDDTHHMMSSZ (UTC). Returns (None, False) for anything else.
    """
    v = value.strip()
    try:
        if len(v) == 8 and v.isdigit():
            return datetime.strptime(v, "%Y%m%d"), True
        if len(v) == 16 and v.endswith("Z"):
            return datetime.strptime(v[:-1], "%Y%m%dT%H%M%S").replace(tzinfo=timezone.utc), False
        if len(v) == 15:
            return datetime.strptime(v, "%Y%m%dT%H%M%S"), False
    except ValueError:
        pass
    return None, False


def _iter_properties(path: PathLike) -> Iterator[Tuple[str, str]]:
    text = Path(path).read_bytes().decode("utf-8-sig", errors="replace")
    for line in text.split("\n"):
        if line.endswith("\r"):
            line = line[:-1]
        name, sep, value = line.partition(":")
        if not sep:
            continue
        # DTSTART;VALUE=DATE -> DTSTART
        yield name.split(";", 1)[0], value


def get_calendar_data(path: PathLike) -> CalendarMetadata:
    service: Optional[str] = None
    name: Optional[str] = None
    for prop, value in _iter_properties(path):
        if prop == "PRODID" and service is None:
            service = value
        elif prop == "X-WR-CALNAME":
            name = value
            break
    return CalendarMetadata(service=service, name=name)


class _Accumulator:
    def __init__(self) -> None:
        self.summary = ""
        self.location = ""
        self.start: Optional[datetime] = None
        self.end: Optional[datetime] = None
        self.raw_start = ""
        self.raw_end = ""
        self.all_day = False

    def set_date(self, prop: str, raw: str) -> None:
        parsed, all_day = parse_ics_date(raw)
        if parsed is None:
            logger.warning("Could not parse %s value %r; keeping raw text", prop, raw)
        if prop == "DTSTART":
            self.raw_start, self.start, self.all_day = raw, parsed, all_day
        else:
            self.raw_end, self.end = raw, parsed

    def to_event(self) -> Event:
        return Event(
            summary=self.summary,
            location=self.location,
            start=self.start,
            end=self.end,
            raw_start=self.raw_start,
            raw_end=self.raw_end,
            all_day=self.all_day,
        )


def get_events(path: PathLike) -> List[Event]:
    events: List[Event] = []
    acc: Optional[_Accumulator] = None
    depth = 0  # nesting below the current VEVENT, e.g. VALARM

    for prop, value in _iter_properties(path):
        if acc is None:
            if prop == "BEGIN" and value == "VEVENT":
                acc = _Accumulator()
            continue

        if prop == "BEGIN" and value == "VEVENT" and not depth:
            logger.debug("Discarding unterminated VEVENT %r in %s", acc.summary, path)
            acc = _Accumulator()
        elif prop == "BEGIN":
            depth += 1
        elif prop == "END":
            if depth:
                depth -= 1
            elif value == "VEVENT":
                events.append(acc.to_event())
                acc = None
        elif depth:
            continue
        elif prop == "SUMMARY":
            acc.summary = value
        elif prop == "LOCATION":
            acc.location = value
        elif prop in ("DTSTART", "DTEND"):
            acc.set_date(prop, value)

    if acc is not None:
        logger.debug("Discarding unterminated VEVENT in %s", path)
    return events


def load_calendar(path: PathLike) -> Calendar:
    meta = get_calendar_data(path)
    return Calendar(name=meta.name, service=meta.service, events=get_events(path))
