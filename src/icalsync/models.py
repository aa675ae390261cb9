from __future__ import annotations
import weakref
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Optional, Tuple

if TYPE_CHECKING:
    from .calendar import Calendar

EventKey = Tuple[str, str, object, object]


@dataclass(eq=False)
class Event:
    summary: str
    location: str
    start: Optional[datetime]   # None when the raw value did not parse
    end: Optional[datetime]
    raw_start: str = ""
    raw_end: str = ""
    all_day: bool = False
    source: str = "ics"         # "ics" / "google" / "icloud"
    _owner: Optional["weakref.ReferenceType[Calendar]"] = field(default=None, init=False, repr=False, compare=False)

    @property
    def owner(self) -> Optional["Calendar"]:
        return self._owner() if self._owner is not None else None

    def set_owner(self, calendar: Optional["Calendar"]) -> None:
        self._owner = weakref.ref(calendar) if calendar is not None else None

    def key(self) -> EventKey:
        """Identity used for equality; a raw date stands in for one that did not parse."""
        return (
            self.summary,
            self.location,
            self.start if self.start is not None else self.raw_start,
            self.end if self.end is not None else self.raw_end,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Event):
            return NotImplemented
        return self.key() == other.key()

    def __hash__(self) -> int:
        return hash(self.key())
