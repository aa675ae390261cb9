from __future__ import annotations
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .models import Event, EventKey


class Calendar:
    """Ordered, duplicate-free collection of events with a display name and service id."""

    def __init__(
        self,
        name: Optional[str] = None,
        service: Optional[str] = None,
        events: Optional[Iterable[Event]] = None,
    ) -> None:
        self.name = name
        self.service = service
        self._events: List[Event] = []
        self._index: Dict[EventKey, Event] = {}
        for e in events or ():
            self.add_event(e)

    @property
    def events(self) -> Tuple[Event, ...]:
        return tuple(self._events)

    def add_event(self, event: Event) -> bool:
        """Append ``event`` and take ownership of it unless an equal event is already stored."""
        key = event.key()
        stored = self._index.get(key)
        if stored is not None:
            # Same instance shared with another calendar: ownership moves here.
            if stored is event:
                event.set_owner(self)
            return False
        self._events.append(event)
        self._index[key] = event
        event.set_owner(self)
        return True

    def remove_event(self, event: Event) -> bool:
        """Remove the given instance if stored, otherwise the first structurally equal event."""
        target: Optional[Event] = None
        for stored in self._events:
            if stored is event:
                target = stored
                break
        if target is None:
            for stored in self._events:
                if stored == event:
                    target = stored
                    break
        if target is None:
            return False

        self._events.remove(target)
        self._index.pop(target.key(), None)
        if target.owner is self:
            target.set_owner(None)
        return True

    def merge(self, other: "Calendar") -> int:
        """Add every event of ``other`` in order; returns how many were new."""
        added = 0
        for e in other.events:
            if self.add_event(e):
                added += 1
        return added

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(self._events)

    def __contains__(self, event: object) -> bool:
        return isinstance(event, Event) and event.key() in self._index

    def __repr__(self) -> str:
        return f"Calendar(name={self.name!r}, service={self.service!r}, events={len(self._events)})"
