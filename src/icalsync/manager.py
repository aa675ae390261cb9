from __future__ import annotations
from typing import Any, Callable, Dict, Iterable

from .calendar import Calendar
from .calendar_google import GoogleCalendarProvider
from .calendar_icloud import ICloudCalendarProvider
from .config import ProviderConfig
from .models import Event
from .providers import CalendarProvider, GoogleSession, ICloudSession

PROVIDERS: Dict[str, Callable[[ProviderConfig], CalendarProvider]] = {
    "google": lambda cfg: GoogleCalendarProvider(calendar_id=cfg.calendar_id, timezone=cfg.timezone),
    "icloud": lambda cfg: ICloudCalendarProvider(calendar_name=cfg.calendar_name),
}

SESSIONS: Dict[str, Callable[[], Any]] = {
    "google": GoogleSession.from_env,
    "icloud": ICloudSession.from_env,
}


class ProviderManager:
    """Forwards calendar operations to a single configured provider."""

    def __init__(self, provider: CalendarProvider) -> None:
        self.provider = provider

    @classmethod
    def from_config(cls, cfg: ProviderConfig) -> "ProviderManager":
        factory = PROVIDERS.get(cfg.name)
        if factory is None:
            raise ValueError(f"Unknown provider {cfg.name!r}; expected one of {sorted(PROVIDERS)}")
        return cls(factory(cfg))

    def add_events(self, events: Iterable[Event], session: Any) -> None:
        self.provider.add_events(events, session)

    def fetch(self, session: Any) -> Calendar:
        return self.provider.fetch(session)
