from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Protocol

from .calendar import Calendar
from .models import Event


class CalendarProvider(Protocol):
    """A remote calendar backend that can receive events and be read back as a Calendar."""

    def add_events(self, events: Iterable[Event], session: Any) -> None: ...

    def fetch(self, session: Any) -> Calendar: ...


@dataclass(frozen=True)
class GoogleSession:
    credentials_path: str
    token_path: str

    @classmethod
    def from_env(cls) -> Optional["GoogleSession"]:
        creds_path = os.environ.get("GOOGLE_CREDENTIALS_JSON", "")
        token_path = os.environ.get("GOOGLE_TOKEN_JSON", "")
        if not (creds_path and token_path):
            return None
        return cls(credentials_path=creds_path, token_path=token_path)


@dataclass(frozen=True)
class ICloudSession:
    username: str
    app_password: str

    @classmethod
    def from_env(cls) -> Optional["ICloudSession"]:
        user = os.environ.get("ICLOUD_USERNAME", "")
        pw = os.environ.get("ICLOUD_APP_PASSWORD", "")
        if not (user and pw):
            return None
        return cls(username=user, app_password=pw)
