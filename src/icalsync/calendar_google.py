from __future__ import annotations
from datetime import datetime
import logging
import os
from typing import Any, Dict, Iterable, Optional

from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build

from .calendar import Calendar
from .models import Event
from .providers import GoogleSession

logger = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/calendar.events",
    "https://www.googleapis.com/auth/calendar.readonly",  # calendars().get in fetch
]

def _get_creds(credentials_path: str, token_path: str) -> Credentials:
    if os.path.exists(token_path):
        return Credentials.from_authorized_user_file(token_path, SCOPES)

    flow = InstalledAppFlow.from_client_secrets_file(credentials_path, SCOPES)
    creds = flow.run_local_server(port=0)
    os.makedirs(os.path.dirname(token_path) or ".", exist_ok=True)
    with open(token_path, "w", encoding="utf-8") as f:
        f.write(creds.to_json())
    return creds


def _time_field(value: datetime, all_day: bool, timezone: str) -> Dict[str, str]:
    if all_day:
        return {"date": value.date().isoformat()}
    if value.tzinfo is None:
        # Floating ICS times are pinned to the configured zone.
        return {"dateTime": value.isoformat(), "timeZone": timezone}
    return {"dateTime": value.isoformat()}


def event_to_body(event: Event, timezone: str = "UTC") -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "summary": event.summary,
        "start": _time_field(event.start, event.all_day, timezone),
        "end": _time_field(event.end, event.all_day, timezone),
    }
    if event.location:
        body["location"] = event.location
    return body


def _fromiso(value: str) -> datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def item_to_event(item: Dict[str, Any]) -> Event:
    start_obj = item.get("start", {})
    end_obj = item.get("end", {})

    # All-day events have "date" not "dateTime"
    if "date" in start_obj:
        raw_start, raw_end = start_obj["date"], end_obj.get("date", start_obj["date"])
        all_day = True
    else:
        raw_start, raw_end = start_obj["dateTime"], end_obj.get("dateTime", start_obj["dateTime"])
        all_day = False

    return Event(
        summary=item.get("summary", "(No title)"),
        location=item.get("location", ""),
        start=_fromiso(raw_start),
        end=_fromiso(raw_end),
        raw_start=raw_start,
        raw_end=raw_end,
        all_day=all_day,
        source="google",
    )


class GoogleCalendarProvider:
    def __init__(self, calendar_id: str = "primary", timezone: str = "UTC", service: Optional[Any] = None) -> None:
        self.calendar_id = calendar_id
        self.timezone = timezone
        self._service = service

    def _client(self, session: GoogleSession) -> Any:
        if self._service is not None:
            return self._service
        creds = _get_creds(session.credentials_path, session.token_path)
        return build("calendar", "v3", credentials=creds, cache_discovery=False)

    def add_events(self, events: Iterable[Event], session: GoogleSession) -> None:
        service = self._client(session)
        pushed = 0
        for e in events:
            if e.start is None or e.end is None:
                logger.warning("Skipping %r: start/end not parsed (%r, %r)", e.summary, e.raw_start, e.raw_end)
                continue
            service.events().insert(calendarId=self.calendar_id, body=event_to_body(e, self.timezone)).execute()
            pushed += 1
        logger.info("Pushed %d events to Google calendar %s", pushed, self.calendar_id)

    def fetch(self, session: GoogleSession) -> Calendar:
        service = self._client(session)
        meta = service.calendars().get(calendarId=self.calendar_id).execute()
        cal = Calendar(name=meta.get("summary", self.calendar_id), service="google")

        page_token = None
        while True:
            resp = service.events().list(
                calendarId=self.calendar_id,
                singleEvents=True,
                orderBy="startTime",
                pageToken=page_token,
            ).execute()
            for item in resp.get("items", []):
                if item.get("status") == "cancelled":
                    continue
                cal.add_event(item_to_event(item))
            page_token = resp.get("nextPageToken")
            if not page_token:
                break
        return cal
