from __future__ import annotations

import logging
from typing import Optional

import requests
from dotenv import load_dotenv

from .calendar import Calendar
from .config import AppConfig, load_config
from .downloader import download_ics_file
from .manager import SESSIONS, ProviderManager
from .parser import load_calendar

CONFIG_PATH_DEFAULT = "config.yaml"

logger = logging.getLogger(__name__)


def sync_feeds(cfg: AppConfig, session: Optional[requests.Session] = None) -> Calendar:
    """Download every configured feed and merge their events into one calendar."""
    aggregate = Calendar(name="icalsync", service="icalsync")
    http = session or requests.Session()
    try:
        for feed in cfg.feeds:
            try:
                path = download_ics_file(feed.url, cfg.download_dir, session=http, timeout=cfg.timeout_seconds)
                cal = load_calendar(path)
            except Exception as e:
                print(f"Feed {feed.url} failed; continuing without it. Error: {e}")
                continue
            if feed.name:
                cal.name = feed.name
            added = aggregate.merge(cal)
            logger.info("%s (%s): %d events, %d new", cal.name, cal.service, len(cal), added)
    finally:
        if session is None:
            http.close()
    return aggregate


def push_calendar(cfg: AppConfig, calendar: Calendar) -> bool:
    session = SESSIONS[cfg.provider.name]() if cfg.provider.name in SESSIONS else None
    manager = ProviderManager.from_config(cfg.provider)
    if session is None:
        print(f"{cfg.provider.name} push enabled but credentials are not set; skipping push.")
        return False
    manager.add_events(calendar.events, session)
    return True


def run_once(config_path: str = CONFIG_PATH_DEFAULT, push: bool = False, dry_run: bool = False) -> Calendar:
    load_dotenv()
    cfg = load_config(config_path)
    logging.basicConfig(
        level=getattr(logging, cfg.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    calendar = sync_feeds(cfg)
    print(f"Fetched {len(calendar)} unique events from {len(cfg.feeds)} feeds; push={push}, dry_run={dry_run}")

    if push or cfg.provider.enabled:
        if dry_run:
            print(f"[dry-run] would push {len(calendar)} events to {cfg.provider.name}")
        else:
            push_calendar(cfg, calendar)
    return calendar


def main():
    import argparse

    ap = argparse.ArgumentParser(description="Download iCalendar feeds and merge them into one calendar")
    ap.add_argument("--config", default=CONFIG_PATH_DEFAULT)
    ap.add_argument("--push", action="store_true", help="push merged events to the configured provider")
    ap.add_argument("--dry-run", action="store_true")
    args = ap.parse_args()

    run_once(config_path=args.config, push=args.push, dry_run=args.dry_run)


if __name__ == "__main__":
    main()
