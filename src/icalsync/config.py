from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional
import yaml

@dataclass
class FeedConfig:
    url: str
    name: Optional[str] = None   # overrides X-WR-CALNAME when set

@dataclass
class ProviderConfig:
    name: str
    enabled: bool
    calendar_id: str
    calendar_name: str
    timezone: str

@dataclass
class AppConfig:
    download_dir: str
    timeout_seconds: float
    log_level: str
    provider: ProviderConfig
    feeds: List[FeedConfig] = field(default_factory=list)

def _load_feeds(raw: Any) -> List[FeedConfig]:
    feeds: List[FeedConfig] = []
    for item in raw or []:
        if isinstance(item, str):
            feeds.append(FeedConfig(url=item))
            continue
        if not isinstance(item, dict) or not item.get("url"):
            raise ValueError(f"Feed entry must be a URL or a mapping with 'url': {item!r}")
        name = item.get("name")
        feeds.append(FeedConfig(url=str(item["url"]), name=str(name) if name else None))
    return feeds

def load_config(path: str) -> AppConfig:
    p = Path(path)
    data: Dict[str, Any] = yaml.safe_load(p.read_text(encoding="utf-8")) or {}

    provider = data.get("provider", {})

    return AppConfig(
        download_dir=str(data.get("download_dir", "feeds")),
        timeout_seconds=float(data.get("timeout_seconds", 30)),
        log_level=str(data.get("log_level", "INFO")).upper(),
        provider=ProviderConfig(
            name=str(provider.get("name", "google")),
            enabled=bool(provider.get("enabled", False)),
            calendar_id=str(provider.get("calendar_id", "primary")),
            calendar_name=str(provider.get("calendar_name", "")),
            timezone=str(provider.get("timezone", "UTC")),
        ),
        feeds=_load_feeds(data.get("feeds")),
    )
