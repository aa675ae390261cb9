from __future__ import annotations
import hashlib
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlparse

import requests

logger = logging.getLogger(__name__)

HEADERS = {
    "User-Agent": "icalsync/1.0",
    "Accept": "text/calendar, text/plain, */*;q=0.8",
}
_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")
_SLUG_MAX = 80


def ics_filename(url: str) -> str:
    """Deterministic, filesystem-safe file name for a feed URL."""
    p = urlparse(url)
    slug = _UNSAFE.sub("_", f"{p.netloc}{p.path}").strip("._")[:_SLUG_MAX] or "feed"
    digest = hashlib.sha256(url.encode("utf-8")).hexdigest()[:16]
    return f"{slug}-{digest}.ics"


def download_ics_file(
    url: str,
    directory: Union[str, Path] = ".",
    session: Optional[requests.Session] = None,
    timeout: float = 30,
) -> Path:
    target_dir = Path(directory)
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / ics_filename(url)

    http = session or requests.Session()
    try:
        logger.info("Downloading %s", url)
        resp = http.get(url, headers=HEADERS, timeout=timeout, allow_redirects=True)
        resp.raise_for_status()
        body = resp.content
    finally:
        if session is None:
            http.close()

    # Write beside the target, then swap it in so readers never see a partial file.
    fd, tmp_name = tempfile.mkstemp(prefix=".download-", suffix=".ics", dir=target_dir)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(body)
        os.replace(tmp_name, target)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise

    logger.debug("Saved %d bytes from %s to %s", len(body), url, target)
    return target
