"""Screenshot capture for source and destination pages.

Capture is always best effort: ``capture_screenshot`` logs and returns
``None`` instead of raising, so a failed screenshot can never change a link's
classification or stop the crawl.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, List, Optional, Protocol
from urllib.parse import urlparse

LOGGER = logging.getLogger(__name__)

# Keep names safe for object stores such as S3.
_UNSAFE_NAME_CHARS = re.compile(r"[^a-zA-Z0-9\-_.!*'()]+")


class ScreenshotSink(Protocol):
    """Store a screenshot of *page* and return a reference to the artifact."""

    async def capture(self, page: Any, name: str, suffix: str) -> str: ...


def screenshot_file_name(url: Optional[str], default: str = "loaded") -> str:
    """Derive a screenshot name from the last path segment of *url*."""
    if not url:
        return default
    path = urlparse(url).path.rstrip("/")
    name = path.split("/")[-1] if path else "index"
    return _UNSAFE_NAME_CHARS.sub("", name)


class FileScreenshotSink:
    """Write PNG screenshots into a local directory.

    Files are numbered in capture order (``0001-about-succeeded.png``) so the
    artifacts of one crawl sort chronologically.
    """

    def __init__(self, directory: str | Path, *, timeout_ms: Optional[int] = None, full_page: bool = False):
        self.directory = Path(directory).expanduser()
        self.timeout_ms = timeout_ms
        self.full_page = full_page
        self.captured: List[str] = []

    async def capture(self, page: Any, name: str, suffix: str) -> str:
        self.directory.mkdir(parents=True, exist_ok=True)
        index = len(self.captured) + 1
        path = self.directory / f"{index:04d}-{name or 'loaded'}-{suffix}.png"
        await page.screenshot(path=str(path), full_page=self.full_page, timeout=self.timeout_ms)
        self.captured.append(str(path))
        LOGGER.debug("Saved screenshot %s", path)
        return str(path)


async def capture_screenshot(
    sink: Optional[ScreenshotSink],
    page: Any,
    name: str,
    suffix: str,
) -> Optional[str]:
    """Capture through *sink*, returning ``None`` when there is no sink or capture fails."""
    if sink is None:
        return None
    try:
        return await sink.capture(page, name, suffix)
    except Exception as exc:
        LOGGER.warning("Unable to capture screenshot %s-%s: %s", name, suffix, exc)
        return None
