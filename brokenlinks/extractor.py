"""Outbound link discovery on a loaded page."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AbstractSet, Any, AsyncIterator, Dict, List, Optional, Set
from urllib.parse import urldefrag, urlparse

from .config import DEFAULT_ANNOTATION_STYLE
from .link import CrawlLink
from .screenshots import ScreenshotSink, capture_screenshot, screenshot_file_name

LOGGER = logging.getLogger(__name__)

# Snapshot of every anchor in document order; ``a.href`` is already absolute.
COLLECT_ANCHORS_JS = """
() => Array.from(document.getElementsByTagName('a'), (a) => ({
    href: a.href ? String(a.href).trim() : '',
    text: a.text ? a.text.trim() : '',
}))
"""

HIGHLIGHT_ANCHOR_JS = """
([index, style]) => {
    const el = document.getElementsByTagName('a')[index];
    if (!el) return null;
    const original = el.style.border;
    el.style.border = style;
    if (el.scrollIntoViewIfNeeded) el.scrollIntoViewIfNeeded();
    else el.scrollIntoView();
    return original;
}
"""

RESTORE_ANCHOR_JS = """
([index, border]) => {
    const el = document.getElementsByTagName('a')[index];
    if (el) el.style.border = border;
}
"""


def normalize_url(url: Optional[str]) -> str:
    """Trim whitespace and drop the fragment."""
    if not url:
        return ""
    stripped = url.strip()
    if not stripped:
        return ""
    return urldefrag(stripped)[0]


def is_http_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


async def evaluate_with_timeout(
    page: Any, script: str, arg: Any = None, timeout_ms: Optional[int] = None
) -> Any:
    """Run *script* in the page, raising asyncio.TimeoutError after *timeout_ms*."""
    timeout = timeout_ms / 1000 if timeout_ms else None
    return await asyncio.wait_for(page.evaluate(script, arg), timeout)


@asynccontextmanager
async def highlighted_anchor(
    page: Any, index: int, style: str, timeout_ms: Optional[int] = None
) -> AsyncIterator[None]:
    """Outline the *index*-th anchor for the duration of the block.

    The original border is restored on every exit path, including when the
    body raises.
    """
    original = await evaluate_with_timeout(page, HIGHLIGHT_ANCHOR_JS, [index, style], timeout_ms)
    try:
        yield
    finally:
        try:
            await evaluate_with_timeout(
                page, RESTORE_ANCHOR_JS, [index, original or ""], timeout_ms
            )
        except Exception as exc:
            LOGGER.warning("Unable to restore anchor %d style: %s", index, exc)


class LinkExtractor:
    """Turn the anchors of a loaded page into new, unseen link candidates."""

    def __init__(
        self,
        max_links: int,
        *,
        screenshots: Optional[ScreenshotSink] = None,
        capture_source_page: bool = False,
        annotation_style: str = DEFAULT_ANNOTATION_STYLE,
        timeout_ms: Optional[int] = None,
    ):
        self.max_links = max_links
        self.timeout_ms = timeout_ms
        self.screenshots = screenshots
        self.capture_source_page = capture_source_page and screenshots is not None
        self.annotation_style = annotation_style

    async def extract(
        self,
        page: Any,
        source_url: str,
        seen: AbstractSet[str],
    ) -> List[CrawlLink]:
        """Return candidates found on *page*, each with ``parent_url=source_url``.

        Anchors are accepted when their href is a non-empty absolute http(s)
        URL not already in *seen*. Scanning stops once ``seen`` plus the
        accepted candidates reaches the discovery cap.
        """
        anchors: List[Dict[str, Any]] = (
            await evaluate_with_timeout(page, COLLECT_ANCHORS_JS, timeout_ms=self.timeout_ms) or []
        )
        claimed: Set[str] = set()
        found: List[CrawlLink] = []

        if len(seen) >= self.max_links:
            return found

        for index, anchor in enumerate(anchors):
            url = normalize_url(anchor.get("href"))
            if not url or not is_http_url(url):
                continue
            if url in seen or url in claimed:
                continue
            claimed.add(url)

            link = (
                CrawlLink(url=url)
                .with_parent_url(source_url)
                .with_anchor_text(anchor.get("text") or "")
            )
            if self.capture_source_page:
                link = link.with_screenshot(await self._capture_source(page, index, url))
            found.append(link)

            if len(seen) + len(found) >= self.max_links:
                break

        LOGGER.debug("Discovered %d new link(s) on %s", len(found), source_url)
        return found

    async def _capture_source(self, page: Any, index: int, url: str) -> Optional[str]:
        try:
            async with highlighted_anchor(page, index, self.annotation_style, self.timeout_ms):
                return await capture_screenshot(
                    self.screenshots, page, screenshot_file_name(url), "sourcePage"
                )
        except Exception as exc:
            LOGGER.warning("Unable to annotate anchor for %s: %s", url, exc)
            return None
