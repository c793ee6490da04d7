"""Broken-link report and the sinks it can be attached to."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Tuple

import httpx

from .link import CrawlLink

LOGGER = logging.getLogger(__name__)


class BrokenLinkReport:
    """Append-only log of classified links.

    Counters are projections of the log, so they can never disagree with it.
    """

    def __init__(self) -> None:
        self._entries: List[CrawlLink] = []

    @property
    def entries(self) -> Tuple[CrawlLink, ...]:
        return tuple(self._entries)

    def add_link(self, link: CrawlLink) -> bool:
        """Record *link*; malformed input is logged and dropped, never raised."""
        if not isinstance(link, CrawlLink) or not link.url:
            LOGGER.warning("Unable to add link to broken link checker report: %r", link)
            return False
        self._entries.append(link)
        return True

    def total_checked(self) -> int:
        return len(self._entries)

    def total_broken(self) -> int:
        return sum(1 for link in self._entries if link.is_broken)

    def broken_links(self) -> List[CrawlLink]:
        return [link for link in self._entries if link.is_broken]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_checked": self.total_checked(),
            "total_broken": self.total_broken(),
            "links": [link.to_dict() for link in self._entries],
        }


class ReportSink(Protocol):
    """Destination a finished report is attached to."""

    async def attach(self, report: BrokenLinkReport) -> None: ...


class JsonFileReportSink:
    """Write the report as JSON to a file."""

    def __init__(self, path: str | Path, *, indent: Optional[int] = 2):
        self.path = Path(path).expanduser()
        self.indent = indent

    async def attach(self, report: BrokenLinkReport) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps(report.to_dict(), indent=self.indent, ensure_ascii=False),
            encoding="utf-8",
        )
        LOGGER.info("Wrote report to %s", self.path)


class HttpReportSink:
    """POST the report as JSON to an HTTP endpoint."""

    def __init__(
        self,
        url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = 15.0,
    ):
        self.url = url
        self.headers = headers or {}
        self.timeout = timeout

    async def attach(self, report: BrokenLinkReport) -> None:
        async with httpx.AsyncClient(timeout=self.timeout, headers=self.headers) as client:
            response = await client.post(self.url, json=report.to_dict())
            response.raise_for_status()
        LOGGER.info("Posted report to %s", self.url)
