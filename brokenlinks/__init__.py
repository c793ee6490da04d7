"""Bounded breadth-first broken-link checker.

Starting from one or more seed URLs, this package follows hyperlinks in a
single headless browser page, classifies every link as reachable, broken
(HTTP status >= 400) or errored (no response, timeout, transport failure),
and fails the run when any broken link is found.

Example usage:

    from brokenlinks import BrokenLinksError, CrawlerConfig, check_links_async

    config = CrawlerConfig(
        seed_urls=("https://www.example.com/",),
        max_links=100,
        must_include_domain=True,
    )
    try:
        report = await check_links_async(config)
    except BrokenLinksError as exc:
        for link in exc.report.broken_links():
            print(link.url, link.failure_reason)
    else:
        print(f"{report.total_checked()} links OK")
"""

from __future__ import annotations

import asyncio
from typing import Iterable, Optional

from .checker import BrokenLinksError, LinkChecker, check_links_async
from .config import CrawlerConfig, CrawlerConfigError, ScreenshotOptions, load_config_from_env
from .engine import BrowserEngine, PlaywrightEngine
from .link import CrawlLink
from .report import BrokenLinkReport, HttpReportSink, JsonFileReportSink, ReportSink
from .screenshots import FileScreenshotSink, ScreenshotSink

__version__ = "0.1.0"

__all__ = [
    # Data types
    "CrawlLink",
    "BrokenLinkReport",
    # Configuration
    "CrawlerConfig",
    "CrawlerConfigError",
    "ScreenshotOptions",
    "load_config_from_env",
    # Crawl
    "BrokenLinksError",
    "LinkChecker",
    "check_links",
    "check_links_async",
    # Collaborators
    "BrowserEngine",
    "PlaywrightEngine",
    "ScreenshotSink",
    "FileScreenshotSink",
    "ReportSink",
    "JsonFileReportSink",
    "HttpReportSink",
]


def check_links(
    config: CrawlerConfig,
    *,
    engine: Optional[BrowserEngine] = None,
    screenshots: Optional[ScreenshotSink] = None,
    report_sinks: Iterable[ReportSink] = (),
) -> BrokenLinkReport:
    """Synchronous wrapper for check_links_async."""
    return asyncio.run(
        check_links_async(
            config, engine=engine, screenshots=screenshots, report_sinks=report_sinks
        )
    )
