"""Breadth-first broken-link crawl.

The loop is strictly sequential, one link in flight at a time:

    seed frontier -> dequeue -> prepare page (relaunch / reset)
    -> navigate + classify -> record -> extract new links if loaded
    -> repeat until the frontier is drained

Only the aggregate "N broken links" condition escapes as an exception;
screenshot, reset, extraction and report-attach failures are logged and the
crawl carries on.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from .config import CrawlerConfig
from .engine import BrowserEngine, PlaywrightEngine
from .extractor import LinkExtractor, normalize_url
from .frontier import Frontier
from .navigator import NavigationOutcome, Navigator
from .report import BrokenLinkReport, ReportSink
from .screenshots import ScreenshotSink
from .session import SessionManager

LOGGER = logging.getLogger(__name__)


class BrokenLinksError(Exception):
    """Raised when a crawl finishes with at least one broken link."""

    def __init__(self, message: str, report: BrokenLinkReport):
        self.report = report
        self.total_checked = report.total_checked()
        self.total_broken = report.total_broken()
        super().__init__(message)


class LinkChecker:
    """Run one crawl over ``config.seed_urls``.

    Args:
        config: Crawl settings.
        engine: Browser engine; defaults to a Playwright Chromium engine.
        screenshots: Where screenshots go. Without a sink the screenshot
            toggles have no effect.
        report_sinks: Destinations the finished report is attached to.
    """

    def __init__(
        self,
        config: CrawlerConfig,
        *,
        engine: Optional[BrowserEngine] = None,
        screenshots: Optional[ScreenshotSink] = None,
        report_sinks: Iterable[ReportSink] = (),
    ):
        self.config = config
        self.frontier = Frontier(config.max_links)
        self.report = BrokenLinkReport()
        self.report_sinks: List[ReportSink] = list(report_sinks)
        self.sessions = SessionManager(
            engine or PlaywrightEngine(headless=config.headless),
            relaunch_interval=config.relaunch_interval,
            max_links=config.max_links,
            timeout_ms=config.timeout_ms,
            wait_until=config.wait_until,
        )
        self.navigator = Navigator.from_config(config, screenshots)
        self.extractor = LinkExtractor(
            config.max_links,
            screenshots=screenshots,
            capture_source_page=config.screenshots.source_page,
            annotation_style=config.screenshots.annotation_style,
            timeout_ms=config.timeout_ms,
        )
        self.last_failure: Optional[str] = None

        if screenshots is None and config.screenshots.any_enabled:
            LOGGER.warning("Screenshot capture is enabled but no screenshot sink was given")

    async def run(self) -> BrokenLinkReport:
        """Crawl to exhaustion and return the report.

        Raises:
            BrokenLinksError: If any checked link is broken or errored.
        """
        self.frontier.seed(normalize_url(url) for url in self.config.seed_urls)
        LOGGER.info(
            "Starting link check: %d seed URL(s), max_links=%d",
            len(self.frontier),
            self.config.max_links,
        )

        try:
            await self.sessions.start()
            while (link := self.frontier.dequeue()) is not None:
                page = await self.sessions.prepare(self.frontier.dequeued)
                outcome = await self.navigator.visit(page, link)
                self._record(outcome)
                if outcome.loaded and not self.frontier.is_full:
                    await self._discover(page, outcome.link.url)
        finally:
            await self.sessions.shutdown()

        await self._attach_report()
        LOGGER.info("Total links checked: %d", self.report.total_checked())

        total_broken = self.report.total_broken()
        if total_broken != 0:
            raise BrokenLinksError(
                f"{total_broken} broken link(s) detected. {self.last_failure}",
                self.report,
            )
        return self.report

    def _record(self, outcome: NavigationOutcome) -> None:
        if outcome.failure_detail:
            self.last_failure = outcome.failure_detail
        self.report.add_link(outcome.link)

    async def _discover(self, page, source_url: str) -> None:
        try:
            candidates = await self.extractor.extract(page, source_url, self.frontier.seen)
        except Exception as exc:
            LOGGER.warning("Unable to grab urls on page: %s. %s", source_url, exc)
            return
        admitted = self.frontier.offer(candidates)
        LOGGER.debug(
            "Queued %d link(s) from %s (%d seen, %d pending)",
            admitted,
            source_url,
            self.frontier.seen_count,
            len(self.frontier),
        )

    async def _attach_report(self) -> None:
        for sink in self.report_sinks:
            try:
                await sink.attach(self.report)
            except Exception as exc:
                LOGGER.warning("Unable to attach report to %s: %s", type(sink).__name__, exc)


async def check_links_async(
    config: CrawlerConfig,
    *,
    engine: Optional[BrowserEngine] = None,
    screenshots: Optional[ScreenshotSink] = None,
    report_sinks: Iterable[ReportSink] = (),
) -> BrokenLinkReport:
    """Crawl from the configured seeds and return the report.

    Raises:
        BrokenLinksError: If one or more broken links were found. The
            report is available as ``exc.report``.
    """
    checker = LinkChecker(
        config, engine=engine, screenshots=screenshots, report_sinks=report_sinks
    )
    return await checker.run()
