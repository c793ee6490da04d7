"""Command-line interface for the broken-link checker."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from dotenv import load_dotenv

from .checker import BrokenLinksError, check_links_async
from .cli_parsers import parse_check_args
from .config import CrawlerConfig, CrawlerConfigError, load_config_from_env
from .report import BrokenLinkReport, HttpReportSink, JsonFileReportSink, ReportSink
from .screenshots import FileScreenshotSink

# Configuration directory for global CLI usage
CONFIG_DIR = Path.home() / ".config" / "brokenlinks"
CONFIG_ENV_FILE = CONFIG_DIR / ".env"

EXIT_OK = 0
EXIT_BROKEN = 1
EXIT_CONFIG = 2
EXIT_INTERRUPTED = 130


def _load_config(
    seed_urls: Sequence[str],
    *,
    cwd: Optional[Path] = None,
    config_env_file: Path = CONFIG_ENV_FILE,
) -> Optional[Path]:
    """Load the first .env found and return its path.

    Search order: ``.env`` in the working directory, then
    ``~/.config/brokenlinks/.env``. Variables already set in the process
    environment are not overridden. Warns when neither the command line nor
    the environment names a seed URL.
    """
    loaded: Optional[Path] = None
    for candidate in ((cwd or Path.cwd()) / ".env", config_env_file):
        if candidate.is_file():
            load_dotenv(candidate)
            logging.debug("Loaded environment from %s", candidate)
            loaded = candidate
            break

    if not seed_urls and not os.getenv("BROKENLINKS_URLS"):
        logging.warning(
            "No seed URLs given. Pass them as arguments or set BROKENLINKS_URLS in %s",
            loaded or config_env_file,
        )
    return loaded


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


def _build_report_sinks(args: argparse.Namespace, config: CrawlerConfig) -> List[ReportSink]:
    sinks: List[ReportSink] = []
    if args.output:
        sinks.append(JsonFileReportSink(args.output))
    if args.report_url:
        sinks.append(HttpReportSink(args.report_url, timeout=config.timeout_ms / 1000))
    return sinks


def _log_broken_links(report: BrokenLinkReport) -> None:
    for link in report.broken_links():
        logging.warning(
            "Broken: %s (from %s) - %s",
            link.url,
            link.parent_url or "seed",
            link.failure_reason,
        )


def _print_report(report: BrokenLinkReport) -> None:
    print(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))


async def _run_check_async(args: argparse.Namespace) -> int:
    """Main async entry point for a link check."""
    try:
        config = load_config_from_env(
            args.urls,
            max_links=args.max_links,
            relaunch_interval=args.relaunch_interval,
            timeout_ms=args.timeout_ms,
            wait_until=args.wait_until,
            headless=args.headless,
            must_include_domain=args.must_include_domain,
            domain=args.domain,
            domain_action=args.domain_action,
            source_page=args.source_page,
            destination_on_success=args.destination_on_success,
            destination_on_failure=args.destination_on_failure,
            annotation_style=args.annotation_style,
        )
    except CrawlerConfigError as exc:
        logging.error("Invalid configuration: %s", exc)
        return EXIT_CONFIG

    screenshots = None
    if config.screenshots.any_enabled:
        screenshots = FileScreenshotSink(args.screenshots_dir, timeout_ms=config.timeout_ms)

    try:
        report = await check_links_async(
            config,
            screenshots=screenshots,
            report_sinks=_build_report_sinks(args, config),
        )
    except BrokenLinksError as exc:
        _log_broken_links(exc.report)
        if args.json_output:
            _print_report(exc.report)
        logging.error("%s", exc)
        return EXIT_BROKEN

    if args.json_output:
        _print_report(report)
    logging.info("No broken links found (%d checked)", report.total_checked())
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point for the brokenlinks command."""
    args = parse_check_args(argv)
    _setup_logging(args.verbose)
    _load_config(args.urls)

    try:
        return asyncio.run(_run_check_async(args))
    except KeyboardInterrupt:
        logging.info("Interrupted")
        return EXIT_INTERRUPTED
    except Exception as exc:
        logging.error("Link check failed: %s", exc)
        if args.verbose:
            logging.exception("Details:")
        return EXIT_BROKEN


if __name__ == "__main__":
    sys.exit(main())
