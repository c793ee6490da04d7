"""Argument parser construction for the CLI."""

from __future__ import annotations

import argparse
from typing import List, Optional

from .config import DOMAIN_ACTIONS, WAIT_CONDITIONS


def _add_crawl_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "urls",
        nargs="*",
        help="Seed URL(s) to start from (default: $BROKENLINKS_URLS)",
    )
    parser.add_argument(
        "--max-links",
        type=int,
        default=None,
        help="Maximum number of links to follow (default: 750)",
    )
    parser.add_argument(
        "--relaunch-interval",
        type=int,
        default=None,
        help="Close and relaunch the browser after this many links (default: 5)",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=None,
        dest="timeout_ms",
        help="Per-navigation timeout in milliseconds (default: 15000)",
    )
    parser.add_argument(
        "--wait-until",
        type=str,
        default=None,
        choices=list(WAIT_CONDITIONS),
        help="Page load event to wait for (default: domcontentloaded)",
    )
    parser.add_argument(
        "--headed",
        action="store_false",
        dest="headless",
        default=None,
        help="Show the browser window",
    )

    domain_group = parser.add_argument_group("Domain restriction")
    domain_group.add_argument(
        "--must-include-domain",
        action="store_true",
        default=None,
        help="Only let document requests within the allowed domain through",
    )
    domain_group.add_argument(
        "--domain",
        type=str,
        default=None,
        help="Allowed domain (default: registrable domain of the seed URLs)",
    )
    domain_group.add_argument(
        "--domain-action",
        type=str,
        default=None,
        choices=list(DOMAIN_ACTIONS),
        help="What to do with off-domain documents: abort them or only log them (default: abort)",
    )

    shot_group = parser.add_argument_group("Screenshots")
    shot_group.add_argument(
        "--screenshot-source",
        action="store_true",
        default=None,
        dest="source_page",
        help="Capture the source page with each followed link highlighted",
    )
    shot_group.add_argument(
        "--screenshot-success",
        action="store_true",
        default=None,
        dest="destination_on_success",
        help="Capture destination pages that loaded successfully",
    )
    shot_group.add_argument(
        "--screenshot-failure",
        action="store_true",
        default=None,
        dest="destination_on_failure",
        help="Capture destination pages of broken links",
    )
    shot_group.add_argument(
        "--screenshots-dir",
        type=str,
        default="screenshots",
        help="Directory for screenshots (default: ./screenshots)",
    )
    shot_group.add_argument(
        "--annotation-style",
        type=str,
        default=None,
        help="CSS border used to highlight links (default: '3px solid #e67e22')",
    )

    out_group = parser.add_argument_group("Report")
    out_group.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help="Write the JSON report to this file",
    )
    out_group.add_argument(
        "--report-url",
        type=str,
        default=None,
        help="POST the JSON report to this URL",
    )
    out_group.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Print the JSON report to stdout",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def parse_check_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="brokenlinks",
        description="Crawl pages breadth-first and report broken links.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Examples:
  # Check a site, following at most 100 links
  brokenlinks https://www.example.com/ --max-links 100

  # Stay on the seed's domain and keep a JSON report
  brokenlinks https://www.example.com/ --must-include-domain -o report.json

  # Capture screenshots of broken destinations
  brokenlinks https://www.example.com/ --screenshot-failure --screenshots-dir shots/

  # Slow single-page app
  brokenlinks https://spa.example.com/ --wait-until networkidle --timeout 30000

Exit status is 0 when no broken links were found and 1 otherwise.
""",
    )
    _add_crawl_args(parser)
    return parser.parse_args(argv)
