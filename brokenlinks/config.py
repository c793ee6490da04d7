"""Crawl configuration and environment loading.

All values are fixed when a crawl starts. Environment variables are read at
call time (inside ``load_config_from_env``) so tests can monkeypatch them and
late ``.env`` loading in the CLI is honoured.

Example usage:

    from brokenlinks.config import CrawlerConfig, ScreenshotOptions

    config = CrawlerConfig(
        seed_urls=("https://www.example.com/",),
        max_links=100,
        must_include_domain=True,
        domain="example.com",
        screenshots=ScreenshotOptions(destination_on_failure=True),
    )
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple
from urllib.parse import urlparse

LOGGER = logging.getLogger(__name__)

WAIT_CONDITIONS: Tuple[str, ...] = ("load", "domcontentloaded", "networkidle", "commit")
DOMAIN_ACTIONS: Tuple[str, ...] = ("abort", "log")

DEFAULT_MAX_LINKS = 750
DEFAULT_RELAUNCH_INTERVAL = 5
DEFAULT_TIMEOUT_MS = 15_000
DEFAULT_WAIT_UNTIL = "domcontentloaded"
DEFAULT_ANNOTATION_STYLE = "3px solid #e67e22"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", ""})


class CrawlerConfigError(ValueError):
    """Raised when crawl configuration is invalid."""


@dataclass(frozen=True)
class ScreenshotOptions:
    """Independent toggles for screenshot capture."""

    source_page: bool = False
    destination_on_success: bool = False
    destination_on_failure: bool = False
    annotation_style: str = DEFAULT_ANNOTATION_STYLE

    @property
    def any_enabled(self) -> bool:
        return self.source_page or self.destination_on_success or self.destination_on_failure


@dataclass(frozen=True)
class CrawlerConfig:
    """Settings for a single broken-link crawl.

    Attributes:
        seed_urls: Absolute http(s) URLs the crawl starts from, in order.
        max_links: Discovery cap; no more than this many URLs are ever admitted.
        relaunch_interval: Fully relaunch the browser every this many links.
        timeout_ms: Per-navigation timeout, also used for resets and screenshots.
        wait_until: Playwright load state a navigation waits for.
        must_include_domain: Restrict document requests to an allow-list.
        domain: Allowed domain. Defaults to the seeds' registrable domains.
        domain_action: ``"abort"`` rejects off-domain document requests,
            ``"log"`` only reports them and lets the navigation continue.
        screenshots: Screenshot toggles and the annotation style.
        headless: Launch the browser without a window.
    """

    seed_urls: Tuple[str, ...]
    max_links: int = DEFAULT_MAX_LINKS
    relaunch_interval: int = DEFAULT_RELAUNCH_INTERVAL
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    wait_until: str = DEFAULT_WAIT_UNTIL
    must_include_domain: bool = False
    domain: Optional[str] = None
    domain_action: str = "abort"
    screenshots: ScreenshotOptions = field(default_factory=ScreenshotOptions)
    headless: bool = True

    def __post_init__(self) -> None:
        # Accept any sequence but store a tuple so the config stays hashable.
        object.__setattr__(self, "seed_urls", tuple(self.seed_urls))
        if not self.seed_urls:
            raise CrawlerConfigError("At least one seed URL is required")
        for url in self.seed_urls:
            parsed = urlparse(url)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise CrawlerConfigError(f"Seed URL must be an absolute http(s) URL: {url!r}")
        if self.max_links < 1:
            raise CrawlerConfigError("max_links must be greater than 0")
        if self.relaunch_interval < 1:
            raise CrawlerConfigError("relaunch_interval must be greater than 0")
        if self.timeout_ms < 1:
            raise CrawlerConfigError("timeout_ms must be greater than 0")
        if self.wait_until not in WAIT_CONDITIONS:
            raise CrawlerConfigError(
                f"wait_until must be one of {', '.join(WAIT_CONDITIONS)}; got {self.wait_until!r}"
            )
        if self.domain_action not in DOMAIN_ACTIONS:
            raise CrawlerConfigError(
                f"domain_action must be one of {', '.join(DOMAIN_ACTIONS)}; got {self.domain_action!r}"
            )


def _parse_bool(name: str, value: str) -> bool:
    candidate = value.strip().lower()
    if candidate in _TRUE_VALUES:
        return True
    if candidate in _FALSE_VALUES:
        return False
    raise CrawlerConfigError(f"{name} must be a boolean, got {value!r}")


def _parse_int(name: str, value: str) -> int:
    try:
        return int(value.strip())
    except ValueError as exc:
        raise CrawlerConfigError(f"{name} must be an integer, got {value!r}") from exc


def _split_urls(value: str) -> Tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


def _read_env(environ: Mapping[str, str]) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    screenshot_values: Dict[str, Any] = {}

    raw = environ.get("BROKENLINKS_URLS")
    if raw:
        values["seed_urls"] = _split_urls(raw)

    for key, name in (
        ("max_links", "BROKENLINKS_MAX_LINKS"),
        ("relaunch_interval", "BROKENLINKS_RELAUNCH_INTERVAL"),
        ("timeout_ms", "BROKENLINKS_TIMEOUT_MS"),
    ):
        raw = environ.get(name)
        if raw:
            values[key] = _parse_int(name, raw)

    for key, name in (
        ("wait_until", "BROKENLINKS_WAIT_UNTIL"),
        ("domain", "BROKENLINKS_DOMAIN"),
        ("domain_action", "BROKENLINKS_DOMAIN_ACTION"),
    ):
        raw = environ.get(name)
        if raw:
            values[key] = raw.strip()

    for key, name in (
        ("must_include_domain", "BROKENLINKS_MUST_INCLUDE_DOMAIN"),
        ("headless", "BROKENLINKS_HEADLESS"),
    ):
        raw = environ.get(name)
        if raw is not None:
            values[key] = _parse_bool(name, raw)

    for key, name in (
        ("source_page", "BROKENLINKS_SCREENSHOT_SOURCE"),
        ("destination_on_success", "BROKENLINKS_SCREENSHOT_SUCCESS"),
        ("destination_on_failure", "BROKENLINKS_SCREENSHOT_FAILURE"),
    ):
        raw = environ.get(name)
        if raw is not None:
            screenshot_values[key] = _parse_bool(name, raw)

    raw = environ.get("BROKENLINKS_ANNOTATION_STYLE")
    if raw:
        screenshot_values["annotation_style"] = raw.strip()

    values["screenshots"] = screenshot_values
    return values


def load_config_from_env(
    seed_urls: Optional[Sequence[str]] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
    **overrides: Any,
) -> CrawlerConfig:
    """Build a CrawlerConfig from ``BROKENLINKS_*`` variables.

    Explicit arguments win over the environment when they are not ``None``.
    Screenshot toggles may be overridden with the ``ScreenshotOptions`` field
    names (``source_page``, ``destination_on_success``, ...).

    Raises:
        CrawlerConfigError: If a variable cannot be parsed or the resulting
            configuration is invalid.
    """
    values = _read_env(os.environ if environ is None else environ)
    screenshot_values: Dict[str, Any] = values.pop("screenshots")

    if seed_urls:
        values["seed_urls"] = tuple(seed_urls)

    screenshot_fields = set(ScreenshotOptions.__dataclass_fields__)
    for key, value in overrides.items():
        if value is None:
            continue
        if key == "screenshots":
            screenshot_values.update(asdict(value))
        elif key in screenshot_fields:
            screenshot_values[key] = value
        elif key in CrawlerConfig.__dataclass_fields__:
            values[key] = value
        else:
            raise CrawlerConfigError(f"Unknown configuration option: {key}")

    values.setdefault("seed_urls", ())
    config = CrawlerConfig(screenshots=ScreenshotOptions(**screenshot_values), **values)
    LOGGER.debug("Loaded crawl configuration: %s", config)
    return config
