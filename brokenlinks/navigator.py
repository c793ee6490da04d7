"""Navigation, request interception and outcome classification.

One ``Navigator.visit`` call per dequeued link. Every outcome is terminal and
mutually exclusive:

- the navigation raised or timed out: errored, ``failure_reason`` is the error
- no response, or a response without a usable status: errored
- status below 400: succeeded, status fields populated
- status 400 or above: broken, status fields and ``failure_reason`` populated
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Iterable, Optional, Tuple
from urllib.parse import urlparse

import tldextract

from .config import CrawlerConfig
from .link import CrawlLink
from .screenshots import ScreenshotSink, capture_screenshot, screenshot_file_name

LOGGER = logging.getLogger(__name__)

ROUTE_PATTERN = "**/*"
BROKEN_STATUS_THRESHOLD = 400
NULL_RESPONSE_REASON = "Received null or undefined response"


def _normalize_host(host: Optional[str]) -> str:
    """Normalize hostname by removing port and lowercasing."""
    if not host:
        return ""
    return host.split(":")[0].lower().rstrip(".")


@lru_cache(maxsize=256)
def registrable_domain(host: str) -> Optional[str]:
    """Extract the registrable domain (``www.example.co.uk`` -> ``example.co.uk``)."""
    if not host:
        return None
    extracted = tldextract.extract(host)
    if not extracted.domain or not extracted.suffix:
        return host
    return f"{extracted.domain}.{extracted.suffix}"


def host_matches(host: str, domain: str) -> bool:
    """True when *host* is *domain* or one of its subdomains."""
    host = _normalize_host(host)
    domain = _normalize_host(domain)
    return bool(domain) and (host == domain or host.endswith("." + domain))


class RequestPolicy:
    """Route handler deciding which requests a navigation may issue.

    Only ``document`` requests (top-level and frame navigations) continue;
    every other resource type is aborted. With an allow-list configured,
    off-domain documents are aborted when ``action == "abort"`` and merely
    logged when ``action == "log"``.
    """

    def __init__(self, allowed_domains: Iterable[str] = (), *, action: str = "abort"):
        self.allowed_domains: Tuple[str, ...] = tuple(
            _normalize_host(domain) for domain in allowed_domains if domain
        )
        self.action = action

    @classmethod
    def from_config(cls, config: CrawlerConfig) -> RequestPolicy:
        if not config.must_include_domain:
            return cls()
        if config.domain:
            domains: Iterable[str] = [config.domain]
        else:
            hosts = (_normalize_host(urlparse(url).hostname) for url in config.seed_urls)
            domains = sorted({d for d in (registrable_domain(h) for h in hosts) if d})
        LOGGER.info("Restricting document requests to: %s", ", ".join(domains))
        return cls(domains, action=config.domain_action)

    @property
    def enforcing(self) -> bool:
        return bool(self.allowed_domains)

    def is_allowed_domain(self, url: str) -> bool:
        if not self.enforcing:
            return True
        host = urlparse(url).hostname or ""
        return any(host_matches(host, domain) for domain in self.allowed_domains)

    def should_continue(self, resource_type: str, url: str) -> bool:
        if resource_type != "document":
            return False
        if self.is_allowed_domain(url):
            return True
        if self.action == "log":
            LOGGER.warning("Off-domain document request allowed: %s", url)
            return True
        LOGGER.debug("Aborting off-domain document request: %s", url)
        return False

    async def handle(self, route: Any) -> None:
        request = route.request
        if self.should_continue(request.resource_type, request.url):
            await route.continue_()
        else:
            await route.abort()


@dataclass(frozen=True)
class NavigationOutcome:
    """Classified link plus what the crawl loop needs to know about it."""

    link: CrawlLink
    loaded: bool = False
    failure_detail: Optional[str] = None


def classify_error(link: CrawlLink, error: BaseException) -> NavigationOutcome:
    return NavigationOutcome(
        link=link.with_failure_reason(str(error)),
        failure_detail=f"Failed to load url: {link.url}. {error}",
    )


def classify_response(link: CrawlLink, response: Any) -> NavigationOutcome:
    """Classify a navigation that returned (possibly without a response)."""
    status = getattr(response, "status", None) if response is not None else None
    if not status:
        return NavigationOutcome(
            link=link.with_failure_reason(NULL_RESPONSE_REASON),
            failure_detail=f"Failed to receive network response for url: {link.url}",
        )

    status_text = getattr(response, "status_text", "") or ""
    link = link.with_status(status, status_text)
    if status < BROKEN_STATUS_THRESHOLD:
        return NavigationOutcome(link=link, loaded=True)

    status_string = f"Status code: {status} {status_text}"
    return NavigationOutcome(
        link=link.with_failure_reason(status_string),
        failure_detail=f"Failed to load url: {link.url}. {status_string}",
    )


class Navigator:
    """Navigate a prepared page to a link and classify the result."""

    def __init__(
        self,
        *,
        timeout_ms: int,
        wait_until: str,
        policy: Optional[RequestPolicy] = None,
        screenshots: Optional[ScreenshotSink] = None,
        capture_on_success: bool = False,
        capture_on_failure: bool = False,
    ):
        self.timeout_ms = timeout_ms
        self.wait_until = wait_until
        self.policy = policy or RequestPolicy()
        self.screenshots = screenshots
        self.capture_on_success = capture_on_success
        self.capture_on_failure = capture_on_failure

    @classmethod
    def from_config(
        cls, config: CrawlerConfig, screenshots: Optional[ScreenshotSink] = None
    ) -> Navigator:
        return cls(
            timeout_ms=config.timeout_ms,
            wait_until=config.wait_until,
            policy=RequestPolicy.from_config(config),
            screenshots=screenshots,
            capture_on_success=config.screenshots.destination_on_success,
            capture_on_failure=config.screenshots.destination_on_failure,
        )

    async def visit(self, page: Any, link: CrawlLink) -> NavigationOutcome:
        LOGGER.debug("Navigating to %s", link.url)
        try:
            # Drop handlers left by the previous link before installing ours.
            await page.unroute(ROUTE_PATTERN)
            await page.route(ROUTE_PATTERN, self.policy.handle)
            response = await page.goto(
                link.url, wait_until=self.wait_until, timeout=self.timeout_ms
            )
        except Exception as exc:
            outcome = classify_error(link, exc)
        else:
            outcome = classify_response(link, response)

        outcome = await self._attach_screenshot(page, outcome)
        LOGGER.debug(
            "%s -> %s (%s)",
            link.url,
            outcome.link.outcome,
            outcome.link.failure_reason or outcome.link.status_code,
        )
        return outcome

    async def _attach_screenshot(self, page: Any, outcome: NavigationOutcome) -> NavigationOutcome:
        link = outcome.link
        if link.status_code is None:
            return outcome
        if outcome.loaded and self.capture_on_success:
            suffix = "succeeded"
        elif not outcome.loaded and self.capture_on_failure:
            suffix = "failed"
        else:
            return outcome

        reference = await capture_screenshot(
            self.screenshots, page, screenshot_file_name(link.url), suffix
        )
        return NavigationOutcome(
            link=link.with_screenshot(reference),
            loaded=outcome.loaded,
            failure_detail=outcome.failure_detail,
        )
