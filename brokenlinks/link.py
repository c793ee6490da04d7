"""Data structures representing links under evaluation."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Tuple

OUTCOME_PENDING = "pending"
OUTCOME_SUCCEEDED = "succeeded"
OUTCOME_BROKEN = "broken"
OUTCOME_ERRORED = "errored"


@dataclass(frozen=True, slots=True)
class CrawlLink:
    """A seeded or discovered URL and everything learned about it.

    Instances are immutable: every ``with_*`` helper returns a new value, so
    a link recorded in a report can never be changed by later enrichment.
    """

    url: str
    parent_url: Optional[str] = None
    anchor_text: Optional[str] = None
    status_code: Optional[int] = None
    status_text: Optional[str] = None
    failure_reason: Optional[str] = None
    screenshots: Tuple[str, ...] = ()
    navigated: bool = False

    def with_parent_url(self, parent_url: str) -> CrawlLink:
        return replace(self, parent_url=parent_url)

    def with_anchor_text(self, text: Optional[str]) -> CrawlLink:
        return replace(self, anchor_text=text)

    def with_status(self, code: int, text: Optional[str]) -> CrawlLink:
        return replace(self, status_code=code, status_text=text, navigated=True)

    def with_failure_reason(self, reason: str) -> CrawlLink:
        return replace(self, failure_reason=reason, navigated=True)

    def with_screenshot(self, reference: Optional[str]) -> CrawlLink:
        """Attach a screenshot reference; ``None`` (a failed capture) is ignored."""
        if not reference:
            return self
        return replace(self, screenshots=self.screenshots + (reference,))

    @property
    def is_broken(self) -> bool:
        return bool(self.failure_reason)

    @property
    def outcome(self) -> str:
        if self.failure_reason:
            # Transport errors and missing responses never carry a status.
            return OUTCOME_ERRORED if self.status_code is None else OUTCOME_BROKEN
        if self.navigated:
            return OUTCOME_SUCCEEDED
        return OUTCOME_PENDING

    def to_dict(self) -> Dict[str, Any]:
        """Convert link to JSON-serializable dict."""
        return {
            "url": self.url,
            "parent_url": self.parent_url,
            "anchor_text": self.anchor_text,
            "status_code": self.status_code,
            "status_text": self.status_text,
            "failure_reason": self.failure_reason,
            "outcome": self.outcome,
            "screenshots": list(self.screenshots),
        }
