"""Lifecycle of the single browser page shared by the crawl.

Before each navigation the manager either fully relaunches the browser (to
bound cache and temp storage growth on long crawls), resets the page to
``about:blank`` (so single-page apps produce a real navigation event), or
hands out the fresh page untouched for the very first link.
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Optional

from .engine import BrowserEngine

LOGGER = logging.getLogger(__name__)

BLANK_PAGE_URL = "about:blank"


class SessionAction(enum.Enum):
    NONE = "none"
    RESET = "reset"
    RELAUNCH = "relaunch"


def plan_session_action(count: int, relaunch_interval: int, max_links: int) -> SessionAction:
    """Decide how to prepare the page for the *count*-th link (1-based).

    Relaunch on every positive multiple of ``relaunch_interval`` except when
    ``count == max_links``, since the crawl is bound to end there.
    """
    if count > 0 and count % relaunch_interval == 0 and count != max_links:
        return SessionAction.RELAUNCH
    if count != 1:
        return SessionAction.RESET
    return SessionAction.NONE


class SessionManager:
    """Sole owner of the browser engine and its current page."""

    def __init__(
        self,
        engine: BrowserEngine,
        *,
        relaunch_interval: int,
        max_links: int,
        timeout_ms: int,
        wait_until: str,
    ):
        self.engine = engine
        self.relaunch_interval = relaunch_interval
        self.max_links = max_links
        self.timeout_ms = timeout_ms
        self.wait_until = wait_until
        self.relaunches = 0
        self.resets = 0
        self._page: Optional[Any] = None

    @property
    def page(self) -> Any:
        if self._page is None:
            raise RuntimeError("Session has not been started")
        return self._page

    async def start(self) -> Any:
        await self.engine.launch()
        self._page = await self.engine.get_page()
        return self._page

    async def prepare(self, count: int) -> Any:
        """Return a page ready for the *count*-th navigation."""
        action = plan_session_action(count, self.relaunch_interval, self.max_links)
        if action is SessionAction.RELAUNCH:
            LOGGER.info("Relaunching browser before link #%d", count)
            await self.engine.close()
            await self.engine.launch()
            self._page = await self.engine.get_page()
            self.relaunches += 1
        elif action is SessionAction.RESET:
            await self.reset_page()
        return self.page

    async def reset_page(self) -> None:
        """Navigate to a blank page; failures are logged and ignored."""
        try:
            await self.page.goto(
                BLANK_PAGE_URL, wait_until=self.wait_until, timeout=self.timeout_ms
            )
            self.resets += 1
        except Exception as exc:
            LOGGER.warning("Unable to open a blank page: %s", exc)

    async def shutdown(self) -> None:
        self._page = None
        await self.engine.close()
