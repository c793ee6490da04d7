"""Browser engine backed by Playwright.

The crawl core only needs three lifecycle operations (launch, close, get the
current page) plus the page surface used for navigation: ``goto``,
``route``/``unroute``, ``evaluate`` and ``screenshot``. Anything providing
those can stand in for Playwright, which is how the tests run without a
browser.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

LOGGER = logging.getLogger(__name__)


class BrowserEngine(Protocol):
    """Lifecycle of the single browser session used by a crawl."""

    async def launch(self) -> None: ...

    async def close(self) -> None: ...

    async def get_page(self) -> Any: ...


class PlaywrightEngine:
    """One Chromium process, one context, one page.

    ``close`` tears everything down, including the Playwright driver, so a
    following ``launch`` starts from a fresh process with empty caches and
    temporary storage.
    """

    def __init__(
        self,
        *,
        headless: bool = True,
        user_agent: Optional[str] = None,
        viewport: Optional[dict] = None,
    ):
        self.headless = headless
        self.user_agent = user_agent
        self.viewport = viewport or {"width": 1280, "height": 900}
        self._playwright = None
        self._browser = None
        self._context = None
        self._page = None

    @property
    def is_running(self) -> bool:
        return self._browser is not None

    async def launch(self) -> None:
        try:
            from playwright.async_api import async_playwright
        except ImportError as exc:
            raise RuntimeError(
                "Playwright is required for link checking. "
                "Install it with: pip install playwright && playwright install chromium"
            ) from exc

        if self.is_running:
            await self.close()

        context_kwargs: dict = {"viewport": self.viewport}
        if self.user_agent:
            context_kwargs["user_agent"] = self.user_agent
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(headless=self.headless)
            self._context = await self._browser.new_context(**context_kwargs)
        except Exception:
            await self.close()
            raise
        LOGGER.debug("Launched Chromium (headless=%s)", self.headless)

    async def get_page(self) -> Any:
        if self._context is None:
            raise RuntimeError("Browser is not running; call launch() first")
        if self._page is None or self._page.is_closed():
            self._page = await self._context.new_page()
        return self._page

    async def close(self) -> None:
        try:
            if self._browser is not None:
                await self._browser.close()
        except Exception as exc:
            LOGGER.warning("Error while closing browser: %s", exc)
        finally:
            self._page = None
            self._context = None
            self._browser = None
            if self._playwright is not None:
                try:
                    await self._playwright.stop()
                except Exception as exc:
                    LOGGER.warning("Error while stopping Playwright: %s", exc)
                self._playwright = None
