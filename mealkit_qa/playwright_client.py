"""
Direct Playwright Client
========================

Launches Playwright in-process and owns the browser, the single context and
the single page one funnel test drives. The context carries the suite's
viewport, action and navigation timeouts, and optional video recording.

Usage:
    client = PlaywrightClient(viewport={"width": 1920, "height": 1080})
    await client.connect()
    try:
        await client.page.goto("https://www.cookunity.com")
    finally:
        await client.close()
"""

import logging
import os
from typing import Dict, Optional

from playwright.async_api import async_playwright, Browser, BrowserContext, Page, Playwright

logger = logging.getLogger(__name__)


class PlaywrightClient:
    """Browser, context and page for one test run."""

    def __init__(
        self,
        browser_type: str = "chromium",
        headless: bool = True,
        timeout: float = 10.0,
        navigation_timeout: float = 60.0,
        viewport: Optional[Dict[str, int]] = None,
        video_dir: Optional[str] = None,
    ):
        """
        Initialize Playwright client.

        Args:
            browser_type: Browser to use (chromium, firefox, webkit)
            headless: Run in headless mode
            timeout: Default action timeout in seconds
            navigation_timeout: Default navigation timeout in seconds
            viewport: Viewport size for the context
            video_dir: Record a video per page into this directory
        """
        self.browser_type = browser_type
        self.headless = headless
        self.timeout = timeout
        self.navigation_timeout = navigation_timeout
        self.viewport = viewport
        self.video_dir = video_dir

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    async def connect(self):
        """Launch the browser and open the context and page."""
        self._playwright = await async_playwright().start()
        try:
            if self.browser_type == "firefox":
                self._browser = await self._playwright.firefox.launch(headless=self.headless)
            elif self.browser_type == "webkit":
                self._browser = await self._playwright.webkit.launch(headless=self.headless)
            else:
                self._browser = await self._playwright.chromium.launch(headless=self.headless)

            self._context = await self._new_context()
            self._page = await self._context.new_page()
        except Exception:
            await self.close()
            raise
        logger.debug(f"Launched {self.browser_type} (headless={self.headless})")

    async def _new_context(self) -> BrowserContext:
        options = {}
        if self.viewport:
            options["viewport"] = self.viewport
        if self.video_dir:
            os.makedirs(self.video_dir, exist_ok=True)
            options["record_video_dir"] = self.video_dir

        context = await self._browser.new_context(**options)
        context.set_default_timeout(self.timeout * 1000)
        context.set_default_navigation_timeout(self.navigation_timeout * 1000)
        return context

    async def close(self):
        """Close all connections and cleanup resources.

        Videos are only written to ``video_dir`` once the context closes.
        """
        if self._page:
            await self._page.close()
            self._page = None

        if self._context:
            await self._context.close()
            self._context = None

        if self._browser:
            await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

    @property
    def page(self) -> Page:
        if not self._page:
            raise RuntimeError("Client not connected or page not created")
        return self._page
