"""Thin wrapper around direct Playwright for ergonomic, bounded-wait steps."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List

import anyio
from playwright.async_api import Locator, Page, Request, TimeoutError as PlaywrightTimeout

from mealkit_qa.exception_filter import ExceptionFilter, UncaughtPageError, error_message

logger = logging.getLogger(__name__)

BACKGROUND_RESOURCE_TYPES = frozenset({"xhr", "fetch"})


@dataclass
class ToolError(Exception):
    """Raised when a browser operation fails."""

    name: str
    payload: Dict[str, Any]
    message: str

    def __str__(self) -> str:  # pragma: no cover - human readable helper
        return f"{self.name} failed ({self.message}) with payload={self.payload}"


class LocateTimeout(ToolError):
    """Raised when an element did not reach the wanted state in time."""

    @property
    def selector(self) -> str:
        return self.payload.get("selector", "")

    @property
    def timeout(self) -> float:
        return self.payload.get("timeout", 0.0)


class Browser:
    """Convenience wrapper over a Playwright page.

    Every element step waits (bounded) for its element before acting and then
    checks whether the page raised an uncaught exception the filter did not
    suppress.
    """

    def __init__(
        self,
        page: Page,
        exception_filter: ExceptionFilter | None = None,
        default_timeout: float = 10.0,
    ) -> None:
        self._page = page
        self.exception_filter = exception_filter or ExceptionFilter()
        self.default_timeout = default_timeout
        self.quiet_background_requests = False
        self.current_url: str | None = None
        self.current_title: str | None = None
        self.page_errors: List[str] = []
        self.suppressed_errors: List[str] = []

        page.on("pageerror", self._on_page_error)
        page.on("request", self._on_request)

    @property
    def page(self) -> Page:
        return self._page

    # ---- page event handlers ---------------------------------------------------
    def _on_page_error(self, error: Any) -> None:
        message = error_message(error) or "<no message>"
        if self.exception_filter.should_suppress(error):
            logger.debug(f"Suppressed page error: {message}")
            self.suppressed_errors.append(message)
        else:
            logger.warning(f"Uncaught page error: {message}")
            self.page_errors.append(message)

    def _on_request(self, request: Request) -> None:
        if self.quiet_background_requests and request.resource_type in BACKGROUND_RESOURCE_TYPES:
            return
        logger.debug(f"{request.method} {request.url} ({request.resource_type})")

    def check_page_errors(self) -> None:
        """Raise for uncaught page errors collected since the last check."""
        if self.page_errors:
            errors, self.page_errors = self.page_errors, []
            raise UncaughtPageError(errors)

    async def _update_state(self) -> None:
        self.current_url = self._page.url
        self.current_title = await self._page.title()

    def _timeout(self, timeout: float | None) -> float:
        return self.default_timeout if timeout is None else timeout

    # ---- navigation --------------------------------------------------------------
    async def goto(self, url: str, wait_until: str = "load", timeout: float | None = None) -> Dict[str, Any]:
        """Navigate to URL and return response with status.

        Args:
            url: URL to navigate to
            wait_until: Wait strategy - "load", "domcontentloaded" or "networkidle"
            timeout: Timeout in seconds (default: the context's navigation timeout)

        Note: "networkidle" can time out on pages with long-polling connections;
              it falls back to "domcontentloaded" once.
        """
        kwargs: Dict[str, Any] = {"wait_until": wait_until}
        if timeout is not None:
            kwargs["timeout"] = timeout * 1000
        try:
            response = await self._page.goto(url, **kwargs)
        except PlaywrightTimeout as exc:
            if wait_until != "networkidle":
                raise ToolError(name="goto", payload={"url": url, "wait_until": wait_until}, message=str(exc))
            try:
                kwargs["wait_until"] = "domcontentloaded"
                response = await self._page.goto(url, **kwargs)
            except PlaywrightTimeout:
                raise ToolError(name="goto", payload={"url": url, "wait_until": wait_until}, message=str(exc))
        await self._update_state()
        self.check_page_errors()
        return {"url": self.current_url, "title": self.current_title, "status": response.status if response else None}

    async def clear_cookies(self) -> None:
        await self._page.context.clear_cookies()

    async def settle(self, seconds: float) -> None:
        """Fixed pause; a no-op when the configured delay is zero."""
        if seconds > 0:
            await anyio.sleep(seconds)
        self.check_page_errors()

    # ---- element primitives ------------------------------------------------------
    async def locate(self, selector: str, timeout: float | None = None, state: str = "visible") -> Locator:
        """Return the first element matching ``selector`` once it reaches ``state``.

        Raises LocateTimeout when the element does not get there in time.
        """
        timeout = self._timeout(timeout)
        locator = self._page.locator(selector).first
        try:
            await locator.wait_for(state=state, timeout=timeout * 1000)
        except PlaywrightTimeout as exc:
            raise LocateTimeout(
                name="locate",
                payload={"selector": selector, "timeout": timeout, "state": state},
                message=f"Element '{selector}' not {state} within {timeout}s",
            ) from exc
        return locator

    async def type(self, selector: str, text: str, timeout: float | None = None) -> Dict[str, Any]:
        """Type into the first visible match, key by key."""
        locator = await self.locate(selector, timeout)
        try:
            await locator.press_sequentially(text)
        except Exception as exc:
            raise ToolError(name="type", payload={"selector": selector}, message=str(exc))
        self.check_page_errors()
        return {"selector": selector, "value": text}

    async def click(self, selector: str, timeout: float | None = None) -> Dict[str, Any]:
        """Click the first visible match."""
        locator = await self.locate(selector, timeout)
        return await self._click(locator, selector)

    async def click_text(self, selector: str, text: str, timeout: float | None = None) -> Dict[str, Any]:
        """Click the first visible ``selector`` whose text contains ``text`` (case-sensitive)."""
        timeout = self._timeout(timeout)
        locator = self._page.locator(selector).filter(has_text=re.compile(re.escape(text))).first
        try:
            await locator.wait_for(state="visible", timeout=timeout * 1000)
        except PlaywrightTimeout as exc:
            raise LocateTimeout(
                name="click_text",
                payload={"selector": selector, "text": text, "timeout": timeout},
                message=f"No visible '{selector}' containing '{text}' within {timeout}s",
            ) from exc
        return await self._click(locator, f"{selector}:{text}")

    async def _click(self, locator: Locator, description: str) -> Dict[str, Any]:
        try:
            await locator.click()
        except Exception as exc:
            raise ToolError(name="click", payload={"selector": description}, message=str(exc))
        self.current_url = self._page.url
        self.check_page_errors()
        return {"selector": description, "url": self.current_url}

    async def is_present(self, selector: str) -> bool:
        return await self._page.locator(selector).count() > 0

    async def dismiss_if_present(self, marker_selector: str, close_selector: str) -> bool:
        """Click ``close_selector`` when ``marker_selector`` is on the page. Returns True if dismissed."""
        if not await self.is_present(marker_selector):
            return False
        await self.click(close_selector)
        return True

    async def wait_until_gone(self, selector: str, timeout: float | None = None) -> None:
        """Block until no element matches ``selector``."""
        await self.locate(selector, timeout, state="detached")
        self.check_page_errors()

    async def expect_response(
        self,
        url_pattern: str,
        trigger: Callable[[], Awaitable[Any]],
        timeout: float | None = None,
    ) -> int:
        """Run ``trigger`` and block until a response matching ``url_pattern`` arrives.

        The wait is registered before ``trigger`` runs so a fast response is not missed.
        Returns the response status.
        """
        timeout = self._timeout(timeout)
        try:
            async with self._page.expect_response(url_pattern, timeout=timeout * 1000) as response_info:
                await trigger()
            response = await response_info.value
        except PlaywrightTimeout as exc:
            raise ToolError(
                name="expect_response",
                payload={"url_pattern": url_pattern, "timeout": timeout},
                message=f"No response matching '{url_pattern}' within {timeout}s",
            ) from exc
        self.check_page_errors()
        return response.status

    # ---- assertions ---------------------------------------------------------------
    async def assert_url_contains(self, expected: str, timeout: float | None = None, interval: float = 0.2) -> str:
        """Poll the page URL until it contains ``expected``."""
        deadline = anyio.current_time() + self._timeout(timeout)
        actual = self._page.url
        while anyio.current_time() <= deadline:
            actual = self._page.url
            if expected in actual:
                self.current_url = actual
                return actual
            await anyio.sleep(interval)
        raise AssertionError(f'Expected URL to contain "{expected}" but got "{actual}"')

    async def count_visible(self, selector: str) -> int:
        locator = self._page.locator(selector)
        visible = 0
        for index in range(await locator.count()):
            if await locator.nth(index).is_visible():
                visible += 1
        return visible

    async def assert_minimum_count(
        self,
        selector: str,
        minimum: int,
        timeout: float | None = None,
        interval: float = 0.2,
    ) -> int:
        """Poll until at least ``minimum`` visible elements match ``selector``."""
        deadline = anyio.current_time() + self._timeout(timeout)
        count = 0
        while anyio.current_time() <= deadline:
            count = await self.count_visible(selector)
            if count >= minimum:
                return count
            await anyio.sleep(interval)
        raise AssertionError(f"Expected at least {minimum} visible '{selector}' elements, found {count}")

    async def screenshot(self, directory: str, name: str) -> str:
        """Save a full-page PNG screenshot and return its path."""
        try:
            os.makedirs(directory, exist_ok=True)
            path = os.path.join(directory, f"{name}.png")
            await self._page.screenshot(path=path, type="png", full_page=True)
            return path
        except Exception as exc:
            raise ToolError(name="screenshot", payload={"name": name}, message=str(exc))
