"""Per-run test lifecycle policy.

Created once per run and handed to the browser fixture, instead of being
installed as ambient global hooks.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from mealkit_qa.browser import Browser
from mealkit_qa.exception_filter import ExceptionFilter

logger = logging.getLogger(__name__)


@dataclass
class LifecyclePolicy:
    """What happens around every browser test."""

    exception_filter: ExceptionFilter = field(default_factory=ExceptionFilter)
    clear_cookies: bool = True
    quiet_background_requests: bool = True

    async def before_each(self, browser: Browser) -> None:
        """Reset the session and hide background XHR/fetch traffic from the log."""
        if self.clear_cookies:
            await browser.clear_cookies()
        browser.exception_filter = self.exception_filter
        browser.quiet_background_requests = self.quiet_background_requests
        logger.debug("Lifecycle reset applied")

    def after_each(self, browser: Browser) -> None:
        """Fail the test for page errors raised after its last step."""
        browser.check_page_errors()
