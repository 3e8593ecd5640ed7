"""Uncaught page-exception policy.

Third-party scripts on the storefront throw a steady trickle of errors that
say nothing about the flow under test. ``ExceptionFilter`` decides, per
uncaught page error, whether the test should fail (``PROPAGATE``) or carry on
(``SUPPRESS``). New benign error classes have to be added to the deny-list by
hand.
"""
from __future__ import annotations

import enum
import logging
from contextlib import contextmanager
from typing import Any, Iterable, Iterator, List, Tuple

logger = logging.getLogger(__name__)

DEFAULT_DENY_LIST: Tuple[str, ...] = (
    "ResizeObserver loop limit exceeded",
    "Non-Error promise rejection captured",
    "Script error",
    "ChunkLoadError",
    "Loading chunk",
    "auth.cookunity.com",
    "cross-origin",
)

# Only active while the account-creation step runs on the auth origin
AUTH_ORIGIN_DENY_LIST: Tuple[str, ...] = (
    "auth",
    "login",
    "Script error",
)


class FilterDecision(enum.Enum):
    SUPPRESS = "suppress"
    PROPAGATE = "propagate"


class UncaughtPageError(Exception):
    """An uncaught page exception that the filter let through."""

    def __init__(self, messages: List[str]):
        self.messages = messages
        joined = "\n  ".join(messages)
        super().__init__(f"Uncaught exception(s) in page:\n  {joined}")


def error_message(error: Any) -> str | None:
    """Best-effort message extraction for str, Exception and Playwright ``Error``."""
    if error is None:
        return None
    if isinstance(error, str):
        return error
    message = getattr(error, "message", None)
    if message is None and isinstance(error, BaseException) and error.args:
        message = error.args[0]
    if message is None:
        return None
    return str(message)


class ExceptionFilter:
    """Substring deny-list applied to every uncaught page error."""

    def __init__(self, deny_list: Iterable[str] = DEFAULT_DENY_LIST):
        self._deny_list: Tuple[str, ...] = tuple(deny_list)

    @property
    def deny_list(self) -> Tuple[str, ...]:
        return self._deny_list

    def classify(self, error: Any) -> FilterDecision:
        message = error_message(error)
        if not message or message == "null":
            return FilterDecision.SUPPRESS
        for pattern in self._deny_list:
            if pattern in message:
                return FilterDecision.SUPPRESS
        return FilterDecision.PROPAGATE

    def should_suppress(self, error: Any) -> bool:
        return self.classify(error) is FilterDecision.SUPPRESS

    @contextmanager
    def scoped(self, patterns: Iterable[str]) -> Iterator["ExceptionFilter"]:
        """Extend the deny-list for the duration of the block."""
        previous = self._deny_list
        self._deny_list = previous + tuple(p for p in patterns if p not in previous)
        logger.debug(f"Scoped exception filter installed: {self._deny_list}")
        try:
            yield self
        finally:
            self._deny_list = previous
            logger.debug("Scoped exception filter removed")
