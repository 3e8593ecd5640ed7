"""Run configuration for the mealkit-qa suite.

Every value resolves in the same order:
1. Environment variable
2. ``.env.defaults`` at the repository root
3. Hard-coded default below

Targets:
- API_TARGET=mock (default): GoRest calls go to the in-process mock API
- API_TARGET=live: GoRest calls go to GOREST_API_URL with GOREST_TOKEN
- UI_TARGET=mock (default): the funnel runs against the local two-origin mock
- UI_TARGET=live: the funnel runs against MEALKIT_BASE_URL
"""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Literal, Sequence
from urllib.parse import urljoin

from mealkit_qa.env_defaults import get_env_default

Target = Literal["mock", "live"]

_TRUE_VALUES = {"1", "true", "yes", "on"}


class ConfigError(RuntimeError):
    """Raised when a required configuration value is missing or invalid."""


def _lookup(key: str, default: str = "") -> str:
    value = os.getenv(key)
    if value is None:
        value = get_env_default(key)
    if value is None:
        return default
    return value


def _lookup_bool(key: str, default: bool) -> bool:
    raw = _lookup(key, "")
    if not raw:
        return default
    return raw.strip().lower() in _TRUE_VALUES


def _lookup_float(key: str, default: float) -> float:
    raw = _lookup(key, "")
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"{key} must be a number, got {raw!r}") from exc


def _lookup_int(key: str, default: int) -> int:
    raw = _lookup(key, "")
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from exc


def _lookup_target(key: str) -> Target:
    value = _lookup(key, "mock").strip().lower() or "mock"
    if value not in ("mock", "live"):
        raise ConfigError(f"{key} must be 'mock' or 'live', got {value!r}")
    return value  # type: ignore[return-value]


@dataclass(frozen=True)
class SuiteConfig:
    """Concrete settings for one test run."""

    base_url: str
    auth_origin: str
    gorest_api_url: str
    gorest_token: str

    api_target: Target = "mock"
    ui_target: Target = "mock"

    headless: bool = True
    viewport_width: int = 1920
    viewport_height: int = 1080

    # Seconds
    default_timeout: float = 10.0
    request_timeout: float = 10.0
    page_load_timeout: float = 60.0
    network_wait_timeout: float = 60.0
    home_settle_delay: float = 2.0
    step_settle_delay: float = 3.0

    report_steps: bool = True
    screenshot_on_failure: bool = True
    screenshot_dir: str = "artifacts/screenshots"
    video_dir: str | None = None

    test_email: str | None = None
    test_first_name: str = "My Name"
    test_last_name: str = "My Lastname"
    test_password: str = "123123123"
    test_zip_code: str = "10001"
    test_meal_plan_count: int = 6

    @classmethod
    def from_env(cls) -> "SuiteConfig":
        config = cls(
            base_url=_lookup("MEALKIT_BASE_URL", "https://www.cookunity.com").rstrip("/"),
            auth_origin=_lookup("MEALKIT_AUTH_ORIGIN", "https://auth.cookunity.com").rstrip("/"),
            gorest_api_url=_lookup("GOREST_API_URL", "https://gorest.co.in/public/v1").rstrip("/"),
            gorest_token=_lookup("GOREST_TOKEN", ""),
            api_target=_lookup_target("API_TARGET"),
            ui_target=_lookup_target("UI_TARGET"),
            headless=_lookup_bool("PLAYWRIGHT_HEADLESS", True),
            viewport_width=_lookup_int("UI_VIEWPORT_WIDTH", 1920),
            viewport_height=_lookup_int("UI_VIEWPORT_HEIGHT", 1080),
            default_timeout=_lookup_float("UI_DEFAULT_TIMEOUT", 10.0),
            request_timeout=_lookup_float("API_REQUEST_TIMEOUT", 10.0),
            page_load_timeout=_lookup_float("UI_PAGE_LOAD_TIMEOUT", 60.0),
            network_wait_timeout=_lookup_float("UI_NETWORK_WAIT_TIMEOUT", 60.0),
            home_settle_delay=_lookup_float("UI_HOME_SETTLE_DELAY", 2.0),
            step_settle_delay=_lookup_float("UI_STEP_SETTLE_DELAY", 3.0),
            report_steps=_lookup_bool("REPORT_STEPS", True),
            screenshot_on_failure=_lookup_bool("SCREENSHOT_ON_FAILURE", True),
            screenshot_dir=_lookup("SCREENSHOT_DIR", "artifacts/screenshots"),
            video_dir=_lookup("VIDEO_DIR", "") or None,
            test_email=_lookup("TEST_EMAIL", "") or None,
            test_first_name=_lookup("TEST_FIRST_NAME", "My Name"),
            test_last_name=_lookup("TEST_LAST_NAME", "My Lastname"),
            test_password=_lookup("TEST_PASSWORD", "123123123"),
            test_zip_code=_lookup("TEST_ZIP_CODE", "10001"),
            test_meal_plan_count=_lookup_int("TEST_MEAL_PLAN_COUNT", 6),
        )
        print(
            f"[CONFIG] api_target={config.api_target} ui_target={config.ui_target} "
            f"base_url={config.base_url}"
        )
        return config

    def with_overrides(self, **changes) -> "SuiteConfig":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def url(self, path: str) -> str:
        """Return an absolute application URL for the provided path."""
        return urljoin(self.base_url.rstrip("/") + "/", path.lstrip("/"))

    def require_api(self) -> None:
        """Fail fast when the GoRest API cannot be addressed."""
        if not self.gorest_api_url:
            raise ConfigError("GOREST_API_URL is not configured")
        if self.api_target == "live" and not self.gorest_token:
            raise ConfigError(
                "GOREST_TOKEN is not configured\n"
                "Export a GoRest access token or run with API_TARGET=mock"
            )

    def is_live(self, surface: str) -> bool:
        """True when ``surface`` ("api" or "ui") runs against the real service."""
        if surface == "api":
            return self.api_target == "live"
        if surface == "ui":
            return self.ui_target == "live"
        raise ConfigError(f"Unknown target surface {surface!r}; expected 'api' or 'ui'")

    def live_skip_reason(self, surfaces: Sequence[str] = ()) -> str | None:
        """Why a live-only test cannot run here, or None when every surface is live.

        No surfaces means both "api" and "ui".
        """
        mocked = [surface for surface in (surfaces or ("api", "ui")) if not self.is_live(surface)]
        if not mocked:
            return None
        targets = ", ".join(f"{surface.upper()}_TARGET" for surface in mocked)
        return f"Needs the live service; set {targets}=live"
