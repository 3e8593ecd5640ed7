"""Reusable workflows for the signup funnel.

Each step waits on its own readiness signal (a network response, an element
becoming visible, a spinner going away) before the next one starts. The fixed
settle delays from the live storefront are kept on top of that and come from
the config, so offline runs set them to zero.
"""
from __future__ import annotations

import logging

from mealkit_qa.browser import Browser
from mealkit_qa.config import SuiteConfig
from mealkit_qa.exception_filter import AUTH_ORIGIN_DENY_LIST
from mealkit_qa.models import RegistrationData, generate_signup_email
from mealkit_qa.reporting import StepReporter

logger = logging.getLogger(__name__)

PROMO_POPUP = ".promo-popup"
PROMO_POPUP_CLOSE = ".close"
ZIP_CODE_INPUT = '[data-testid="funnel-start-form-zipcode-input"]'
ZIP_CODE_CTA = '[data-testid="input-zipcode-cta"]'
ZIP_CODE_VALIDATION = "**/api/validate-zipcode/*"
QUIZ_SKIP_ALL = '[data-testid="preferences-quiz-skip-all-button"]'
LOADING_SPINNER = "svg.lucide.lucide-loader-circle.animate-spin"
PLAN_CONTINUE = '[data-testid="plan-select-continue-button"]'
SIGNUP_EMAIL_INPUT = '[data-testid="email"]'
SIGNUP_PASSWORD_INPUT = '[data-testid="password"]'
SIGNUP_SUBMIT = '[data-testid="submit-form"]'
MEAL_CARD = ".shadow-meal-card"
MEAL_SELECTION_PATH = "en/meal-select"

QUIZ_SKIP_TIMEOUT = 10.0


def plan_toggle(meal_count: int) -> str:
    return f'[data-testid="plan-select-{meal_count}-toggle"]'


async def visit_home(browser: Browser, config: SuiteConfig, path: str = "/") -> bool:
    """Open the storefront and close the promotional overlay if one shows up.

    Returns whether an overlay was dismissed; a missing overlay is not an error.
    """
    await browser.goto(config.url(path))
    await browser.settle(config.home_settle_delay)
    dismissed = await browser.dismiss_if_present(PROMO_POPUP, PROMO_POPUP_CLOSE)
    if dismissed:
        logger.info("Dismissed promotional popup")
    return dismissed


async def enter_zip_code(browser: Browser, config: SuiteConfig, zip_code: str) -> int:
    """Submit the zip code and wait for the validation call to come back."""

    async def _submit() -> None:
        await browser.type(ZIP_CODE_INPUT, zip_code)
        await browser.click(ZIP_CODE_CTA)

    status = await browser.expect_response(
        ZIP_CODE_VALIDATION,
        _submit,
        timeout=config.network_wait_timeout,
    )
    logger.info(f"Zip code {zip_code} validated (HTTP {status})")
    return status


async def skip_quiz(browser: Browser, config: SuiteConfig) -> None:
    await browser.settle(config.step_settle_delay)
    await browser.click(QUIZ_SKIP_ALL, timeout=QUIZ_SKIP_TIMEOUT)
    await browser.wait_until_gone(LOADING_SPINNER, timeout=config.network_wait_timeout)


async def select_meal_plan(browser: Browser, meal_count: int) -> None:
    await browser.click(plan_toggle(meal_count))
    await browser.click(PLAN_CONTINUE)


async def create_account(browser: Browser, config: SuiteConfig, password: str) -> str:
    """Sign up with a fresh email on the auth origin. Returns the email used.

    Auth-origin noise (null, auth, login and script errors) is tolerated only
    while this step runs; errors arriving after the submit click returns are
    judged by the global deny-list.
    """
    with browser.exception_filter.scoped(AUTH_ORIGIN_DENY_LIST):
        email = generate_signup_email()
        await browser.settle(config.step_settle_delay)
        await browser.click_text("button", "Sign up with email")
        await browser.type(SIGNUP_EMAIL_INPUT, email)
        await browser.click_text("button", "Sign Up")
        await browser.type(SIGNUP_PASSWORD_INPUT, password)
        await browser.click(SIGNUP_SUBMIT)
    logger.info(f"Submitted signup for {email}")
    return email


async def verify_meal_selection_page(browser: Browser, config: SuiteConfig) -> int:
    """Assert the funnel landed on meal selection with at least two meal cards."""
    await browser.settle(config.step_settle_delay)
    await browser.assert_url_contains(MEAL_SELECTION_PATH)
    return await browser.assert_minimum_count(MEAL_CARD, 2)


async def run_registration_funnel(
    browser: Browser,
    config: SuiteConfig,
    data: RegistrationData,
    reporter: StepReporter | None = None,
) -> str:
    """Drive the whole funnel from the storefront to meal selection."""
    reporter = reporter or StepReporter("registration", enabled=False)

    reporter.step("Visit storefront")
    await visit_home(browser, config)

    reporter.step(f"Enter zip code {data.zip_code}")
    await enter_zip_code(browser, config, data.zip_code)

    reporter.step("Skip preferences quiz")
    await skip_quiz(browser, config)

    reporter.step(f"Select {data.meal_plan_count}-meal plan")
    await select_meal_plan(browser, data.meal_plan_count)

    reporter.step("Create account")
    email = await create_account(browser, config, data.password)

    reporter.step("Verify meal selection page")
    await verify_meal_selection_page(browser, config)
    return email


async def wait_for_element(browser: Browser, selector: str, timeout: float = 10.0) -> None:
    await browser.locate(selector, timeout)


async def assert_url_contains(browser: Browser, expected_path: str) -> str:
    return await browser.assert_url_contains(expected_path)


async def assert_minimum_count(browser: Browser, selector: str, minimum: int) -> int:
    return await browser.assert_minimum_count(selector, minimum)
