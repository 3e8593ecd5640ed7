import threading

import pytest
import pytest_asyncio
from werkzeug.serving import make_server

from mealkit_qa import mock_funnel_app, mock_gorest_api
from mealkit_qa.api_client import GoRestClient
from mealkit_qa.browser import Browser, ToolError
from mealkit_qa.config import SuiteConfig
from mealkit_qa.lifecycle import LifecyclePolicy
from mealkit_qa.models import RegistrationData
from mealkit_qa.playwright_client import PlaywrightClient
from mealkit_qa.reporting import StepReporter


class MockServer:
    """Run a Flask app in a background thread on a free local port."""

    def __init__(self, app, host="127.0.0.1"):
        self.host = host
        self.app = app
        self.server = None
        self.thread = None

    def start(self):
        self.server = make_server(self.host, 0, self.app, threaded=True)
        self.thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self.thread.start()

    def stop(self):
        if self.server:
            self.server.shutdown()
            if self.thread:
                self.thread.join(timeout=5)

    @property
    def url(self):
        return f"http://{self.host}:{self.server.server_port}"


def pytest_configure(config):
    config.addinivalue_line(
        "markers",
        "live(*surfaces): needs the real service; surfaces are \"api\" and/or \"ui\" "
        "(both when omitted). Skipped unless API_TARGET/UI_TARGET is live.",
    )


def pytest_collection_modifyitems(config, items):
    """Skip live-only tests whose target is still the mock."""
    live_items = [item for item in items if item.get_closest_marker("live")]
    if not live_items:
        return
    suite_config = SuiteConfig.from_env()
    for item in live_items:
        reason = suite_config.live_skip_reason(item.get_closest_marker("live").args)
        if reason:
            item.add_marker(pytest.mark.skip(reason=reason))


@pytest.hookimpl(tryfirst=True, hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """Store each phase's report on the item so fixtures can see failures at teardown."""
    outcome = yield
    rep = outcome.get_result()
    setattr(item, f"rep_{rep.when}", rep)


# ============================================================================
# Configuration
# ============================================================================

@pytest.fixture(scope="session")
def suite_config():
    """Run configuration resolved once from the environment and .env.defaults."""
    return SuiteConfig.from_env()


@pytest.fixture(autouse=True)
def reporter(request, suite_config):
    """Step reporter for the current scenario.

    Autouse so every scenario ends with its completion task log, whether or not
    the test reports steps itself.
    """
    reporter = StepReporter(request.node.name, enabled=suite_config.report_steps)
    yield reporter
    reporter.task_log(f"{request.node.name} completed")


# ============================================================================
# GoRest API fixtures
# ============================================================================

@pytest.fixture(scope="session")
def mock_gorest_server():
    """Mock GoRest API running for the whole session."""
    server = MockServer(mock_gorest_api.create_mock_api_app())
    server.start()
    yield server
    server.stop()


@pytest.fixture
def gorest_client(request, suite_config):
    """GoRest client for the configured API target.

    With API_TARGET=mock the mock store is reset and re-seeded per test.
    """
    if suite_config.api_target == "live":
        suite_config.require_api()
        base_url, token = suite_config.gorest_api_url, suite_config.gorest_token
    else:
        server = request.getfixturevalue("mock_gorest_server")
        mock_gorest_api.reset_mock_state()
        mock_gorest_api.seed_users()
        base_url, token = f"{server.url}{mock_gorest_api.API_PREFIX}", mock_gorest_api.MOCK_TOKEN

    with GoRestClient(base_url, token, timeout=suite_config.request_timeout) as client:
        yield client


# ============================================================================
# Storefront fixtures
# ============================================================================

@pytest.fixture(scope="session")
def mock_funnel_servers():
    """Mock storefront and auth site on two different origins."""
    auth = MockServer(mock_funnel_app.create_auth_app())
    auth.start()
    storefront = MockServer(mock_funnel_app.create_funnel_app(auth.url))
    storefront.start()
    yield {"storefront": storefront, "auth": auth}
    storefront.stop()
    auth.stop()


@pytest.fixture
def ui_config(request, suite_config):
    """Config pointed at the storefront under test (mock servers unless UI_TARGET=live)."""
    if suite_config.ui_target == "live":
        return suite_config
    servers = request.getfixturevalue("mock_funnel_servers")
    mock_funnel_app.reset_mock_state()
    return suite_config.with_overrides(
        base_url=servers["storefront"].url,
        auth_origin=servers["auth"].url,
        home_settle_delay=0.0,
        step_settle_delay=0.0,
    )


@pytest.fixture
def registration_data(ui_config):
    return RegistrationData.from_config(ui_config)


@pytest.fixture(scope="session")
def lifecycle_policy():
    """Lifecycle policy shared by every browser test in the run."""
    return LifecyclePolicy()


@pytest_asyncio.fixture()
async def playwright_client(suite_config):
    """Launch a browser; skips the test when no Playwright browser is installed."""
    client = PlaywrightClient(
        headless=suite_config.headless,
        timeout=suite_config.default_timeout,
        navigation_timeout=suite_config.page_load_timeout,
        viewport={"width": suite_config.viewport_width, "height": suite_config.viewport_height},
        video_dir=suite_config.video_dir,
    )
    try:
        await client.connect()
    except Exception as exc:
        pytest.skip(f"Playwright browser not available - run: playwright install chromium ({exc})")
    yield client
    await client.close()


@pytest_asyncio.fixture()
async def browser(request, playwright_client, lifecycle_policy, suite_config):
    """Browser with the lifecycle policy applied; screenshots the page on failure."""
    browser = Browser(
        playwright_client.page,
        exception_filter=lifecycle_policy.exception_filter,
        default_timeout=suite_config.default_timeout,
    )
    await lifecycle_policy.before_each(browser)
    yield browser

    rep = getattr(request.node, "rep_call", None)
    if rep is not None and rep.failed:
        if suite_config.screenshot_on_failure:
            try:
                path = await browser.screenshot(suite_config.screenshot_dir, request.node.name)
                print(f"📸 {path}")
            except ToolError as exc:
                print(f"[SCREENSHOT] {exc}")
    else:
        lifecycle_policy.after_each(browser)
