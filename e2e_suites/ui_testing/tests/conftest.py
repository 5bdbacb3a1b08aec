"""
================================================================================
UI Testing Pytest Configuration
================================================================================

Fixtures for browser-driven interaction tests.

Key Features:
- Per-test SmartLogger scoped to the test node id
- PASS / FAIL entries from the report hook
- Log export to Allure and per-test log cleanup at teardown
- Browser and page lifecycle (skipped when Chromium is not installed)

================================================================================
"""

from typing import AsyncGenerator, Generator

import pytest
from loguru import logger
from playwright.async_api import Browser, BrowserContext, Page, async_playwright
from playwright.async_api import Error as PlaywrightError

from e2e_tools.common import ConfigLoader
from e2e_tools.report_tools import attach_exported
from e2e_suites.ui_testing.framework import ElementActions, InteractionSettings, SmartLogger


# ================================================================================
# Settings & Logging Fixtures
# ================================================================================

@pytest.fixture
def interaction_settings() -> InteractionSettings:
    """Settings from config, with a shorter default timeout for local pages."""
    return InteractionSettings.from_config().with_overrides(default_timeout=5000)


@pytest.fixture(autouse=True)
def smart_logger(
    request: pytest.FixtureRequest,
    interaction_settings: InteractionSettings,
) -> Generator[SmartLogger, None, None]:
    """
    SmartLogger scoped to the current test.

    At teardown the test's entries are exported as Allure attachments and
    removed from the shared buffer.
    """
    smart = SmartLogger(settings=interaction_settings)
    smart.initialize_test(request.node.nodeid)
    request.node.smart_logger = smart

    yield smart

    published = attach_exported(smart.export_for_reporting())
    logger.debug(f"Published {published} log attachment(s) for {request.node.nodeid}")
    smart.clear_test_logs()
    smart.end_test()


# ================================================================================
# Browser Fixtures
# ================================================================================

@pytest.fixture
async def browser() -> AsyncGenerator[Browser, None]:
    """
    Chromium browser for one test.

    Skips the test when the browser binary is not installed
    (``playwright install chromium``).
    """
    headless = ConfigLoader().get("ui.headless", True)
    async with async_playwright() as playwright:
        try:
            browser = await playwright.chromium.launch(headless=headless)
        except PlaywrightError as e:
            pytest.skip(f"Chromium is not available: {str(e).splitlines()[0]}")
        yield browser
        await browser.close()


@pytest.fixture
async def context(browser: Browser) -> AsyncGenerator[BrowserContext, None]:
    """Fresh browser context per test for isolation."""
    context = await browser.new_context(viewport={"width": 1280, "height": 800})
    yield context
    await context.close()


@pytest.fixture
async def page(context: BrowserContext) -> AsyncGenerator[Page, None]:
    page = await context.new_page()
    yield page
    await page.close()


@pytest.fixture
def actions(
    page: Page,
    interaction_settings: InteractionSettings,
    smart_logger: SmartLogger,
) -> ElementActions:
    """Interaction facade bound to the test page and logger."""
    return ElementActions(page, interaction_settings, smart_logger)


# ================================================================================
# Test Lifecycle Hooks
# ================================================================================

@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """Record the test outcome in the test's SmartLogger."""
    outcome = yield
    report = outcome.get_result()

    smart = getattr(item, "smart_logger", None)
    if report.when != "call" or smart is None:
        return

    if report.failed:
        error = str(call.excinfo.value) if call.excinfo else ""
        smart.log("FAIL", f"Test failed: {item.name}", {"error": error})
    elif report.passed:
        smart.log("PASS", f"Test passed: {item.name}", {"duration": round(report.duration, 3)})
