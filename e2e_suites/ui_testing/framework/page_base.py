"""
================================================================================
Base Page Object
================================================================================

Foundation class for Page Object Model implementations built on
ElementActions.

Provides:
    - Navigation with navigation / page-load performance logging
    - Page readiness wait on a page-identifying selector
    - Logged assertions (visible / text / value)
    - Screenshot capture to Allure
    - Failure diagnostics fed by captured network and JS errors

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import allure
from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, Response

from e2e_tools.common import ConfigLoader
from e2e_tools.report_tools import attach_png

from .element_actions import ElementActions
from .page_inspector import PageInspector, generate_failure_suggestions
from .settings import InteractionSettings
from .smart_logger import SmartLogger


# Page loads slower than this are logged as WARN performance entries (ms)
PAGE_LOAD_THRESHOLD = 5000

# Keep only the most recent captured failures
MAX_CAPTURED = 20


class BasePage:
    """
    Base class for all page objects.

    Usage:
        class LoginPage(BasePage):
            URL_PATH = "/wp-login.php"
            PAGE_SELECTOR = "#loginform"

            async def login(self, username: str, password: str):
                await self.actions.fill("#user_login", username)
                await self.actions.fill("#user_pass", password)
                await self.actions.click("#wp-submit")
    """

    # Override in subclasses
    URL_PATH: str = "/"
    PAGE_SELECTOR: str = "body"

    def __init__(
        self,
        page: Page,
        base_url: str = "",
        settings: Optional[InteractionSettings] = None,
        smart_logger: Optional[SmartLogger] = None,
    ):
        """
        Initialize page object.

        Args:
            page: Playwright Page object
            base_url: Base URL for the application (``ui.base_url`` / UI_BASE_URL by default)
            settings: Interaction settings
            smart_logger: Diagnostic logger shared with the test
        """
        self.page = page
        if not base_url:
            base_url = ConfigLoader().get("ui.base_url", "http://localhost:8080")
        self.base_url = base_url.rstrip("/")
        self.settings = settings or InteractionSettings()
        self.smart_logger = smart_logger or SmartLogger(settings=self.settings)
        self.actions = ElementActions(
            page, self.settings, self.smart_logger, inspector_factory=self.inspector
        )

        self._network_errors: List[Dict[str, Any]] = []
        self._js_errors: List[str] = []
        self._setup_error_capture()

    def _setup_error_capture(self) -> None:
        """Record failed responses and uncaught page errors for diagnostics."""

        def capture_response(response: Response) -> None:
            if response.status >= 400:
                self._network_errors.append({
                    "timestamp": datetime.now().isoformat(),
                    "url": response.url,
                    "status": response.status,
                    "method": response.request.method,
                })
                del self._network_errors[:-MAX_CAPTURED]

        def capture_page_error(error: Exception) -> None:
            self._js_errors.append(str(error))
            del self._js_errors[:-MAX_CAPTURED]

        self.page.on("response", capture_response)
        self.page.on("pageerror", capture_page_error)

    @property
    def url(self) -> str:
        """Get full page URL."""
        return f"{self.base_url}{self.URL_PATH}"

    def inspector(self) -> PageInspector:
        """PageInspector that also sees the captured network / JS errors."""
        return PageInspector(
            self.page,
            self.settings,
            network_errors=self._network_errors,
            js_errors=self._js_errors,
        )

    # =========================================================================
    # Navigation
    # =========================================================================

    async def navigate(self, path: Optional[str] = None, wait_for: str = "load") -> None:
        """
        Navigate to this page (or ``path`` under the base URL).

        Args:
            path: URL path; URL_PATH when None
            wait_for: Wait condition - 'load', 'domcontentloaded', 'networkidle'
        """
        target = f"{self.base_url}{self.URL_PATH if path is None else path}"
        current = self.page.url

        with allure.step(f"Navigate to {target}"):
            self.smart_logger.log("INFO", f"Navigating to {target}")
            start = time.monotonic()
            try:
                await self.page.goto(target, wait_until=wait_for)
            except PlaywrightError as error:
                await self.smart_logger.log_error(error, inspector=self.inspector())
                raise

            load_time = round((time.monotonic() - start) * 1000)
            self.smart_logger.log_navigation(current, target, load_time)
            self.smart_logger.log_performance("page_load", load_time, PAGE_LOAD_THRESHOLD)

    async def wait_for_page_shown(
        self,
        selector: Optional[str] = None,
        timeout: Optional[int] = None,
    ) -> None:
        """
        Wait for the load event, then for the page-identifying selector.

        Network idle is awaited afterwards on a best-effort basis; pages
        with long-polling never get there and are still considered shown.
        """
        selector = selector or self.PAGE_SELECTOR
        timeout = timeout or self.settings.long_timeout

        await self.page.wait_for_load_state("load", timeout=timeout)
        await self.actions.wait_for_displayed(selector, timeout=timeout, raise_on_timeout=True)

        if not await self.actions.wait_for_network_idle(
            timeout=self.settings.default_timeout, raise_on_timeout=False
        ):
            logger.debug(f"Network still busy after {self.settings.default_timeout}ms, continuing")

    async def get_page_title(self) -> str:
        await self.page.wait_for_load_state("domcontentloaded")
        return await self.page.title()

    # =========================================================================
    # Assertions
    # =========================================================================

    async def _assertion_failed(self, message: str) -> None:
        error = AssertionError(message)
        await self.smart_logger.log_error(error, inspector=self.inspector())
        raise error

    async def expect_visible(self, selector: str, timeout: Optional[int] = None) -> None:
        description = f"Element {selector} should be visible"
        visible = await self.actions.wait_for_displayed(selector, timeout=timeout)
        self.smart_logger.log_assertion(description, True, visible, visible)
        if not visible:
            await self._assertion_failed(f"{description} but is not")

    async def expect_text(self, selector: str, expected: str, timeout: Optional[int] = None) -> None:
        """Assert that the element's text contains ``expected``."""
        description = f'Element {selector} should contain text "{expected}"'
        actual = await self.actions.get_text(selector, timeout=timeout)
        passed = expected in actual
        self.smart_logger.log_assertion(description, expected, actual, passed)
        if not passed:
            await self._assertion_failed(f'{description}, got "{actual}"')

    async def expect_value(self, selector: str, expected: str, timeout: Optional[int] = None) -> None:
        """Assert an input's value; values are masked in the log like fills."""
        description = f"Element {selector} should have value"
        actual = await self.actions.get_input_value(selector, timeout=timeout)
        passed = actual == expected
        self.smart_logger.log_assertion(
            description,
            self.smart_logger.mask(expected),
            self.smart_logger.mask(actual),
            passed,
        )
        if not passed:
            await self._assertion_failed(f"{description} '{self.smart_logger.mask(expected)}'")

    # =========================================================================
    # Screenshot and Debug Utilities
    # =========================================================================

    async def screenshot(
        self,
        name: str,
        full_page: bool = False,
        attach_to_allure: bool = True,
    ) -> Path:
        """
        Take screenshot and optionally attach to Allure.

        Args:
            name: Screenshot name (without extension)
            full_page: Capture full scrollable page
            attach_to_allure: Whether to attach to Allure report

        Returns:
            Path to saved screenshot
        """
        screenshot_dir = self.settings.screenshot_dir
        screenshot_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filepath = screenshot_dir / f"{name}_{timestamp}.png"

        image = await self.page.screenshot(path=str(filepath), full_page=full_page)

        if attach_to_allure:
            attach_png(image, name=name)

        logger.debug(f"Screenshot saved: {filepath}")
        return filepath

    async def get_diagnostic_info(self) -> List[str]:
        """Suggestions for the current page state. Never raises."""
        try:
            report = await self.inspector().inspect_page_on_error("Diagnostic check requested")
            return generate_failure_suggestions(report)
        except Exception as e:
            return [f"Unable to generate diagnostics: {e}"]


__all__ = [
    "BasePage",
]
