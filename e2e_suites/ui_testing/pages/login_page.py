"""
================================================================================
Login Page Object (Async / Playwright)
================================================================================

Login form page object driven entirely through ElementActions, so every
step gets retries, masking of the password in logs and page inspection
on failure.

NOTE:
  Selectors are intentionally generic. Real projects should prefer stable
  `data-testid` attributes.

================================================================================
"""

from __future__ import annotations

import os
from typing import Optional

import allure

from e2e_suites.ui_testing.framework.page_base import BasePage


class LoginPage(BasePage):
    """Login page object (async)."""

    URL_PATH = "/login"
    PAGE_SELECTOR = "#login-form"

    USERNAME_INPUT = "#username"
    PASSWORD_INPUT = "#password"
    REMEMBER_ME = "#remember"
    LOGIN_BUTTON = "#login-button"
    ERROR_MESSAGE = ".login-error"

    @allure.step("Open login page")
    async def open(self) -> "LoginPage":
        await self.navigate()
        await self.wait_for_page_shown()
        return self

    @allure.step("Login (username={username})")
    async def login(
        self,
        username: Optional[str] = None,
        password: Optional[str] = None,
        remember: bool = False,
    ) -> None:
        """
        Fill the form and submit it.

        Args:
            username: Defaults to `UI_USERNAME` env var (demo-safe)
            password: Defaults to `UI_PASSWORD` env var (demo-safe)
            remember: Tick "remember me" before submitting
        """
        if username is None:
            username = os.getenv("UI_USERNAME", "demo_user")
        if password is None:
            password = os.getenv("UI_PASSWORD", "demo_password")

        await self.actions.clear_and_fill(self.USERNAME_INPUT, username)
        await self.actions.clear_and_fill(self.PASSWORD_INPUT, password)
        if remember and not await self.actions.is_checked(self.REMEMBER_ME):
            await self.actions.toggle_checkbox(self.REMEMBER_ME)
        await self.actions.click(self.LOGIN_BUTTON)

    @allure.step("Verify login error is displayed")
    async def verify_error_displayed(self, timeout: int = 3000) -> bool:
        return await self.actions.wait_for_displayed(self.ERROR_MESSAGE, timeout=timeout)

    async def error_message(self) -> str:
        return (await self.actions.get_text(self.ERROR_MESSAGE)).strip()
