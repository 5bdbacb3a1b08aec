# ================================================================================
# Smart Wait Engine
# ================================================================================
#
# Waits for an element to satisfy a composable set of conditions before an
# interaction is attempted. Conditions are checked in a fixed order:
#
#   visible -> stable -> enabled -> has_text
#
# and the first unmet condition raises InteractionTimeoutError naming it.
# Visibility is on by default; the rest are opt-in because each one adds
# latency to every operation.
#
# ================================================================================

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .errors import InteractionTimeoutError, is_unrecoverable
from .settings import InteractionSettings


@dataclass(frozen=True)
class WaitConditions:
    """
    Conditions an element must meet before interaction.

    Attributes:
        visible: Attached, rendered with non-zero size, not hidden by CSS
        stable: Let CSS transitions/animations settle after becoming visible
        enabled: Not disabled, accepts interaction
        has_text: Non-empty text content
    """
    visible: bool = True
    stable: bool = False
    enabled: bool = False
    has_text: bool = False


async def poll_until(
    predicate: Callable[[], Awaitable[bool]],
    timeout: int,
    interval: float = 0.1,
) -> bool:
    """
    Poll an async predicate until it returns True or the timeout expires.

    Transient Playwright errors raised by the predicate count as "not yet";
    unrecoverable ones (closed page, etc.) propagate.

    Args:
        predicate: Async callable returning bool
        timeout: Timeout in milliseconds
        interval: Delay between polls in seconds

    Returns:
        True if the predicate held before the deadline, False otherwise
    """
    deadline = time.monotonic() + timeout / 1000
    while True:
        try:
            if await predicate():
                return True
        except PlaywrightError as e:
            if is_unrecoverable(e):
                raise
            logger.trace(f"poll_until: predicate raised {e}")

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return False
        await asyncio.sleep(min(interval, remaining))


class SmartWaiter:
    """
    Applies WaitConditions to a locator.

    Usage:
        waiter = SmartWaiter(settings)
        await waiter.wait_for(locator, WaitConditions(enabled=True), timeout=5000)
    """

    def __init__(self, settings: Optional[InteractionSettings] = None):
        self.settings = settings or InteractionSettings()

    async def wait_for(
        self,
        locator: Locator,
        conditions: Optional[WaitConditions] = None,
        timeout: Optional[int] = None,
    ) -> None:
        """
        Wait until every requested condition holds.

        Args:
            locator: Element to wait on
            conditions: Conditions to satisfy (visible only by default)
            timeout: Timeout in milliseconds per condition

        Raises:
            InteractionTimeoutError: First unmet condition, in check order
        """
        conditions = conditions or WaitConditions()
        timeout = self.settings.default_timeout if timeout is None else timeout

        if conditions.visible:
            await self.wait_for_state(locator, "visible", timeout)

        if conditions.stable or self.settings.enable_health_checks:
            await asyncio.sleep(self.settings.animation_delay)

        if conditions.enabled:
            if not await poll_until(locator.is_enabled, timeout, self.settings.polling_interval):
                raise InteractionTimeoutError(
                    f"Element not enabled within {timeout}ms", condition="enabled"
                )

        if conditions.has_text:
            async def _has_text() -> bool:
                return bool((await locator.text_content() or "").strip())

            if not await poll_until(_has_text, timeout, self.settings.polling_interval):
                raise InteractionTimeoutError(
                    f"Element has no text within {timeout}ms", condition="has_text"
                )

    async def wait_for_state(self, locator: Locator, state: str, timeout: int) -> None:
        """
        Wait for a Playwright element state.

        Args:
            locator: Element to wait on
            state: 'visible', 'hidden', 'attached' or 'detached'
            timeout: Timeout in milliseconds

        Raises:
            InteractionTimeoutError: When the state is not reached in time
        """
        try:
            await locator.wait_for(state=state, timeout=timeout)
        except PlaywrightTimeoutError as e:
            raise InteractionTimeoutError(
                f"Element not {state} within {timeout}ms", condition=state, cause=e
            ) from e


__all__ = [
    "WaitConditions",
    "SmartWaiter",
    "poll_until",
]
