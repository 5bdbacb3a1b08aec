# ================================================================================
# Retry Engine
# ================================================================================
#
# Fast-first retry with exponential backoff for async element operations.
#
# Schedule (default settings):
#   attempt 1 fails -> wait first_retry_delay (0.1s)
#   attempt 2 fails -> wait base_retry_delay * 2^0 (0.5s)
#   attempt 3 fails -> wait base_retry_delay * 2^1 (1.0s) ... up to max_retries
#
# Unrecoverable failures (element absent, closed page/context/browser,
# navigation / DNS / connection errors) are re-raised on the spot.
#
# ================================================================================

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from loguru import logger

from .errors import is_unrecoverable
from .settings import InteractionSettings
from .smart_logger import SmartLogger


T = TypeVar("T")


@dataclass(frozen=True)
class RetryOutcome(Generic[T]):
    """Successful result of a retried operation."""
    value: T
    attempts: int
    elapsed: float


def backoff_delay(attempt: int, base_delay: float, first_delay: float) -> float:
    """
    Delay to wait after ``attempt`` (1-based) failed.

    Args:
        attempt: Number of the attempt that just failed
        base_delay: Base delay for exponential backoff (s)
        first_delay: Fixed short delay after the first failure (s)
    """
    if attempt <= 1:
        return first_delay
    return base_delay * (2 ** (attempt - 2))


class RetryEngine:
    """
    Retries async operations that fail with recoverable errors.

    Example:
        engine = RetryEngine(smart_logger, settings)
        await engine.run(lambda: locator.click(timeout=5000), "Click #submit")
    """

    def __init__(
        self,
        smart_logger: SmartLogger,
        settings: Optional[InteractionSettings] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            smart_logger: Diagnostic logger receiving retry warnings/summaries
            settings: Interaction settings (defaults when None)
            sleep: Coroutine used for backoff waits
        """
        self.smart_logger = smart_logger
        self.settings = settings or InteractionSettings()
        self._sleep = sleep

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        name: str,
        max_attempts: Optional[int] = None,
        base_delay: Optional[float] = None,
    ) -> T:
        """
        Run ``operation`` until it succeeds, fails unrecoverably, or
        ``max_attempts`` is exhausted.

        Args:
            operation: Zero-argument callable returning an awaitable
            name: Operation name for logs
            max_attempts: Attempt budget (settings.max_retries by default)
            base_delay: Backoff base in seconds (settings.base_retry_delay by default)

        Returns:
            The operation's result

        Raises:
            The last error, annotated with ``attempts`` and ``elapsed``
        """
        outcome = await self.execute(operation, name, max_attempts, base_delay)
        return outcome.value

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        name: str,
        max_attempts: Optional[int] = None,
        base_delay: Optional[float] = None,
    ) -> "RetryOutcome[T]":
        """Same as ``run`` but also reports how many attempts were needed."""
        max_attempts = self.settings.max_retries if max_attempts is None else max_attempts
        base_delay = self.settings.base_retry_delay if base_delay is None else base_delay
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        start = time.monotonic()

        for attempt in range(1, max_attempts + 1):
            try:
                result = await operation()
            except Exception as error:
                elapsed = time.monotonic() - start
                _annotate(error, attempt, elapsed)

                if is_unrecoverable(error):
                    if attempt > 1:
                        self.smart_logger.log(
                            "ERROR",
                            f"{name} failed (unrecoverable) on attempt {attempt}: {error}",
                            {"operation": name, "attempts": attempt, "elapsed": round(elapsed, 3)},
                        )
                    else:
                        logger.debug(f"{name} failed fast (unrecoverable): {error}")
                    raise

                if attempt == max_attempts:
                    if attempt > 1:
                        self.smart_logger.log(
                            "ERROR",
                            f"{name} failed after {attempt} attempts in {elapsed:.2f}s: {error}",
                            {"operation": name, "attempts": attempt, "elapsed": round(elapsed, 3)},
                        )
                    raise

                delay = backoff_delay(attempt, base_delay, self.settings.first_retry_delay)
                self.smart_logger.log(
                    "WARN",
                    f"{name} attempt {attempt} failed, retrying in {delay * 1000:.0f}ms",
                    {"operation": name, "attempt": attempt, "delay": delay, "error": str(error)},
                )
                await self._sleep(delay)
                continue

            elapsed = time.monotonic() - start
            if attempt > 1:
                self.smart_logger.log(
                    "INFO",
                    f"{name} completed after {attempt} attempts",
                    {"operation": name, "attempts": attempt, "elapsed": round(elapsed, 3)},
                )
            elif (
                self.settings.enable_performance_monitoring
                and elapsed > self.settings.slow_operation_threshold
            ):
                self.smart_logger.log_performance(
                    name,
                    round(elapsed * 1000),
                    threshold=self.settings.slow_operation_threshold * 1000,
                )
            return RetryOutcome(result, attempt, elapsed)


def _annotate(error: BaseException, attempts: int, elapsed: float) -> None:
    try:
        error.attempts = attempts
        error.elapsed = elapsed
    except AttributeError:
        # Some builtin exceptions reject new attributes
        pass


__all__ = [
    "RetryEngine",
    "RetryOutcome",
    "backoff_delay",
]
