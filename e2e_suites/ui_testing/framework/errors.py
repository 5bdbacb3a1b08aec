"""
================================================================================
Interaction Errors
================================================================================

Typed failures raised by the element-interaction layer, the recoverable /
unrecoverable classification used by the retry engine, and the
``OperationResult`` wrapper for callers that prefer values over exceptions.

Taxonomy:
    OperationError                 base, recoverable by default
    ├── ElementNotFoundError       nothing at the selector/index (fail fast)
    ├── InteractionTimeoutError    a wait condition was not met in time
    ├── ValueVerificationError     post-fill read-back mismatch
    └── EnvironmentUnavailableError  page/context/browser closed, DNS, refused

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, Type, TypeVar

from playwright.async_api import TimeoutError as PlaywrightTimeoutError


T = TypeVar("T")


# Lower-cased fragments of error messages that no retry can fix
UNRECOVERABLE_PATTERNS = (
    "element not found",
    "page has been closed",
    "context has been closed",
    "browser has been closed",
    "target page, context or browser has been closed",
    "navigation failed",
    "net::err_name_not_resolved",
    "net::err_connection_refused",
)

# Subset of the above that indicates the environment itself is gone
_ENVIRONMENT_PATTERNS = UNRECOVERABLE_PATTERNS[1:]


class OperationError(Exception):
    """
    Failure of an interaction-layer operation.

    Attributes:
        operation_name: Facade operation that failed (e.g. "click")
        element_descriptor: Human-readable element reference
        cause: Underlying exception, if any
        recoverable: Whether retrying can help
        attempts: Attempts made when a retry loop ran (None otherwise)
        elapsed: Seconds spent across attempts when a retry loop ran
    """

    recoverable: bool = True

    def __init__(
        self,
        message: str,
        operation_name: str = "",
        element_descriptor: str = "",
        cause: Optional[BaseException] = None,
        recoverable: Optional[bool] = None,
    ):
        self.reason = message
        self.operation_name = operation_name
        self.element_descriptor = element_descriptor
        self.cause = cause
        if recoverable is not None:
            self.recoverable = recoverable
        self.attempts: Optional[int] = None
        self.elapsed: Optional[float] = None
        super().__init__(self._format())

    def _format(self) -> str:
        if not self.operation_name:
            return self.reason
        target = f" for {self.element_descriptor}" if self.element_descriptor else ""
        return f"{self.operation_name} failed{target}: {self.reason}"


class ElementNotFoundError(OperationError):
    """Nothing matched the reference at the requested index."""

    recoverable = False


class InteractionTimeoutError(OperationError):
    """A wait condition was not satisfied within its timeout."""

    def __init__(self, message: str, condition: str = "", **kwargs):
        self.condition = condition
        super().__init__(message, **kwargs)


class ValueVerificationError(OperationError):
    """The value read back after a fill differs from the one set."""

    def __init__(self, message: str, expected: str = "", actual: str = "", **kwargs):
        self.expected = expected
        self.actual = actual
        super().__init__(message, **kwargs)


class EnvironmentUnavailableError(OperationError):
    """Page, context or browser is closed, or the host is unreachable."""

    recoverable = False


def is_unrecoverable(error: BaseException) -> bool:
    """
    Decide whether retrying ``error`` is pointless.

    Typed interaction errors carry their own flag; anything else is
    matched against the known fatal message patterns.
    """
    if isinstance(error, OperationError) and not error.recoverable:
        return True
    message = str(error).lower()
    return any(pattern in message for pattern in UNRECOVERABLE_PATTERNS)


def classify_error(error: BaseException) -> Type[OperationError]:
    """Map an arbitrary exception onto the interaction error taxonomy."""
    if isinstance(error, OperationError):
        return type(error)
    message = str(error).lower()
    if any(pattern in message for pattern in _ENVIRONMENT_PATTERNS):
        return EnvironmentUnavailableError
    if "element not found" in message:
        return ElementNotFoundError
    if isinstance(error, PlaywrightTimeoutError):
        return InteractionTimeoutError
    return OperationError


def _reason_of(error: BaseException) -> str:
    if isinstance(error, OperationError):
        return error.reason
    # Playwright appends a multi-line call log; the first line carries the cause
    lines = str(error).strip().splitlines()
    return lines[0] if lines else type(error).__name__


def wrap_error(
    operation_name: str,
    element_descriptor: str,
    error: BaseException,
) -> OperationError:
    """
    Wrap ``error`` with operation context, keeping its taxonomy class.

    The original exception is kept as ``cause``; retry annotations
    (attempts / elapsed) are carried over and appended to the message.
    """
    error_cls = classify_error(error)
    reason = _reason_of(error)

    attempts = getattr(error, "attempts", None)
    elapsed = getattr(error, "elapsed", None)
    if attempts and attempts > 1:
        reason = f"{reason} (after {attempts} attempts in {elapsed or 0:.2f}s)"

    kwargs = {}
    if error_cls is InteractionTimeoutError:
        kwargs["condition"] = getattr(error, "condition", "")
    elif error_cls is ValueVerificationError:
        kwargs["expected"] = getattr(error, "expected", "")
        kwargs["actual"] = getattr(error, "actual", "")

    wrapped = error_cls(
        reason,
        operation_name=operation_name,
        element_descriptor=element_descriptor,
        cause=error,
        recoverable=None if error_cls is not OperationError else not is_unrecoverable(error),
        **kwargs,
    )
    wrapped.attempts = attempts
    wrapped.elapsed = elapsed
    return wrapped


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """
    Discriminated outcome of a facade operation.

    Exactly one of ``value`` / ``error`` is meaningful, selected by
    ``succeeded``.
    """
    succeeded: bool
    value: Optional[T] = None
    error: Optional[OperationError] = None

    @classmethod
    def ok(cls, value: T = None) -> "OperationResult[T]":
        return cls(succeeded=True, value=value)

    @classmethod
    def failed(cls, error: OperationError) -> "OperationResult[T]":
        return cls(succeeded=False, error=error)

    def unwrap(self) -> T:
        """Return the value, or raise the captured error."""
        if not self.succeeded:
            raise self.error
        return self.value


__all__ = [
    "UNRECOVERABLE_PATTERNS",
    "OperationError",
    "ElementNotFoundError",
    "InteractionTimeoutError",
    "ValueVerificationError",
    "EnvironmentUnavailableError",
    "OperationResult",
    "is_unrecoverable",
    "classify_error",
    "wrap_error",
]
