"""
================================================================================
UI Interaction Framework
================================================================================

Resilient element-interaction layer on top of Playwright's async API.

Components:
    - element_actions: Interaction facade (click, fill, select, waits, reads)
    - element_ref: Selector / Locator references and their resolution
    - smart_wait: Composable wait conditions
    - retry: Fast-first retry with exponential backoff
    - health_check: Optional pre-interaction diagnostics
    - smart_logger: Test-scoped structured logging and report export
    - page_inspector: Page snapshot and failure suggestions on errors
    - page_base: Base page object
    - settings: Interaction settings loaded from configuration

Author: Automation Team
License: MIT
================================================================================
"""

from .element_actions import ElementActions
from .element_ref import ElementResolver, ResolvedHandle, Selector, as_reference
from .errors import (
    ElementNotFoundError,
    EnvironmentUnavailableError,
    InteractionTimeoutError,
    OperationError,
    OperationResult,
    ValueVerificationError,
)
from .health_check import HealthChecker, HealthReport
from .page_base import BasePage
from .page_inspector import PageInspectionReport, PageInspector, generate_failure_suggestions
from .retry import RetryEngine
from .settings import InteractionSettings
from .smart_logger import Attachment, LogBuffer, LogEntry, SmartLogger
from .smart_wait import SmartWaiter, WaitConditions

__all__ = [
    "ElementActions",
    "ElementResolver",
    "Selector",
    "ResolvedHandle",
    "as_reference",
    "OperationError",
    "ElementNotFoundError",
    "InteractionTimeoutError",
    "ValueVerificationError",
    "EnvironmentUnavailableError",
    "OperationResult",
    "HealthChecker",
    "HealthReport",
    "BasePage",
    "PageInspector",
    "PageInspectionReport",
    "generate_failure_suggestions",
    "RetryEngine",
    "InteractionSettings",
    "SmartLogger",
    "LogBuffer",
    "LogEntry",
    "Attachment",
    "SmartWaiter",
    "WaitConditions",
]
