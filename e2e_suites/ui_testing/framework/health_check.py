"""
================================================================================
Element Health Checks
================================================================================

Optional pre-interaction diagnostics. Off by default; enabled with
``interaction.detailed_health_checks``. A health report is informational
only and never makes an operation fail.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from loguru import logger

from .element_ref import ResolvedElement
from .settings import InteractionSettings


NOT_FOUND = "Element not found in DOM"
MULTIPLE_FOUND = "Multiple elements found ({count}), using first one"
NOT_VISIBLE = "Element is not visible"
DISABLED = "Element is disabled"
SKIPPED = "Health check skipped: {reason}"

# Operation kinds for which a disabled element is an issue
_INTERACTIVE_KINDS = ("click", "fill")


@dataclass
class HealthReport:
    healthy: bool = True
    issues: List[str] = field(default_factory=list)


def _is_informational(issue: str) -> bool:
    return issue.startswith("Multiple elements found")


class HealthChecker:
    """
    Inspects a resolved element before it is interacted with.

    Usage:
        checker = HealthChecker(settings)
        report = await checker.check(resolved, "click")
    """

    def __init__(self, settings: Optional[InteractionSettings] = None):
        self.settings = settings or InteractionSettings()

    @property
    def enabled(self) -> bool:
        return self.settings.enable_health_checks

    async def check(self, resolved: ResolvedElement, kind: str = "read") -> HealthReport:
        """
        Check element health. Never raises.

        Args:
            resolved: Element to check
            kind: 'click', 'fill' or 'read'

        Returns:
            HealthReport; healthy unless an issue other than the
            multiple-matches note was found
        """
        if not self.enabled:
            return HealthReport()

        issues: List[str] = []
        try:
            count = await resolved.matches.count()
            if count == 0:
                issues.append(NOT_FOUND)
            else:
                if count > 1:
                    issues.append(MULTIPLE_FOUND.format(count=count))
                if not await resolved.locator.is_visible():
                    issues.append(NOT_VISIBLE)
                if kind in _INTERACTIVE_KINDS and not await resolved.locator.is_enabled():
                    issues.append(DISABLED)
        except Exception as e:
            logger.debug(f"Health check for {resolved.descriptor} interrupted: {e}")
            reason = str(e).splitlines()[0] if str(e) else type(e).__name__
            return HealthReport(healthy=True, issues=[SKIPPED.format(reason=reason)])

        return HealthReport(
            healthy=all(_is_informational(issue) for issue in issues),
            issues=issues,
        )


__all__ = [
    "HealthReport",
    "HealthChecker",
]
