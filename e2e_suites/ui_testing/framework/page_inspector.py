"""
================================================================================
Page Inspector
================================================================================

Point-in-time snapshot of a page taken when an interaction fails, plus a
heuristic translation of that snapshot into remediation hints.

    inspector = PageInspector(page)
    report = await inspector.inspect_page_on_error("click failed for #save")
    for hint in generate_failure_suggestions(report):
        print(hint)

Inspection never raises: every probe degrades on its own, and anything
unexpected is recorded in ``report.inspection_error``.

The suggestions are best-effort string matching over the snapshot and are
not authoritative.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from loguru import logger
from playwright.async_api import Page

from .settings import InteractionSettings


# Probes keyed by prefix in PageInspectionReport.elements
ERROR_SELECTORS = (
    ".error",
    ".error-message",
    ".alert-danger",
    ".notice-error",
    "#error",
    '[role="alert"]',
    ".wp-die-message",
    ".login-error",
    ".message.error",
)

LOADING_SELECTORS = (
    ".loading",
    ".spinner",
    ".wp-spinner",
    '[aria-label*="loading"]',
    ".is-loading",
)

EXISTENCE_SELECTORS = (
    "body",
    "main",
    "form",
    "nav",
)

OVERLAY_SELECTORS = (
    ".modal",
    ".overlay",
    ".popup",
    ".dialog",
    '[role="dialog"]',
    ".fancybox-overlay",
    ".ui-widget-overlay",
)

HIGH_Z_INDEX = 1000

_HIGH_Z_INDEX_SCRIPT = """(threshold) => Array.from(document.querySelectorAll('*'))
    .filter(el => {
        const style = window.getComputedStyle(el);
        const z = parseInt(style.zIndex);
        return z > threshold && style.position !== 'static';
    })
    .map(el => ({
        selector: el.tagName.toLowerCase()
            + (el.id ? '#' + el.id : '')
            + (typeof el.className === 'string' && el.className.trim()
                ? '.' + el.className.trim().split(/\\s+/).join('.') : ''),
        zIndex: window.getComputedStyle(el).zIndex,
    }))"""

_LOAD_STATE_SCRIPT = """() => ({
    readyState: document.readyState,
    loadEventFired: performance.timing.loadEventEnd > 0,
    domContentLoaded: performance.timing.domContentLoadedEventEnd > 0,
})"""

_LOCAL_STORAGE_SCRIPT = """() => {
    const storage = {};
    for (let i = 0; i < localStorage.length; i++) {
        const key = localStorage.key(i);
        if (key) storage[key] = localStorage.getItem(key) || '';
    }
    return storage;
}"""

# Keywords in visible error text that point at an authentication problem
_CREDENTIAL_KEYWORDS = ("password", "username", "credential", "login", "log in", "sign in")

_LOGIN_URL_MARKERS = ("wp-login.php", "/login", "/signin", "/sign-in")


@dataclass
class PageInspectionReport:
    """
    Snapshot of page state at failure time.

    ``elements`` keys are prefixed by probe family:
        ``error_<selector>``   -> {"count", "visible", "text"}
        ``loading_<selector>`` -> {"count", "visible", "text"} (visible only)
        ``exists_<selector>``  -> bool
    """
    timestamp: str
    error_context: str
    url: str = ""
    title: str = ""
    viewport: Optional[Dict[str, int]] = None
    user_agent: str = "Unknown"
    elements: Dict[str, Any] = field(default_factory=dict)
    screenshot: str = ""
    local_storage: Dict[str, str] = field(default_factory=dict)
    cookies: List[Dict[str, Any]] = field(default_factory=list)
    network_errors: List[Dict[str, Any]] = field(default_factory=list)
    js_errors: List[str] = field(default_factory=list)
    load_state: Dict[str, Any] = field(default_factory=dict)
    blocking_elements: List[Dict[str, str]] = field(default_factory=list)
    inspection_error: Optional[str] = None

    def visible_errors(self) -> Dict[str, Dict[str, Any]]:
        """Error-selector probes that were visible, keyed by element key."""
        return {
            key: data for key, data in self.elements.items()
            if key.startswith("error_") and isinstance(data, dict) and data.get("visible")
        }

    def visible_loading(self) -> Dict[str, Dict[str, Any]]:
        return {
            key: data for key, data in self.elements.items()
            if key.startswith("loading_") and isinstance(data, dict) and data.get("visible")
        }

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class PageInspector:
    """
    Collects a PageInspectionReport from a live page.

    Args:
        page: Playwright page to inspect
        settings: Interaction settings (screenshot toggle and directory)
        network_errors: Failed responses captured by the caller, if any
        js_errors: Page errors captured by the caller, if any
    """

    def __init__(
        self,
        page: Page,
        settings: Optional[InteractionSettings] = None,
        network_errors: Optional[List[Dict[str, Any]]] = None,
        js_errors: Optional[List[str]] = None,
    ):
        self.page = page
        self.settings = settings or InteractionSettings()
        self._network_errors = list(network_errors or [])
        self._js_errors = list(js_errors or [])

    async def inspect_page_on_error(self, error_context: str) -> PageInspectionReport:
        """
        Build the inspection report. Never raises.

        Args:
            error_context: Message of the failure being diagnosed
        """
        report = PageInspectionReport(
            timestamp=datetime.now().isoformat(),
            error_context=error_context,
        )

        try:
            report.url = self.page.url
            report.viewport = self.page.viewport_size
            report.title = await self._title()
            report.user_agent = await self._evaluate("() => navigator.userAgent", "Unknown")
            report.elements = await self._inspect_elements()
            report.screenshot = await self._capture_screenshot(report.timestamp)
            report.local_storage = await self._evaluate(_LOCAL_STORAGE_SCRIPT, {})
            report.cookies = await self._cookies()
            report.network_errors = self._network_errors
            report.js_errors = self._js_errors + await self._evaluate(
                "() => window.jsErrors || []", []
            )
            report.load_state = await self._evaluate(
                _LOAD_STATE_SCRIPT, {"error": "Unable to get load state"}
            )
            report.blocking_elements = await self._find_blocking_elements()
        except Exception as e:
            logger.warning(f"Error during page inspection: {e}")
            report.inspection_error = str(e)

        return report

    async def _title(self) -> str:
        try:
            return await self.page.title()
        except Exception:
            return "Unable to get title"

    async def _evaluate(self, script: str, default: Any, arg: Any = None) -> Any:
        try:
            if arg is None:
                result = await self.page.evaluate(script)
            else:
                result = await self.page.evaluate(script, arg)
        except Exception as e:
            logger.trace(f"Inspection script failed: {e}")
            return default
        return default if result is None else result

    async def _cookies(self) -> List[Dict[str, Any]]:
        try:
            return list(await self.page.context.cookies())
        except Exception:
            return []

    async def _probe(self, selector: str) -> Optional[Dict[str, Any]]:
        """Count, visibility and first text of ``selector``; None when absent."""
        locator = self.page.locator(selector)
        count = await locator.count()
        if count == 0:
            return None
        first = locator.first
        return {
            "count": count,
            "visible": await first.is_visible(),
            "text": (await first.text_content() or "").strip(),
        }

    async def _inspect_elements(self) -> Dict[str, Any]:
        elements: Dict[str, Any] = {}

        for selector in ERROR_SELECTORS:
            try:
                data = await self._probe(selector)
            except Exception:
                continue
            if data:
                elements[f"error_{selector}"] = data

        for selector in LOADING_SELECTORS:
            try:
                data = await self._probe(selector)
            except Exception:
                continue
            if data and data["visible"]:
                elements[f"loading_{selector}"] = data

        for selector in EXISTENCE_SELECTORS:
            try:
                elements[f"exists_{selector}"] = await self.page.locator(selector).count() > 0
            except Exception:
                elements[f"exists_{selector}"] = False

        return elements

    async def _capture_screenshot(self, timestamp: str) -> str:
        if not self.settings.screenshot_on_error:
            return ""
        filename = f"error-{timestamp.replace(':', '-')}.png"
        try:
            self.settings.screenshot_dir.mkdir(parents=True, exist_ok=True)
            await self.page.screenshot(
                path=str(self.settings.screenshot_dir / filename),
                full_page=True,
                animations="disabled",
            )
        except Exception as e:
            return f"Screenshot failed: {e}"
        return filename

    async def _find_blocking_elements(self) -> List[Dict[str, str]]:
        blocking: List[Dict[str, str]] = []

        for selector in OVERLAY_SELECTORS:
            try:
                locator = self.page.locator(selector)
                if await locator.count() > 0 and await locator.first.is_visible():
                    blocking.append({
                        "selector": selector,
                        "reason": "Modal or overlay blocking interaction",
                    })
            except Exception:
                continue

        for element in await self._evaluate(_HIGH_Z_INDEX_SCRIPT, [], HIGH_Z_INDEX):
            blocking.append({
                "selector": element["selector"],
                "reason": f"High z-index ({element['zIndex']}) element potentially blocking interaction",
            })

        return blocking


def generate_failure_suggestions(report: PageInspectionReport) -> List[str]:
    """
    Derive human-readable remediation hints from an inspection report.

    Pure function over the report; order follows the checks below and
    duplicates are dropped.
    """
    suggestions: List[str] = []
    url = (report.url or "").lower()
    title = (report.title or "").lower()

    if any(marker in url for marker in _LOGIN_URL_MARKERS):
        suggestions.append("Login page detected - check credentials and form submission")
    if "404" in url or "not found" in title:
        suggestions.append("404 error detected - verify URL and routing")

    for data in report.visible_errors().values():
        text = data.get("text", "")
        suggestions.append(
            f'Error message found: "{text}" - check form validation or server response'
        )
        if any(keyword in text.lower() for keyword in _CREDENTIAL_KEYWORDS):
            suggestions.append(
                "Error mentions login credentials - verify the username and password used by the test"
            )

    if report.visible_loading():
        suggestions.append("Loading indicator still visible - request may be stuck or taking too long")

    if any(int(entry.get("status", 0)) >= 400 for entry in report.network_errors):
        suggestions.append("Network errors detected - check API endpoints and server connectivity")

    if report.js_errors:
        suggestions.append("JavaScript errors detected - check browser console for details")

    if report.blocking_elements:
        suggestions.append("Potentially blocking elements detected - check for modals or overlays")

    ready_state = report.load_state.get("readyState")
    if ready_state is not None and ready_state != "complete":
        suggestions.append("Page not fully loaded - consider waiting for load state or specific elements")

    if not suggestions:
        suggestions.extend([
            "Check element selectors - they may have changed",
            "Consider adding explicit waits for dynamic content",
            "Verify page navigation completed successfully",
        ])

    return list(dict.fromkeys(suggestions))


__all__ = [
    "PageInspectionReport",
    "PageInspector",
    "generate_failure_suggestions",
    "ERROR_SELECTORS",
    "LOADING_SELECTORS",
    "OVERLAY_SELECTORS",
]
