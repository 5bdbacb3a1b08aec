"""
================================================================================
Smart Logger
================================================================================

Structured, test-scoped diagnostic log for the interaction layer.

Every entry is timestamped, leveled, auto-categorized from its message and
tagged from its context, stored in a shared LogBuffer under the name of the
test that produced it, and mirrored to loguru with ``test`` / ``category``
bound as extras.

At the end of a test the buffered entries are rendered into report
attachments (raw JSON, summary, HTML timeline, action transcript, error
analysis, performance metrics) and cleared for that test only.

Usage:
    smart_logger = SmartLogger()
    smart_logger.initialize_test("test_login")
    smart_logger.log_action("click", 'selector "#submit"')
    await smart_logger.log_error(error, page)
    attach_exported(smart_logger.export_for_reporting())
    smart_logger.clear_test_logs()

Categorization and failure suggestions are keyword heuristics; treat them
as hints, not facts.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import html
import json
import threading
import time
import traceback
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from loguru import logger
from playwright.async_api import Page

from e2e_tools.common import safe_json_serialize

from .page_inspector import PageInspector, generate_failure_suggestions
from .settings import InteractionSettings


LOG_LEVELS = ("INFO", "WARN", "ERROR", "DEBUG", "ACTION", "NAVIGATION", "PASS", "FAIL")

LOG_CATEGORIES = (
    "USER_ACTION",
    "NAVIGATION",
    "API",
    "ASSERTION",
    "TIMING",
    "PERFORMANCE",
    "ERROR",
    "GENERAL",
)

# Entry level -> loguru level used for the mirrored record
_LOGURU_LEVELS = {
    "INFO": "INFO",
    "WARN": "WARNING",
    "ERROR": "ERROR",
    "DEBUG": "DEBUG",
    "ACTION": "INFO",
    "NAVIGATION": "INFO",
    "PASS": "SUCCESS",
    "FAIL": "ERROR",
}

# Checked in order; first hit wins
_CATEGORY_KEYWORDS = (
    ("USER_ACTION", ("click", "type", "select", "fill", "hover", "press", "check", "drag", "upload")),
    ("NAVIGATION", ("navigate", "page", "url")),
    ("API", ("api", "request", "response")),
    ("ASSERTION", ("assert", "expect", "verify")),
    ("TIMING", ("wait", "timeout")),
    ("PERFORMANCE", ("performance", "load", "speed")),
)

HIGH_WARNING_COUNT = 3
COMPLEX_TEST_ACTIONS = 20
STACK_LINES = 5


# ================================================================================
# Data Types
# ================================================================================

@dataclass
class LogEntry:
    id: str
    timestamp: str
    level: str
    message: str
    test_context: str
    category: str
    tags: List[str] = field(default_factory=list)
    context: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Attachment:
    """Named content blob for a reporting tool."""
    name: str
    content: str
    mime_type: str


@dataclass
class TimelineEntry:
    timestamp: str
    message: str
    level: str
    category: str


@dataclass
class PerformanceSummary:
    total_measurements: int = 0
    average_time: float = 0.0
    slowest_operation: float = 0.0
    fastest_operation: float = 0.0
    timeouts: int = 0


@dataclass
class TestSummary:
    test_name: str
    total_logs: int
    logs_by_level: Dict[str, int]
    logs_by_category: Dict[str, int]
    timeline: List[TimelineEntry]
    insights: List[str]
    suggestions: List[str]
    performance: PerformanceSummary
    errors: List[LogEntry]
    warnings: List[LogEntry]

    # Not a test class despite the name
    __test__ = False


class LogBuffer:
    """
    Append-only store of log entries shared by every SmartLogger.

    Entries are tagged with their test context; removal is by context, so
    one test clearing its logs never touches another test's entries.
    """

    def __init__(self):
        self._entries: List[LogEntry] = []
        self._lock = threading.Lock()

    def append(self, entry: LogEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def entries(self, test_context: Optional[str] = None) -> List[LogEntry]:
        with self._lock:
            if test_context is None:
                return list(self._entries)
            return [e for e in self._entries if e.test_context == test_context]

    def remove(self, test_context: str) -> int:
        """Drop every entry of ``test_context``; returns how many were removed."""
        with self._lock:
            kept = [e for e in self._entries if e.test_context != test_context]
            removed = len(self._entries) - len(kept)
            self._entries = kept
            return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


# Process-wide buffer used when none is injected
_shared_buffer = LogBuffer()


# ================================================================================
# Pure Helpers
# ================================================================================

def categorize_log(message: str, level: str) -> str:
    """Best-effort category for an entry, from keywords in its message."""
    msg = message.lower()
    for category, keywords in _CATEGORY_KEYWORDS:
        if any(keyword in msg for keyword in keywords):
            return category
    if level in ("ERROR", "FAIL"):
        return "ERROR"
    return "GENERAL"


def generate_tags(message: str, level: str, context: Optional[Dict[str, Any]] = None) -> List[str]:
    context = context or {}
    tags = [level.lower()]
    if context.get("element"):
        tags.append("element-interaction")
    if context.get("method") and "status" in context:
        tags.append("api-call")
    if context.get("performance"):
        tags.append("performance")
    if context.get("suggestions"):
        tags.append("auto-diagnosed")
    if "screenshot" in message.lower():
        tags.append("visual")
    return tags


def sanitize_value(value: Any, max_length: int = 6) -> str:
    """
    Mask values that look sensitive.

    A value is masked (same length, all ``*``) when it mentions "password"
    or is longer than ``max_length`` characters.
    """
    text = str(value)
    if "password" in text.lower() or len(text) > max_length:
        return "*" * len(text)
    return text


def categorize_performance(milliseconds: float) -> str:
    if milliseconds < 1000:
        return "fast"
    if milliseconds < 3000:
        return "moderate"
    if milliseconds < 5000:
        return "slow"
    return "very-slow"


def _comparison(expected: Any, actual: Any) -> str:
    if type(expected) is type(actual):
        return f"Expected: {expected}, Actual: {actual}"
    return (
        f"Type mismatch - Expected: {type(expected).__name__}({expected}), "
        f"Actual: {type(actual).__name__}({actual})"
    )


def _stack_lines(error: BaseException) -> List[str]:
    # Wrapped errors are logged before being raised; their cause holds the trace
    source = error
    if source.__traceback__ is None and isinstance(getattr(error, "cause", None), BaseException):
        source = error.cause
    if source.__traceback__ is None:
        return [f"{type(error).__name__}: {error}"]
    formatted = "".join(traceback.format_exception(type(source), source, source.__traceback__))
    return formatted.strip().splitlines()[:STACK_LINES]


# ================================================================================
# Smart Logger
# ================================================================================

class SmartLogger:
    """
    Test-scoped structured logger.

    One instance per test (or worker); instances share a LogBuffer unless
    one is injected. The active test context lives on the instance.

    Args:
        buffer: Entry store (process-wide shared buffer by default)
        settings: Interaction settings (masking threshold, error screenshots)
        test_context: Initial test context name
    """

    def __init__(
        self,
        buffer: Optional[LogBuffer] = None,
        settings: Optional[InteractionSettings] = None,
        test_context: str = "",
    ):
        self.buffer = buffer if buffer is not None else _shared_buffer
        self.settings = settings or InteractionSettings()
        self._current_test = test_context

    # ----------------------------------------------------------------
    # Test context
    # ----------------------------------------------------------------

    @property
    def current_test(self) -> str:
        return self._current_test

    def initialize_test(self, test_name: str) -> None:
        """Activate ``test_name`` and record the test start."""
        self._current_test = test_name
        self.log("INFO", "Test started", {"test_name": test_name})

    def set_test_context(self, test_name: str) -> None:
        self._current_test = test_name

    def end_test(self) -> None:
        self._current_test = ""

    # ----------------------------------------------------------------
    # Logging
    # ----------------------------------------------------------------

    def log(
        self,
        level: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        category: Optional[str] = None,
    ) -> LogEntry:
        """
        Record one entry in the buffer and mirror it to loguru.

        Args:
            level: One of LOG_LEVELS
            message: Human-readable message
            context: Structured details
            category: Explicit category; derived from the message when None
        """
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {level}")

        context = dict(context or {})
        entry = LogEntry(
            id=f"log_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}",
            timestamp=datetime.now().isoformat(),
            level=level,
            message=message,
            test_context=self._current_test,
            category=category or categorize_log(message, level),
            tags=generate_tags(message, level, context),
            context=context,
        )
        self.buffer.append(entry)

        logger.bind(test=self._current_test or "-", category=entry.category).log(
            _LOGURU_LEVELS[level], f"[{level}] {message}"
        )
        return entry

    def log_action(self, action: str, element: Optional[str] = None, value: Any = None) -> LogEntry:
        """Record a user-level action; ``value`` is masked when it looks sensitive."""
        return self.log("ACTION", f"User {action}", {
            "element": element,
            "value": self.mask(value) if value is not None else None,
            "step": self._next_step_number(),
        }, category="USER_ACTION")

    def log_navigation(self, from_url: str, to_url: str, load_time: Optional[float] = None) -> LogEntry:
        return self.log("NAVIGATION", f"Navigated from {from_url} to {to_url}", {
            "from": from_url,
            "to": to_url,
            "load_time": load_time,
            "performance": categorize_performance(load_time) if load_time else None,
        }, category="NAVIGATION")

    def log_api_call(
        self,
        method: str,
        url: str,
        status: int,
        response_time: Optional[float] = None,
    ) -> LogEntry:
        level = "ERROR" if status >= 400 else "WARN" if status >= 300 else "INFO"
        return self.log(level, f"API {method} {url} - {status}", {
            "method": method,
            "url": url,
            "status": status,
            "response_time": response_time,
            "success": status < 400,
        }, category="API")

    def log_assertion(self, description: str, expected: Any, actual: Any, passed: bool) -> LogEntry:
        return self.log("PASS" if passed else "FAIL", f"Assertion: {description}", {
            "expected": expected,
            "actual": actual,
            "passed": passed,
            "comparison": _comparison(expected, actual),
        }, category="ASSERTION")

    def log_performance(self, metric: str, value: float, threshold: Optional[float] = None) -> LogEntry:
        """Record a timing in milliseconds; WARN when over ``threshold``."""
        over = threshold is not None and value > threshold
        return self.log("WARN" if over else "INFO", f"Performance: {metric} = {value}ms", {
            "metric": metric,
            "value": value,
            "threshold": threshold,
            "rating": categorize_performance(value),
            "within_threshold": not over,
        }, category="PERFORMANCE")

    def log_wait(
        self,
        wait_type: str,
        selector: Optional[str] = None,
        timeout: Optional[int] = None,
        success: Optional[bool] = None,
    ) -> LogEntry:
        return self.log("WARN" if success is False else "INFO", f"Wait: {wait_type}", {
            "wait_type": wait_type,
            "selector": selector,
            "timeout": timeout,
            "success": success,
        }, category="TIMING")

    async def log_error(
        self,
        error: BaseException,
        page: Optional[Page] = None,
        auto_inspect: bool = True,
        inspector: Optional[PageInspector] = None,
    ) -> LogEntry:
        """
        Record an error, inspecting the page first when one is given.

        Never raises because of the inspection; a failed inspection is
        recorded as ``inspection_error`` in the entry context.

        Args:
            error: The failure
            page: Live page to inspect
            auto_inspect: Set False to skip inspection
            inspector: Pre-configured inspector (built from ``page`` otherwise)
        """
        context: Dict[str, Any] = {
            "name": type(error).__name__,
            "message": str(error),
            "stack": _stack_lines(error),
            "test_name": self._current_test,
        }

        if (page is not None or inspector is not None) and auto_inspect:
            try:
                inspector = inspector or PageInspector(page, self.settings)
                report = await inspector.inspect_page_on_error(str(error))
                context["suggestions"] = generate_failure_suggestions(report)
                context["page_inspection"] = {
                    "url": report.url,
                    "title": report.title,
                    "screenshot": report.screenshot,
                    "error_elements": [
                        {"selector": key[len("error_"):], "text": data.get("text", "")}
                        for key, data in report.visible_errors().items()
                    ],
                    "blocking_elements": len(report.blocking_elements),
                    "inspection_error": report.inspection_error,
                }
            except Exception as e:
                logger.warning(f"Page inspection failed while logging error: {e}")
                context["inspection_error"] = str(e)

        return self.log("ERROR", str(error), context, category="ERROR")

    def mask(self, value: Any) -> str:
        return sanitize_value(value, self.settings.sensitive_value_length)

    def entries(self, test_context: Optional[str] = None) -> List[LogEntry]:
        """Entries of ``test_context`` (the active test by default)."""
        return self.buffer.entries(self._current_test if test_context is None else test_context)

    def clear_test_logs(self) -> int:
        """Remove the active test's entries only."""
        return self.buffer.remove(self._current_test)

    def _next_step_number(self) -> int:
        return sum(1 for e in self.entries() if e.level == "ACTION") + 1

    # ----------------------------------------------------------------
    # Summary & export
    # ----------------------------------------------------------------

    def generate_test_summary(self) -> TestSummary:
        logs = self.entries()
        return TestSummary(
            test_name=self._current_test,
            total_logs=len(logs),
            logs_by_level=_count_by(logs, "level"),
            logs_by_category=_count_by(logs, "category"),
            timeline=[
                TimelineEntry(e.timestamp, e.message, e.level, e.category) for e in logs
            ],
            insights=_insights(logs),
            suggestions=_collected_suggestions(logs),
            performance=_summarize_performance(logs),
            errors=[e for e in logs if e.level == "ERROR"],
            warnings=[e for e in logs if e.level == "WARN"],
        )

    def export_for_reporting(self) -> List[Attachment]:
        """
        Render the active test's entries as report attachments.

        Always: raw log JSON, summary JSON, timeline HTML, action transcript.
        Only when applicable: error analysis (markdown), performance text.
        """
        logs = self.entries()
        summary = self.generate_test_summary()

        attachments = [
            Attachment(
                "Detailed Test Logs",
                json.dumps([asdict(e) for e in logs], indent=2, default=safe_json_serialize),
                "application/json",
            ),
            Attachment(
                "Test Execution Summary",
                json.dumps(asdict(summary), indent=2, default=safe_json_serialize),
                "application/json",
            ),
            Attachment("Test Timeline", _timeline_html(summary.timeline), "text/html"),
            Attachment("User Actions Log", _action_steps(logs), "text/plain"),
        ]

        if summary.errors:
            attachments.append(Attachment(
                "Error Analysis & Suggestions",
                _error_analysis(summary.errors),
                "text/markdown",
            ))

        if summary.performance.total_measurements > 0:
            attachments.append(Attachment(
                "Performance Metrics",
                _performance_report(summary.performance),
                "text/plain",
            ))

        return attachments


# ================================================================================
# Rendering
# ================================================================================

def _count_by(logs: List[LogEntry], attribute: str) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for entry in logs:
        key = getattr(entry, attribute)
        counts[key] = counts.get(key, 0) + 1
    return counts


def _insights(logs: List[LogEntry]) -> List[str]:
    insights = []
    errors = sum(1 for e in logs if e.level == "ERROR")
    warnings = sum(1 for e in logs if e.level == "WARN")
    actions = sum(1 for e in logs if e.level == "ACTION")

    if errors:
        insights.append(f"Test encountered {errors} error(s) - review error logs for details")
    if warnings > HIGH_WARNING_COUNT:
        insights.append(
            f"High number of warnings ({warnings}) - may indicate unstable test conditions"
        )
    if actions > COMPLEX_TEST_ACTIONS:
        insights.append(
            f"Complex test with {actions} user actions - consider breaking into smaller tests"
        )
    return insights


def _collected_suggestions(logs: List[LogEntry]) -> List[str]:
    suggestions: List[str] = []
    for entry in logs:
        suggestions.extend(entry.context.get("suggestions") or [])
    return list(dict.fromkeys(suggestions))


def _summarize_performance(logs: List[LogEntry]) -> PerformanceSummary:
    measurements = [e for e in logs if e.category == "PERFORMANCE"]
    times = [e.context.get("value") or 0 for e in measurements]
    times = [t for t in times if t > 0]
    return PerformanceSummary(
        total_measurements=len(measurements),
        average_time=sum(times) / len(times) if times else 0.0,
        slowest_operation=max(times, default=0),
        fastest_operation=min(times, default=0),
        timeouts=sum(1 for e in logs if "timeout" in e.message.lower()),
    )


def _timeline_html(timeline: List[TimelineEntry]) -> str:
    items = "\n".join(
        f'    <div class="timeline-item {html.escape(t.level.lower())}">'
        f'<span class="timestamp">{html.escape(t.timestamp)}</span>'
        f'<span class="level">{html.escape(t.level)}</span>'
        f'<span class="message">{html.escape(t.message)}</span></div>'
        for t in timeline
    )
    return f"""<html>
  <head>
    <title>Test Timeline</title>
    <style>
      .timeline-item {{ margin: 5px 0; padding: 10px; border-left: 3px solid #ccc; }}
      .error, .fail {{ border-left-color: #ff0000; background-color: #ffe6e6; }}
      .warn {{ border-left-color: #ffa500; background-color: #fff3e0; }}
      .info {{ border-left-color: #0066cc; background-color: #e6f3ff; }}
      .pass {{ border-left-color: #2e7d32; background-color: #e8f5e9; }}
      .timestamp {{ font-weight: bold; margin-right: 10px; }}
      .level {{ display: inline-block; width: 100px; margin-right: 10px; }}
    </style>
  </head>
  <body>
    <h1>Test Timeline</h1>
{items}
  </body>
</html>
"""


def _action_steps(logs: List[LogEntry]) -> str:
    steps = []
    for number, entry in enumerate((e for e in logs if e.level == "ACTION"), start=1):
        lines = [f"Step {number}: {entry.message}"]
        if entry.context.get("element"):
            lines.append(f"  Element: {entry.context['element']}")
        if entry.context.get("value") is not None:
            lines.append(f"  Value: {entry.context['value']}")
        steps.append("\n".join(lines))
    return "USER ACTIONS PERFORMED:\n\n" + "\n\n".join(steps)


def _error_analysis(errors: List[LogEntry]) -> str:
    sections = []
    for entry in errors:
        page_info = entry.context.get("page_inspection") or {}
        error_elements = page_info.get("error_elements") or []
        suggestions = entry.context.get("suggestions") or []
        stack = entry.context.get("stack") or ["No stack trace available"]

        lines = [
            f"## Error: {entry.message}",
            "",
            "**Context:**",
            f"- URL: {page_info.get('url') or 'Unknown'}",
            f"- Title: {page_info.get('title') or 'Unknown'}",
            f"- Screenshot: {page_info.get('screenshot') or 'Not captured'}",
            f"- Error Elements: {len(error_elements)} found",
        ]
        lines.extend(f'  - `{el["selector"]}`: "{el["text"]}"' for el in error_elements)
        lines.append(f"- Blocking Elements: {page_info.get('blocking_elements', 0)} detected")
        if entry.context.get("inspection_error"):
            lines.append(f"- Inspection Error: {entry.context['inspection_error']}")

        lines.extend(["", "**Smart Suggestions:**"])
        lines.extend(f"- {s}" for s in suggestions)
        lines.extend(["", "**Stack Trace:**", "```", *stack, "```", ""])
        sections.append("\n".join(lines))

    return "\n\n---\n\n".join(sections)


def _performance_report(performance: PerformanceSummary) -> str:
    average = performance.average_time
    if average < 1000:
        rating = "Excellent"
    elif average < 3000:
        rating = "Good"
    elif average < 5000:
        rating = "Slow"
    else:
        rating = "Poor"

    return (
        "PERFORMANCE METRICS:\n\n"
        f"Total Measurements: {performance.total_measurements}\n"
        f"Average Time: {average:.2f}ms\n"
        f"Fastest Operation: {performance.fastest_operation}ms\n"
        f"Slowest Operation: {performance.slowest_operation}ms\n"
        f"Timeouts Encountered: {performance.timeouts}\n\n"
        f"PERFORMANCE RATING: {rating}"
    )


__all__ = [
    "LOG_LEVELS",
    "LOG_CATEGORIES",
    "LogEntry",
    "LogBuffer",
    "Attachment",
    "TestSummary",
    "PerformanceSummary",
    "TimelineEntry",
    "SmartLogger",
    "categorize_log",
    "generate_tags",
    "sanitize_value",
    "categorize_performance",
]
