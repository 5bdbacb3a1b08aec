"""
================================================================================
Unit Test Fixtures
================================================================================

In-memory doubles for Playwright's Page and Locator so the interaction
layer can be exercised without a browser.

The fake DOM is a mapping of selector -> list of FakeElement. Elements can
start hidden and become visible after a delay, fail a number of actions
with a transient error, or rewrite filled values to simulate page scripts.

================================================================================
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from e2e_suites.ui_testing.framework.element_actions import (
    CSS_PROPERTY_SCRIPT,
    OPTION_LABELS_SCRIPT,
    OPTION_VALUES_SCRIPT,
    SELECTED_TEXT_SCRIPT,
    SELECTED_VALUES_SCRIPT,
)
from e2e_suites.ui_testing.framework.settings import InteractionSettings
from e2e_suites.ui_testing.framework.smart_logger import LogBuffer, SmartLogger


POLL = 0.01


class FakeElement:
    """One node of the fake DOM."""

    def __init__(
        self,
        page: "FakePage",
        tag: str = "div",
        text: str = "",
        value: str = "",
        visible: bool = True,
        enabled: bool = True,
        checked: bool = False,
        attrs: Optional[Dict[str, str]] = None,
        options: Optional[List[Tuple[str, str]]] = None,
        styles: Optional[Dict[str, str]] = None,
        visible_after: Optional[float] = None,
        fail_times: int = 0,
        fail_message: str = "Element is not attached to the DOM",
        transform: Optional[Callable[[str], str]] = None,
    ):
        self.page = page
        self.tag = tag
        self.text = text
        self.value = value
        self.visible = visible
        self.enabled = enabled
        self.checked = checked
        self.attrs = dict(attrs or {})
        self.options = list(options or [])
        self.selected: List[str] = [self.options[0][0]] if self.options else []
        self.styles = dict(styles or {})
        self.created = time.monotonic()
        self.visible_after = visible_after
        self.fail_times = fail_times
        self.fail_message = fail_message
        self.transform = transform
        self.files: List[str] = []
        self.events: List[str] = []

    @property
    def is_shown(self) -> bool:
        if self.visible_after is not None:
            return time.monotonic() - self.created >= self.visible_after
        return self.visible

    def act(self, event: str) -> None:
        """Record an action, failing transiently while ``fail_times`` remain."""
        if self.fail_times > 0:
            self.fail_times -= 1
            raise PlaywrightError(self.fail_message)
        self.events.append(event)
        self.page.actions.append(event)


class FakeLocator:
    """Subset of playwright.async_api.Locator backed by the fake DOM."""

    def __init__(self, page: "FakePage", selector: str, index: Optional[int] = None):
        self.page = page
        self.selector = selector
        self.index = index

    def __repr__(self) -> str:
        return f"FakeLocator({self.selector!r}, {self.index})"

    def _elements(self) -> List[FakeElement]:
        if self.page.closed:
            raise PlaywrightError("Target page, context or browser has been closed")
        elements = self.page.dom.get(self.selector, [])
        if self.index is None:
            return list(elements)
        return [elements[self.index]] if self.index < len(elements) else []

    def _one(self) -> FakeElement:
        elements = self._elements()
        if not elements:
            raise PlaywrightTimeoutError(f"Timeout exceeded waiting for locator('{self.selector}')")
        if len(elements) > 1:
            raise PlaywrightError(
                f"strict mode violation: locator('{self.selector}') resolved to {len(elements)} elements"
            )
        return elements[0]

    def _actionable(self, force: bool = False) -> FakeElement:
        element = self._one()
        if not force and not (element.is_shown and element.enabled):
            raise PlaywrightTimeoutError(f"Timeout exceeded: locator('{self.selector}') not actionable")
        return element

    # Structure
    def nth(self, index: int) -> "FakeLocator":
        return FakeLocator(self.page, self.selector, index)

    @property
    def first(self) -> "FakeLocator":
        return self.nth(0)

    async def count(self) -> int:
        return len(self._elements())

    async def wait_for(self, state: str = "visible", timeout: Optional[float] = None) -> None:
        deadline = time.monotonic() + (timeout or 0) / 1000
        while True:
            elements = self._elements()
            if state == "attached" and elements:
                return
            if state == "detached" and not elements:
                return
            if state == "visible" and elements and elements[0].is_shown:
                return
            if state == "hidden" and (not elements or not elements[0].is_shown):
                return
            if time.monotonic() >= deadline:
                raise PlaywrightTimeoutError(
                    f"Timeout {timeout}ms exceeded waiting for locator('{self.selector}') to be {state}"
                )
            await asyncio.sleep(POLL)

    # State
    async def is_visible(self, timeout: Optional[float] = None) -> bool:
        elements = self._elements()
        return bool(elements) and elements[0].is_shown

    async def is_enabled(self, timeout: Optional[float] = None) -> bool:
        return self._one().enabled

    async def is_checked(self, timeout: Optional[float] = None) -> bool:
        return self._one().checked

    # Actions
    async def click(self, timeout: Optional[float] = None, force: bool = False, button: str = "left") -> None:
        self._actionable(force).act(f"click:{button}:{self.selector}")

    async def dblclick(self, timeout: Optional[float] = None) -> None:
        self._actionable().act(f"dblclick:{self.selector}")

    async def hover(self, timeout: Optional[float] = None) -> None:
        self._actionable().act(f"hover:{self.selector}")

    async def focus(self, timeout: Optional[float] = None) -> None:
        self._one().act(f"focus:{self.selector}")

    async def blur(self, timeout: Optional[float] = None) -> None:
        self._one().act(f"blur:{self.selector}")

    async def press(self, key: str, timeout: Optional[float] = None) -> None:
        self._actionable().act(f"press:{key}:{self.selector}")

    async def fill(self, value: str, timeout: Optional[float] = None) -> None:
        element = self._actionable()
        element.act(f"fill:{self.selector}")
        element.value = element.transform(value) if element.transform else value

    async def clear(self, timeout: Optional[float] = None) -> None:
        element = self._actionable()
        element.act(f"clear:{self.selector}")
        element.value = ""

    async def press_sequentially(self, text: str, delay: float = 0, timeout: Optional[float] = None) -> None:
        element = self._actionable()
        element.act(f"type:{self.selector}")
        element.value += text

    async def set_checked(self, checked: bool, timeout: Optional[float] = None) -> None:
        element = self._actionable()
        element.act(f"set_checked:{checked}:{self.selector}")
        element.checked = checked

    async def select_option(
        self,
        value: Any = None,
        label: Any = None,
        timeout: Optional[float] = None,
    ) -> List[str]:
        element = self._actionable()
        wanted = value if value is not None else label
        wanted = [wanted] if isinstance(wanted, str) else list(wanted)
        column = 0 if value is not None else 1
        chosen = [opt[0] for opt in element.options if opt[column] in wanted]
        if len(chosen) != len(wanted):
            raise PlaywrightTimeoutError(f"Timeout exceeded: options {wanted} not found")
        element.act(f"select:{self.selector}")
        element.selected = chosen
        return chosen

    async def set_input_files(self, files: Any, timeout: Optional[float] = None) -> None:
        element = self._one()
        element.act(f"upload:{self.selector}")
        element.files = list(files)

    async def drag_to(self, target: "FakeLocator", timeout: Optional[float] = None) -> None:
        self._actionable().act(f"drag:{self.selector}->{target.selector}")

    async def scroll_into_view_if_needed(self, timeout: Optional[float] = None) -> None:
        self._one().act(f"scroll:{self.selector}")

    # Reads
    async def text_content(self, timeout: Optional[float] = None) -> Optional[str]:
        return self._one().text

    async def inner_text(self, timeout: Optional[float] = None) -> str:
        element = self._one()
        return element.text if element.is_shown else ""

    async def all_inner_texts(self) -> List[str]:
        return [e.text if e.is_shown else "" for e in self._elements()]

    async def input_value(self, timeout: Optional[float] = None) -> str:
        return self._one().value

    async def get_attribute(self, name: str, timeout: Optional[float] = None) -> Optional[str]:
        return self._one().attrs.get(name)

    async def bounding_box(self, timeout: Optional[float] = None) -> Optional[Dict[str, float]]:
        element = self._one()
        if not element.is_shown:
            return None
        return {"x": 0.0, "y": 0.0, "width": 100.0, "height": 20.0}

    async def screenshot(self, path: Optional[str] = None) -> bytes:
        self._one()
        return b"\x89PNG element"

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        element = self._one()
        if script == OPTION_VALUES_SCRIPT:
            return [v for v, _ in element.options]
        if script == OPTION_LABELS_SCRIPT:
            return [label for _, label in element.options]
        if script == SELECTED_VALUES_SCRIPT:
            return list(element.selected)
        if script == SELECTED_TEXT_SCRIPT:
            labels = dict(element.options)
            return labels.get(element.selected[0], "") if element.selected else ""
        if script == CSS_PROPERTY_SCRIPT:
            return element.styles.get(arg, "")
        raise PlaywrightError(f"Unsupported script in fake: {script}")


class FakeContext:
    def __init__(self):
        self.cookies_list: List[Dict[str, Any]] = []

    async def cookies(self) -> List[Dict[str, Any]]:
        return list(self.cookies_list)


class FakePage:
    """Subset of playwright.async_api.Page backed by an in-memory DOM."""

    def __init__(self, url: str = "https://app.example.test/dashboard", title: str = "Dashboard"):
        self.dom: Dict[str, List[FakeElement]] = {}
        self.url = url
        self._title = title
        self.viewport_size = {"width": 1280, "height": 800}
        self.context = FakeContext()
        self.actions: List[str] = []
        self.evaluate_results: Dict[str, Any] = {}
        self.closed = False
        self.handlers: Dict[str, List[Callable]] = {}

    def add(self, selector: str, **kwargs: Any) -> FakeElement:
        """Append an element matching ``selector`` and return it."""
        element = FakeElement(self, **kwargs)
        self.dom.setdefault(selector, []).append(element)
        return element

    def remove(self, selector: str) -> None:
        self.dom.pop(selector, None)

    def locator(self, selector: str) -> FakeLocator:
        if self.closed:
            raise PlaywrightError("Target page, context or browser has been closed")
        return FakeLocator(self, selector)

    async def title(self) -> str:
        return self._title

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        if "navigator.userAgent" in script:
            return "FakeBrowser/1.0"
        for marker, result in self.evaluate_results.items():
            if marker in script:
                return result
        return None

    async def screenshot(self, path: Optional[str] = None, full_page: bool = False, **kwargs: Any) -> bytes:
        return b"\x89PNG page"

    async def wait_for_url(self, predicate: Callable[[str], bool], timeout: Optional[float] = None) -> None:
        deadline = time.monotonic() + (timeout or 0) / 1000
        while not predicate(self.url):
            if time.monotonic() >= deadline:
                raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for URL")
            await asyncio.sleep(POLL)

    async def wait_for_load_state(self, state: str = "load", timeout: Optional[float] = None) -> None:
        return None

    async def goto(self, url: str, wait_until: str = "load") -> None:
        if "unreachable" in url:
            raise PlaywrightError(f"net::ERR_NAME_NOT_RESOLVED at {url}")
        self.url = url

    def on(self, event: str, handler: Callable) -> None:
        self.handlers.setdefault(event, []).append(handler)


# ================================================================================
# Fixtures
# ================================================================================

@pytest.fixture
def fake_page() -> FakePage:
    return FakePage()


@pytest.fixture
def settings() -> InteractionSettings:
    """Fast settings for unit tests."""
    return InteractionSettings(default_timeout=500, polling_interval=0.01, animation_delay=0.01)


@pytest.fixture
def log_buffer() -> LogBuffer:
    """Private buffer so tests never see each other's entries."""
    return LogBuffer()


@pytest.fixture
def smart_logger(log_buffer: LogBuffer, settings: InteractionSettings) -> SmartLogger:
    return SmartLogger(buffer=log_buffer, settings=settings, test_context="unit-test")


class SleepRecorder:
    """Drop-in for asyncio.sleep that records delays instead of waiting."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def sleeps() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def allure_attachments(monkeypatch) -> List[Dict[str, Any]]:
    """Capture allure.attach calls."""
    captured: List[Dict[str, Any]] = []

    def fake_attach(body, name=None, attachment_type=None, extension=None):
        captured.append({
            "body": body,
            "name": name,
            "attachment_type": attachment_type,
            "extension": extension,
        })

    monkeypatch.setattr("allure.attach", fake_attach)
    return captured
