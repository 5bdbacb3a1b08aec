# ================================================================================
# Element Actions Module
# ================================================================================
#
# Resilient element interactions for Playwright's async API.
#
# Every interactive operation follows the same pipeline:
#
#   resolve -> smart wait -> health check -> act
#
# and the whole pipeline runs inside the retry engine, so transient timeouts
# are retried while missing elements and closed pages fail on the first
# attempt. Reads make a single attempt. Wait operations come in a boolean
# flavour (returns False on timeout) and an asserting flavour (raises).
#
# Failures are wrapped with the operation name and element descriptor,
# logged through SmartLogger (which inspects the page) and re-raised.
#
# Key Features:
#   - Selector strings, Locators, or Selector/ResolvedHandle references
#   - Fast-first retry with exponential backoff
#   - Optional health checks and fill read-back verification
#   - Sensitive value masking in logs
#   - Allure step integration
#
# ================================================================================

from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, List, NoReturn, Optional, Sequence, Tuple, TypeVar, Union

import allure
from loguru import logger
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from e2e_tools.report_tools import attach_png

from .element_ref import ElementLike, ElementReference, ElementResolver, ResolvedElement, as_reference
from .errors import (
    ElementNotFoundError,
    InteractionTimeoutError,
    OperationError,
    OperationResult,
    ValueVerificationError,
    wrap_error,
)
from .health_check import HealthChecker, HealthReport
from .page_inspector import PageInspector
from .retry import RetryEngine
from .settings import InteractionSettings
from .smart_logger import SmartLogger
from .smart_wait import SmartWaiter, WaitConditions, poll_until


T = TypeVar("T")

FilePayload = Union[str, Sequence[str]]

OPTION_VALUES_SCRIPT = "el => Array.from(el.options).map(o => o.value)"
OPTION_LABELS_SCRIPT = "el => Array.from(el.options).map(o => (o.label || o.textContent || '').trim())"
SELECTED_TEXT_SCRIPT = (
    "el => el.selectedIndex >= 0 ? (el.options[el.selectedIndex].textContent || '').trim() : ''"
)
SELECTED_VALUES_SCRIPT = "el => Array.from(el.selectedOptions).map(o => o.value)"
CSS_PROPERTY_SCRIPT = "(el, name) => window.getComputedStyle(el).getPropertyValue(name)"

_NO_VALUE = object()


class ElementActions:
    """
    Resilient interaction facade over one Playwright page.

    Example:
        actions = ElementActions(page, settings, smart_logger)
        await actions.fill("#username", "admin")
        await actions.click("button[type=submit]")
        await actions.select_option("#category", "Uncategorized")
        text = await actions.get_text(".notice")
    """

    def __init__(
        self,
        page: Page,
        settings: Optional[InteractionSettings] = None,
        smart_logger: Optional[SmartLogger] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        inspector_factory: Optional[Callable[[], PageInspector]] = None,
    ):
        """
        Initialize ElementActions with a Playwright page.

        Args:
            page: Playwright Page object
            settings: Interaction settings (defaults when None)
            smart_logger: Diagnostic logger (a fresh one on the shared buffer when None)
            sleep: Coroutine used for retry backoff
            inspector_factory: Builds the PageInspector used on failure
                (page objects pass one that sees captured network/JS errors)
        """
        self.page = page
        self.settings = settings or InteractionSettings()
        self.smart_logger = smart_logger or SmartLogger(settings=self.settings)
        self.resolver = ElementResolver(page)
        self.waiter = SmartWaiter(self.settings)
        self.health = HealthChecker(self.settings)
        self.retry = RetryEngine(self.smart_logger, self.settings, sleep=sleep)
        self.inspector_factory = inspector_factory or (lambda: PageInspector(self.page, self.settings))

    # ================================================================================
    # Pipeline
    # ================================================================================

    def _timeout(self, timeout: Optional[int]) -> int:
        return self.settings.default_timeout if timeout is None else timeout

    async def _fail(self, operation: str, descriptor: str, error: BaseException) -> NoReturn:
        wrapped = wrap_error(operation, descriptor, error)
        await self.smart_logger.log_error(wrapped, self.page, inspector=self.inspector_factory())
        raise wrapped from error

    async def _prepare(
        self,
        ref: ElementReference,
        timeout: int,
        kind: str = "read",
        conditions: Optional[WaitConditions] = None,
    ) -> Tuple[ResolvedElement, HealthReport]:
        """Resolve, wait for ``conditions`` and run the health check."""
        resolved = await self.resolver.resolve(ref, timeout)
        await self.waiter.wait_for(resolved.locator, conditions or WaitConditions(), timeout)
        report = await self.health.check(resolved, kind)
        if report.issues:
            self.smart_logger.log(
                "INFO" if report.healthy else "WARN",
                f"Health check for {resolved.descriptor}: {'; '.join(report.issues)}",
                {"element": resolved.descriptor, "healthy": report.healthy, "issues": report.issues},
            )
        return resolved, report

    async def _interact(
        self,
        operation: str,
        descriptor: str,
        body: Callable[[], Awaitable[T]],
        value: Any = _NO_VALUE,
    ) -> T:
        """Run ``body`` through the retry engine with action/outcome logging."""
        with allure.step(f"{operation}: {descriptor}"):
            self.smart_logger.log_action(
                operation, descriptor, None if value is _NO_VALUE else value
            )
            try:
                outcome = await self.retry.execute(body, f"{operation} {descriptor}")
            except Exception as error:
                await self._fail(operation, descriptor, error)

            if outcome.attempts == 1:
                self.smart_logger.log(
                    "INFO",
                    f"{operation} succeeded on {descriptor}",
                    {"element": descriptor, "elapsed": round(outcome.elapsed, 3)},
                )
            return outcome.value

    async def _read(
        self,
        operation: str,
        descriptor: str,
        body: Callable[[], Awaitable[T]],
    ) -> T:
        """Run a read once; failures are wrapped and logged like interactions."""
        with allure.step(f"{operation}: {descriptor}"):
            start = time.monotonic()
            try:
                result = await body()
            except Exception as error:
                await self._fail(operation, descriptor, error)
            self.smart_logger.log(
                "DEBUG",
                f"{operation} read from {descriptor}",
                {"element": descriptor, "elapsed": round(time.monotonic() - start, 3)},
            )
            return result

    async def _wait(
        self,
        operation: str,
        descriptor: str,
        body: Callable[[], Awaitable[None]],
        timeout: int,
        raise_on_timeout: bool,
    ) -> bool:
        with allure.step(f"{operation}: {descriptor}"):
            try:
                await body()
            except InteractionTimeoutError as error:
                self.smart_logger.log_wait(operation, descriptor, timeout, success=False)
                if raise_on_timeout:
                    await self._fail(operation, descriptor, error)
                logger.debug(f"{operation} on {descriptor} gave up: {error}")
                return False
            except Exception as error:
                # Closed page and similar: not a timeout, always raised
                self.smart_logger.log_wait(operation, descriptor, timeout, success=False)
                await self._fail(operation, descriptor, error)
            self.smart_logger.log_wait(operation, descriptor, timeout, success=True)
            return True

    async def attempt(self, awaitable: Awaitable[T]) -> OperationResult[T]:
        """
        Await a facade call and capture its outcome as an OperationResult.

        Example:
            result = await actions.attempt(actions.click("#maybe"))
            if not result.succeeded:
                ...
        """
        try:
            value = await awaitable
        except OperationError as error:
            return OperationResult.failed(error)
        return OperationResult.ok(value)

    # ================================================================================
    # Click Operations
    # ================================================================================

    async def click(self, element: ElementLike, index: int = 0, timeout: Optional[int] = None) -> HealthReport:
        """
        Click an element once it is visible.

        Args:
            element: Selector string, Locator or element reference
            index: Match index (0-based)
            timeout: Wait timeout in milliseconds

        Returns:
            HealthReport from the pre-click health check
        """
        ref = as_reference(element, index)
        timeout = self._timeout(timeout)

        async def _click() -> HealthReport:
            resolved, report = await self._prepare(ref, timeout, "click")
            await resolved.locator.click(timeout=self.settings.short_timeout)
            return report

        return await self._interact("click", ref.describe(), _click)

    async def force_click(self, element: ElementLike, index: int = 0, timeout: Optional[int] = None) -> None:
        """Click without visibility or actionability checks."""
        ref = as_reference(element, index)

        async def _force_click() -> None:
            resolved = await self.resolver.resolve(ref, self._timeout(timeout))
            await resolved.locator.click(force=True, timeout=self._timeout(timeout))

        await self._interact("force click", ref.describe(), _force_click)

    async def double_click(self, element: ElementLike, index: int = 0, timeout: Optional[int] = None) -> HealthReport:
        ref = as_reference(element, index)
        timeout = self._timeout(timeout)

        async def _double_click() -> HealthReport:
            resolved, report = await self._prepare(ref, timeout, "click")
            await resolved.locator.dblclick(timeout=self.settings.short_timeout)
            return report

        return await self._interact("double click", ref.describe(), _double_click)

    async def right_click(self, element: ElementLike, index: int = 0, timeout: Optional[int] = None) -> HealthReport:
        ref = as_reference(element, index)
        timeout = self._timeout(timeout)

        async def _right_click() -> HealthReport:
            resolved, report = await self._prepare(ref, timeout, "click")
            await resolved.locator.click(button="right", timeout=self.settings.short_timeout)
            return report

        return await self._interact("right click", ref.describe(), _right_click)

    # ================================================================================
    # Mouse & Keyboard
    # ================================================================================

    async def hover(self, element: ElementLike, index: int = 0, timeout: Optional[int] = None) -> None:
        ref = as_reference(element, index)
        timeout = self._timeout(timeout)

        async def _hover() -> None:
            resolved, _ = await self._prepare(ref, timeout)
            await resolved.locator.hover(timeout=self.settings.short_timeout)

        await self._interact("hover", ref.describe(), _hover)

    async def focus(self, element: ElementLike, index: int = 0, timeout: Optional[int] = None) -> None:
        ref = as_reference(element, index)
        timeout = self._timeout(timeout)

        async def _focus() -> None:
            resolved, _ = await self._prepare(ref, timeout)
            await resolved.locator.focus(timeout=self.settings.short_timeout)

        await self._interact("focus", ref.describe(), _focus)

    async def blur(self, element: ElementLike, index: int = 0, timeout: Optional[int] = None) -> None:
        ref = as_reference(element, index)
        timeout = self._timeout(timeout)

        async def _blur() -> None:
            resolved = await self.resolver.resolve(ref, timeout)
            await resolved.locator.blur(timeout=self.settings.short_timeout)

        await self._interact("blur", ref.describe(), _blur)

    async def press_key(
        self,
        element: ElementLike,
        key: str,
        index: int = 0,
        timeout: Optional[int] = None,
    ) -> None:
        """
        Press a key (or chord such as "Control+A") on an element.

        Args:
            element: Selector string, Locator or element reference
            key: Key name understood by Playwright
            index: Match index (0-based)
            timeout: Wait timeout in milliseconds
        """
        ref = as_reference(element, index)
        timeout = self._timeout(timeout)

        async def _press() -> None:
            resolved, _ = await self._prepare(ref, timeout)
            await resolved.locator.press(key, timeout=self.settings.short_timeout)

        await self._interact(f"press {key}", ref.describe(), _press)

    # ================================================================================
    # Input Operations
    # ================================================================================

    async def _verify_value(self, resolved: ResolvedElement, expected: str) -> None:
        actual = await resolved.locator.input_value(timeout=self.settings.short_timeout)
        if actual != expected:
            masked_expected = self.smart_logger.mask(expected)
            masked_actual = self.smart_logger.mask(actual)
            raise ValueVerificationError(
                f"Value mismatch: expected '{masked_expected}' but found '{masked_actual}'",
                expected=masked_expected,
                actual=masked_actual,
            )

    async def fill(
        self,
        element: ElementLike,
        value: str,
        index: int = 0,
        timeout: Optional[int] = None,
        verify: Optional[bool] = None,
    ) -> HealthReport:
        """
        Fill an input field with text.

        Args:
            element: Selector string, Locator or element reference
            value: Text to enter (masked in logs when it looks sensitive)
            index: Match index (0-based)
            timeout: Wait timeout in milliseconds
            verify: Read the value back afterwards
                (settings.enable_value_verification when None)

        Raises:
            ValueVerificationError: Read-back differs after all retries
        """
        ref = as_reference(element, index)
        timeout = self._timeout(timeout)
        verify = self.settings.enable_value_verification if verify is None else verify

        async def _fill() -> HealthReport:
            resolved, report = await self._prepare(ref, timeout, "fill")
            await resolved.locator.fill(value, timeout=timeout)
            if verify:
                await self._verify_value(resolved, value)
            return report

        return await self._interact("fill", ref.describe(), _fill, value=value)

    async def clear_and_fill(
        self,
        element: ElementLike,
        value: str,
        index: int = 0,
        timeout: Optional[int] = None,
        verify: Optional[bool] = None,
    ) -> HealthReport:
        """Clear the field explicitly, then fill it."""
        ref = as_reference(element, index)
        timeout = self._timeout(timeout)
        verify = self.settings.enable_value_verification if verify is None else verify

        async def _clear_and_fill() -> HealthReport:
            resolved, report = await self._prepare(ref, timeout, "fill")
            await resolved.locator.clear(timeout=timeout)
            await resolved.locator.fill(value, timeout=timeout)
            if verify:
                await self._verify_value(resolved, value)
            return report

        return await self._interact("clear and fill", ref.describe(), _clear_and_fill, value=value)

    async def type_text(
        self,
        element: ElementLike,
        text: str,
        index: int = 0,
        delay: int = 50,
        clear_first: bool = False,
        timeout: Optional[int] = None,
    ) -> None:
        """
        Type text key by key (fires keyboard events for each character).

        Args:
            element: Selector string, Locator or element reference
            text: Text to type
            index: Match index (0-based)
            delay: Delay between keystrokes in milliseconds
            clear_first: Clear existing content before typing
            timeout: Wait timeout in milliseconds
        """
        ref = as_reference(element, index)
        timeout = self._timeout(timeout)

        async def _type() -> None:
            resolved, _ = await self._prepare(ref, timeout, "fill")
            if clear_first:
                await resolved.locator.clear(timeout=timeout)
            await resolved.locator.press_sequentially(text, delay=delay, timeout=timeout)

        await self._interact("type", ref.describe(), _type, value=text)

    # ================================================================================
    # Select & Checkbox
    # ================================================================================

    async def select_option(
        self,
        element: ElementLike,
        value: str,
        index: int = 0,
        timeout: Optional[int] = None,
    ) -> List[str]:
        """
        Select a dropdown option by value, falling back to its visible label.

        Dropdowns often key options by numeric IDs, so
        ``select_option("#cat", "Uncategorized")`` selects the option whose
        label is "Uncategorized" when no option has that value.

        Returns:
            Values of the selected options
        """
        ref = as_reference(element, index)
        timeout = self._timeout(timeout)

        async def _select() -> List[str]:
            resolved, _ = await self._prepare(ref, timeout)
            locator = resolved.locator
            values = await locator.evaluate(OPTION_VALUES_SCRIPT)
            if value in values:
                return await locator.select_option(value=value, timeout=self.settings.short_timeout)

            logger.debug(f"No option with value '{value}' in {resolved.descriptor}, trying label")
            labels = await locator.evaluate(OPTION_LABELS_SCRIPT)
            if value in labels:
                return await locator.select_option(label=value, timeout=self.settings.short_timeout)

            raise OperationError(f"No option with value or label '{value}'")

        return await self._interact("select option", ref.describe(), _select, value=value)

    async def select_options(
        self,
        element: ElementLike,
        values: Sequence[str],
        index: int = 0,
        timeout: Optional[int] = None,
    ) -> List[str]:
        """Select several options of a multi-select (values, or labels as fallback)."""
        ref = as_reference(element, index)
        timeout = self._timeout(timeout)
        wanted = list(values)

        async def _select_many() -> List[str]:
            resolved, _ = await self._prepare(ref, timeout)
            locator = resolved.locator
            available = await locator.evaluate(OPTION_VALUES_SCRIPT)
            if all(v in available for v in wanted):
                return await locator.select_option(value=wanted, timeout=self.settings.short_timeout)
            return await locator.select_option(label=wanted, timeout=self.settings.short_timeout)

        return await self._interact("select options", ref.describe(), _select_many, value=", ".join(wanted))

    async def toggle_checkbox(self, element: ElementLike, index: int = 0, timeout: Optional[int] = None) -> bool:
        """
        Invert a checkbox's checked state.

        The target state is read once, so a retried toggle never flips the
        box back.

        Returns:
            The new checked state
        """
        ref = as_reference(element, index)
        timeout = self._timeout(timeout)
        target: Dict[str, bool] = {}

        async def _toggle() -> bool:
            resolved, _ = await self._prepare(ref, timeout, "click")
            if "checked" not in target:
                target["checked"] = not await resolved.locator.is_checked()
            await resolved.locator.set_checked(target["checked"], timeout=self.settings.short_timeout)
            return target["checked"]

        return await self._interact("toggle checkbox", ref.describe(), _toggle)

    async def set_checked(
        self,
        element: ElementLike,
        checked: bool = True,
        index: int = 0,
        timeout: Optional[int] = None,
    ) -> None:
        ref = as_reference(element, index)
        timeout = self._timeout(timeout)

        async def _set_checked() -> None:
            resolved, _ = await self._prepare(ref, timeout, "click")
            await resolved.locator.set_checked(checked, timeout=self.settings.short_timeout)

        await self._interact("check" if checked else "uncheck", ref.describe(), _set_checked)

    # ================================================================================
    # Upload, Drag & Scroll
    # ================================================================================

    async def upload_file(
        self,
        element: ElementLike,
        files: FilePayload,
        index: int = 0,
        timeout: Optional[int] = None,
    ) -> None:
        """
        Set files on a file input.

        File inputs are often visually hidden, so only attachment is awaited.
        """
        ref = as_reference(element, index)
        timeout = self._timeout(timeout)
        payload = [files] if isinstance(files, str) else list(files)

        async def _upload() -> None:
            resolved = await self.resolver.resolve(ref, timeout)
            await resolved.locator.set_input_files(payload, timeout=timeout)

        await self._interact("upload file", ref.describe(), _upload, value=", ".join(payload))

    async def drag_and_drop(
        self,
        source: ElementLike,
        target: ElementLike,
        source_index: int = 0,
        target_index: int = 0,
        timeout: Optional[int] = None,
    ) -> None:
        """
        Drag ``source`` onto ``target`` once both are visible.

        Failure messages say whether the source or the target was the
        blocking element.
        """
        source_ref = as_reference(source, source_index)
        target_ref = as_reference(target, target_index)
        timeout = self._timeout(timeout)

        async def _endpoint(ref: ElementReference, role: str) -> ResolvedElement:
            try:
                resolved = await self.resolver.resolve(ref, timeout)
            except ElementNotFoundError as e:
                raise ElementNotFoundError(f"Drag {role} {e.reason[0].lower()}{e.reason[1:]}") from e
            try:
                await self.waiter.wait_for(resolved.locator, WaitConditions(), timeout)
            except InteractionTimeoutError as e:
                raise InteractionTimeoutError(
                    f"Drag {role} {resolved.descriptor} not visible within {timeout}ms",
                    condition="visible",
                    cause=e,
                ) from e
            return resolved

        async def _drag() -> None:
            source_el = await _endpoint(source_ref, "source")
            target_el = await _endpoint(target_ref, "target")
            await source_el.locator.drag_to(target_el.locator, timeout=timeout)

        await self._interact(
            "drag and drop", f"{source_ref.describe()} -> {target_ref.describe()}", _drag
        )

    async def scroll_into_view(self, element: ElementLike, index: int = 0, timeout: Optional[int] = None) -> None:
        ref = as_reference(element, index)

        async def _scroll() -> None:
            resolved = await self.resolver.resolve(ref, self._timeout(timeout))
            await resolved.locator.scroll_into_view_if_needed(timeout=self._timeout(timeout))

        await self._interact("scroll into view", ref.describe(), _scroll)

    # ================================================================================
    # Read Operations
    # ================================================================================

    async def _attached(self, ref: ElementReference, timeout: Optional[int]) -> ResolvedElement:
        return await self.resolver.resolve(ref, self._timeout(timeout))

    async def get_text(self, element: ElementLike, index: int = 0, timeout: Optional[int] = None) -> str:
        """
        Get the element's text content ("" when it has none).

        Raises:
            ElementNotFoundError: Nothing matches the reference
        """
        ref = as_reference(element, index)

        async def _get_text() -> str:
            resolved = await self._attached(ref, timeout)
            return (await resolved.locator.text_content(timeout=self._timeout(timeout))) or ""

        return await self._read("get text", ref.describe(), _get_text)

    async def get_inner_text(self, element: ElementLike, index: int = 0, timeout: Optional[int] = None) -> str:
        """Get the rendered text of a visible element."""
        ref = as_reference(element, index)

        async def _get_inner_text() -> str:
            resolved, _ = await self._prepare(ref, self._timeout(timeout))
            return (await resolved.locator.inner_text(timeout=self._timeout(timeout))) or ""

        return await self._read("get inner text", ref.describe(), _get_inner_text)

    async def get_all_texts(self, element: ElementLike) -> List[str]:
        """Rendered text of every match; an empty list when nothing matches."""
        ref = as_reference(element)

        async def _get_all_texts() -> List[str]:
            return await self.resolver.matches(ref).all_inner_texts()

        return await self._read("get all texts", ref.describe(), _get_all_texts)

    async def get_input_value(self, element: ElementLike, index: int = 0, timeout: Optional[int] = None) -> str:
        ref = as_reference(element, index)

        async def _get_input_value() -> str:
            resolved = await self._attached(ref, timeout)
            return (await resolved.locator.input_value(timeout=self._timeout(timeout))) or ""

        return await self._read("get input value", ref.describe(), _get_input_value)

    async def get_attribute(
        self,
        element: ElementLike,
        name: str,
        index: int = 0,
        timeout: Optional[int] = None,
    ) -> str:
        """Attribute value, or "" when the attribute is absent."""
        ref = as_reference(element, index)

        async def _get_attribute() -> str:
            resolved = await self._attached(ref, timeout)
            return (await resolved.locator.get_attribute(name, timeout=self._timeout(timeout))) or ""

        return await self._read(f"get attribute {name}", ref.describe(), _get_attribute)

    async def get_css_property(
        self,
        element: ElementLike,
        name: str,
        index: int = 0,
        timeout: Optional[int] = None,
    ) -> str:
        ref = as_reference(element, index)

        async def _get_css() -> str:
            resolved = await self._attached(ref, timeout)
            return (await resolved.locator.evaluate(CSS_PROPERTY_SCRIPT, name)) or ""

        return await self._read(f"get css {name}", ref.describe(), _get_css)

    async def has_class(
        self,
        element: ElementLike,
        class_name: str,
        index: int = 0,
        timeout: Optional[int] = None,
    ) -> bool:
        ref = as_reference(element, index)

        async def _has_class() -> bool:
            resolved = await self._attached(ref, timeout)
            classes = await resolved.locator.get_attribute("class", timeout=self._timeout(timeout))
            return class_name in (classes or "").split()

        return await self._read(f"has class {class_name}", ref.describe(), _has_class)

    async def get_element_count(self, element: ElementLike) -> int:
        """Number of matches right now (0 is a valid answer)."""
        ref = as_reference(element)

        async def _count() -> int:
            return await self.resolver.matches(ref).count()

        return await self._read("count", ref.describe(), _count)

    async def get_bounding_box(
        self,
        element: ElementLike,
        index: int = 0,
        timeout: Optional[int] = None,
    ) -> Optional[Dict[str, float]]:
        """Bounding box ({x, y, width, height}) or None when not rendered."""
        ref = as_reference(element, index)

        async def _box() -> Optional[Dict[str, float]]:
            resolved = await self._attached(ref, timeout)
            box = await resolved.locator.bounding_box(timeout=self._timeout(timeout))
            return dict(box) if box else None

        return await self._read("get bounding box", ref.describe(), _box)

    async def get_selected_option_text(
        self,
        element: ElementLike,
        index: int = 0,
        timeout: Optional[int] = None,
    ) -> str:
        ref = as_reference(element, index)

        async def _selected_text() -> str:
            resolved = await self._attached(ref, timeout)
            return (await resolved.locator.evaluate(SELECTED_TEXT_SCRIPT)) or ""

        return await self._read("get selected option", ref.describe(), _selected_text)

    async def get_selected_values(
        self,
        element: ElementLike,
        index: int = 0,
        timeout: Optional[int] = None,
    ) -> List[str]:
        ref = as_reference(element, index)

        async def _selected_values() -> List[str]:
            resolved = await self._attached(ref, timeout)
            return list(await resolved.locator.evaluate(SELECTED_VALUES_SCRIPT) or [])

        return await self._read("get selected values", ref.describe(), _selected_values)

    async def take_screenshot(
        self,
        element: Optional[ElementLike] = None,
        index: int = 0,
        name: str = "Screenshot",
        path: Optional[str] = None,
    ) -> bytes:
        """
        Capture a PNG of an element (or the full page) and attach it to Allure.

        Args:
            element: Element to capture; the whole page when None
            index: Match index (0-based)
            name: Allure attachment name
            path: Optional file path to also save the image to
        """
        if element is None:
            async def _page_shot() -> bytes:
                return await self.page.screenshot(path=path, full_page=True)

            image = await self._read("screenshot", "page", _page_shot)
        else:
            ref = as_reference(element, index)

            async def _element_shot() -> bytes:
                resolved, _ = await self._prepare(ref, self.settings.default_timeout)
                return await resolved.locator.screenshot(path=path)

            image = await self._read("screenshot", ref.describe(), _element_shot)

        attach_png(image, name=name)
        return image

    # ================================================================================
    # State Probes (never raise)
    # ================================================================================

    async def exists(self, element: ElementLike, index: int = 0) -> bool:
        ref = as_reference(element, index)
        try:
            return await self.resolver.matches(ref).count() > ref.index
        except Exception as e:
            logger.debug(f"exists() probe failed for {ref.describe()}: {e}")
            return False

    async def is_visible(self, element: ElementLike, index: int = 0) -> bool:
        ref = as_reference(element, index)
        try:
            return await self.resolver.locate(ref).is_visible()
        except Exception as e:
            logger.debug(f"is_visible() probe failed for {ref.describe()}: {e}")
            return False

    async def is_enabled(self, element: ElementLike, index: int = 0) -> bool:
        ref = as_reference(element, index)
        try:
            if not await self.exists(ref):
                return False
            return await self.resolver.locate(ref).is_enabled(timeout=self.settings.short_timeout)
        except Exception as e:
            logger.debug(f"is_enabled() probe failed for {ref.describe()}: {e}")
            return False

    async def is_checked(self, element: ElementLike, index: int = 0) -> bool:
        ref = as_reference(element, index)
        try:
            if not await self.exists(ref):
                return False
            return await self.resolver.locate(ref).is_checked(timeout=self.settings.short_timeout)
        except Exception as e:
            logger.debug(f"is_checked() probe failed for {ref.describe()}: {e}")
            return False

    # ================================================================================
    # Wait Operations
    # ================================================================================

    async def wait_for_displayed(
        self,
        element: ElementLike,
        index: int = 0,
        timeout: Optional[int] = None,
        raise_on_timeout: bool = False,
    ) -> bool:
        """
        Wait until the element is visible.

        Returns:
            True when visible in time; False on timeout unless
            ``raise_on_timeout`` is set, in which case InteractionTimeoutError
            is raised instead
        """
        ref = as_reference(element, index)
        timeout = self._timeout(timeout)
        locator = self.resolver.locate(ref)
        return await self._wait(
            "wait for displayed", ref.describe(),
            lambda: self.waiter.wait_for_state(locator, "visible", timeout),
            timeout, raise_on_timeout,
        )

    async def wait_for_hidden(
        self,
        element: ElementLike,
        index: int = 0,
        timeout: Optional[int] = None,
        raise_on_timeout: bool = False,
    ) -> bool:
        ref = as_reference(element, index)
        timeout = self._timeout(timeout)
        locator = self.resolver.locate(ref)
        return await self._wait(
            "wait for hidden", ref.describe(),
            lambda: self.waiter.wait_for_state(locator, "hidden", timeout),
            timeout, raise_on_timeout,
        )

    async def wait_for_removed(
        self,
        element: ElementLike,
        index: int = 0,
        timeout: Optional[int] = None,
        raise_on_timeout: bool = False,
    ) -> bool:
        ref = as_reference(element, index)
        timeout = self._timeout(timeout)
        locator = self.resolver.locate(ref)
        return await self._wait(
            "wait for removed", ref.describe(),
            lambda: self.waiter.wait_for_state(locator, "detached", timeout),
            timeout, raise_on_timeout,
        )

    async def _poll(self, predicate: Callable[[], Awaitable[bool]], timeout: int, condition: str) -> None:
        if not await poll_until(predicate, timeout, self.settings.polling_interval):
            raise InteractionTimeoutError(
                f"Condition '{condition}' not met within {timeout}ms", condition=condition
            )

    async def wait_for_text(
        self,
        element: ElementLike,
        text: str,
        index: int = 0,
        exact: bool = False,
        timeout: Optional[int] = None,
        raise_on_timeout: bool = True,
    ) -> bool:
        """Wait until the element's text contains (or equals, with ``exact``) ``text``."""
        ref = as_reference(element, index)
        timeout = self._timeout(timeout)
        locator = self.resolver.locate(ref)

        async def _has_text() -> bool:
            if await locator.count() == 0:
                return False
            current = (await locator.text_content(timeout=self.settings.short_timeout) or "").strip()
            return current == text if exact else text in current

        return await self._wait(
            "wait for text", ref.describe(),
            lambda: self._poll(_has_text, timeout, f"text '{text}'"),
            timeout, raise_on_timeout,
        )

    async def wait_for_enabled(
        self,
        element: ElementLike,
        index: int = 0,
        timeout: Optional[int] = None,
        raise_on_timeout: bool = True,
    ) -> bool:
        ref = as_reference(element, index)
        timeout = self._timeout(timeout)
        locator = self.resolver.locate(ref)

        async def _enabled() -> bool:
            if await locator.count() == 0:
                return False
            return await locator.is_enabled(timeout=self.settings.short_timeout)

        return await self._wait(
            "wait for enabled", ref.describe(),
            lambda: self._poll(_enabled, timeout, "enabled"),
            timeout, raise_on_timeout,
        )

    async def wait_for_class(
        self,
        element: ElementLike,
        class_name: str,
        index: int = 0,
        timeout: Optional[int] = None,
        raise_on_timeout: bool = True,
    ) -> bool:
        ref = as_reference(element, index)
        timeout = self._timeout(timeout)
        locator = self.resolver.locate(ref)

        async def _has_class() -> bool:
            if await locator.count() == 0:
                return False
            classes = await locator.get_attribute("class", timeout=self.settings.short_timeout)
            return class_name in (classes or "").split()

        return await self._wait(
            f"wait for class {class_name}", ref.describe(),
            lambda: self._poll(_has_class, timeout, f"class '{class_name}'"),
            timeout, raise_on_timeout,
        )

    async def wait_for_count(
        self,
        element: ElementLike,
        count: int,
        timeout: Optional[int] = None,
        raise_on_timeout: bool = True,
    ) -> bool:
        """Wait until exactly ``count`` elements match."""
        ref = as_reference(element)
        timeout = self._timeout(timeout)
        matches = self.resolver.matches(ref)

        async def _count_matches() -> bool:
            return await matches.count() == count

        return await self._wait(
            f"wait for count {count}", ref.describe(),
            lambda: self._poll(_count_matches, timeout, f"count == {count}"),
            timeout, raise_on_timeout,
        )

    async def wait_for_url_change(
        self,
        current_url: Optional[str] = None,
        timeout: Optional[int] = None,
        raise_on_timeout: bool = True,
    ) -> bool:
        """Wait until the page URL differs from ``current_url`` (the URL now, by default)."""
        timeout = self._timeout(timeout)
        base_url = current_url if current_url is not None else self.page.url

        async def _changed() -> None:
            try:
                await self.page.wait_for_url(lambda url: url != base_url, timeout=timeout)
            except PlaywrightTimeoutError as e:
                raise InteractionTimeoutError(
                    f"URL did not change from {base_url} within {timeout}ms",
                    condition="url_change",
                    cause=e,
                ) from e

        return await self._wait("wait for url change", "page", _changed, timeout, raise_on_timeout)

    async def wait_for_network_idle(
        self,
        timeout: Optional[int] = None,
        raise_on_timeout: bool = True,
    ) -> bool:
        timeout = self._timeout(timeout)

        async def _idle() -> None:
            try:
                await self.page.wait_for_load_state("networkidle", timeout=timeout)
            except PlaywrightTimeoutError as e:
                raise InteractionTimeoutError(
                    f"Network not idle within {timeout}ms", condition="network_idle", cause=e
                ) from e

        return await self._wait("wait for network idle", "page", _idle, timeout, raise_on_timeout)


__all__ = [
    "ElementActions",
    "OPTION_VALUES_SCRIPT",
    "OPTION_LABELS_SCRIPT",
    "SELECTED_TEXT_SCRIPT",
    "SELECTED_VALUES_SCRIPT",
    "CSS_PROPERTY_SCRIPT",
]
