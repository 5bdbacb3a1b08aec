"""
================================================================================
Element References and Resolution
================================================================================

An element reference is either a selector string or an already-built
Playwright Locator, each with a 0-based index picking one of several
matches. References are resolved against a live page:

    - ``locate``  : lazy, structural (never touches the page)
    - ``resolve`` : waits (up to a timeout) for the match to attach, then
                    counts matches; fails when it never shows up

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from loguru import logger
from playwright.async_api import Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .errors import ElementNotFoundError


@dataclass(frozen=True)
class Selector:
    """Selector string understood by ``page.locator``."""
    selector: str
    index: int = 0

    def __post_init__(self) -> None:
        _check_index(self.index)

    def describe(self) -> str:
        return _with_index(f'selector "{self.selector}"', self.index)


@dataclass(frozen=True)
class ResolvedHandle:
    """Pre-built Locator, optionally narrowed by index."""
    handle: Locator
    index: int = 0

    def __post_init__(self) -> None:
        _check_index(self.index)

    def describe(self) -> str:
        return _with_index(f"Locator({self.handle})", self.index)


ElementReference = Union[Selector, ResolvedHandle]
ElementLike = Union[str, Locator, Selector, ResolvedHandle]


def _check_index(index: int) -> None:
    if index < 0:
        raise ValueError(f"Invalid parameter provided: index must be non-negative, got {index}")


def _with_index(description: str, index: int) -> str:
    return f"{description} [index {index}]" if index else description


def as_reference(element: ElementLike, index: int = 0) -> ElementReference:
    """
    Normalize a raw selector / Locator / reference into an ElementReference.

    Args:
        element: Selector string, Locator, or existing reference
        index: Match index applied to raw selectors and Locators

    Returns:
        Selector or ResolvedHandle
    """
    if isinstance(element, (Selector, ResolvedHandle)):
        return element
    if isinstance(element, str):
        return Selector(element, index)
    if element is None:
        raise ValueError("Invalid parameter provided: element cannot be None")
    return ResolvedHandle(element, index)


@dataclass
class ResolvedElement:
    """
    Outcome of a successful resolution.

    Attributes:
        locator: The single match at the requested index
        matches: Locator over every match of the reference
        count: Number of matches at resolution time
        descriptor: Human-readable reference
    """
    locator: Locator
    matches: Locator
    count: int
    descriptor: str


class ElementResolver:
    """
    Turns element references into Playwright locators for one page.

    Usage:
        resolver = ElementResolver(page)
        resolved = await resolver.resolve(Selector("#submit"))
        await resolved.locator.click()
    """

    def __init__(self, page: Page):
        self.page = page

    def matches(self, ref: ElementReference) -> Locator:
        """Locator over every match of ``ref`` (index ignored)."""
        if isinstance(ref, Selector):
            return self.page.locator(ref.selector)
        return ref.handle

    def locate(self, ref: ElementReference) -> Locator:
        """Lazy nth-match locator; does not wait or assert anything."""
        return self.matches(ref).nth(ref.index)

    async def resolve(self, ref: ElementReference, timeout: Optional[int] = None) -> ResolvedElement:
        """
        Resolve ``ref`` to exactly one element.

        Args:
            ref: Element reference
            timeout: Milliseconds to wait for the match to be attached;
                None counts the matches that exist right now

        Raises:
            ElementNotFoundError: When fewer than ``index + 1`` elements match
                once the wait is over
        """
        matches = self.matches(ref)
        if timeout:
            try:
                await matches.nth(ref.index).wait_for(state="attached", timeout=timeout)
            except PlaywrightTimeoutError as e:
                logger.debug(f"{ref.describe()} not attached within {timeout}ms: {e}")
        count = await matches.count()
        if count <= ref.index:
            raise ElementNotFoundError(
                f"Element not found: {ref.describe()} matched {count} element(s), "
                f"index {ref.index} requested"
            )
        return ResolvedElement(
            locator=matches.nth(ref.index),
            matches=matches,
            count=count,
            descriptor=ref.describe(),
        )


__all__ = [
    "Selector",
    "ResolvedHandle",
    "ElementReference",
    "ElementLike",
    "ElementResolver",
    "ResolvedElement",
    "as_reference",
]
