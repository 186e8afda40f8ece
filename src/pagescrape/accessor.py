# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Page Accessor: the page capability the extraction core consumes.

The core never touches Playwright directly. It talks to anything that
satisfies ``PageAccessor``: the Playwright adapter below, or an in-memory
double in tests. Handles are opaque to the core; it only passes them back
to the accessor that produced them.

Every coroutine here is a suspension point. One accessor serves one
logical flow at a time: extraction reads the very state that scroll and
click steps mutate.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from types import GenericAlias
from typing import Any, Protocol, TypeVar, runtime_checkable

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .errors import ActionTimeoutError, BrowserError, ElementNotFoundError, EvaluationError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 5000

T = TypeVar("T")

LocatorHandle = Any  # matched node set, produced by locate()
NodeHandle = Any  # single node, produced by nth()


@runtime_checkable
class PageAccessor(Protocol):
    """Locator, query, action and script capability over one page."""

    def locate(self, selector: str, *, within: NodeHandle | None = None) -> LocatorHandle | None: ...

    async def count(self, handle: LocatorHandle) -> int: ...

    def nth(self, handle: LocatorHandle, index: int) -> NodeHandle: ...

    async def inner_text(self, node: NodeHandle) -> str | None: ...

    async def is_visible(self, node: NodeHandle) -> bool: ...

    async def get_attribute(self, node: NodeHandle, name: str) -> str | None: ...

    async def wait_for(self, selector: str, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> None: ...

    async def click(self, selector: str, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> None: ...

    async def evaluate(self, script: str, arg: Any = None, *, returns: type[T] | None = None) -> Any: ...

    async def navigate(self, url: str) -> bool: ...


_BROWSER_DEAD_PATTERNS = (
    "target closed",
    "target page",
    "browser has been closed",
    "connection closed",
    "browser disconnected",
)


def _is_browser_dead_error(exc: Exception) -> bool:
    """Detect browser crash/disconnect errors."""
    msg = str(exc).lower()
    return any(p in msg for p in _BROWSER_DEAD_PATTERNS)


def _is_strict_violation(exc: Exception) -> bool:
    return "strict mode violation" in str(exc).lower()


async def _node_query(what: str, awaitable: Awaitable[T]) -> T:
    """Await a locator query, mapping Playwright failures onto BrowserError.

    Nodes recycled by the page between ``count()`` and ``nth(i)`` surface
    here as timeouts or detached-target errors.
    """
    try:
        return await awaitable
    except PlaywrightTimeoutError as exc:
        raise ActionTimeoutError(f"Timed out during {what}: {exc}") from exc
    except PlaywrightError as exc:
        if _is_browser_dead_error(exc):
            raise BrowserError(f"Browser died during {what}: {exc}") from exc
        raise BrowserError(f"{what} failed: {exc}") from exc


def check_result_type(value: Any, returns: type[T] | None) -> Any:
    """Validate a script result against the requested Python type.

    ``returns`` must be a plain class; ``list[str]`` and other
    parameterized generics are rejected with TypeError.
    JS numbers arrive as int or float, so an int satisfies ``float``.
    ``bool`` is checked exactly: a script that returns 1 is not a signal.
    """
    if returns is None:
        return value
    if not isinstance(returns, type) or isinstance(returns, GenericAlias):
        raise TypeError(f"returns must be a plain class, got {returns!r}")
    if returns is float and isinstance(value, int) and not isinstance(value, bool):
        return float(value)
    if returns is int and isinstance(value, bool):
        raise EvaluationError(f"Script returned bool, expected int: {value!r}")
    if returns is bool and not isinstance(value, bool):
        raise EvaluationError(f"Script returned {type(value).__name__}, expected bool: {value!r}")
    if not isinstance(value, returns):
        raise EvaluationError(f"Script returned {type(value).__name__}, expected {returns.__name__}: {value!r}")
    return value


class PlaywrightPageAccessor:
    """PageAccessor over a Playwright ``Page``.

    Locator handles are Playwright ``Locator`` objects; ``nth`` narrows one
    to a single node. Timeouts are in milliseconds, as Playwright takes them.
    """

    def __init__(self, page: Page, *, wait_until: str = "domcontentloaded") -> None:
        self._page = page
        self._wait_until = wait_until

    @property
    def page(self) -> Page:
        return self._page

    # ── Locators and node queries ────────────────────────────────────

    def locate(self, selector: str, *, within: Locator | None = None) -> Locator | None:
        scope = within if within is not None else self._page
        return scope.locator(selector)

    async def count(self, handle: Locator) -> int:
        return await _node_query("count", handle.count())

    def nth(self, handle: Locator, index: int) -> Locator:
        return handle.nth(index)

    async def inner_text(self, node: Locator) -> str | None:
        return await _node_query("inner_text", node.inner_text())

    async def is_visible(self, node: Locator) -> bool:
        return await _node_query("is_visible", node.is_visible())

    async def get_attribute(self, node: Locator, name: str) -> str | None:
        return await _node_query(f"get_attribute({name!r})", node.get_attribute(name))

    # ── Actions ──────────────────────────────────────────────────────

    async def wait_for(self, selector: str, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> None:
        """Wait for ``selector`` to attach and become visible (strict mode)."""
        try:
            await self._page.wait_for_selector(selector, strict=True, timeout=timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise ActionTimeoutError(
                f"Timed out after {timeout_ms}ms waiting for {selector!r}",
                selector=selector,
                timeout_ms=timeout_ms,
            ) from exc
        except PlaywrightError as exc:
            if _is_strict_violation(exc):
                raise ElementNotFoundError(
                    f"Selector {selector!r} did not resolve to a single element", selector=selector
                ) from exc
            raise BrowserError(f"wait_for({selector!r}) failed: {exc}") from exc

    async def click(self, selector: str, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> None:
        """Click the single element matching ``selector`` (strict mode)."""
        try:
            await self._page.click(selector, strict=True, timeout=timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise ActionTimeoutError(
                f"Timed out after {timeout_ms}ms clicking {selector!r}",
                selector=selector,
                timeout_ms=timeout_ms,
            ) from exc
        except PlaywrightError as exc:
            if _is_strict_violation(exc):
                raise ElementNotFoundError(
                    f"Selector {selector!r} did not resolve to a single element", selector=selector
                ) from exc
            raise BrowserError(f"click({selector!r}) failed: {exc}") from exc

    async def evaluate(self, script: str, arg: Any = None, *, returns: type[T] | None = None) -> Any:
        """Run ``script`` in the page with an optional argument.

        With ``returns`` set, the result must be of that type or
        EvaluationError is raised.
        """
        try:
            result = await self._page.evaluate(script, arg)
        except PlaywrightError as exc:
            if _is_browser_dead_error(exc):
                raise BrowserError(f"Browser died during evaluate: {exc}") from exc
            raise EvaluationError(f"Script evaluation failed: {exc}") from exc
        return check_result_type(result, returns)

    async def navigate(self, url: str) -> bool:
        """Go to ``url``. True only for a completed, success-class response."""
        try:
            response = await self._page.goto(url, wait_until=self._wait_until)
        except PlaywrightError as exc:
            if _is_browser_dead_error(exc):
                raise BrowserError(f"Browser died during navigation: {exc}") from exc
            logger.warning("Navigation to %s failed: %s", url, exc)
            return False
        if response is None:
            logger.warning("Navigation to %s produced no response", url)
            return False
        if not response.ok:
            logger.warning("Navigation to %s returned HTTP %d", url, response.status)
            return False
        return True
