# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Driver: one Playwright instance, any number of browser sessions.

Each ``open_browser()`` call launches an independent browser with its own
page, so separate sessions can be scraped concurrently. A single session
must still be driven by one task at a time.

Lifecycle follows the ``AsyncContextManager`` pattern::

    async with Driver() as driver:
        session = await driver.open_browser(engine="chromium", headless=True)
        ok = await session.accessor.navigate("https://example.com")
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import replace
from types import TracebackType

from playwright.async_api import Playwright, async_playwright

from .browser_session import BrowserConfig, BrowserEngine, BrowserSession, resolve_engine

logger = logging.getLogger(__name__)


class Driver:
    """Owns Playwright; opens and tracks browser sessions."""

    def __init__(self, *, config: BrowserConfig | None = None) -> None:
        self._config = config or BrowserConfig()
        self._playwright: Playwright | None = None
        self._sessions: list[BrowserSession] = []

    # ── AsyncContextManager ──────────────────────────────────────────

    async def start(self) -> None:
        if self._playwright is None:
            self._playwright = await async_playwright().start()
            logger.debug("Playwright started")

    async def close(self) -> None:
        """Stop every open session, then Playwright."""
        for session in self._sessions:
            await session.stop()
        self._sessions.clear()
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
            logger.debug("Playwright stopped")

    async def __aenter__(self) -> Driver:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    # ── Sessions ─────────────────────────────────────────────────────

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    async def open_browser(
        self,
        *,
        engine: str | BrowserEngine | None = None,
        executable_path: str | None = None,
        headless: bool | None = None,
    ) -> BrowserSession:
        """Launch a browser and return its started session.

        Unset arguments fall back to the driver's BrowserConfig. An
        unsupported engine raises ConfigurationError before anything is
        launched.
        """
        overrides: dict = {}
        if engine is not None:
            overrides["engine"] = resolve_engine(engine).value
        if executable_path is not None:
            overrides["executable_path"] = executable_path
        if headless is not None:
            overrides["headless"] = headless
        config = replace(self._config, **overrides)
        resolve_engine(config.engine)

        await self.start()
        session = BrowserSession(config)
        await session.start_from_playwright(self._playwright)
        self._sessions.append(session)
        return session

    async def close_browser(self, session: BrowserSession) -> None:
        """Stop one session opened by this driver."""
        if session in self._sessions:
            self._sessions.remove(session)
        await session.stop()


@asynccontextmanager
async def create_driver(config: BrowserConfig | None = None) -> AsyncGenerator[Driver, None]:
    """Context manager to create and manage a Driver."""
    driver = Driver(config=config)
    await driver.start()
    try:
        yield driver
    finally:
        await driver.close()
