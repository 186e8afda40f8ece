# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Playwright browser session management.

One session = one browser process, one context, one page. The page is
exposed to the extraction core through ``session.accessor``.

Sessions either own their Playwright instance (``start()``) or borrow a
Driver's (``start_from_playwright()``); in the latter case ``stop()``
leaves Playwright running for the Driver to close.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager, suppress
from dataclasses import dataclass
from enum import Enum

from playwright.async_api import Browser, BrowserContext, BrowserType, Page, Playwright, async_playwright

from .accessor import PlaywrightPageAccessor
from .errors import BrowserError, ConfigurationError

logger = logging.getLogger(__name__)

# Default browser config
DEFAULT_VIEWPORT = {"width": 1280, "height": 800}
DEFAULT_LOCALE = "en-US"


class BrowserEngine(str, Enum):
    CHROMIUM = "chromium"
    FIREFOX = "firefox"


def resolve_engine(engine: str | BrowserEngine) -> BrowserEngine:
    """Map a name to a supported engine. No fallback for unknown names."""
    try:
        return BrowserEngine(engine)
    except ValueError:
        supported = ", ".join(e.value for e in BrowserEngine)
        raise ConfigurationError(f"Invalid browser engine {engine!r} (supported: {supported})") from None


@dataclass
class BrowserConfig:
    """Browser launch configuration."""

    engine: str = BrowserEngine.CHROMIUM.value
    executable_path: str | None = None  # None: Playwright's bundled build
    headless: bool = True
    locale: str = DEFAULT_LOCALE
    viewport_width: int = 1280
    viewport_height: int = 800
    timeout_ms: int = 30000  # navigation timeout
    wait_until: str = "domcontentloaded"


def chromium_launch_args(config: BrowserConfig) -> list[str]:
    """Chromium flags that keep scraping sessions quiet and less bot-flagged."""
    return [
        "--disable-blink-features=AutomationControlled",
        f"--lang={config.locale}",
        "--disable-extensions",
        "--disable-dev-shm-usage",
        "--no-first-run",
        "--disable-sync",
    ]


def browser_type_for(playwright: Playwright, engine: str | BrowserEngine) -> BrowserType:
    """Return the Playwright launcher for ``engine``."""
    resolved = resolve_engine(engine)
    if resolved is BrowserEngine.FIREFOX:
        return playwright.firefox
    return playwright.chromium


class BrowserSession:
    """A launched browser with a single page."""

    def __init__(self, config: BrowserConfig | None = None):
        self.config = config or BrowserConfig()
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None
        self._owns_playwright: bool = True  # False when started from a Driver

    @property
    def page(self) -> Page:
        if self._page is None:
            raise RuntimeError("Browser session not started. Use async with or call start().")
        return self._page

    @property
    def context(self) -> BrowserContext:
        if self._context is None:
            raise RuntimeError("Browser session not started.")
        return self._context

    @property
    def accessor(self) -> PlaywrightPageAccessor:
        """Page Accessor over this session's page."""
        return PlaywrightPageAccessor(self.page, wait_until=self.config.wait_until)

    @property
    def is_started(self) -> bool:
        return self._page is not None

    async def _launch_browser(self, playwright: Playwright) -> None:
        """Launch the configured engine."""
        launcher = browser_type_for(playwright, self.config.engine)
        kwargs: dict = {"headless": self.config.headless}
        if self.config.executable_path:
            kwargs["executable_path"] = self.config.executable_path
        if resolve_engine(self.config.engine) is BrowserEngine.CHROMIUM:
            kwargs["args"] = chromium_launch_args(self.config)
        try:
            self._browser = await launcher.launch(**kwargs)
        except Exception as exc:
            if "executable doesn't exist" in str(exc).lower():
                raise BrowserError(
                    f"{self.config.engine} executable not found"
                    f" ({self.config.executable_path or 'bundled'})."
                    f" Set executable_path or run: playwright install {self.config.engine}"
                ) from exc
            raise

    async def _create_context(self, browser: Browser) -> None:
        """Create BrowserContext + Page on given browser."""
        self._context = await browser.new_context(
            viewport={
                "width": self.config.viewport_width,
                "height": self.config.viewport_height,
            },
            locale=self.config.locale,
            accept_downloads=False,
        )
        self._context.set_default_navigation_timeout(self.config.timeout_ms)
        self._page = await self._context.new_page()

    async def start(self) -> None:
        """Start Playwright, launch the browser and create the page."""
        resolve_engine(self.config.engine)
        self._owns_playwright = True
        self._playwright = await async_playwright().start()
        try:
            await self._launch_browser(self._playwright)
            await self._create_context(self._browser)
        except BaseException:
            await self.stop()
            raise
        logger.info("Browser session started (engine=%s, headless=%s)", self.config.engine, self.config.headless)

    async def start_from_playwright(self, playwright: Playwright) -> None:
        """Start using a Playwright instance owned by someone else (Driver)."""
        resolve_engine(self.config.engine)
        self._owns_playwright = False
        self._playwright = playwright
        try:
            await self._launch_browser(playwright)
            await self._create_context(self._browser)
        except BaseException:
            await self.stop()
            raise
        logger.info("Browser session started (engine=%s, headless=%s)", self.config.engine, self.config.headless)

    async def stop(self) -> None:
        """Dispose context, then browser. Safe to call on a crashed browser."""
        if self._context:
            with suppress(Exception):
                await self._context.close()
            self._context = None
        self._page = None

        if self._browser:
            with suppress(Exception):
                await self._browser.close()
            self._browser = None

        if self._owns_playwright and self._playwright:
            with suppress(Exception):
                await self._playwright.stop()
        self._playwright = None

        logger.info("Browser session stopped (engine=%s)", self.config.engine)

    async def __aenter__(self) -> BrowserSession:
        await self.start()
        return self

    async def __aexit__(self, *args) -> None:
        await self.stop()


@asynccontextmanager
async def create_session(
    config: BrowserConfig | None = None,
) -> AsyncGenerator[BrowserSession, None]:
    """Context manager to create and manage a browser session."""
    session = BrowserSession(config)
    await session.start()
    try:
        yield session
    finally:
        await session.stop()
