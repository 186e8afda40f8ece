# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Shared test configuration and fixtures."""

try:
    import pagescrape  # noqa: F401
except ImportError:
    raise ImportError("pagescrape is not installed. Run: pip install -e '.[dev]'") from None

import pytest


@pytest.fixture(autouse=True)
def _block_real_browser(request, monkeypatch):
    """Safety net: prevent real browser launches in unit tests.

    Tests that need Playwright objects patch ``async_playwright`` in the
    module under test; that patch takes priority over this fixture.
    Tests that forget get a clear error instead of launching Chromium.
    """

    def _no_real_playwright():
        raise RuntimeError(
            "Test tried to start a real Playwright instance. Patch 'async_playwright' in the module under test."
        )

    monkeypatch.setattr("pagescrape.browser_session.async_playwright", _no_real_playwright)
    monkeypatch.setattr("pagescrape.driver.async_playwright", _no_real_playwright)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep developer PAGESCRAPE_* variables out of tests."""
    for name in (
        "PAGESCRAPE_ENGINE",
        "PAGESCRAPE_HEADLESS",
        "PAGESCRAPE_EXECUTABLE_PATH",
        "PAGESCRAPE_LOG_LEVEL",
        "PAGESCRAPE_LOG_JSON",
    ):
        monkeypatch.delenv(name, raising=False)
