# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""pagescrape exception hierarchy.

All pagescrape-specific errors inherit from ScrapeError, allowing callers
to catch the base class for any scrape failure or specific subclasses
for targeted handling.

A sub-selector that matches nothing is not an error (the field is left
unset), and a failed navigation is reported as ``False``, not raised.
"""

from __future__ import annotations


class ScrapeError(Exception):
    """Base exception for all pagescrape errors."""


class BrowserError(ScrapeError):
    """Browser launch or page interaction failure."""


class ActionTimeoutError(BrowserError):
    """A wait or click did not complete within its timeout."""

    def __init__(self, message: str, *, selector: str = "", timeout_ms: int = 0) -> None:
        super().__init__(message)
        self.selector = selector
        self.timeout_ms = timeout_ms


class ElementNotFoundError(BrowserError):
    """A strict wait/click target did not resolve to exactly one element."""

    def __init__(self, message: str, *, selector: str = "") -> None:
        super().__init__(message)
        self.selector = selector


class EvaluationError(ScrapeError):
    """A page script raised, or returned a value of the wrong type."""


class ConfigurationError(ScrapeError):
    """Invalid engine selection or job configuration."""


class NoRecordsError(ScrapeError):
    """A job that requires records produced none."""

    def __init__(self, message: str, *, job: str = "") -> None:
        super().__init__(message)
        self.job = job
