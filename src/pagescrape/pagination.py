# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Pagination controller: re-extract while the page keeps producing content.

Two shapes of page mutation are supported:

- step-and-signal (``paginate``): extract, run ``advance``, repeat while it
  returns True. ``k`` True signals then False means ``k + 1`` passes.
- settle-then-extract (``settle_then_extract``): run a mutation that only
  resolves once the page has loaded everything, then extract once.

Extraction and advance steps never overlap; each pass completes before
the next page mutation starts. The loop has no built-in bound. Callers
that cannot trust ``advance`` to return False pass ``max_passes`` and/or
``max_seconds``; both are checked before ``advance`` runs, so the page is
never mutated without a following pass. Hitting either logs a warning and
returns what was collected so far.
"""

from __future__ import annotations

import inspect
import logging
import time
from collections.abc import Awaitable, Callable

from . import Record, RuleSet
from .accessor import PageAccessor
from .extraction import extract

logger = logging.getLogger(__name__)

Advance = Callable[[], bool | Awaitable[bool]]
Settle = Callable[[], Awaitable[object]]

DEFAULT_SCROLL_OFFSET = 300

# ── Page scripts (static, arguments passed via evaluate) ───────────

SCROLL_STEP_JS = """(offset) => {
  window.scrollBy(0, offset);
  if (window.innerHeight + window.scrollY >= document.body.scrollHeight)
    return false;
  return true;
}"""

SCROLL_TO_BOTTOM_JS = """async (selector) => {
  await new Promise((resolve) => {
    let h = 0;
    const offset = document.body.scrollHeight * 0.01;
    const timer = setInterval(() => {
      const scrollHeight = document.body.scrollHeight;
      window.scrollBy(0, offset);
      h += offset;
      if (h >= scrollHeight - window.innerHeight) {
        if (document.querySelector(selector) == null) {
          clearInterval(timer);
          resolve();
        } else {
          h -= offset;
        }
      }
    }, 10);
  });
}"""


# ── Step builders ──────────────────────────────────────────────────


def scroll_step(accessor: PageAccessor, offset: int = DEFAULT_SCROLL_OFFSET, script: str = SCROLL_STEP_JS) -> Advance:
    """Advance step: scroll by ``offset`` px, True while content lies below."""

    async def _advance() -> bool:
        return await accessor.evaluate(script, offset, returns=bool)

    return _advance


def scroll_to_bottom(accessor: PageAccessor, loading_selector: str, script: str = SCROLL_TO_BOTTOM_JS) -> Settle:
    """Settle step: scroll to the bottom until ``loading_selector`` is gone."""

    async def _settle() -> None:
        await accessor.evaluate(script, loading_selector)

    return _settle


# ── Controllers ────────────────────────────────────────────────────


async def _signal(advance: Advance) -> bool:
    result = advance()
    if inspect.isawaitable(result):
        result = await result
    return bool(result)


async def paginate(
    accessor: PageAccessor,
    container_selector: str,
    rule_set: RuleSet,
    advance: Advance,
    *,
    max_passes: int | None = None,
    max_seconds: float | None = None,
) -> list[Record]:
    """Extract, then advance, until ``advance`` signals False.

    Args:
        accessor: page to read and mutate
        container_selector: selector of each repeated record root
        rule_set: field name -> sub-selector
        advance: page-mutating step returning the continuation signal
            (plain or coroutine function)
        max_passes: optional ceiling on extraction passes
        max_seconds: optional wall-clock ceiling, checked between passes

    Returns:
        Records of every pass, in pass order. Not deduplicated.
    """
    if max_passes is not None and max_passes < 1:
        raise ValueError(f"max_passes must be >= 1, got {max_passes}")

    started = time.monotonic()
    records: list[Record] = []
    passes = 0
    while True:
        records.extend(await extract(accessor, container_selector, rule_set))
        passes += 1
        if max_passes is not None and passes >= max_passes:
            logger.warning("Pagination stopped at max_passes=%d before advancing", max_passes)
            break
        if max_seconds is not None and time.monotonic() - started >= max_seconds:
            logger.warning(
                "Pagination stopped after %.1fs (max_seconds=%.1f, passes=%d)",
                time.monotonic() - started,
                max_seconds,
                passes,
            )
            break
        if not await _signal(advance):
            break

    logger.info("Pagination finished: %d passes, %d records", passes, len(records))
    return records


async def settle_then_extract(
    accessor: PageAccessor,
    container_selector: str,
    rule_set: RuleSet,
    settle: Settle,
) -> list[Record]:
    """Run ``settle`` once, then a single extraction pass."""
    await settle()
    records = await extract(accessor, container_selector, rule_set)
    logger.info("Settled page yielded %d records", len(records))
    return records
