# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Extraction engine: apply a RuleSet to every container on the page.

One pass, no pagination. For each node matching the container selector,
in document order:

1. Read the container's inner text. Empty means a decorative or
   not-yet-rendered shell: no Record.
2. For each ``field -> sub_selector`` rule, look inside the container.
   No match, or no visible non-hidden match: the field stays unset.
   Otherwise the first eligible node's text is normalized; a node with
   only whitespace yields ``""``.

Only read-only page queries are issued.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from . import Record, RuleSet
from .accessor import NodeHandle, PageAccessor
from .normalize import normalize_text
from .visibility import filter_visible

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _nodes(accessor: PageAccessor, selector: str, within: NodeHandle | None = None) -> list[NodeHandle]:
    """All nodes matching ``selector`` (inside ``within`` if given), document order."""
    handle = accessor.locate(selector, within=within)
    if handle is None:
        return []
    total = await accessor.count(handle)
    return [accessor.nth(handle, i) for i in range(total)]


async def extract_field(accessor: PageAccessor, container: NodeHandle, sub_selector: str) -> str | None:
    """Value of one rule inside ``container``; None when the field is unset."""
    candidates = await _nodes(accessor, sub_selector, within=container)
    if not candidates:
        return None
    eligible = await filter_visible(accessor, candidates)
    if not eligible:
        return None
    raw = await accessor.inner_text(eligible[0])
    if raw and raw.strip():
        return normalize_text(raw)
    return ""


async def extract_record(accessor: PageAccessor, container: NodeHandle, rule_set: RuleSet) -> Record | None:
    """Build the Record for one container, or None if it has no anchor text."""
    anchor = await accessor.inner_text(container)
    if not anchor:
        return None
    fields: list[tuple[str, str]] = []
    for name, sub_selector in rule_set.items():
        value = await extract_field(accessor, container, sub_selector)
        if value is not None:
            fields.append((name, value))
    return Record(fields)


async def extract(accessor: PageAccessor, container_selector: str, rule_set: RuleSet) -> list[Record]:
    """Run one extraction pass over the current page state."""
    containers = await _nodes(accessor, container_selector)
    records: list[Record] = []
    for container in containers:
        record = await extract_record(accessor, container, rule_set)
        if record is not None:
            records.append(record)
    logger.debug(
        "Extracted %d records from %d containers (%s)",
        len(records),
        len(containers),
        container_selector,
    )
    return records


async def query_selector_all(
    accessor: PageAccessor,
    selector: str,
    map_node: Callable[[NodeHandle], Awaitable[T]],
) -> list[T]:
    """Map every node matching ``selector`` through ``map_node``, document order.

    Example::

        hrefs = await query_selector_all(
            accessor, "nav a", lambda node: accessor.get_attribute(node, "href")
        )
    """
    return [await map_node(node) for node in await _nodes(accessor, selector)]
