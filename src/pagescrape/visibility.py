# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Visibility filter for candidate nodes.

A node is eligible for text extraction when the page reports it visible
and its class attribute does not contain "hidden". The class check is a
plain substring match ("is-hidden-mobile" and "unhidden" both count).
"""

from __future__ import annotations

from collections.abc import Iterable

from .accessor import NodeHandle, PageAccessor

HIDDEN_CLASS_MARKER = "hidden"


async def is_eligible(accessor: PageAccessor, node: NodeHandle) -> bool:
    """True if ``node`` is visible and not tagged hidden by class."""
    if not await accessor.is_visible(node):
        return False
    class_name = await accessor.get_attribute(node, "class")
    return not (class_name and HIDDEN_CLASS_MARKER in class_name)


async def filter_visible(accessor: PageAccessor, nodes: Iterable[NodeHandle]) -> list[NodeHandle]:
    """Return the eligible nodes, input order preserved."""
    return [node for node in nodes if await is_eligible(accessor, node)]
