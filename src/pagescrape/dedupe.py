# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Collapse records to one per distinct key value, first seen wins."""

from __future__ import annotations

from collections.abc import Iterable

from . import Record

# Bucket for records that lack the key field; distinct from "".
_ABSENT = object()


def dedupe(records: Iterable[Record], key_field: str) -> list[Record]:
    """Keep the first Record for each value of ``key_field``.

    Later duplicates are dropped whole, even when they carry fields the
    first one lacks. Survivors keep first-seen order.
    """
    seen: set[object] = set()
    unique: list[Record] = []
    for record in records:
        key = record.get(key_field, _ABSENT)
        if key in seen:
            continue
        seen.add(key)
        unique.append(record)
    return unique
