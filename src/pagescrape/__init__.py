# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""pagescrape: rule-driven structured extraction for browser pages.

Applies a field-to-selector ruleset to repeated container elements:
- extract: one pass over the current page state
- paginate: extract, advance, repeat until the page reports exhaustion
- dedupe: collapse the accumulated records by a key field
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping

RuleSet = Mapping[str, str]  # field name -> sub-selector, extraction order


class Record(Mapping[str, str]):
    """Immutable ordered mapping of extracted fields.

    A field is either absent (its sub-selector matched nothing usable) or
    set to a string, which may be empty. ``"Title" in record`` tells the
    two apart.
    """

    __slots__ = ("_fields",)

    def __init__(self, fields: Mapping[str, str] | Iterable[tuple[str, str]] = ()) -> None:
        self._fields: dict[str, str] = dict(fields)

    def __getitem__(self, name: str) -> str:
        return self._fields[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"Record({self._fields!r})"

    def to_dict(self) -> dict[str, str]:
        """Return a mutable copy, field order preserved."""
        return dict(self._fields)


__all__ = ["Record", "RuleSet"]
