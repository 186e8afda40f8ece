# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Record serialization: indented JSON array of objects.

Unset fields are omitted rather than written as null, so a consumer sees
exactly the fields the page provided. Non-ASCII text (prices in €, CJK
titles) is written as-is.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from . import Record

logger = logging.getLogger(__name__)


def to_list(records: Iterable[Record]) -> list[dict[str, Any]]:
    """Records as plain dicts, field order as extracted."""
    return [record.to_dict() for record in records]


def to_json(records: Iterable[Record], indent: int = 2) -> str:
    """Serialize records to a JSON array string.

    Args:
        records: records to serialize
        indent: JSON indentation level

    Returns:
        JSON string
    """
    return json.dumps(to_list(records), ensure_ascii=False, indent=indent)


def write_json(records: Iterable[Record], path: str | Path, indent: int = 2) -> Path:
    """Write records to ``path`` as UTF-8 JSON, creating parent dirs."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    data = to_list(records)
    p.write_text(json.dumps(data, ensure_ascii=False, indent=indent), encoding="utf-8")
    logger.info("Wrote %d records to %s", len(data), p)
    return p
