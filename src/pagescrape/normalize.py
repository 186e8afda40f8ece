# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Text normalization for extracted field values."""

from __future__ import annotations

import html
import re

_WHITESPACE_RUN = re.compile(r"\s+")


def decode_entities(text: str) -> str:
    """Decode HTML entities until none remain.

    A single pass can leave entity-looking text behind (``&amp;lt;`` ->
    ``&lt;``); decoding to a fixed point keeps normalize_text idempotent.
    Every decode that changes the string shortens it, so this terminates.
    """
    decoded = html.unescape(text)
    while decoded != text:
        text = decoded
        decoded = html.unescape(text)
    return decoded


def normalize_text(text: str) -> str:
    """Decode entities, collapse whitespace runs to one space, trim.

    ``&nbsp;`` decodes to U+00A0, which counts as whitespace here:
    ``"Price:&nbsp;&nbsp;9,99&nbsp;€"`` -> ``"Price: 9,99 €"``.
    """
    return _WHITESPACE_RUN.sub(" ", decode_entities(text)).strip()
