"""Text normalization helpers."""

from __future__ import annotations

import re

_WS_RE = re.compile(r"\s+")


def collapse_whitespace(text: str) -> str:
    """Collapse whitespace runs to single spaces and trim."""

    return _WS_RE.sub(" ", text).strip()
