"""JSON extraction from free-form model output.

Chat models asked for "strict JSON" still wrap it in code fences or prose now and then;
these helpers recover the object instead of failing the answer.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Optional

from h2obot.logging import get_logger

logger = get_logger(__name__)

_FENCE_JSON_RE = re.compile(r"```json\s*\n?(.*?)\n?```", re.DOTALL | re.IGNORECASE)
_FENCE_ANY_RE = re.compile(r"```\s*\n?(.*?)\n?```", re.DOTALL)
_TRAILING_OBJECT_RE = re.compile(r"\{.*\}\s*$", re.DOTALL)
_FLAT_OBJECT_RE = re.compile(r"\{[^{}]*(?:\{[^{}]*\}[^{}]*)*\}", re.DOTALL)


def _loads_object(candidate: str) -> Optional[Dict[str, Any]]:
    try:
        data = json.loads(candidate)
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Extract a JSON object from text, as leniently as is still safe.

    Strategies, strict to loose:
        0. A fenced markdown block (```json ...``` or any ```...```).
        1. The whole text, when it looks like an object.
        2. The object that runs to the end of the text (prose preamble, then JSON).
        3. The first ``{...}`` with at most one level of nesting.

    Returns ``None`` instead of raising when nothing parses.
    """

    if not text:
        return None

    cleaned = text.strip()

    m = _FENCE_JSON_RE.search(cleaned) or _FENCE_ANY_RE.search(cleaned)
    if m:
        inner = m.group(1).strip()
        if inner.startswith("{") and inner.endswith("}"):
            data = _loads_object(inner)
            if data is not None:
                return data
        logger.debug("extract_json_object: markdown-fenced JSON parse failed")

    if cleaned.startswith("{") and cleaned.endswith("}"):
        data = _loads_object(cleaned)
        if data is not None:
            return data
        logger.debug("extract_json_object: whole-text JSON parse failed")

    m = _TRAILING_OBJECT_RE.search(cleaned)
    if m:
        data = _loads_object(m.group(0))
        if data is not None:
            return data

    m = _FLAT_OBJECT_RE.search(cleaned)
    if m:
        data = _loads_object(m.group(0))
        if data is not None:
            return data

    logger.debug("extract_json_object: no JSON object found")
    return None
