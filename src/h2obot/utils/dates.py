"""Publication date parsing.

Dates come from three kinds of places: HTML metadata values, free text (PDF bodies,
``<time>`` contents) and the HTTP ``Last-Modified`` header. Everything is normalized to a
timezone-aware UTC ``datetime``; parse failures yield ``None`` and never raise.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone

from dateutil import parser as dateutil_parser

from h2obot.logging import get_logger

logger = get_logger(__name__)

# Missing components (day, month, time) default to the start of the period.
# A value parsed against both defaults keeps its year only if it names one.
_DEFAULT = datetime(2000, 1, 1)
_ALT_DEFAULT = datetime(2001, 1, 1)

_MIN_YEAR = 1990
_MAX_YEAR = 2100

_MONTH = (
    r"(?:Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|June?|July?|Aug(?:ust)?"
    r"|Sep(?:t(?:ember)?)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?)"
)

_DATE_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        # ISO 8601
        r"\b\d{4}-\d{2}-\d{2}(?:[T ]\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?(?:Z|[+-]\d{2}:?\d{2})?)?",
        # October 1, 2024 / Oct. 1st 2024
        rf"\b{_MONTH}\.?\s+\d{{1,2}}(?:st|nd|rd|th)?,?\s+\d{{4}}\b",
        # 1 October 2024
        rf"\b\d{{1,2}}\s+{_MONTH}\.?,?\s+\d{{4}}\b",
        # 10/01/2024
        r"\b\d{1,2}/\d{1,2}/\d{4}\b",
        # October 2024
        rf"\b{_MONTH}\.?,?\s+\d{{4}}\b",
    )
)


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_strict(value: str) -> datetime | None:
    try:
        parsed = dateutil_parser.parse(value, default=_DEFAULT)
        shifted = dateutil_parser.parse(value, default=_ALT_DEFAULT)
    except (ValueError, OverflowError):
        return None
    if parsed.year != shifted.year:
        # "Monday", "Oct 1" and bare numbers carry no year
        return None
    if not _MIN_YEAR <= parsed.year <= _MAX_YEAR:
        return None
    return _to_utc(parsed)


def find_date_in_text(text: str) -> datetime | None:
    """Find the first recognizable date in free text.

    Candidates from all patterns are tried in order of appearance (longest first on ties),
    so "1 October 2024" wins over the "October 2024" inside it.
    """

    if not text:
        return None

    candidates: list[tuple[int, int, str]] = []
    for pattern in _DATE_PATTERNS:
        for m in pattern.finditer(text):
            candidates.append((m.start(), -(m.end() - m.start()), m.group(0)))

    for _, _, raw in sorted(candidates):
        parsed = _parse_strict(raw)
        if parsed is not None:
            return parsed
    return None


def parse_date(value: str | None) -> datetime | None:
    """Parse a metadata value or short label into a UTC datetime."""

    if not value:
        return None
    value = value.strip()
    if not value:
        return None
    return _parse_strict(value) or find_date_in_text(value)


def parse_http_date(value: str | None) -> datetime | None:
    """Parse an HTTP date header such as ``Last-Modified``."""

    parsed = parse_date(value)
    if parsed is None and value:
        logger.debug("Unparseable HTTP date header", extra={"value": value})
    return parsed
