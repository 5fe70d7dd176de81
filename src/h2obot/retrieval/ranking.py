"""Relevance filtering and scoring.

Scoring is an ordered list of :class:`ScoreRule` entries whose points are summed. Each rule
is a plain function of the document and a :class:`ScoringContext`, so scores are pure for a
fixed ``ctx.now``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable, Sequence

from h2obot.models.document import RetrievedDocument
from h2obot.utils.urls import host_matches, hostname

_TOKEN_RE = re.compile(r"[a-z0-9]+")

SAFETY_RE = re.compile(r"boil|do\s*not\s*drink|advisory|notice")
UTILITY_JARGON_RE = re.compile(
    r"\b(?:pws|pwsid|pwsa|dep|deq|ddw|ccr|tceq|msdh|egle|pgh2o|jxn\s*water|austin\s*water)\b"
)

RECENT_DAYS = 60
CURRENT_DAYS = 365


def location_tokens(location: str) -> list[str]:
    """Lower-cased alphanumeric tokens of at least three characters."""

    return [t for t in _TOKEN_RE.findall(location.lower()) if len(t) >= 3]


def strong_location_match(location: str, haystack: str) -> bool:
    """Whether enough location tokens occur in ``haystack``.

    The bar is ``min(2, max(1, n // 2))`` hits for ``n`` tokens, so it never exceeds two
    regardless of how long the location phrase is.
    """

    tokens = location_tokens(location)
    if not tokens:
        return False
    lowered = haystack.lower()
    hits = sum(1 for t in tokens if t in lowered)
    return hits >= min(2, max(1, len(tokens) // 2))


def _haystack(doc: RetrievedDocument) -> str:
    return f"{doc.title} {doc.text}"


def filter_documents(
    docs: Iterable[RetrievedDocument],
    allowed_domains: Iterable[str],
    location: str,
    *,
    strict_local: bool = True,
) -> list[RetrievedDocument]:
    """Keep allow-listed documents, plus strong location matches when not strict.

    Single pass; input order is preserved.
    """

    allowed = tuple(allowed_domains)
    kept: list[RetrievedDocument] = []
    for doc in docs:
        if host_matches(hostname(doc.url), allowed):
            kept.append(doc)
        elif not strict_local and strong_location_match(location, _haystack(doc)):
            kept.append(doc)
    return kept


@dataclass(frozen=True)
class ScoringContext:
    """Inputs shared by every score rule in one run."""

    base_allow: frozenset[str]
    local_allow: frozenset[str]
    location: str
    now: datetime


@dataclass(frozen=True)
class ScoreRule:
    name: str
    points: Callable[[RetrievedDocument, ScoringContext], int]


def _base_host(doc: RetrievedDocument, ctx: ScoringContext) -> int:
    return 3 if host_matches(hostname(doc.url), ctx.base_allow) else 0


def _local_host(doc: RetrievedDocument, ctx: ScoringContext) -> int:
    return 4 if host_matches(hostname(doc.url), ctx.local_allow) else 0


def _strong_match(doc: RetrievedDocument, ctx: ScoringContext) -> int:
    return 2 if strong_location_match(ctx.location, _haystack(doc)) else 0


def _safety_keywords(doc: RetrievedDocument, ctx: ScoringContext) -> int:
    return 2 if SAFETY_RE.search(_haystack(doc).lower()) else 0


def _utility_jargon(doc: RetrievedDocument, ctx: ScoringContext) -> int:
    return 1 if UTILITY_JARGON_RE.search(_haystack(doc).lower()) else 0


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def _recency(doc: RetrievedDocument, ctx: ScoringContext) -> int:
    if doc.published_at is None:
        return 0
    age_days = (_aware(ctx.now) - _aware(doc.published_at)).total_seconds() / 86400
    if age_days < RECENT_DAYS:
        return 2
    if age_days < CURRENT_DAYS:
        return 1
    return 0


SCORE_RULES: tuple[ScoreRule, ...] = (
    ScoreRule("base_host", _base_host),
    ScoreRule("local_host", _local_host),
    ScoreRule("strong_location", _strong_match),
    ScoreRule("safety_keywords", _safety_keywords),
    ScoreRule("utility_jargon", _utility_jargon),
    ScoreRule("recency", _recency),
)


def score_document(
    doc: RetrievedDocument,
    ctx: ScoringContext,
    rules: Sequence[ScoreRule] = SCORE_RULES,
) -> int:
    """Sum the points of every rule for ``doc``."""

    return sum(rule.points(doc, ctx) for rule in rules)


def rank_documents(
    docs: Iterable[RetrievedDocument],
    ctx: ScoringContext,
    *,
    limit: int = 6,
    rules: Sequence[ScoreRule] = SCORE_RULES,
) -> list[RetrievedDocument]:
    """Score, sort descending (stable on input order) and keep the top ``limit``."""

    scored = [doc.with_score(score_document(doc, ctx, rules)) for doc in docs]
    scored.sort(key=lambda d: d.score or 0, reverse=True)
    return scored[:limit]
