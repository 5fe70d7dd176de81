"""Pydantic models used across the project."""

from __future__ import annotations

from h2obot.models.answer import (
    Advisory,
    Message,
    Metrics,
    QueryRequest,
    QueryResponse,
    Safety,
    Source,
)
from h2obot.models.document import ContentType, RetrievedDocument, Tier
from h2obot.models.search import SearchResult

__all__ = [
    "Advisory",
    "ContentType",
    "Message",
    "Metrics",
    "QueryRequest",
    "QueryResponse",
    "RetrievedDocument",
    "Safety",
    "SearchResult",
    "Source",
    "Tier",
]
