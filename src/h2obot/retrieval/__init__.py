"""Document retrieval and ranking."""

from __future__ import annotations

from h2obot.retrieval.locations import LocationResolution, resolve_location
from h2obot.retrieval.retriever import (
    AuthoritativeRetriever,
    fetch_authoritative,
    fetch_authoritative_async,
)

__all__ = [
    "AuthoritativeRetriever",
    "LocationResolution",
    "fetch_authoritative",
    "fetch_authoritative_async",
    "resolve_location",
]
