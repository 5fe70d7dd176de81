"""Search hit model shared by the search providers."""

from __future__ import annotations

from pydantic import BaseModel, HttpUrl


class SearchResult(BaseModel):
    """One hit from a web search provider.

    Only ``url`` feeds the seed list; title, snippet and the provider's relevance score are
    kept for debug traces.
    """

    url: HttpUrl
    source: str
    rank: int
    title: str | None = None
    snippet: str | None = None
    provider_score: float | None = None

    @property
    def host(self) -> str:
        return (self.url.host or "").lower()
