"""Fetching, parsing and search tools used by the retrieval pipeline."""

from __future__ import annotations

from h2obot.tools.page_fetcher import FetchedPage, PageFetcher, classify_content_type
from h2obot.tools.page_parser import PageParser, ParsedPage
from h2obot.tools.web_search import (
    DuckDuckGoSearchProvider,
    TavilySearchError,
    TavilySearchProvider,
    WebSearchError,
    WebSearchProvider,
    get_search_provider,
)

__all__ = [
    "DuckDuckGoSearchProvider",
    "FetchedPage",
    "PageFetcher",
    "PageParser",
    "ParsedPage",
    "TavilySearchError",
    "TavilySearchProvider",
    "WebSearchError",
    "WebSearchProvider",
    "classify_content_type",
    "get_search_provider",
]
