"""Web search providers used to discover candidate URLs.

Providers return hits restricted to a domain allow-list. Search is optional: when no provider
is configured the seed list is built from federal and curated pages only.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Protocol, Sequence

import httpx
from duckduckgo_search import DDGS

from h2obot.config import Settings
from h2obot.logging import get_logger
from h2obot.models.search import SearchResult
from h2obot.utils.urls import host_matches

logger = get_logger(__name__)


class WebSearchProvider(Protocol):
    def search(
        self,
        query: str,
        *,
        max_results: int,
        include_domains: Sequence[str] = (),
    ) -> list[SearchResult]:
        """Search the web, optionally restricted to ``include_domains``."""


class WebSearchError(RuntimeError):
    """A search request failed; callers treat it as "no results"."""


class TavilySearchError(WebSearchError):
    pass


# Statuses worth another attempt; everything else non-2xx fails immediately
RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})


class _Retryable(Exception):
    def __init__(self, cause: Exception, retry_after: float | None = None) -> None:
        super().__init__(str(cause))
        self.cause = cause
        self.retry_after = retry_after


def _retry_after_seconds(resp: httpx.Response) -> float | None:
    value = resp.headers.get("retry-after")
    if value is None:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        return None


@dataclass(frozen=True)
class TavilySearchProvider:
    """Tavily search API client.

    The key comes from ``H2OBOT_TAVILY_API_KEY``. Domain restriction is sent as
    ``include_domains`` so Tavily filters server-side.
    """

    api_key: str
    base_url: str = "https://api.tavily.com"
    search_depth: str = "basic"
    timeout_s: float = 20.0
    max_retries: int = 2
    retry_backoff_s: float = 0.75
    retry_max_backoff_s: float = 8.0
    source_name: str = "tavily"

    def search(
        self,
        query: str,
        *,
        max_results: int,
        include_domains: Sequence[str] = (),
    ) -> list[SearchResult]:
        """Run one search, retrying rate limits and server errors with backoff.

        Raises:
            TavilySearchError: On a non-retryable failure or when retries are exhausted.
        """

        body = {
            "query": query,
            "max_results": max_results,
            "search_depth": self.search_depth,
            "include_domains": list(include_domains),
            "include_answer": False,
            "include_raw_content": False,
            "include_images": False,
        }

        with httpx.Client(
            base_url=self.base_url.rstrip("/"),
            timeout=httpx.Timeout(self.timeout_s),
            headers={"Authorization": f"Bearer {self.api_key}"},
        ) as client:
            attempt = 0
            while True:
                started = time.monotonic()
                try:
                    results = self._search_once(client, body)
                except _Retryable as e:
                    if attempt >= self.max_retries:
                        raise TavilySearchError(
                            f"Tavily search failed after {attempt + 1} attempts: {e}"
                        ) from e.cause
                    delay = self._backoff(attempt, e.retry_after)
                    logger.debug(
                        "Tavily search retry",
                        extra={"attempt": attempt, "sleep_s": delay, "error": str(e)},
                    )
                    time.sleep(delay)
                    attempt += 1
                    continue

                logger.debug(
                    "Tavily search ok",
                    extra={
                        "attempt": attempt,
                        "result_count": len(results),
                        "latency_ms": int((time.monotonic() - started) * 1000),
                    },
                )
                return results

    def _search_once(self, client: httpx.Client, body: dict[str, Any]) -> list[SearchResult]:
        try:
            resp = client.post("/search", json=body)
        except httpx.RequestError as e:
            raise _Retryable(e) from e

        if resp.status_code in RETRYABLE_STATUSES:
            retry_after = _retry_after_seconds(resp) if resp.status_code == 429 else None
            raise _Retryable(TavilySearchError(f"tavily status={resp.status_code}"), retry_after)
        if resp.is_error:
            raise TavilySearchError(f"tavily status={resp.status_code}")

        try:
            data = resp.json()
        except ValueError as e:
            raise TavilySearchError("tavily response is not JSON") from e
        return self._parse_results(data)

    def _parse_results(self, data: object) -> list[SearchResult]:
        if not isinstance(data, dict):
            raise TavilySearchError("tavily response not a JSON object")
        items = data.get("results")
        if not isinstance(items, list):
            raise TavilySearchError("tavily response missing results list")

        results: list[SearchResult] = []
        for rank, item in enumerate(items, start=1):
            if not isinstance(item, dict) or not item.get("url"):
                continue
            try:
                results.append(
                    SearchResult(
                        url=item["url"],
                        source=self.source_name,
                        rank=rank,
                        title=item.get("title"),
                        snippet=item.get("content"),
                        provider_score=item.get("score"),
                    )
                )
            except ValueError:
                # Not an http(s) URL
                continue
        return results

    def _backoff(self, attempt: int, retry_after: float | None) -> float:
        if retry_after is not None:
            return min(self.retry_max_backoff_s, retry_after)
        return min(self.retry_max_backoff_s, self.retry_backoff_s * (2**attempt))


@dataclass(frozen=True)
class DuckDuckGoSearchProvider:
    """Keyless search through DuckDuckGo.

    DuckDuckGo has no domain filter parameter, so the restriction is expressed as a
    ``site:`` disjunction and re-checked on the returned URLs. Failures return no results.
    """

    source_name: str = "duckduckgo"

    def search(
        self,
        query: str,
        *,
        max_results: int,
        include_domains: Sequence[str] = (),
    ) -> list[SearchResult]:
        if include_domains:
            query = f"{query} ({' OR '.join(f'site:{d}' for d in include_domains)})"

        try:
            with DDGS() as ddgs:
                hits = list(ddgs.text(query, max_results=max_results))
        except Exception as e:
            logger.debug("DuckDuckGo search failed", extra={"query": query, "error": str(e)})
            return []

        results: list[SearchResult] = []
        for rank, hit in enumerate(hits, start=1):
            url = hit.get("href") or hit.get("url")
            if not url:
                continue
            try:
                result = SearchResult(
                    url=url,
                    source=self.source_name,
                    rank=rank,
                    title=hit.get("title"),
                    snippet=hit.get("body"),
                )
            except ValueError:
                continue
            if include_domains and not host_matches(result.host, include_domains):
                continue
            results.append(result)
        return results


def get_search_provider(settings: Settings) -> WebSearchProvider | None:
    """Create the configured search provider, or ``None`` when search is disabled.

    Selecting Tavily without an API key disables search rather than failing.
    """

    if settings.search_provider == "none":
        return None

    if settings.search_provider == "duckduckgo":
        return DuckDuckGoSearchProvider()

    if not settings.tavily_api_key:
        logger.debug("Tavily selected without H2OBOT_TAVILY_API_KEY; search disabled")
        return None
    return TavilySearchProvider(
        api_key=settings.tavily_api_key,
        base_url=settings.tavily_api_base_url,
        search_depth=settings.tavily_search_depth,
        timeout_s=settings.tavily_timeout_s,
        max_retries=settings.tavily_max_retries,
        retry_backoff_s=settings.tavily_retry_backoff_s,
        retry_max_backoff_s=settings.tavily_retry_max_backoff_s,
    )
