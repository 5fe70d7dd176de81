"""Authoritative document retrieval.

One call runs the whole pipeline for a query:

    resolve location -> seed URLs -> fetch + parse (bounded fan-out) -> filter -> rank

Per-URL and per-query failures become absence. The pipeline never raises for them, and an
empty result is a normal outcome the caller has to handle.
"""

from __future__ import annotations

import asyncio
import contextvars
import functools
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Callable, TypeVar

from h2obot.config import Settings, load_settings
from h2obot.core.concurrency import TaskPool
from h2obot.logging import get_logger, request_context, set_stage
from h2obot.models.document import RetrievedDocument
from h2obot.retrieval.domains import BASE_ALLOWED_DOMAINS, tier_for
from h2obot.retrieval.locations import resolve_location
from h2obot.retrieval.ranking import ScoringContext, filter_documents, rank_documents
from h2obot.retrieval.seeds import SeedGenerator, fixed_seeds
from h2obot.tools.page_fetcher import PageFetcher
from h2obot.tools.page_parser import PageParser
from h2obot.tools.web_search import get_search_provider
from h2obot.utils.dates import parse_http_date

logger = get_logger(__name__)

Clock = Callable[[], datetime]
T = TypeVar("T")

# Share of the retrieval budget the search stage may use before falling back to fixed seeds
SEARCH_BUDGET_SHARE = 0.5


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuthoritativeRetriever:
    """Find, parse and rank trustworthy sources for a location and question."""

    def __init__(
        self,
        settings: Settings,
        *,
        fetcher: PageFetcher | None = None,
        parser: PageParser | None = None,
        seeds: SeedGenerator | None = None,
        clock: Clock = _utcnow,
    ) -> None:
        self._settings = settings
        self._fetcher = fetcher or PageFetcher(settings)
        self._parser = parser or PageParser(settings)
        self._seeds = seeds or SeedGenerator(settings, get_search_provider(settings))
        self._clock = clock

    def fetch_and_parse(self, url: str) -> RetrievedDocument | None:
        """Fetch one URL and turn it into a typed document.

        Returns ``None`` for non-2xx responses, network errors, timeouts, unsupported content
        types and parse failures.
        """

        try:
            page = self._fetcher.fetch(url)
            kind = page.kind
            if kind is None:
                self._trace("Unsupported content type", url=url, content_type=page.content_type)
                return None

            if kind == "pdf":
                parsed = self._parser.parse_pdf(url, page.content)
            else:
                parsed = self._parser.parse_html(url, page.content.decode("utf-8", errors="ignore"))

            published_at = parsed.published_at or parse_http_date(page.last_modified)
            return RetrievedDocument(
                url=url,
                title=parsed.title,
                published_at=published_at,
                snippet=parsed.snippet,
                text=parsed.text,
                content_type=parsed.content_type,
                tier=tier_for(url),
            )
        except Exception as e:
            self._trace("Fetch/parse failed", url=url, error_type=type(e).__name__, error=str(e))
            return None

    async def retrieve(self, location: str, question: str) -> list[RetrievedDocument]:
        """Run the retrieval pipeline and return at most ``max_documents`` ranked documents.

        ``retrieval_budget_s`` bounds the seed and fetch stages together. Work still running
        when it expires is abandoned: a slow search falls back to the fixed seeds and
        unfinished fetches count as failures.
        """

        loop = asyncio.get_running_loop()
        budget = self._settings.retrieval_budget_s
        deadline = loop.time() + budget
        # Never joined; abandoned searches and fetches finish in the background
        executor = ThreadPoolExecutor(
            max_workers=self._settings.fetch_concurrency + 1,
            thread_name_prefix="h2obot-retrieve",
        )
        try:
            with request_context(stage="resolve"):
                return await self._retrieve(location, question, executor, deadline, budget)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    async def _retrieve(
        self,
        location: str,
        question: str,
        executor: ThreadPoolExecutor,
        deadline: float,
        budget: float,
    ) -> list[RetrievedDocument]:
        loop = asyncio.get_running_loop()
        resolution = resolve_location(location)
        allowed = BASE_ALLOWED_DOMAINS | resolution.allowed_domains
        logger.info(
            "Retrieval started",
            extra={"state": resolution.state_code, "allowed_domains": sorted(allowed)},
        )

        set_stage("seeds")
        try:
            seeds = await asyncio.wait_for(
                _in_thread(executor, self._seeds.generate, location, question, resolution),
                timeout=budget * SEARCH_BUDGET_SHARE,
            )
        except asyncio.TimeoutError:
            seeds = fixed_seeds(resolution.allowed_domains)
            logger.warning(
                "Seed search exceeded its budget; using fixed seeds",
                extra={"timeout_s": budget * SEARCH_BUDGET_SHARE, "seeds": len(seeds)},
            )
        if not seeds:
            return []

        set_stage("fetch")
        pool = TaskPool(max_concurrent=self._settings.fetch_concurrency)
        fetched = await pool.map(
            lambda url: _in_thread(executor, self.fetch_and_parse, url),
            seeds,
            timeout=max(0.0, deadline - loop.time()),
        )
        docs = [d for d in fetched if d is not None]

        set_stage("rank")
        kept = filter_documents(docs, allowed, location, strict_local=self._settings.strict_local)
        if self._settings.debug:
            kept_urls = {d.url for d in kept}
            for d in docs:
                if d.url not in kept_urls:
                    self._trace("Dropped document", url=d.url, tier=d.tier)

        ctx = ScoringContext(
            base_allow=BASE_ALLOWED_DOMAINS,
            local_allow=resolution.allowed_domains,
            location=location,
            now=self._clock(),
        )
        ranked = rank_documents(kept, ctx, limit=self._settings.max_documents)
        for d in ranked:
            self._trace("Selected document", url=d.url, tier=d.tier, score=d.score)

        logger.info(
            "Retrieval finished",
            extra={"seeds": len(seeds), "fetched": len(docs), "kept": len(kept), "returned": len(ranked)},
        )
        return ranked

    def close(self) -> None:
        self._fetcher.close()

    def _trace(self, msg: str, **details: object) -> None:
        if self._settings.debug:
            logger.info(msg, extra=details)


async def _in_thread(executor: ThreadPoolExecutor, func: Callable[..., T], *args: object) -> T:
    """Run ``func`` on ``executor`` with the caller's logging context."""

    ctx = contextvars.copy_context()
    return await asyncio.get_running_loop().run_in_executor(executor, functools.partial(ctx.run, func, *args))


async def fetch_authoritative_async(
    location: str,
    question: str,
    *,
    settings: Settings | None = None,
) -> list[RetrievedDocument]:
    """Async entry point: ranked authoritative documents for a location and question."""

    retriever = AuthoritativeRetriever(settings or load_settings())
    try:
        return await retriever.retrieve(location, question)
    finally:
        retriever.close()


def fetch_authoritative(
    location: str,
    question: str,
    *,
    settings: Settings | None = None,
) -> list[RetrievedDocument]:
    """Synchronous variant of :func:`fetch_authoritative_async`."""

    return asyncio.run(fetch_authoritative_async(location, question, settings=settings))
