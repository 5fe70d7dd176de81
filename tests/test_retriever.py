"""Tests for the retrieval pipeline."""

from __future__ import annotations

import asyncio
import threading
import time
from datetime import datetime, timezone
from typing import Iterator

import httpx
import pytest

from h2obot.config import Settings
from h2obot.retrieval import retriever as retriever_module
from h2obot.retrieval.retriever import AuthoritativeRetriever, fetch_authoritative
from h2obot.retrieval.seeds import FEDERAL_SEEDS, SeedGenerator
from h2obot.tools.page_fetcher import PageFetcher, classify_content_type

from conftest import NOW, html_page, mock_client

EPA_CCR = FEDERAL_SEEDS[0]
CDC_ADVISORIES = FEDERAL_SEEDS[1]
AUSTIN_WATER = "https://www.austintexas.gov/department/water"

HTML = {"content-type": "text/html; charset=utf-8"}


def _retriever(settings: Settings, routes: dict) -> AuthoritativeRetriever:
    fetcher = PageFetcher(settings, client=mock_client(routes))
    return AuthoritativeRetriever(settings, fetcher=fetcher, clock=lambda: NOW)


def test_classify_content_type() -> None:
    """It should map content types to parse strategies."""

    assert classify_content_type("application/pdf") == "pdf"
    assert classify_content_type("text/html; charset=utf-8") == "html"
    assert classify_content_type("text/plain") == "html"
    assert classify_content_type("image/png") is None
    assert classify_content_type(None) is None


def test_fetch_and_parse_html_sets_tier(settings: Settings) -> None:
    """It should build a typed document with the tier derived from the URL."""

    routes = {AUSTIN_WATER: httpx.Response(200, headers=HTML, content=html_page("Austin Water", "<main>Water quality</main>"))}
    retriever = _retriever(settings, routes)
    doc = retriever.fetch_and_parse(AUSTIN_WATER)
    assert doc is not None
    assert doc.title == "Austin Water"
    assert doc.tier == "state"
    assert doc.content_type == "text/html"
    assert doc.score is None


def test_fetch_and_parse_last_modified_fallback(settings: Settings) -> None:
    """It should use the Last-Modified header when the page has no date."""

    headers = {**HTML, "last-modified": "Wed, 21 Oct 2015 07:28:00 GMT"}
    routes = {EPA_CCR: httpx.Response(200, headers=headers, content=html_page("CCR", "<p>Reports</p>"))}
    doc = _retriever(settings, routes).fetch_and_parse(EPA_CCR)
    assert doc is not None
    assert doc.published_at == datetime(2015, 10, 21, 7, 28, tzinfo=timezone.utc)


def test_fetch_and_parse_page_date_beats_last_modified(settings: Settings) -> None:
    """It should keep a date found in the page over the header."""

    headers = {**HTML, "last-modified": "Wed, 21 Oct 2015 07:28:00 GMT"}
    page = html_page("CCR", "<p>Reports</p>", head='<meta name="date" content="2024-05-01">')
    doc = _retriever(settings, {EPA_CCR: httpx.Response(200, headers=headers, content=page)}).fetch_and_parse(EPA_CCR)
    assert doc is not None
    assert doc.published_at == datetime(2024, 5, 1, tzinfo=timezone.utc)


def test_fetch_and_parse_yearless_page_date_uses_last_modified(settings: Settings) -> None:
    """It should ignore a page date without a year and use the Last-Modified header."""

    headers = {**HTML, "last-modified": "Tue, 01 Oct 2024 00:00:00 GMT"}
    page = html_page("Notices", "<p>Posted <time>Monday</time></p>")
    doc = _retriever(settings, {EPA_CCR: httpx.Response(200, headers=headers, content=page)}).fetch_and_parse(EPA_CCR)
    assert doc is not None
    assert doc.published_at == datetime(2024, 10, 1, tzinfo=timezone.utc)


def test_fetch_and_parse_failures_are_none(settings: Settings) -> None:
    """It should return None for 404s, network errors, unsupported types and bad PDFs."""

    routes = {
        "https://www.epa.gov/logo.png": httpx.Response(200, headers={"content-type": "image/png"}, content=b"\x89PNG"),
        "https://www.epa.gov/down": httpx.ConnectError("refused"),
        "https://www.epa.gov/broken.pdf": httpx.Response(
            200, headers={"content-type": "application/pdf"}, content=b"not a pdf"
        ),
    }
    retriever = _retriever(settings, routes)
    assert retriever.fetch_and_parse("https://www.epa.gov/missing") is None
    assert retriever.fetch_and_parse("https://www.epa.gov/logo.png") is None
    assert retriever.fetch_and_parse("https://www.epa.gov/down") is None
    assert retriever.fetch_and_parse("https://www.epa.gov/broken.pdf") is None


def test_retrieve_austin_scenario(settings: Settings) -> None:
    """It should keep the Austin utility page as a state source and rank it above the generic EPA page."""

    routes = {
        EPA_CCR: httpx.Response(
            200, headers=HTML, content=html_page("Consumer Confidence Reports", "<main>Find your report.</main>")
        ),
        AUSTIN_WATER: httpx.Response(
            200,
            headers=HTML,
            content=html_page("Austin Water", "<main>Austin Water boil water notice lifted. Annual CCR.</main>"),
        ),
        "https://www.tceq.texas.gov/drinkingwater": httpx.Response(
            200, headers={"content-type": "image/png"}, content=b"\x89PNG"
        ),
    }
    retriever = _retriever(settings, routes)
    docs = asyncio.run(retriever.retrieve("Austin, TX", ""))

    urls = [d.url for d in docs]
    assert AUSTIN_WATER in urls and EPA_CCR in urls
    assert urls.index(AUSTIN_WATER) < urls.index(EPA_CCR)
    austin = docs[urls.index(AUSTIN_WATER)]
    assert austin.tier == "state"
    assert austin.score is not None and austin.score > docs[urls.index(EPA_CCR)].score
    assert len(docs) <= settings.max_documents


def test_retrieve_unknown_location_all_seeds_fail(settings: Settings) -> None:
    """It should return an empty list when the only seeds are the federal ones and both fail."""

    routes = {
        EPA_CCR: httpx.Response(503),
        CDC_ADVISORIES: httpx.ConnectTimeout("timed out"),
    }
    assert asyncio.run(_retriever(settings, routes).retrieve("Nowhere, ZZ", "")) == []


def test_retrieve_drops_unsupported_without_affecting_others(settings: Settings) -> None:
    """It should drop an image seed and still return the other documents."""

    routes = {
        EPA_CCR: httpx.Response(200, headers={"content-type": "image/png"}, content=b"\x89PNG"),
        CDC_ADVISORIES: httpx.Response(200, headers=HTML, content=html_page("Drinking Water Advisories", "<p>Advisory</p>")),
    }
    docs = asyncio.run(_retriever(settings, routes).retrieve("Nowhere, ZZ", ""))
    assert [d.url for d in docs] == [CDC_ADVISORIES]
    assert docs[0].tier == "federal"


def test_retrieve_strict_local_drops_off_list_search_hits(settings: Settings) -> None:
    """It should drop fetched documents from hosts outside the allow-list."""

    class Seeds:
        def generate(self, location: str, question: str, resolution: object) -> list[str]:
            return ["https://news.example.com/austin", EPA_CCR]

    routes = {
        "https://news.example.com/austin": httpx.Response(200, headers=HTML, content=html_page("Austin boil notice", "<p>Austin</p>")),
        EPA_CCR: httpx.Response(200, headers=HTML, content=html_page("CCR", "<p>Reports</p>")),
    }
    fetcher = PageFetcher(settings, client=mock_client(routes))
    retriever = AuthoritativeRetriever(settings, fetcher=fetcher, seeds=Seeds(), clock=lambda: NOW)
    docs = asyncio.run(retriever.retrieve("Austin, TX", ""))
    assert [d.url for d in docs] == [EPA_CCR]

    lenient = settings.model_copy(update={"strict_local": False})
    retriever = AuthoritativeRetriever(lenient, fetcher=fetcher, seeds=Seeds(), clock=lambda: NOW)
    docs = asyncio.run(retriever.retrieve("Austin, TX", ""))
    assert {d.url for d in docs} == {"https://news.example.com/austin", EPA_CCR}


@pytest.fixture
def release() -> Iterator[threading.Event]:
    event = threading.Event()
    yield event
    event.set()


def test_fetch_authoritative_returns_within_budget(
    settings: Settings, release: threading.Event, monkeypatch: pytest.MonkeyPatch
) -> None:
    """It should give up on a hanging seed at the budget and keep the other documents."""

    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url) == CDC_ADVISORIES:
            release.wait(10)
            return httpx.Response(503)
        if str(request.url) == EPA_CCR:
            return httpx.Response(200, headers=HTML, content=html_page("CCR", "<p>Reports</p>"))
        return httpx.Response(404)

    fetcher = PageFetcher(settings, client=httpx.Client(transport=httpx.MockTransport(handler)))
    monkeypatch.setattr(retriever_module, "PageFetcher", lambda _settings: fetcher)
    budgeted = settings.model_copy(update={"retrieval_budget_s": 1.0})

    started = time.perf_counter()
    docs = fetch_authoritative("Nowhere, ZZ", "", settings=budgeted)
    elapsed = time.perf_counter() - started

    assert elapsed < 3.0
    assert [d.url for d in docs] == [EPA_CCR]


def test_retrieve_slow_search_falls_back_to_fixed_seeds(settings: Settings, release: threading.Event) -> None:
    """It should stop waiting on a slow search provider and still fetch the fixed seeds."""

    class SlowSearch:
        calls = 0

        def search(self, query: str, *, max_results: int, include_domains: list[str] | None = None) -> list:
            SlowSearch.calls += 1
            release.wait(5)
            return []

    budgeted = settings.model_copy(update={"retrieval_budget_s": 2.0})
    routes = {
        AUSTIN_WATER: httpx.Response(200, headers=HTML, content=html_page("Austin Water", "<main>Austin water quality</main>")),
    }
    fetcher = PageFetcher(budgeted, client=mock_client(routes))
    retriever = AuthoritativeRetriever(
        budgeted, fetcher=fetcher, seeds=SeedGenerator(budgeted, SlowSearch()), clock=lambda: NOW
    )

    started = time.perf_counter()
    docs = asyncio.run(retriever.retrieve("Austin, TX", "is it safe"))
    elapsed = time.perf_counter() - started

    assert elapsed < 4.0
    assert SlowSearch.calls == 1
    assert [d.url for d in docs] == [AUSTIN_WATER]
