"""Shared fixtures."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

import httpx
import pytest

from h2obot.config import Settings
from h2obot.models.document import RetrievedDocument

NOW = datetime(2025, 6, 1, tzinfo=timezone.utc)


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment: no .env, no search, no LLM key."""

    return Settings(
        _env_file=None,
        search_provider="none",
        tavily_api_key=None,
        llm_provider="openai",
        openai_api_key=None,
        stream_delay_s=0.0,
        retrieval_budget_s=10.0,
    )


@pytest.fixture
def make_doc() -> Callable[..., RetrievedDocument]:
    def _make(url: str, **kwargs: object) -> RetrievedDocument:
        fields: dict[str, object] = {
            "title": "Water quality",
            "text": "",
            "content_type": "text/html",
            "tier": "other",
        }
        fields.update(kwargs)
        return RetrievedDocument(url=url, **fields)

    return _make


def html_page(title: str, body: str, *, head: str = "") -> bytes:
    return f"<html><head><title>{title}</title>{head}</head><body>{body}</body></html>".encode("utf-8")


def mock_client(routes: dict[str, httpx.Response | Exception]) -> httpx.Client:
    """An httpx client answering from ``routes``; unknown URLs get a 404."""

    def handler(request: httpx.Request) -> httpx.Response:
        outcome = routes.get(str(request.url))
        if outcome is None:
            return httpx.Response(404, text="not found")
        if isinstance(outcome, Exception):
            raise outcome
        # Fresh response per request so a route can be served more than once
        return httpx.Response(outcome.status_code, headers=outcome.headers, content=outcome.content)

    return httpx.Client(transport=httpx.MockTransport(handler))
