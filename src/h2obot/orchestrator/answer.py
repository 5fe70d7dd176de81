"""Question answering over retrieved documents.

The service runs retrieval, asks the LLM for the answer JSON and assembles a
:class:`QueryResponse`. Every failure past request validation degrades to a conservative
fallback answer; callers always get a response.
"""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone
from typing import Any, Sequence

from pydantic import ValidationError

from h2obot.config import Settings
from h2obot.llm.client import ChatMessage, LLMClient, LLMJsonResult, LLMUnavailableError
from h2obot.logging import get_logger, request_context, set_stage
from h2obot.models.answer import Confidence, Metrics, QueryRequest, QueryResponse, Safety, Source
from h2obot.models.document import RetrievedDocument
from h2obot.orchestrator.demo import demo_for
from h2obot.prompts import ANSWER_SYSTEM_PROMPT, build_answer_prompt
from h2obot.retrieval.retriever import AuthoritativeRetriever

logger = get_logger(__name__)

EXCERPT_CHARS = 800
RAW_ANSWER_CHARS = 800
MAX_SUGGESTIONS = 4

CCR_SOURCE = Source(title="EPA Consumer Confidence Reports (CCR)", url="https://www.epa.gov/ccr", publisher="US EPA")


def compute_confidence(source_count: int) -> Confidence:
    if source_count >= 2:
        return "high"
    if source_count == 1:
        return "medium"
    return "unknown"


def context_from_docs(docs: Sequence[RetrievedDocument]) -> str:
    """Numbered source blocks for the LLM prompt."""

    blocks = []
    for i, d in enumerate(docs, start=1):
        updated = d.published_at.isoformat() if d.published_at else "unknown"
        blocks.append(
            f"[{i}] {d.title}\nURL: {d.url}\nUpdated: {updated}\nExcerpt: {d.text[:EXCERPT_CHARS]}\n"
        )
    return "\n".join(blocks)


def _sources(docs: Sequence[RetrievedDocument]) -> list[Source]:
    return [Source(title=d.title, url=d.url, publisher=d.display_publisher) for d in docs]


def _newest_date(docs: Sequence[RetrievedDocument]) -> datetime | None:
    dates = [d.published_at for d in docs if d.published_at is not None]
    return max(dates) if dates else None


class AnswerService:
    """Retrieve documents and summarize them into a structured answer."""

    def __init__(
        self,
        settings: Settings,
        *,
        retriever: AuthoritativeRetriever | None = None,
        llm: LLMClient | None = None,
    ) -> None:
        self._settings = settings
        self._retriever = retriever or AuthoritativeRetriever(settings)
        self._llm = llm

    async def answer(self, request: QueryRequest) -> QueryResponse:
        question = request.question
        location = request.location or ""
        started = time.perf_counter()

        with request_context(stage="answer"):
            if self._settings.demo_mode:
                logger.info("Demo mode answer")
                resp = demo_for(f"{location} {question}")
            else:
                resp = await self._answer(question, location)

        tokens_in = resp.metrics.tokens_in if resp.metrics else None
        tokens_out = resp.metrics.tokens_out if resp.metrics else None
        resp.metrics = Metrics(
            latency_ms=int((time.perf_counter() - started) * 1000),
            tokens_in=tokens_in,
            tokens_out=tokens_out,
        )
        return resp

    async def _answer(self, question: str, location: str) -> QueryResponse:
        docs = await self._retriever.retrieve(location, question)
        if not docs:
            logger.info("No documents retrieved; returning fallback", extra={"location": location})
            return QueryResponse(
                answer=(
                    "I couldn't find authoritative documents for that location just now. "
                    "Try your city/county utility site or the EPA CCR locator."
                ),
                sources=[CCR_SOURCE],
                safety=Safety(confidence="unknown", advisories=[], last_updated=datetime.now(timezone.utc)),
                suggestions=["Where do I find my city's CCR?", "Is there a boil-water notice today?"],
            )

        set_stage("summarize")
        messages = [
            ChatMessage(role="system", content=ANSWER_SYSTEM_PROMPT),
            ChatMessage(
                role="user",
                content=build_answer_prompt(question=question, location=location, context=context_from_docs(docs)),
            ),
        ]
        try:
            llm = self._get_llm()
            result = await asyncio.to_thread(
                llm.complete_json, messages, temperature=self._settings.llm_temperature
            )
        except LLMUnavailableError as e:
            logger.warning("LLM unavailable; using heuristic summary", extra={"error": str(e)})
            return self._heuristic(docs)
        except Exception as e:
            logger.warning(
                "LLM call failed; using heuristic summary",
                extra={"error_type": type(e).__name__, "error": str(e)[:200]},
            )
            return self._heuristic(docs)

        return self._from_llm(result, docs)

    def _get_llm(self) -> LLMClient:
        if self._llm is None:
            self._llm = LLMClient(self._settings)
        return self._llm

    def _heuristic(self, docs: Sequence[RetrievedDocument]) -> QueryResponse:
        top = docs[0]
        return QueryResponse(
            answer=f"Based on {top.title}, here is the latest we found. (Model offline: using heuristic summary)",
            sources=_sources(docs),
            safety=Safety(confidence=compute_confidence(len(docs)), advisories=[], last_updated=top.published_at),
            suggestions=["Check your utility's CCR", "Ask: Are there PFAS advisories near me?"],
        )

    def _from_llm(self, result: LLMJsonResult, docs: Sequence[RetrievedDocument]) -> QueryResponse:
        metrics = Metrics(tokens_in=result.tokens_in, tokens_out=result.tokens_out)
        data = result.data
        if data is None:
            logger.info("LLM returned non-JSON output", extra={"raw_len": len(result.raw)})
            return QueryResponse(
                answer=result.raw[:RAW_ANSWER_CHARS] or "No answer. Please try again.",
                sources=_sources(docs),
                safety=Safety(confidence="unknown", advisories=[], last_updated=docs[0].published_at),
                suggestions=["Where do I find my city's CCR?"],
                metrics=metrics,
            )

        answer = str(data.get("answer") or "").strip() or "(No answer)"
        return QueryResponse(
            answer=answer,
            sources=_sources(docs),
            safety=self._safety(data.get("safety"), docs),
            suggestions=self._suggestions(data.get("suggestions")),
            metrics=metrics,
        )

    def _safety(self, raw: Any, docs: Sequence[RetrievedDocument]) -> Safety:
        fallback = Safety(confidence="unknown", advisories=[], last_updated=_newest_date(docs))
        if not isinstance(raw, dict):
            return fallback
        try:
            return Safety.model_validate(raw)
        except ValidationError as e:
            logger.info("Discarding invalid safety block", extra={"errors": e.error_count()})
            return fallback

    def _suggestions(self, raw: Any) -> list[str]:
        if not isinstance(raw, list):
            return []
        return [str(s) for s in raw if isinstance(s, str) and s.strip()][:MAX_SUGGESTIONS]

    def close(self) -> None:
        self._retriever.close()
