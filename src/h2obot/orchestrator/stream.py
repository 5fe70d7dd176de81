"""Streaming variant of the answer pipeline."""

from __future__ import annotations

import asyncio
import re
from typing import AsyncIterator

from h2obot.events import StreamEvent, StreamEventType
from h2obot.logging import get_logger
from h2obot.models.answer import QueryRequest
from h2obot.orchestrator.answer import AnswerService

logger = get_logger(__name__)

APOLOGY = "Sorry, I hit an issue fetching results.\n"

_SPLIT_RE = re.compile(r"(\s+)")


def chunk_by_words(text: str, max_len: int = 64) -> list[str]:
    """Split ``text`` into chunks of at most ``max_len`` characters on word boundaries.

    Whitespace is kept, so joining the chunks reproduces the text except for whitespace
    dropped at the start of each new chunk. A single word longer than ``max_len`` becomes
    its own chunk.
    """

    if not text:
        return []
    parts: list[str] = []
    buf = ""
    for token in _SPLIT_RE.split(text):
        if len(buf + token) > max_len and buf.strip():
            parts.append(buf)
            buf = token.lstrip()
        else:
            buf += token
    if buf:
        parts.append(buf)
    return parts


async def stream_apology() -> AsyncIterator[StreamEvent]:
    """The event sequence for a request that cannot be answered."""

    yield StreamEvent(type=StreamEventType.START)
    yield StreamEvent(type=StreamEventType.DELTA, payload={"text": APOLOGY})
    yield StreamEvent(type=StreamEventType.DONE)


async def stream_answer(
    service: AnswerService,
    request: QueryRequest,
    *,
    chunk_chars: int = 64,
    delay_s: float = 0.035,
) -> AsyncIterator[StreamEvent]:
    """Yield ``start``, answer ``delta`` chunks, ``sources``, ``safety``, ``suggestions``, ``done``."""

    yield StreamEvent(type=StreamEventType.START)

    try:
        resp = await service.answer(request)
    except Exception:
        logger.exception("Streaming answer failed")
        yield StreamEvent(type=StreamEventType.DELTA, payload={"text": APOLOGY})
        yield StreamEvent(type=StreamEventType.DONE)
        return

    for chunk in chunk_by_words(resp.answer, chunk_chars):
        yield StreamEvent(type=StreamEventType.DELTA, payload={"text": chunk})
        if delay_s > 0:
            await asyncio.sleep(delay_s)

    yield StreamEvent(
        type=StreamEventType.SOURCES,
        payload={"sources": [s.model_dump(mode="json") for s in resp.sources]},
    )
    safety = resp.safety.model_dump(mode="json") if resp.safety else {}
    yield StreamEvent(type=StreamEventType.SAFETY, payload={"safety": safety})
    yield StreamEvent(type=StreamEventType.SUGGESTIONS, payload={"suggestions": list(resp.suggestions)})
    yield StreamEvent(type=StreamEventType.DONE)
