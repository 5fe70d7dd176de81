"""Event model used for the streaming answer endpoint.

A streamed answer is a short sequence of typed events. Each one is written to the client as a
Server-Sent Events ``data:`` frame whose JSON body carries a ``type`` key plus the event payload.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class StreamEventType(str, Enum):
    """Event types, in the order a successful stream emits them."""

    START = "start"
    DELTA = "delta"
    SOURCES = "sources"
    SAFETY = "safety"
    SUGGESTIONS = "suggestions"
    DONE = "done"


class StreamEvent(BaseModel):
    """A single event in a streamed answer."""

    type: StreamEventType
    payload: dict[str, Any] = Field(default_factory=dict)

    def to_json(self) -> dict[str, Any]:
        return {"type": self.type.value, **self.payload}

    def to_sse(self) -> bytes:
        """Encode as an SSE frame."""

        body = json.dumps(self.to_json(), ensure_ascii=False, default=str)
        return f"data: {body}\n\n".encode("utf-8")
