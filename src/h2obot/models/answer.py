"""Request/response envelope for the chat endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

Role = Literal["user", "assistant"]
Confidence = Literal["low", "medium", "high", "unknown"]
AdvisoryLevel = Literal["info", "advisory", "boil", "do-not-drink"]


class Message(BaseModel):
    """A single chat turn."""

    role: Role
    content: str = Field(min_length=1)


class QueryRequest(BaseModel):
    """Chat query: conversation so far plus an optional location hint."""

    messages: list[Message] = Field(min_length=1)
    location: str | None = Field(default=None, min_length=1)

    @property
    def question(self) -> str:
        """Content of the most recent user message."""

        for m in reversed(self.messages):
            if m.role == "user":
                return m.content
        return ""


class Source(BaseModel):
    """A cited source."""

    title: str
    url: str
    publisher: str | None = None


class Advisory(BaseModel):
    level: AdvisoryLevel
    title: str
    body: str | None = None


class Safety(BaseModel):
    """Confidence and active advisories for the answer."""

    confidence: Confidence | None = None
    advisories: list[Advisory] = Field(default_factory=list)
    last_updated: datetime | None = None


class Metrics(BaseModel):
    latency_ms: int | None = Field(default=None, ge=0)
    tokens_in: int | None = Field(default=None, ge=0)
    tokens_out: int | None = Field(default=None, ge=0)


class QueryResponse(BaseModel):
    """Structured answer returned to the client."""

    answer: str
    sources: list[Source] = Field(default_factory=list)
    safety: Safety | None = None
    suggestions: list[str] = Field(default_factory=list)
    metrics: Metrics | None = None
