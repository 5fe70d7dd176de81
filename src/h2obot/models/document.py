"""Retrieved document model."""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field

Tier = Literal["federal", "state", "local", "other"]
ContentType = Literal["text/html", "application/pdf"]


class RetrievedDocument(BaseModel):
    """A fetched, parsed and trust-classified source document.

    Documents are immutable once built: ``tier`` is fixed at creation and the ranker
    produces scored copies rather than mutating the fetched instance.
    """

    model_config = ConfigDict(frozen=True)

    url: str
    title: str
    publisher: str | None = None
    published_at: datetime | None = None
    snippet: str = ""
    text: str = ""
    content_type: ContentType
    tier: Tier
    score: int | None = Field(default=None)

    @property
    def display_publisher(self) -> str:
        """Publisher name, falling back to the URL hostname."""

        if self.publisher:
            return self.publisher
        return urlparse(self.url).hostname or self.url

    def with_score(self, score: int) -> RetrievedDocument:
        """Return a copy carrying ``score``."""

        return self.model_copy(update={"score": score})
