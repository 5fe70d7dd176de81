"""Page fetching utilities."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

import httpx

from h2obot.config import Settings
from h2obot.logging import get_logger

logger = get_logger(__name__)

PageKind = Literal["html", "pdf"]


@dataclass(frozen=True)
class FetchedPage:
    """Fetched page payload."""

    url: str
    status_code: int
    content: bytes
    content_type: str | None
    last_modified: str | None

    @property
    def kind(self) -> PageKind | None:
        return classify_content_type(self.content_type)


def classify_content_type(content_type: str | None) -> PageKind | None:
    """Map a ``Content-Type`` header to a parsing strategy.

    Anything that is neither PDF nor HTML/text is unsupported and yields ``None``.
    """

    ct = (content_type or "").lower()
    if "pdf" in ct:
        return "pdf"
    if "html" in ct or "text" in ct:
        return "html"
    return None


class PageFetcher:
    """Fetch pages over HTTP."""

    def __init__(self, settings: Settings, client: httpx.Client | None = None) -> None:
        self._settings = settings
        self._client = client or httpx.Client(
            timeout=httpx.Timeout(settings.http_timeout_s),
            headers={"User-Agent": settings.http_user_agent},
            follow_redirects=True,
        )
        if client is not None:
            self._client.headers["User-Agent"] = settings.http_user_agent

    def fetch(self, url: str) -> FetchedPage:
        """Fetch a URL (synchronous).

        Raises:
            httpx.HTTPStatusError: For non-2xx responses.
            httpx.HTTPError: For network failures and timeouts.
        """

        resp = self._client.get(url)
        resp.raise_for_status()
        logger.debug(
            "Fetched page",
            extra={"url": url, "status_code": resp.status_code, "bytes": len(resp.content)},
        )
        return FetchedPage(
            url=str(resp.url),
            status_code=resp.status_code,
            content=resp.content,
            content_type=resp.headers.get("content-type"),
            last_modified=resp.headers.get("last-modified"),
        )

    def close(self) -> None:
        self._client.close()
