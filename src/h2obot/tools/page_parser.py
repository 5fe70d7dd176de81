"""Page parsing utilities.

Two strategies, chosen by content type: HTML through BeautifulSoup, PDF through pypdf
(text extraction only; embedded JavaScript and other active content is never run).
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from datetime import datetime

from bs4 import BeautifulSoup
from pypdf import PdfReader

from h2obot.config import Settings
from h2obot.logging import get_logger
from h2obot.models.document import ContentType
from h2obot.utils.dates import find_date_in_text, parse_date
from h2obot.utils.text import collapse_whitespace

logger = get_logger(__name__)

_STRIP_TAGS = ("script", "style", "noscript", "template")
_BODY_CANDIDATES = ("main", "article", "body")
_DATE_META_SELECTORS = (
    'meta[name="date" i]',
    'meta[name="last-modified" i]',
    'meta[property="article:published_time" i]',
)
_PDF_TITLE_CHARS = 120
_PDF_DATE_WINDOW = 3000


@dataclass(frozen=True)
class ParsedPage:
    """Content extracted from one fetched page."""

    title: str
    text: str
    snippet: str
    published_at: datetime | None
    content_type: ContentType


class PageParser:
    """Parse fetched HTML pages and PDFs into cleaned text."""

    def __init__(self, settings: Settings) -> None:
        self._snippet_chars = settings.snippet_chars
        self._pdf_max_pages = settings.pdf_max_pages
        self._pdf_max_chars = settings.pdf_max_chars

    def parse_html(self, url: str, html: str) -> ParsedPage:
        """Parse HTML into title, body text and a best-effort publication date."""

        soup = BeautifulSoup(html, "lxml")
        published_at = self._extract_html_date(soup)

        for tag in soup(list(_STRIP_TAGS)):
            tag.decompose()

        title_tag = soup.find("title")
        title = collapse_whitespace(title_tag.get_text(" ")) if title_tag else ""

        text = ""
        for name in _BODY_CANDIDATES:
            node = soup.find(name)
            if node is None:
                continue
            text = collapse_whitespace(node.get_text(" "))
            if text:
                break

        logger.debug("Parsed html", extra={"url": url, "chars": len(text)})
        return ParsedPage(
            title=title or "Untitled",
            text=text,
            snippet=text[: self._snippet_chars],
            published_at=published_at,
            content_type="text/html",
        )

    def parse_pdf(self, url: str, data: bytes) -> ParsedPage:
        """Extract text from the leading pages of a PDF.

        Extraction stops at ``pdf_max_pages`` pages, or as soon as the accumulated text
        passes ``pdf_max_chars``, whichever comes first; the result is then cut to
        ``pdf_max_chars``.

        Raises:
            pypdf.errors.PdfReadError: When the bytes are not a readable PDF.
        """

        reader = PdfReader(io.BytesIO(data))

        chunks: list[str] = []
        total = 0
        first_line = ""
        for index, page in enumerate(reader.pages):
            if index >= self._pdf_max_pages:
                break
            try:
                raw = page.extract_text() or ""
            except Exception as e:
                logger.debug("Skipping unreadable pdf page", extra={"url": url, "page": index + 1, "error": str(e)})
                continue

            if not first_line:
                first_line = _first_line(raw)
            chunk = collapse_whitespace(raw)
            total += len(chunk) + (1 if chunks else 0)
            chunks.append(chunk)
            if total > self._pdf_max_chars:
                break

        text = collapse_whitespace("\n".join(chunks))[: self._pdf_max_chars]
        logger.debug("Parsed pdf", extra={"url": url, "pages": len(chunks), "chars": len(text)})
        return ParsedPage(
            title=first_line[:_PDF_TITLE_CHARS] or "PDF",
            text=text,
            snippet=text[: self._snippet_chars],
            published_at=find_date_in_text(text[:_PDF_DATE_WINDOW]),
            content_type="application/pdf",
        )

    @staticmethod
    def _extract_html_date(soup: BeautifulSoup) -> datetime | None:
        candidates: list[str | None] = []
        for selector in _DATE_META_SELECTORS:
            tag = soup.select_one(selector)
            if tag is not None:
                candidates.append(tag.get("content"))

        time_with_attr = soup.select_one("time[datetime]")
        if time_with_attr is not None:
            candidates.append(time_with_attr.get("datetime"))
        first_time = soup.find("time")
        if first_time is not None:
            candidates.append(first_time.get_text(" "))

        for candidate in candidates:
            parsed = parse_date(candidate)
            if parsed is not None:
                return parsed
        return None


def _first_line(raw: str) -> str:
    for line in raw.splitlines():
        line = collapse_whitespace(line)
        if line:
            return line
    return ""
