"""Tests for HTML and PDF parsing."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from h2obot.config import Settings
from h2obot.tools import page_parser
from h2obot.tools.page_parser import PageParser


class FakePage:
    def __init__(self, text: str | None = None, error: Exception | None = None) -> None:
        self._text = text
        self._error = error
        self.extracted = False

    def extract_text(self) -> str | None:
        self.extracted = True
        if self._error is not None:
            raise self._error
        return self._text


class FakeReader:
    pages: list[FakePage] = []

    def __init__(self, stream: object) -> None:
        self.pages = type(self).pages


@pytest.fixture
def fake_pdf(monkeypatch: pytest.MonkeyPatch):
    def _install(pages: list[FakePage]) -> list[FakePage]:
        reader = type("Reader", (FakeReader,), {"pages": pages})
        monkeypatch.setattr(page_parser, "PdfReader", reader)
        return pages

    return _install


def test_parse_html_prefers_main_and_strips_scripts(settings: Settings) -> None:
    """It should read <main> text without script or style content."""

    html = """
    <html><head><title> Austin   Water Quality </title><style>p {color: red}</style></head>
    <body><nav>Menu</nav><main><p>Annual   report</p><script>var x = 1;</script></main></body></html>
    """
    parsed = PageParser(settings).parse_html("https://www.austintexas.gov/water", html)
    assert parsed.title == "Austin Water Quality"
    assert parsed.text == "Annual report"
    assert parsed.content_type == "text/html"


def test_parse_html_falls_back_to_body_and_untitled(settings: Settings) -> None:
    """It should use <body> when no main/article exists and default the title."""

    parsed = PageParser(settings).parse_html("https://example.com", "<html><body><p>Hello</p></body></html>")
    assert parsed.title == "Untitled"
    assert parsed.text == "Hello"
    assert parsed.published_at is None


def test_parse_html_snippet_is_capped(settings: Settings) -> None:
    """It should cap the snippet at the configured length."""

    body = "word " * 500
    parsed = PageParser(settings).parse_html("https://example.com", f"<body><article>{body}</article></body>")
    assert len(parsed.snippet) == settings.snippet_chars
    assert parsed.text.startswith(parsed.snippet)


def test_parse_html_meta_date_wins_over_time(settings: Settings) -> None:
    """It should take the first parseable candidate, metadata before <time>."""

    html = """
    <html><head><meta name="Date" content="unknown">
    <meta property="article:published_time" content="2024-09-30T08:00:00Z"></head>
    <body><time datetime="2020-01-01">Jan 1</time></body></html>
    """
    parsed = PageParser(settings).parse_html("https://example.com", html)
    assert parsed.published_at == datetime(2024, 9, 30, 8, 0, tzinfo=timezone.utc)


def test_parse_html_time_text_fallback(settings: Settings) -> None:
    """It should fall back to the text of the first <time> element."""

    html = "<body><p>Posted <time>March 3, 2025</time></p></body>"
    parsed = PageParser(settings).parse_html("https://example.com", html)
    assert parsed.published_at == datetime(2025, 3, 3, tzinfo=timezone.utc)


def test_parse_pdf_title_text_and_date(settings: Settings, fake_pdf) -> None:
    """It should take the first non-empty line as title and find a date in the text."""

    fake_pdf([FakePage("\n  2024 Annual Water Quality Report \nIssued June 1, 2024\n"), FakePage("Lead results")])
    parsed = PageParser(settings).parse_pdf("https://example.gov/ccr.pdf", b"%PDF")
    assert parsed.title == "2024 Annual Water Quality Report"
    assert parsed.text == "2024 Annual Water Quality Report Issued June 1, 2024 Lead results"
    assert parsed.published_at == datetime(2024, 6, 1, tzinfo=timezone.utc)
    assert parsed.content_type == "application/pdf"


def test_parse_pdf_page_cap(settings: Settings, fake_pdf) -> None:
    """It should never read past the page cap."""

    pages = fake_pdf([FakePage(f"page {i}") for i in range(20)])
    parsed = PageParser(settings).parse_pdf("https://example.gov/big.pdf", b"%PDF")
    assert sum(p.extracted for p in pages) == settings.pdf_max_pages
    assert "page 11" in parsed.text
    assert "page 12" not in parsed.text


def test_parse_pdf_char_cap(settings: Settings, fake_pdf) -> None:
    """It should stop reading once the accumulated text passes the character cap."""

    pages = fake_pdf([FakePage("x" * 15_000) for _ in range(5)])
    parsed = PageParser(settings).parse_pdf("https://example.gov/long.pdf", b"%PDF")
    assert sum(p.extracted for p in pages) == 2
    assert len(parsed.text) == settings.pdf_max_chars


def test_parse_pdf_skips_broken_pages(settings: Settings, fake_pdf) -> None:
    """It should skip pages whose extraction fails and default the title."""

    fake_pdf([FakePage(error=ValueError("bad stream")), FakePage(None), FakePage("Readable")])
    parsed = PageParser(settings).parse_pdf("https://example.gov/x.pdf", b"%PDF")
    assert parsed.text == "Readable"
    assert parsed.title == "Readable"

    fake_pdf([FakePage("")])
    assert PageParser(settings).parse_pdf("https://example.gov/y.pdf", b"%PDF").title == "PDF"
