"""CLI entrypoints for H2obot."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from h2obot.config import load_settings
from h2obot.logging import configure_logging, get_logger
from h2obot.models.answer import Message, QueryRequest
from h2obot.orchestrator.answer import AnswerService
from h2obot.retrieval.retriever import fetch_authoritative

app = typer.Typer(add_completion=False, help="H2obot drinking-water guidance CLI")
logger = get_logger(__name__)


@app.command()
def ask(
    question: str = typer.Argument(..., help="Question about local tap water."),
    location: str | None = typer.Option(None, "--location", "-l", help="City/county and state, e.g. 'Austin, TX'"),
) -> None:
    """Answer a question and print the JSON response."""

    settings = load_settings()
    configure_logging(settings.effective_log_level)
    logger.info("CLI ask requested")

    request = QueryRequest(messages=[Message(role="user", content=question)], location=location or None)
    service = AnswerService(settings)
    try:
        resp = asyncio.run(service.answer(request))
    finally:
        service.close()
    typer.echo(resp.model_dump_json(indent=2))


@app.command()
def sources(
    location: str = typer.Argument(..., help="City/county and state, e.g. 'Flint, MI'"),
    question: str = typer.Option("", "--question", "-q", help="Optional question to steer search."),
) -> None:
    """Print the ranked authoritative documents for a location."""

    settings = load_settings()
    configure_logging(settings.effective_log_level)
    logger.info("CLI sources requested")

    docs = fetch_authoritative(location, question, settings=settings)
    if not docs:
        typer.echo("No authoritative documents found.")
        raise typer.Exit(code=1)

    table = Table(title=f"Sources for {location}")
    table.add_column("#", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Tier")
    table.add_column("Updated")
    table.add_column("Title")
    table.add_column("URL", overflow="fold")
    for i, d in enumerate(docs, start=1):
        updated = d.published_at.date().isoformat() if d.published_at else "-"
        table.add_row(str(i), str(d.score), d.tier, updated, d.title, d.url)
    Console().print(table)


if __name__ == "__main__":
    app()
