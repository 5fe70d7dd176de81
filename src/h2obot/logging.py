"""Logging utilities.

Every record carries the id of the query being served and the pipeline stage it was logged
from (``resolve``, ``seeds``, ``fetch``, ``rank``, ``answer``, ``summarize``). Both live in
context variables, so they follow the query into worker threads started with
``asyncio.to_thread``.
"""

from __future__ import annotations

import contextlib
import contextvars
import logging
import uuid
from typing import Iterator

from rich.logging import RichHandler

_request_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("h2obot_request_id", default=None)
_stage_var: contextvars.ContextVar[str] = contextvars.ContextVar("h2obot_stage", default="-")

# Chatty client libraries, kept at WARNING unless DEBUG is requested
_NOISY_LOGGERS = ("httpx", "httpcore", "openai", "pdfminer", "pypdf", "primp")

_FORMAT = "%(asctime)s %(levelname)s req=%(request_id)s stage=%(stage)s %(name)s: %(message)s"


class _QueryContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        record.request_id = _request_id_var.get() or "-"  # type: ignore[attr-defined]
        record.stage = _stage_var.get()  # type: ignore[attr-defined]
        return True


def new_request_id() -> str:
    return uuid.uuid4().hex[:12]


def current_request_id() -> str | None:
    return _request_id_var.get()


@contextlib.contextmanager
def request_context(*, request_id: str | None = None, stage: str | None = None) -> Iterator[str]:
    """Bind query context for the duration of the block.

    An enclosing context's id is reused when ``request_id`` is omitted, so the retriever
    logs under the id of the answer it serves. Yields the bound id.
    """

    rid = request_id or _request_id_var.get() or new_request_id()
    token_request = _request_id_var.set(rid)
    token_stage = _stage_var.set(stage or _stage_var.get())
    try:
        yield rid
    finally:
        _request_id_var.reset(token_request)
        _stage_var.reset(token_stage)


def set_stage(stage: str) -> None:
    _stage_var.set(stage)


def configure_logging(level: str = "INFO") -> None:
    """Install a rich console handler on the root logger.

    Safe to call repeatedly (the API factory and each CLI command call it); an existing
    rich handler is reconfigured instead of duplicated.

    Args:
        level: Logging level name.
    """

    formatter = logging.Formatter(fmt=_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    root = logging.getLogger()
    root.setLevel(level)

    handlers = [h for h in root.handlers if isinstance(h, RichHandler)]
    if not handlers:
        handler = RichHandler(rich_tracebacks=True, show_time=False, show_level=True, markup=False)
        root.addHandler(handler)
        handlers = [handler]
    for h in handlers:
        if not any(isinstance(f, _QueryContextFilter) for f in h.filters):
            h.addFilter(_QueryContextFilter())
        h.setFormatter(formatter)

    library_level = logging.DEBUG if logging.getLevelName(level) == logging.DEBUG else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)


def get_logger(name: str) -> logging.Logger:
    """Get a module logger."""

    return logging.getLogger(name)
