"""FastAPI app with the JSON and SSE answer endpoints."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse

from h2obot import __version__
from h2obot.config import Settings, load_settings
from h2obot.logging import configure_logging, get_logger
from h2obot.models.answer import Message, QueryRequest, QueryResponse
from h2obot.orchestrator.answer import AnswerService
from h2obot.orchestrator.stream import stream_answer, stream_apology


def create_app(settings: Settings | None = None, service: AnswerService | None = None) -> FastAPI:
    """Create FastAPI app."""

    settings = settings or load_settings()
    configure_logging(settings.effective_log_level)
    logger = get_logger(__name__)

    answer_service = service or AnswerService(settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        answer_service.close()

    docs_url = None if settings.app_env == "prod" else "/docs"
    app = FastAPI(title="H2obot", version=__version__, lifespan=lifespan, docs_url=docs_url, redoc_url=None)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def bad_request(_: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        detail = "; ".join(
            f"{'.'.join(str(p) for p in e.get('loc', ()))}: {e.get('msg', 'invalid')}" for e in errors
        ) or "Validation error"
        logger.info("Rejected request", extra={"errors": len(errors)})
        return JSONResponse(status_code=400, content={"title": "Bad Request", "detail": detail})

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/h2obot/query")
    async def query(req: QueryRequest) -> QueryResponse:
        logger.info("API query requested", extra={"messages": len(req.messages), "location": req.location})
        return await answer_service.answer(req)

    @app.get("/api/h2obot/stream")
    async def stream(
        request: Request,
        q: str = Query(default=""),
        location: str | None = Query(default=None),
    ) -> StreamingResponse:
        logger.info("API stream requested", extra={"q_len": len(q), "location": location})
        if q.strip():
            req = QueryRequest(messages=[Message(role="user", content=q)], location=location or None)
            events = stream_answer(
                answer_service,
                req,
                chunk_chars=settings.stream_chunk_chars,
                delay_s=settings.stream_delay_s,
            )
        else:
            events = stream_apology()

        async def gen() -> AsyncIterator[bytes]:
            async for ev in events:
                if await request.is_disconnected():
                    logger.info("Client disconnected; stopping stream")
                    return
                yield ev.to_sse()

        return StreamingResponse(
            gen(),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
        )

    return app
