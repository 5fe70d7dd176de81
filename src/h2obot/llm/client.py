"""OpenAI-compatible LLM client.

This wraps the `openai` Python SDK and provides a minimal interface for chat completions.
Ollama is reached through its OpenAI-compatible `/v1` endpoint.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Sequence

from openai import BadRequestError, OpenAI

from h2obot.config import Settings
from h2obot.logging import get_logger
from h2obot.utils.tags import extract_json_object

logger = get_logger(__name__)

Role = Literal["system", "user", "assistant"]

ANSWER_JSON_SCHEMA: dict[str, Any] = {
    "name": "H2oBotResponse",
    "strict": False,
    "schema": {
        "type": "object",
        "additionalProperties": False,
        "properties": {
            "answer": {"type": "string"},
            "sources": {
                "type": "array",
                "items": {
                    "type": "object",
                    "additionalProperties": False,
                    "properties": {
                        "title": {"type": "string"},
                        "url": {"type": "string"},
                        "publisher": {"type": "string"},
                    },
                    "required": ["title", "url"],
                },
            },
            "safety": {
                "type": "object",
                "additionalProperties": False,
                "properties": {
                    "confidence": {"type": "string", "enum": ["low", "medium", "high", "unknown"]},
                    "advisories": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "additionalProperties": False,
                            "properties": {
                                "level": {"type": "string", "enum": ["info", "advisory", "boil", "do-not-drink"]},
                                "title": {"type": "string"},
                                "body": {"type": "string"},
                            },
                            "required": ["level", "title"],
                        },
                    },
                    "last_updated": {"type": "string", "format": "date-time"},
                },
            },
            "suggestions": {"type": "array", "items": {"type": "string"}},
        },
        "required": ["answer"],
    },
}

_JSON_MODE_NUDGE = "Return a JSON object with keys: answer, sources[], safety, suggestions[]."


class LLMUnavailableError(RuntimeError):
    """Raised when no LLM backend is configured."""


@dataclass(frozen=True)
class ChatMessage:
    """A chat message."""

    role: Role
    content: str


@dataclass(frozen=True)
class LLMJsonResult:
    """Raw model output plus the JSON object recovered from it, if any."""

    raw: str
    data: dict[str, Any] | None
    tokens_in: int | None = None
    tokens_out: int | None = None


class LLMClient:
    """LLM client using OpenAI-compatible Chat Completions API."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        if settings.llm_provider == "ollama":
            self._model = settings.ollama_model
            self._client = OpenAI(
                api_key="ollama",
                base_url=f"{settings.ollama_base_url.rstrip('/')}/v1",
                max_retries=0,
            )
            return

        if not settings.openai_api_key:
            raise LLMUnavailableError(
                "Missing H2OBOT_OPENAI_API_KEY. "
                "Set it in environment variables or a .env file."
            )
        self._model = settings.openai_model
        self._client = OpenAI(api_key=settings.openai_api_key, base_url=settings.openai_base_url)

    @property
    def model(self) -> str:
        return self._model

    def complete_json(self, messages: Sequence[ChatMessage], *, temperature: float = 0.1) -> LLMJsonResult:
        """Generate a completion constrained to the answer JSON shape.

        Structured outputs are tried first; models that reject ``json_schema`` with a 400
        are retried in plain JSON mode with the expected keys spelled out.
        """

        try:
            resp = self._create(
                messages,
                temperature=temperature,
                response_format={"type": "json_schema", "json_schema": ANSWER_JSON_SCHEMA},
            )
        except BadRequestError as e:
            logger.info("Structured output rejected; retrying in JSON mode", extra={"error": str(e)[:200]})
            nudged = list(messages)
            if nudged and nudged[-1].role == "user":
                last = nudged[-1]
                nudged[-1] = ChatMessage(role="user", content=f"{last.content}\n\n{_JSON_MODE_NUDGE}")
            resp = self._create(nudged, temperature=temperature, response_format={"type": "json_object"})

        choice = resp.choices[0]
        raw = (choice.message.content if choice.message else None) or ""
        usage = resp.usage
        return LLMJsonResult(
            raw=raw,
            data=extract_json_object(raw),
            tokens_in=usage.prompt_tokens if usage else None,
            tokens_out=usage.completion_tokens if usage else None,
        )

    def _create(self, messages: Sequence[ChatMessage], *, temperature: float, **kwargs: Any) -> Any:
        payload: list[dict[str, str]] = [{"role": m.role, "content": m.content} for m in messages]
        return self._client.chat.completions.create(
            model=self._model,
            messages=payload,
            temperature=temperature,
            timeout=self._settings.openai_timeout_s,
            **kwargs,
        )
