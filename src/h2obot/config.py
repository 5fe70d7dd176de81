"""Application configuration.

Configuration is loaded from environment variables. For local development, you can provide a
`.env` file and set `H2OBOT_ENV_FILE` to point to it.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """H2obot settings.

    All fields are environment-configurable. Prefix is `H2OBOT_`.
    """

    model_config = SettingsConfigDict(
        env_prefix="H2OBOT_",
        env_file=None,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Core
    app_env: Literal["dev", "prod"] = Field(default="dev")
    log_level: str = Field(default="INFO")
    # Verbose diagnostics for dropped/selected documents; never changes selection
    debug: bool = Field(default=False)

    # Retrieval
    strict_local: bool = Field(default=True)
    max_documents: int = Field(default=6, ge=1, le=50)
    fetch_concurrency: int = Field(default=8, ge=1, le=64)
    retrieval_budget_s: float = Field(default=45.0, ge=1.0, le=600.0)
    snippet_chars: int = Field(default=400, ge=1)
    pdf_max_pages: int = Field(default=12, ge=1, le=500)
    pdf_max_chars: int = Field(default=20_000, ge=100)

    # Search
    search_provider: Literal["none", "tavily", "duckduckgo"] = Field(default="tavily")
    search_max_results: int = Field(default=8, ge=1, le=50)

    tavily_api_key: str | None = Field(default=None)
    tavily_api_base_url: str = Field(default="https://api.tavily.com")
    tavily_search_depth: Literal["basic", "advanced"] = Field(default="basic")
    tavily_timeout_s: float = Field(default=20.0, ge=1.0, le=300.0)
    tavily_max_retries: int = Field(default=2, ge=0, le=10)
    tavily_retry_backoff_s: float = Field(default=0.75, ge=0.0, le=30.0)
    tavily_retry_max_backoff_s: float = Field(default=8.0, ge=0.0, le=120.0)

    # LLM
    llm_provider: Literal["openai", "ollama"] = Field(default="ollama")
    llm_temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    openai_api_key: str | None = Field(default=None)
    openai_base_url: str | None = Field(default=None)
    openai_model: str = Field(default="gpt-4o-mini")
    openai_timeout_s: float = Field(default=60.0)
    ollama_base_url: str = Field(default="http://127.0.0.1:11434")
    ollama_model: str = Field(default="llama3.1:8b-instruct")

    # Answering
    demo_mode: bool = Field(default=False)
    stream_chunk_chars: int = Field(default=64, ge=8, le=1000)
    stream_delay_s: float = Field(default=0.035, ge=0.0, le=5.0)

    # Networking
    http_timeout_s: float = Field(default=15.0)
    http_user_agent: str = Field(default="H2obot/1.0 (+https://example.local)")
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.log_level


def load_settings() -> Settings:
    """Load settings from env.

    Returns:
        Settings: Parsed settings.
    """

    env_file_override = os.getenv("H2OBOT_ENV_FILE")
    if env_file_override:
        env_path = Path(env_file_override)
        return Settings(_env_file=env_path)

    default_env = Path.cwd() / ".env"
    if default_env.exists():
        return Settings(_env_file=default_env)

    return Settings()
