"""Tests for settings loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from h2obot.config import Settings, load_settings


def test_defaults() -> None:
    """It should default to strict local filtering and six documents."""

    s = Settings(_env_file=None)
    assert s.strict_local is True
    assert s.max_documents == 6
    assert s.pdf_max_pages == 12
    assert s.pdf_max_chars == 20_000
    assert s.effective_log_level == s.log_level


def test_debug_forces_debug_level() -> None:
    """It should log at DEBUG when debug is on."""

    assert Settings(_env_file=None, debug=True).effective_log_level == "DEBUG"


def test_load_settings_from_env_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """It should read the file named by H2OBOT_ENV_FILE."""

    env = tmp_path / "h2obot.env"
    env.write_text("H2OBOT_STRICT_LOCAL=false\nH2OBOT_SEARCH_PROVIDER=duckduckgo\n", encoding="utf-8")
    monkeypatch.setenv("H2OBOT_ENV_FILE", str(env))
    monkeypatch.delenv("H2OBOT_STRICT_LOCAL", raising=False)
    monkeypatch.delenv("H2OBOT_SEARCH_PROVIDER", raising=False)

    s = load_settings()
    assert s.strict_local is False
    assert s.search_provider == "duckduckgo"
