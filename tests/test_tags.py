"""Tests for JSON extraction from model output."""

from __future__ import annotations

from h2obot.utils.tags import extract_json_object


def test_extract_plain_object() -> None:
    """It should parse a bare JSON object."""

    assert extract_json_object('{"answer": "ok"}') == {"answer": "ok"}


def test_extract_fenced_object() -> None:
    """It should unwrap a fenced markdown block."""

    text = 'Here you go:\n```json\n{"answer": "ok", "suggestions": []}\n```\nThanks'
    assert extract_json_object(text) == {"answer": "ok", "suggestions": []}


def test_extract_object_after_preamble() -> None:
    """It should find an object that follows prose."""

    text = 'Sure! {"answer": "yes", "safety": {"confidence": "high"}}'
    assert extract_json_object(text) == {"answer": "yes", "safety": {"confidence": "high"}}


def test_extract_rejects_non_objects() -> None:
    """It should return None for arrays, prose and empty input."""

    assert extract_json_object("[1, 2]") is None
    assert extract_json_object("no json here") is None
    assert extract_json_object("") is None
