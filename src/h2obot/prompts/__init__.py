from __future__ import annotations

from h2obot.prompts.answer import ANSWER_SYSTEM_PROMPT, build_answer_prompt

__all__ = [
    "ANSWER_SYSTEM_PROMPT",
    "build_answer_prompt",
]
