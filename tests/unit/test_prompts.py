"""Tests for classifier prompt templates."""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from session_memory.prompts import (
    NONE_SENTINEL,
    PromptVariant,
    build_context_prompt,
    build_development_prompt,
    build_prompt,
)


class TestPromptVariants:
    """Both variants embed the exchange and ask for the NONE sentinel."""

    def test_development_prompt(self):
        prompt = build_development_prompt("USER: fix the bug\n[Edit: bug.py]")

        assert "COMPLETED" in prompt
        assert f"respond with exactly: {NONE_SENTINEL}" in prompt
        assert prompt.endswith("--- EXCHANGE ---\nUSER: fix the bug\n[Edit: bug.py]")

    def test_context_prompt_lists_categories(self):
        prompt = build_context_prompt("exchange")

        for tag in ("[DECISION]", "[DONE]", "[TESTED]", "[OPEN]"):
            assert tag in prompt
        assert NONE_SENTINEL in prompt

    def test_build_prompt_dispatches_on_variant(self):
        assert build_prompt(PromptVariant.DEVELOPMENT, "x") == build_development_prompt("x")
        assert build_prompt("session_context", "x") == build_context_prompt("x")

    def test_build_prompt_truncates_exchange(self):
        prompt = build_prompt(PromptVariant.SESSION_CONTEXT, "a" * 50 + "b" * 50, char_budget=50)

        assert "a" * 50 in prompt
        assert "b" not in prompt.split("--- EXCHANGE ---")[1]
