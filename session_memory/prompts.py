"""
Classifier prompt templates.

Two variants share the same exchange block and the same NONE sentinel:
- DEVELOPMENT: did the exchange complete a piece of work? (daily log)
- SESSION_CONTEXT: decisions, completions, tests and open items (handoff)
"""

from __future__ import annotations

from enum import Enum

NONE_SENTINEL = "NONE"


class PromptVariant(str, Enum):
    """Classifier prompt variant."""

    DEVELOPMENT = "development"
    SESSION_CONTEXT = "session_context"


def build_development_prompt(exchange: str) -> str:
    """
    Build the "was something completed?" prompt.

    Args:
        exchange: Normalized exchange text, already truncated

    Returns:
        Prompt asking for 0-2 action-verb lines or NONE
    """
    return f"""You are a development logger. Analyze the following exchange between a user and an AI coding assistant and decide whether a meaningful task was COMPLETED (not just started or discussed).

A development is: a feature implemented, a bug fixed, a config changed, infrastructure deployed, a file created or modified with purpose, a tool or dependency installed, a test written, a document created, or a script or automation built.

NOT a development: reading files, asking questions, explaining without acting, work in progress, minor acknowledgments, or planning without implementing.

If a development was completed, respond with ONLY 1-2 concise lines summarizing what was accomplished. Consolidate related steps. Start each line with an action verb. Be specific and include names, paths or URLs where relevant.

If no development was completed, respond with exactly: {NONE_SENTINEL}

--- EXCHANGE ---
{exchange}"""


def build_context_prompt(exchange: str) -> str:
    """
    Build the session-context extraction prompt.

    Args:
        exchange: Normalized exchange text, already truncated

    Returns:
        Prompt asking for tagged bullet lines or NONE
    """
    return f"""You are a session context extractor for an AI coding assistant. Analyze the following exchange and extract ALL meaningful items into these categories:

DECISION: Any decision the user made: approved an approach, rejected an idea, chose between options, confirmed a direction
DONE: Work that was completed: features built, bugs fixed, files created, configs changed
TESTED: Work that was tested and the result (pass/fail)
OPEN: Things still in progress, blocked, or queued for later

Rules:
- Be specific: include file names, feature names, concrete details
- One bullet per item, prefixed with its category in brackets: [DECISION], [DONE], [TESTED], [OPEN]
- If NOTHING meaningful happened (just chatting, reading, exploring), respond with: {NONE_SENTINEL}
- Keep it concise, at most 1 line per bullet
- Focus on what CHANGED, not what was discussed

--- EXCHANGE ---
{exchange}"""


PROMPT_BUILDERS = {
    PromptVariant.DEVELOPMENT: build_development_prompt,
    PromptVariant.SESSION_CONTEXT: build_context_prompt,
}


def build_prompt(variant: PromptVariant, exchange: str, char_budget: int = 6000) -> str:
    """Render a prompt variant; the exchange is cut to ``char_budget`` characters."""
    return PROMPT_BUILDERS[PromptVariant(variant)](exchange[:char_budget])


__all__ = [
    "NONE_SENTINEL",
    "PROMPT_BUILDERS",
    "PromptVariant",
    "build_context_prompt",
    "build_development_prompt",
    "build_prompt",
]
