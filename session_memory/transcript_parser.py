"""
Claude Code transcript parser for incremental exchange extraction.

Reads the JSONL transcript files that Claude Code maintains at:
~/.claude/projects/{project_key}/{session_id}.jsonl

Offsets count non-blank lines. The same list of non-blank lines is used to
slice from a cursor and to compute the next cursor, so the reader and the
writer can never disagree on units.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

FILE_TOOLS = ("Write", "Edit", "MultiEdit", "NotebookEdit")
SEARCH_TOOLS = ("Read", "Glob", "Grep")


@dataclass
class ToolCall:
    """A tool invocation from an assistant entry."""

    tool_name: str
    tool_input: dict[str, Any]
    tool_use_id: str = ""


@dataclass
class ConversationTurn:
    """A single transcript entry reduced to text and tool calls."""

    role: str  # "user" or "assistant"
    content: str
    tool_calls: list[ToolCall] = field(default_factory=list)


@dataclass
class NormalizedExchange:
    """Everything new in a transcript since a cursor."""

    text: str
    has_state_change: bool
    new_offset: int
    turns: list[ConversationTurn] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.turns


def read_transcript_lines(transcript_path: str | Path) -> list[str]:
    """
    Read the non-blank lines of a transcript.

    Raises:
        FileNotFoundError: If the transcript does not exist
    """
    path = Path(transcript_path)
    with open(path, encoding="utf-8", errors="replace") as f:
        return [line for line in f.read().split("\n") if line.strip()]


def describe_tool_call(tool_call: ToolCall, bash_command_cap: int = 300) -> str:
    """Short bracketed descriptor for a tool call."""
    name = tool_call.tool_name
    tool_input = tool_call.tool_input

    if name in FILE_TOOLS:
        target = tool_input.get("file_path") or tool_input.get("notebook_path") or "unknown file"
        return f"[{name}: {target}]"
    if name == "Bash":
        command = str(tool_input.get("command") or "")
        return f"[Bash: {command[:bash_command_cap]}]"
    if name in SEARCH_TOOLS:
        return f"[{name}: {tool_input.get('file_path') or tool_input.get('pattern') or ''}]"
    return f"[{name}]"


class TranscriptParser:
    """
    Parse Claude Code transcript entries starting at a line offset.

    Key entry types:
    - "user": User message or tool result
    - "assistant": Assistant response with possible tool calls
    - anything else ("progress", "system", "summary") is ignored
    """

    def __init__(
        self,
        transcript_path: str | Path,
        user_text_cap: int = 500,
        bash_command_cap: int = 300,
    ):
        self.transcript_path = Path(transcript_path)
        self.user_text_cap = user_text_cap
        self.bash_command_cap = bash_command_cap

    def extract(self, offset: int = 0) -> NormalizedExchange:
        """
        Build the normalized exchange for everything at or after ``offset``.

        Args:
            offset: Number of non-blank lines already consumed

        Returns:
            NormalizedExchange; ``new_offset`` is the total non-blank line count

        Raises:
            FileNotFoundError: If the transcript does not exist
        """
        lines = read_transcript_lines(self.transcript_path)
        new_lines = lines[max(offset, 0):]

        turns: list[ConversationTurn] = []
        for line in new_lines:
            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                logger.debug("Skipping unparseable transcript line")
                continue
            if not isinstance(entry, dict):
                continue

            turn = self._parse_entry(entry)
            if turn is not None:
                turns.append(turn)

        parts: list[str] = []
        has_state_change = False
        for turn in turns:
            if turn.role == "assistant":
                if turn.content:
                    parts.append(turn.content)
                for tool_call in turn.tool_calls:
                    has_state_change = True
                    parts.append(describe_tool_call(tool_call, self.bash_command_cap))
            else:
                parts.append(f"USER: {turn.content[:self.user_text_cap]}")

        return NormalizedExchange(
            text="\n".join(parts),
            has_state_change=has_state_change,
            new_offset=len(lines),
            turns=turns,
        )

    def _parse_entry(self, entry: dict[str, Any]) -> ConversationTurn | None:
        entry_type = entry.get("type", "")
        message = entry.get("message")
        if not isinstance(message, dict):
            return None
        content = message.get("content", "")

        if entry_type == "assistant":
            return self._process_assistant_entry(content)
        if entry_type == "user":
            return self._process_user_entry(content)
        return None

    def _process_user_entry(self, content: Any) -> ConversationTurn | None:
        """User text only; tool_result blocks are not part of the exchange."""
        if isinstance(content, str):
            text = content
        elif isinstance(content, list):
            text = " ".join(
                block.get("text", "")
                for block in content
                if isinstance(block, dict) and block.get("type") == "text"
            )
        else:
            return None

        if not text:
            return None
        return ConversationTurn(role="user", content=text)

    def _process_assistant_entry(self, content: Any) -> ConversationTurn | None:
        if isinstance(content, str):
            return ConversationTurn(role="assistant", content=content) if content else None
        if not isinstance(content, list):
            return None

        text_parts = []
        tool_calls = []
        for block in content:
            if not isinstance(block, dict):
                continue
            block_type = block.get("type", "")

            if block_type == "text" and block.get("text"):
                text_parts.append(block["text"])

            elif block_type == "tool_use":
                tool_input = block.get("input")
                tool_calls.append(ToolCall(
                    tool_name=block.get("name") or "unknown",
                    tool_input=tool_input if isinstance(tool_input, dict) else {},
                    tool_use_id=block.get("id", ""),
                ))

        if not text_parts and not tool_calls:
            return None
        return ConversationTurn(
            role="assistant",
            content="\n".join(text_parts),
            tool_calls=tool_calls,
        )


def extract_exchange(
    transcript_path: str | Path,
    offset: int = 0,
    user_text_cap: int = 500,
    bash_command_cap: int = 300,
) -> NormalizedExchange:
    """Functional entry point for TranscriptParser.extract."""
    parser = TranscriptParser(
        transcript_path,
        user_text_cap=user_text_cap,
        bash_command_cap=bash_command_cap,
    )
    return parser.extract(offset)


__all__ = [
    "ConversationTurn",
    "NormalizedExchange",
    "ToolCall",
    "TranscriptParser",
    "describe_tool_call",
    "extract_exchange",
    "read_transcript_lines",
]
