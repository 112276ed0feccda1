"""
Shared fixtures for session-memory unit tests.

Transcript entries are built in the same shape Claude Code writes them to
~/.claude/projects/{project_key}/{session_id}.jsonl.
"""

import json
import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

ISOLATED_ENV_VARS = (
    "ANTHROPIC_API_KEY",
    "ANTHROPIC_AUTH_TOKEN",
    "ANTHROPIC_BASE_URL",
    "SESSION_MEMORY_REPO",
    "SESSION_MEMORY_DIR",
    "SESSION_MEMORY_MODEL",
    "SESSION_MEMORY_DEBUG",
)


@pytest.fixture
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point HOME at a temp dir and clear every variable the engine reads."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    for var in ISOLATED_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    return home


def user_entry(text) -> dict:
    return {"type": "user", "message": {"role": "user", "content": text}}


def assistant_entry(text: str = "", tools: list[tuple[str, dict]] | None = None) -> dict:
    content = []
    if text:
        content.append({"type": "text", "text": text})
    for i, (name, tool_input) in enumerate(tools or []):
        content.append({"type": "tool_use", "id": f"toolu_{i}", "name": name, "input": tool_input})
    return {"type": "assistant", "message": {"role": "assistant", "content": content}}


def tool_result_entry(output: str = "ok") -> dict:
    return {
        "type": "user",
        "message": {
            "role": "user",
            "content": [{"type": "tool_result", "tool_use_id": "toolu_0", "content": output}],
        },
    }


@pytest.fixture
def entries():
    """Builders for transcript entries."""

    class Entries:
        user = staticmethod(user_entry)
        assistant = staticmethod(assistant_entry)
        tool_result = staticmethod(tool_result_entry)

    return Entries


@pytest.fixture
def transcript(tmp_path: Path):
    """Factory writing (or extending) a JSONL transcript."""
    path = tmp_path / "session.jsonl"

    def write(*records, append: bool = False) -> Path:
        mode = "a" if append else "w"
        with open(path, mode, encoding="utf-8") as f:
            for record in records:
                line = record if isinstance(record, str) else json.dumps(record)
                f.write(line + "\n")
        return path

    write.path = path
    return write
