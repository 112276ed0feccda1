"""
Configuration management for session-memory.

Settings live in ~/.claude/session-memory-config.json. Missing keys fall back
to DEFAULT_CONFIG and a handful of environment variables override the file.
"""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any


CONFIG_PATH = Path.home() / ".claude" / "session-memory-config.json"

HANDOFF_DOC = "session-handoff.md"
LONG_TERM_DOC = "MEMORY.md"
DAILY_LOG_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}\.md$")

CURSOR_DIR_NAME = ".memory"
CONTEXT_CURSOR = "context-cursor.json"
DEV_CURSOR = "dev-cursor.json"

DEFAULT_CONFIG: dict[str, Any] = {
    "classifier_model": "claude-haiku-4-5-20251001",
    "context_max_tokens": 512,
    "dev_max_tokens": 256,
    "input_char_budget": 6000,
    "prefilter_min_chars": 100,
    "user_text_cap": 500,
    "bash_command_cap": 300,
    "handoff_stale_hours": 1.0,
    "session_start_stale_hours": 2.0,
    "context_capture_enabled": True,
    "dev_log_enabled": True,
    "sync_enabled": True,
    "repo_path": None,
    "repo_candidates": ["~/session-memory", "~/agent-memory"],
    "memory_dir": None,
    "api_key": None,
    "base_url": None,
    "log_file": None,
}


def _filter_dataclass_fields(data: dict[str, Any], cls: type) -> dict[str, Any]:
    """Filter dict to only include fields that exist in the dataclass."""
    valid_fields = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in valid_fields}


@dataclass
class MemoryConfig:
    """
    Session-memory user configuration.

    Separate concerns share one file: classifier settings, extraction caps,
    staleness thresholds and sync repository discovery.
    """

    classifier_model: str = "claude-haiku-4-5-20251001"
    context_max_tokens: int = 512
    dev_max_tokens: int = 256
    input_char_budget: int = 6000
    prefilter_min_chars: int = 100
    user_text_cap: int = 500
    bash_command_cap: int = 300
    handoff_stale_hours: float = 1.0
    session_start_stale_hours: float = 2.0
    context_capture_enabled: bool = True
    dev_log_enabled: bool = True
    sync_enabled: bool = True
    repo_path: str | None = None
    repo_candidates: list[str] = field(
        default_factory=lambda: ["~/session-memory", "~/agent-memory"]
    )
    memory_dir: str | None = None
    api_key: str | None = None
    base_url: str | None = None
    log_file: str | None = None

    @classmethod
    def load(cls, path: Path | None = None) -> "MemoryConfig":
        """
        Load config from file with defaults and environment overrides.

        Args:
            path: Optional config file path. Defaults to CONFIG_PATH

        Returns:
            MemoryConfig with user settings merged over defaults
        """
        if path is None:
            path = CONFIG_PATH

        config = DEFAULT_CONFIG.copy()

        if path.exists():
            try:
                user_config = json.loads(path.read_text())
                if isinstance(user_config, dict):
                    config.update(user_config)
            except (json.JSONDecodeError, OSError):
                # Use defaults on error
                pass

        # Environment wins over the file
        if os.getenv("SESSION_MEMORY_REPO"):
            config["repo_path"] = os.environ["SESSION_MEMORY_REPO"]
        if os.getenv("SESSION_MEMORY_DIR"):
            config["memory_dir"] = os.environ["SESSION_MEMORY_DIR"]
        if os.getenv("SESSION_MEMORY_MODEL"):
            config["classifier_model"] = os.environ["SESSION_MEMORY_MODEL"]
        if os.getenv("ANTHROPIC_BASE_URL"):
            config["base_url"] = os.environ["ANTHROPIC_BASE_URL"]

        return cls(**_filter_dataclass_fields(config, cls))

    def save(self, path: Path | None = None) -> None:
        """Save configuration to file."""
        if path is None:
            path = CONFIG_PATH

        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(
                {f.name: getattr(self, f.name) for f in fields(self)},
                f,
                indent=2,
            )


# -----------------------------------------------------------------------------
# Path resolution
# -----------------------------------------------------------------------------


def _home() -> Path:
    return Path(os.environ.get("USERPROFILE") or os.environ.get("HOME") or Path.home())


def cwd_to_project_key(cwd: str) -> str:
    """
    Convert a working directory into the project key used by Claude Code.

    Separators, drive colons and underscores become dashes and a leading
    lowercase letter is upper-cased (Windows drive letters).
    """
    key = re.sub(r"[\\/:_]", "-", cwd)
    if key[:1].islower():
        key = key[0].upper() + key[1:]
    return key


def memory_dir_candidates(cwd: str) -> list[Path]:
    """Candidate memory directories for a project, in lookup order."""
    home = _home()
    key = cwd_to_project_key(cwd)
    lower_key = key[0].lower() + key[1:] if key else key
    return [
        home / ".claude" / "projects" / lower_key / "memory",
        home / ".claude" / "projects" / key / "memory",
        home / ".session-memory" / "projects" / lower_key,
        home / ".session-memory" / "projects" / key,
    ]


def resolve_memory_dir(cwd: str, config: MemoryConfig | None = None) -> Path:
    """
    Find the memory directory for a project.

    An explicit ``memory_dir`` setting wins. Otherwise the first existing
    candidate is used, defaulting to Claude's own per-project memory folder.
    """
    if config is not None and config.memory_dir:
        return Path(config.memory_dir).expanduser()

    candidates = memory_dir_candidates(cwd)
    for candidate in candidates:
        if candidate.exists():
            return candidate
    return candidates[0]


def cursor_dir(cwd: str) -> Path:
    """Directory holding the per-project cursor documents."""
    return Path(cwd) / CURSOR_DIR_NAME


def is_tracked_document(name: str) -> bool:
    """True for documents mirrored by the sync engine."""
    return name in (LONG_TERM_DOC, HANDOFF_DOC) or bool(DAILY_LOG_PATTERN.match(name))


# Default configuration instance
default_config = MemoryConfig()


__all__ = [
    "CONFIG_PATH",
    "CONTEXT_CURSOR",
    "DAILY_LOG_PATTERN",
    "DEFAULT_CONFIG",
    "DEV_CURSOR",
    "HANDOFF_DOC",
    "LONG_TERM_DOC",
    "MemoryConfig",
    "cursor_dir",
    "cwd_to_project_key",
    "default_config",
    "is_tracked_document",
    "memory_dir_candidates",
    "resolve_memory_dir",
]
