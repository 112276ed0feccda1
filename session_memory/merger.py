"""
Document merger: writes classified entries into memory documents.

Two write paths:
- Section replace into session-handoff.md. The document holds human prose and
  at most one machine-owned region between AUTO_START and AUTO_END. Only that
  region is ever rewritten.
- Append into the dated daily log. Prior lines are never touched.

Both paths do nothing for an empty entry list.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from .classifier import ClassifiedEntry
from .config import HANDOFF_DOC
from .document_store import MemoryStore

AUTO_START_PREFIX = "<!-- AUTO-CAPTURED"
AUTO_END = "<!-- END AUTO-CAPTURED -->"


def _entry_text(entry: ClassifiedEntry | str) -> str:
    return entry.text if isinstance(entry, ClassifiedEntry) else str(entry)


def render_auto_section(entries: list[ClassifiedEntry | str], now: datetime | None = None) -> str:
    """Render the machine-owned handoff section, markers included."""
    now = now or datetime.now()
    start = f"{AUTO_START_PREFIX}: {now.strftime('%Y-%m-%d %H:%M')} -->"
    bullets = []
    for entry in entries:
        line = _entry_text(entry)
        bullets.append(line if line.startswith("- ") else f"- {line}")
    return "\n".join([start, *bullets, AUTO_END])


def find_auto_section(content: str) -> tuple[int, int] | None:
    """
    Locate the machine-owned region.

    Returns:
        (start, end) character range including both markers, or None
    """
    start = content.find(AUTO_START_PREFIX)
    if start == -1:
        return None
    end = content.find(AUTO_END, start)
    if end == -1:
        return None
    return start, end + len(AUTO_END)


def extract_auto_section(content: str) -> str | None:
    """The current machine-owned region, markers included, if any."""
    span = find_auto_section(content)
    if span is None:
        return None
    return content[span[0]:span[1]]


def replace_auto_section(content: str, section: str) -> str:
    """Swap the machine-owned region for ``section``, or prepend it."""
    span = find_auto_section(content)
    if span is not None:
        return content[:span[0]] + section + content[span[1]:]
    if content:
        return section + "\n\n" + content
    return section + "\n"


def merge_handoff(
    store: MemoryStore,
    entries: list[ClassifiedEntry | str],
    now: datetime | None = None,
    name: str = HANDOFF_DOC,
) -> Path | None:
    """
    Write entries into the handoff document's auto-captured section.

    Returns:
        Path written, or None when there was nothing to record
    """
    if not entries:
        return None
    existing = store.read_document(name) or ""
    section = render_auto_section(entries, now)
    return store.write_document(name, replace_auto_section(existing, section))


def daily_log_name(now: datetime) -> str:
    return f"{now.strftime('%Y-%m-%d')}.md"


def daily_log_header(now: datetime) -> str:
    return f"# Developments — {now.strftime('%Y-%m-%d')}\n\n"


def render_log_lines(entries: list[ClassifiedEntry | str], now: datetime) -> str:
    """One ``- **HH:MM** — text`` line per entry, newline-terminated."""
    time_str = now.strftime("%H:%M")
    lines = [f"- **{time_str}** — {_entry_text(entry)}" for entry in entries]
    return "\n".join(lines) + "\n"


def append_daily_log(
    store: MemoryStore,
    entries: list[ClassifiedEntry | str],
    now: datetime | None = None,
) -> Path | None:
    """
    Append entries to today's log, creating it with a header if needed.

    Returns:
        Path written, or None when there was nothing to record
    """
    if not entries:
        return None
    now = now or datetime.now()
    name = daily_log_name(now)
    existing = store.read_document(name)
    if not existing:
        existing = daily_log_header(now)
    elif not existing.endswith("\n"):
        existing += "\n"
    return store.write_document(name, existing + render_log_lines(entries, now))


__all__ = [
    "AUTO_END",
    "AUTO_START_PREFIX",
    "append_daily_log",
    "daily_log_header",
    "daily_log_name",
    "extract_auto_section",
    "find_auto_section",
    "merge_handoff",
    "render_auto_section",
    "render_log_lines",
    "replace_auto_section",
]
