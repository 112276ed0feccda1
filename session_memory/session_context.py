"""
Text handed back to the agent host at session start and prompt submit.

These are the only user-visible outputs of the engine, and they are advisory:
- a memory-protocol reminder, with a stale note when the handoff is old
- the latest auto-captured handoff section
- today's and yesterday's development logs
- a per-prompt reminder when the handoff has not been touched for a while
"""

from __future__ import annotations

import time
from datetime import date, timedelta

from .config import HANDOFF_DOC, LONG_TERM_DOC
from .document_store import MemoryStore
from .merger import extract_auto_section

SECONDS_PER_HOUR = 60 * 60


def handoff_age_hours(store: MemoryStore, now: float | None = None) -> float | None:
    """Hours since the handoff document was last written, or None if absent."""
    mtime = store.modified_at(HANDOFF_DOC)
    if mtime is None:
        return None
    now = now if now is not None else time.time()
    return (now - mtime) / SECONDS_PER_HOUR


def read_daily_log(store: MemoryStore, day: date) -> str | None:
    """A day's log, or None when missing or holding only its header."""
    content = store.read_document(f"{day.isoformat()}.md")
    if content is None:
        return None
    content = content.strip()
    if len(content.split("\n")) <= 2:
        return None
    return content


def protocol_reminder(age_hours: float, stale_after_hours: float = 2.0) -> str:
    stale_note = ""
    if age_hours > stale_after_hours:
        stale_note = (
            f" WARNING: It was last updated {int(age_hours)} hours ago and may be stale."
        )
    return (
        f"[MEMORY PROTOCOL] This project uses {HANDOFF_DOC} for cross-session context.{stale_note} "
        f"You MUST update {HANDOFF_DOC} and {LONG_TERM_DOC} incrementally as you complete tasks. "
        "Do NOT wait until the end of the session; context can be lost at any time."
    )


def build_session_start_context(
    store: MemoryStore,
    today: date | None = None,
    now: float | None = None,
    stale_after_hours: float = 2.0,
) -> str:
    """
    Assemble the context injected when a session starts.

    Returns:
        Text for the host to show the agent; empty when there is nothing
    """
    parts: list[str] = []

    age = handoff_age_hours(store, now)
    if age is not None:
        parts.append(protocol_reminder(age, stale_after_hours))

        section = extract_auto_section(store.read_document(HANDOFF_DOC) or "")
        if section:
            parts.append("")
            parts.append("[SESSION CONTEXT] Latest auto-captured state:")
            parts.append(section)

    today = today or date.today()
    yesterday_log = read_daily_log(store, today - timedelta(days=1))
    today_log = read_daily_log(store, today)

    if yesterday_log or today_log:
        parts.append("")
        parts.append("[RECENT DEVELOPMENTS] Auto-logged task completions:")
        for log in (yesterday_log, today_log):
            if log:
                parts.append("")
                parts.append(log)

    return "\n".join(parts).lstrip("\n")


def staleness_warning(
    store: MemoryStore,
    now: float | None = None,
    stale_after_hours: float = 1.0,
) -> str | None:
    """Reminder to update the handoff when it is older than the threshold."""
    age = handoff_age_hours(store, now)
    if age is None or age <= stale_after_hours:
        return None
    hours = int(age)
    plural = "" if hours == 1 else "s"
    return (
        f"[MEMORY] {HANDOFF_DOC} was last updated {hours} hour{plural} ago. "
        f"Update it with current session progress. Also update {LONG_TERM_DOC} if setup state has changed."
    )


__all__ = [
    "build_session_start_context",
    "handoff_age_hours",
    "protocol_reminder",
    "read_daily_log",
    "staleness_warning",
]
