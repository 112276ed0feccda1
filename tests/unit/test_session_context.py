"""
Unit tests for session-start context and prompt-submit staleness warnings.
"""

import os
import pytest
import sys
import time
from datetime import date
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from session_memory.document_store import MemoryStore
from session_memory.session_context import (
    build_session_start_context,
    handoff_age_hours,
    read_daily_log,
    staleness_warning,
)

TODAY = date(2026, 3, 14)
HOUR = 3600

HANDOFF = (
    "<!-- AUTO-CAPTURED: 2026-03-13 18:00 -->\n"
    "- [OPEN] Rate limiting\n"
    "<!-- END AUTO-CAPTURED -->\n\n"
    "# Handoff\n\nHuman notes.\n"
)


@pytest.fixture
def store(tmp_path: Path) -> MemoryStore:
    return MemoryStore(tmp_path / "memory")


def age_document(store: MemoryStore, name: str, hours: float) -> float:
    """Backdate a document; returns the reference 'now'."""
    now = time.time()
    mtime = now - hours * HOUR
    os.utime(store.path_for(name), (mtime, mtime))
    return now


class TestHandoffAge:
    """Tests for handoff_age_hours()."""

    def test_missing_handoff(self, store: MemoryStore):
        assert handoff_age_hours(store) is None

    def test_age_in_hours(self, store: MemoryStore):
        store.write_document("session-handoff.md", HANDOFF)
        now = age_document(store, "session-handoff.md", 3)

        assert handoff_age_hours(store, now) == pytest.approx(3, abs=0.01)


class TestStalenessWarning:
    """Tests for the per-prompt reminder."""

    def test_fresh_handoff_is_quiet(self, store: MemoryStore):
        store.write_document("session-handoff.md", HANDOFF)
        now = age_document(store, "session-handoff.md", 0.5)

        assert staleness_warning(store, now) is None

    def test_missing_handoff_is_quiet(self, store: MemoryStore):
        assert staleness_warning(store) is None

    def test_singular_hour(self, store: MemoryStore):
        store.write_document("session-handoff.md", HANDOFF)
        now = age_document(store, "session-handoff.md", 1.5)

        warning = staleness_warning(store, now)

        assert warning.startswith("[MEMORY] session-handoff.md was last updated 1 hour ago.")

    def test_plural_hours(self, store: MemoryStore):
        store.write_document("session-handoff.md", HANDOFF)
        now = age_document(store, "session-handoff.md", 5.2)

        assert "5 hours ago" in staleness_warning(store, now)

    def test_threshold_is_configurable(self, store: MemoryStore):
        store.write_document("session-handoff.md", HANDOFF)
        now = age_document(store, "session-handoff.md", 1.5)

        assert staleness_warning(store, now, stale_after_hours=2) is None


class TestReadDailyLog:
    """Tests for read_daily_log()."""

    def test_header_only_log_is_skipped(self, store: MemoryStore):
        store.write_document("2026-03-14.md", "# Developments — 2026-03-14\n\n")
        assert read_daily_log(store, TODAY) is None

    def test_log_with_entries(self, store: MemoryStore):
        store.write_document("2026-03-14.md", "# Developments — 2026-03-14\n\n- **09:00** — Shipped\n")
        assert read_daily_log(store, TODAY).endswith("- **09:00** — Shipped")

    def test_missing_log(self, store: MemoryStore):
        assert read_daily_log(store, TODAY) is None


class TestSessionStartContext:
    """Tests for build_session_start_context()."""

    def test_empty_memory_gives_empty_context(self, store: MemoryStore):
        assert build_session_start_context(store, today=TODAY) == ""

    def test_fresh_handoff_with_section(self, store: MemoryStore):
        store.write_document("session-handoff.md", HANDOFF)
        now = age_document(store, "session-handoff.md", 0.5)

        context = build_session_start_context(store, today=TODAY, now=now)

        assert context.startswith("[MEMORY PROTOCOL]")
        assert "WARNING" not in context
        assert "[SESSION CONTEXT] Latest auto-captured state:\n<!-- AUTO-CAPTURED: 2026-03-13 18:00 -->" in context
        assert "- [OPEN] Rate limiting\n<!-- END AUTO-CAPTURED -->" in context
        assert "Human notes" not in context

    def test_stale_handoff_warns(self, store: MemoryStore):
        store.write_document("session-handoff.md", "# Handoff\n")
        now = age_document(store, "session-handoff.md", 26.5)

        context = build_session_start_context(store, today=TODAY, now=now)

        assert "WARNING: It was last updated 26 hours ago" in context
        assert "[SESSION CONTEXT]" not in context

    def test_recent_logs_in_date_order(self, store: MemoryStore):
        store.write_document("2026-03-13.md", "# Developments — 2026-03-13\n\n- **17:00** — Yesterday's work\n")
        store.write_document("2026-03-14.md", "# Developments — 2026-03-14\n\n- **09:00** — Today's work\n")
        store.write_document("2026-03-12.md", "# Developments — 2026-03-12\n\n- **09:00** — Too old\n")

        context = build_session_start_context(store, today=TODAY)

        assert context.startswith("[RECENT DEVELOPMENTS]")
        assert context.index("Yesterday's work") < context.index("Today's work")
        assert "Too old" not in context
