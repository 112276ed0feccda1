"""
Unit tests for the document merger.

Covers the two write laws:
- the handoff section is replaced in place, human prose is untouched
- the daily log only ever grows, prior bytes are a prefix of the new file
"""

import pytest
import sys
from datetime import datetime
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from session_memory.classifier import ClassifiedEntry
from session_memory.document_store import MemoryStore
from session_memory.merger import (
    AUTO_END,
    append_daily_log,
    extract_auto_section,
    merge_handoff,
    render_auto_section,
    replace_auto_section,
)

NOW = datetime(2026, 3, 14, 9, 5)
LATER = datetime(2026, 3, 14, 17, 42)


@pytest.fixture
def store(tmp_path: Path) -> MemoryStore:
    return MemoryStore(tmp_path / "memory")


class TestRenderAutoSection:
    """Tests for the machine-owned section format."""

    def test_markers_and_bullets(self):
        section = render_auto_section(["[DONE] Added login", "- [OPEN] Rate limiting"], NOW)

        assert section == (
            "<!-- AUTO-CAPTURED: 2026-03-14 09:05 -->\n"
            "- [DONE] Added login\n"
            "- [OPEN] Rate limiting\n"
            "<!-- END AUTO-CAPTURED -->"
        )

    def test_accepts_classified_entries(self):
        section = render_auto_section([ClassifiedEntry(text="- [TESTED] pytest green")], NOW)
        assert "- [TESTED] pytest green" in section


class TestReplaceAutoSection:
    """Tests for section replacement."""

    def test_empty_document_gets_section(self):
        section = render_auto_section(["a"], NOW)
        assert replace_auto_section("", section) == section + "\n"

    def test_section_prepended_above_prose(self):
        prose = "# Handoff\n\nHand-written notes.\n"
        section = render_auto_section(["a"], NOW)

        merged = replace_auto_section(prose, section)

        assert merged == section + "\n\n" + prose

    def test_existing_section_replaced_in_place(self):
        before = "# Handoff\n\nIntro line.\n\n"
        after = "\n\n## Notes\nKeep me exactly.\n"
        old = render_auto_section(["old item"], NOW)
        new = render_auto_section(["new item"], LATER)

        merged = replace_auto_section(before + old + after, new)

        assert merged == before + new + after
        assert "old item" not in merged

    def test_end_marker_before_start_is_ignored(self):
        stray = f"stray {AUTO_END}\n"
        old = render_auto_section(["old"], NOW)
        new = render_auto_section(["new"], LATER)

        merged = replace_auto_section(stray + old, new)

        assert merged == stray + new

    def test_extract(self):
        section = render_auto_section(["x"], NOW)
        assert extract_auto_section("prose\n" + section + "\nmore") == section
        assert extract_auto_section("no markers here") is None


class TestMergeHandoff:
    """Tests for merge_handoff()."""

    def test_creates_document(self, store: MemoryStore):
        path = merge_handoff(store, ["[DONE] a", "[OPEN] b"], NOW)

        assert path == store.root / "session-handoff.md"
        content = path.read_text()
        assert content.startswith("<!-- AUTO-CAPTURED: 2026-03-14 09:05 -->\n- [DONE] a\n- [OPEN] b\n")

    def test_idempotent_for_same_entries(self, store: MemoryStore):
        merge_handoff(store, ["[DONE] a"], NOW)
        first = store.read_document("session-handoff.md")

        merge_handoff(store, ["[DONE] a"], NOW)

        assert store.read_document("session-handoff.md") == first

    def test_only_section_changes(self, store: MemoryStore):
        store.write_document("session-handoff.md", "# Handoff\n\nHuman notes.\n")
        merge_handoff(store, ["[DONE] a"], NOW)

        merge_handoff(store, ["[DONE] b"], LATER)

        content = store.read_document("session-handoff.md")
        assert content.endswith("\n\n# Handoff\n\nHuman notes.\n")
        assert content.count("AUTO-CAPTURED:") == 1
        assert "- [DONE] b" in content
        assert "- [DONE] a" not in content

    def test_empty_entries_write_nothing(self, store: MemoryStore):
        assert merge_handoff(store, [], NOW) is None
        assert not store.exists("session-handoff.md")


class TestAppendDailyLog:
    """Tests for append_daily_log()."""

    def test_creates_log_with_header(self, store: MemoryStore):
        path = append_daily_log(store, ["Added login page"], NOW)

        assert path.name == "2026-03-14.md"
        assert path.read_text(encoding="utf-8") == (
            "# Developments — 2026-03-14\n\n"
            "- **09:05** — Added login page\n"
        )

    def test_append_preserves_prefix(self, store: MemoryStore):
        append_daily_log(store, ["First"], NOW)
        before = store.read_document("2026-03-14.md")

        append_daily_log(store, ["Second", "Third"], LATER)

        after = store.read_document("2026-03-14.md")
        assert after.startswith(before)
        assert after[len(before):] == "- **17:42** — Second\n- **17:42** — Third\n"

    def test_empty_file_gets_header(self, store: MemoryStore):
        store.write_document("2026-03-14.md", "")

        append_daily_log(store, ["Added login page"], NOW)

        assert store.read_document("2026-03-14.md") == (
            "# Developments — 2026-03-14\n\n"
            "- **09:05** — Added login page\n"
        )

    def test_missing_trailing_newline_is_repaired(self, store: MemoryStore):
        store.write_document("2026-03-14.md", "# Developments — 2026-03-14\n\n- hand edit")

        append_daily_log(store, ["Next"], NOW)

        assert store.read_document("2026-03-14.md").endswith("- hand edit\n- **09:05** — Next\n")

    def test_empty_entries_write_nothing(self, store: MemoryStore):
        assert append_daily_log(store, [], NOW) is None
        assert store.list_documents() == []
