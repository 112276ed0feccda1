"""
Unit tests for MemoryStore and atomic writes.
"""

import pytest
import sys
from pathlib import Path
from unittest.mock import patch

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from session_memory.document_store import MemoryStore, atomic_write_text, read_text


class TestAtomicWrite:
    """Tests for atomic_write_text."""

    def test_creates_parent_dirs(self, tmp_path: Path):
        target = tmp_path / "a" / "b" / "doc.md"
        atomic_write_text(target, "hello")
        assert target.read_text() == "hello"

    def test_failed_write_keeps_old_content(self, tmp_path: Path):
        target = tmp_path / "doc.md"
        target.write_text("original")

        with patch("session_memory.document_store.os.replace", side_effect=OSError("no space")):
            with pytest.raises(OSError):
                atomic_write_text(target, "new")

        assert target.read_text() == "original"
        assert [p.name for p in tmp_path.iterdir()] == ["doc.md"]

    def test_read_text_preserves_line_endings(self, tmp_path: Path):
        target = tmp_path / "doc.md"
        target.write_bytes(b"one\r\ntwo\n")

        assert read_text(target) == "one\r\ntwo\n"
        assert read_text(tmp_path / "missing.md") is None


class TestMemoryStore:
    """Tests for MemoryStore."""

    @pytest.fixture
    def store(self, tmp_path: Path) -> MemoryStore:
        return MemoryStore(tmp_path / "memory")

    def test_missing_document(self, store: MemoryStore):
        assert store.read_document("session-handoff.md") is None
        assert store.modified_at("session-handoff.md") is None
        assert store.list_documents() == []

    def test_write_and_read(self, store: MemoryStore):
        path = store.write_document("MEMORY.md", "# Memory\n")

        assert path == store.root / "MEMORY.md"
        assert store.read_document("MEMORY.md") == "# Memory\n"
        assert store.exists("MEMORY.md")
        assert store.modified_at("MEMORY.md") is not None

    @pytest.mark.parametrize("name", ["", "../escape.md", "sub/doc.md", "..", "a\\b.md"])
    def test_rejects_path_like_names(self, store: MemoryStore, name: str):
        with pytest.raises(ValueError):
            store.path_for(name)

    def test_list_documents(self, store: MemoryStore):
        store.write_document("MEMORY.md", "x")
        store.write_document("2026-03-14.md", "x")
        store.write_document("scratch.txt", "x")
        store.write_document(".sync-state.json", "{}")

        assert store.list_documents() == ["2026-03-14.md", "MEMORY.md", "scratch.txt"]
        assert store.list_documents(tracked_only=True) == ["2026-03-14.md", "MEMORY.md"]
