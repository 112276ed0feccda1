"""
MemoryStore - document storage for one project's memory directory.

All reads and writes of memory documents go through here. Writes replace the
whole document via write-to-temp-then-rename, so a concurrent reader sees
either the old or the new content, never a partial file.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from .config import is_tracked_document

logger = logging.getLogger(__name__)


def atomic_write_text(target_path: Path, content: str) -> None:
    """
    Atomically replace ``target_path`` with ``content``.

    The temp file is created in the target directory so the final rename
    never crosses a filesystem boundary.
    """
    atomic_write_bytes(target_path, content.encode("utf-8"))


def atomic_write_bytes(target_path: Path, data: bytes) -> None:
    """Byte-level form of atomic_write_text."""
    target_path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = tempfile.mkstemp(
        suffix=".tmp",
        prefix=f".{target_path.name}.",
        dir=target_path.parent,
    )
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(temp_path, target_path)
    except Exception:
        # Clean up temp file on error
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise


def read_text(path: Path) -> str | None:
    """Read a document verbatim, or None when it does not exist."""
    if not path.exists():
        return None
    with open(path, encoding="utf-8", newline="") as f:
        return f.read()


class MemoryStore:
    """
    Project-scoped key space of markdown documents.

    Keys are bare file names (``session-handoff.md``, ``2026-01-31.md``).
    The directory is created lazily on the first write.
    """

    def __init__(self, root: Path | str):
        self.root = Path(root)

    def path_for(self, name: str) -> Path:
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            raise ValueError(f"Invalid document name: {name!r}")
        return self.root / name

    def exists(self, name: str) -> bool:
        return self.path_for(name).exists()

    def read_document(self, name: str) -> str | None:
        """
        Read a document.

        Returns:
            The full content, or None if the document does not exist
        """
        return read_text(self.path_for(name))

    def write_document(self, name: str, content: str) -> Path:
        """
        Replace a document's content in one operation.

        Raises:
            OSError: If the directory or file cannot be written
        """
        path = self.path_for(name)
        atomic_write_text(path, content)
        logger.debug("Wrote %s (%d chars)", path, len(content))
        return path

    def list_documents(self, tracked_only: bool = False) -> list[str]:
        """List document names, sorted. Hidden files are skipped."""
        if not self.root.is_dir():
            return []
        names = sorted(
            p.name
            for p in self.root.iterdir()
            if p.is_file() and not p.name.startswith(".")
        )
        if tracked_only:
            names = [n for n in names if is_tracked_document(n)]
        return names

    def modified_at(self, name: str) -> float | None:
        """Modification time as a POSIX timestamp, or None if absent."""
        path = self.path_for(name)
        if not path.exists():
            return None
        return path.stat().st_mtime


__all__ = ["MemoryStore", "atomic_write_bytes", "atomic_write_text", "read_text"]
