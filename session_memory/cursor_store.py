"""Per-session transcript cursors.

One small JSON document per project and cursor name, mapping session id to
the number of non-blank transcript lines already consumed:

    <project>/.memory/context-cursor.json
    {"3f1c...": 42, "9ab0...": 7}
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from .config import CONTEXT_CURSOR, cursor_dir
from .document_store import atomic_write_text

logger = logging.getLogger(__name__)


class CursorStore:
    """
    Read-modify-write store for transcript offsets.

    Unreadable or corrupt state is treated as empty. No locking: one session
    drives one pipeline run at a time, and a bad write is overwritten on the
    next run.
    """

    def __init__(self, project_path: Path | str, name: str = CONTEXT_CURSOR):
        self.project_path = Path(project_path)
        self.path = cursor_dir(str(self.project_path)) / name

    def _load(self) -> dict[str, int]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
            logger.debug("Ignoring unreadable cursor file %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            return {}
        return {
            str(k): v
            for k, v in data.items()
            if isinstance(v, int) and not isinstance(v, bool) and v >= 0
        }

    def get_offset(self, session_id: str) -> int:
        """Offset already consumed for a session; 0 when unknown."""
        return self._load().get(session_id, 0)

    def set_offset(self, session_id: str, offset: int) -> int:
        """
        Persist a new offset for a session.

        Offsets never move backwards: the stored value is the larger of the
        existing and the new offset.

        Returns:
            The offset actually stored
        """
        if offset < 0:
            raise ValueError("offset must be >= 0")
        data = self._load()
        stored = max(data.get(session_id, 0), offset)
        data[session_id] = stored
        atomic_write_text(self.path, json.dumps(data, indent=2))
        return stored


def get_offset(project_path: Path | str, session_id: str, name: str = CONTEXT_CURSOR) -> int:
    """Functional form of CursorStore.get_offset."""
    return CursorStore(project_path, name).get_offset(session_id)


def set_offset(
    project_path: Path | str,
    session_id: str,
    offset: int,
    name: str = CONTEXT_CURSOR,
) -> int:
    """Functional form of CursorStore.set_offset."""
    return CursorStore(project_path, name).set_offset(session_id, offset)


__all__ = ["CursorStore", "get_offset", "set_offset"]
