"""
Pydantic models for hook payloads and sync bookkeeping.

The lifecycle payload arrives on stdin as JSON. Claude Code sends
``hook_event_name``; older installs used ``hook_type`` or ``type``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


SESSION_START_EVENTS = frozenset({"SessionStart", "session_start"})


class HookInput(BaseModel):
    """Lifecycle event payload delivered to every hook."""

    session_id: str | None = None
    transcript_path: str | None = None
    cwd: str | None = None
    session_cwd: str | None = None
    hook_event_name: str | None = None
    hook_type: str | None = None
    type: str | None = None
    prompt: str | None = None

    model_config = {
        "extra": "allow",
    }

    @property
    def event(self) -> str:
        """Event discriminator, whichever field carried it."""
        return self.hook_event_name or self.hook_type or self.type or ""

    @property
    def project_dir(self) -> str | None:
        return self.cwd or self.session_cwd

    @property
    def is_session_start(self) -> bool:
        return self.event in SESSION_START_EVENTS

    @property
    def can_capture(self) -> bool:
        """True when the payload carries everything the capture pipeline needs."""
        return bool(self.session_id and self.transcript_path and self.cwd)


class SyncState(BaseModel):
    """
    Content hashes recorded at the last successful sync, per document.

    Stored beside the memory documents as ``.sync-state.json``. A document
    whose local and repository copies both moved away from the recorded hash
    was edited on two machines since the last sync.
    """

    hashes: dict[str, str] = Field(default_factory=dict)
    updated_at: float | None = None


__all__ = ["HookInput", "SESSION_START_EVENTS", "SyncState"]
