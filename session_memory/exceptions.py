"""Exception hierarchy for session-memory."""

from __future__ import annotations


class SessionMemoryError(Exception):
    """Base class for all session-memory errors."""
    pass


class HookInputError(SessionMemoryError):
    """Lifecycle payload was missing or malformed."""
    pass


class ClassifierError(SessionMemoryError):
    """Classifier call failed."""
    pass


class SyncError(SessionMemoryError):
    """A git operation against the sync repository failed."""

    def __init__(self, message: str, returncode: int | None = None):
        super().__init__(message)
        self.returncode = returncode


__all__ = ["ClassifierError", "HookInputError", "SessionMemoryError", "SyncError"]
