"""session-memory: automatic memory capture and sync for coding-agent sessions.

Watches the session transcript from lifecycle hooks, asks a small model what
was worth remembering, and keeps per-project memory documents current:
- session-handoff.md: auto-captured working state for the next session
- YYYY-MM-DD.md: append-only log of completed work
- a shared git repository mirrors the documents across machines
"""

import logging

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

# Capture
from .transcript_parser import NormalizedExchange, TranscriptParser, extract_exchange
from .cursor_store import CursorStore
from .prefilter import should_classify
from .prompts import PromptVariant, build_prompt
from .classifier import ClassifiedEntry, ClassifierClient, parse_classification
from .pipeline import CapturePipeline, CaptureReport, context_pipeline, development_pipeline

# Documents & sync
from .document_store import MemoryStore
from .merger import append_daily_log, merge_handoff
from .sync_engine import SyncEngine, SyncReport, find_repo

# Types & Config
from .config import MemoryConfig, default_config, resolve_memory_dir
from .exceptions import ClassifierError, HookInputError, SessionMemoryError, SyncError
from .hook_schema import HookInput
from .result import FailureKind, Outcome, StepResult

__all__ = [
    # Capture
    "NormalizedExchange",
    "TranscriptParser",
    "extract_exchange",
    "CursorStore",
    "should_classify",
    "PromptVariant",
    "build_prompt",
    "ClassifiedEntry",
    "ClassifierClient",
    "parse_classification",
    "CapturePipeline",
    "CaptureReport",
    "context_pipeline",
    "development_pipeline",
    # Documents & sync
    "MemoryStore",
    "append_daily_log",
    "merge_handoff",
    "SyncEngine",
    "SyncReport",
    "find_repo",
    # Types & Config
    "MemoryConfig",
    "default_config",
    "resolve_memory_dir",
    "ClassifierError",
    "HookInputError",
    "SessionMemoryError",
    "SyncError",
    "HookInput",
    "FailureKind",
    "Outcome",
    "StepResult",
]
