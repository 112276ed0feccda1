"""
Capture pipeline: transcript → pre-filter → classifier → document.

Two pipelines run on every Stop event, each with its own cursor so neither
can starve the other:
- context capture: SESSION_CONTEXT prompt, replaces the handoff section
- development log: DEVELOPMENT prompt, appends to the daily log

The cursor advances as soon as the new exchange has been read. A failed or
empty classification drops that exchange for good (at most once per offset).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from .classifier import ClassifiedEntry, ClassifierClient, parse_classification
from .config import CONTEXT_CURSOR, DEV_CURSOR, MemoryConfig, resolve_memory_dir
from .cursor_store import CursorStore
from .document_store import MemoryStore
from .hook_schema import HookInput
from .merger import append_daily_log, merge_handoff
from .prefilter import should_classify
from .prompts import PromptVariant
from .result import FailureKind, StepResult
from .transcript_parser import extract_exchange

logger = logging.getLogger(__name__)

DocumentWriter = Callable[[MemoryStore, list[ClassifiedEntry], datetime | None], Path | None]


@dataclass
class CaptureReport:
    """What one pipeline run consumed and wrote."""

    session_id: str
    old_offset: int
    new_offset: int
    entries: list[ClassifiedEntry] = field(default_factory=list)
    written: Path | None = None


class CapturePipeline:
    """One extract → classify → merge run for a single cursor."""

    def __init__(
        self,
        variant: PromptVariant,
        cursor_name: str,
        writer: DocumentWriter,
        config: MemoryConfig | None = None,
        classifier: ClassifierClient | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.variant = variant
        self.cursor_name = cursor_name
        self.writer = writer
        self.config = config or MemoryConfig.load()
        self._classifier = classifier
        self.clock = clock

    @property
    def classifier(self) -> ClassifierClient:
        if self._classifier is None:
            self._classifier = ClassifierClient(config=self.config)
        return self._classifier

    def store_for(self, cwd: str) -> MemoryStore:
        return MemoryStore(resolve_memory_dir(cwd, self.config))

    def run(self, hook: HookInput) -> StepResult[CaptureReport]:
        """
        Process everything new in the session transcript.

        Returns:
            OK when a document was written, EMPTY when there was nothing worth
            recording, FAILED with the failure kind otherwise
        """
        if not hook.can_capture:
            return StepResult.failed(
                FailureKind.INPUT_MALFORMED,
                "payload needs session_id, transcript_path and cwd",
            )

        cursor = CursorStore(hook.cwd, self.cursor_name)
        offset = cursor.get_offset(hook.session_id)

        try:
            exchange = extract_exchange(
                hook.transcript_path,
                offset,
                user_text_cap=self.config.user_text_cap,
                bash_command_cap=self.config.bash_command_cap,
            )
        except OSError as e:
            return StepResult.failed(FailureKind.FILESYSTEM, f"transcript unreadable: {e}")

        try:
            stored = cursor.set_offset(hook.session_id, exchange.new_offset)
        except OSError as e:
            return StepResult.failed(FailureKind.FILESYSTEM, f"cursor not writable: {e}")

        report = CaptureReport(
            session_id=hook.session_id,
            old_offset=offset,
            new_offset=stored,
        )

        if not should_classify(exchange, self.config.prefilter_min_chars):
            logger.debug("%s: pre-filter skipped %d chars", self.variant.value, len(exchange.text))
            return StepResult.empty("prefiltered", value=report)

        classified = self.classifier.try_classify(self.variant, exchange.text)
        if not classified.is_ok:
            logger.debug("%s: classifier gave nothing (%s)", self.variant.value, classified.detail)
            return StepResult(
                classified.outcome,
                value=report,
                failure=classified.failure,
                detail=classified.detail,
            )

        report.entries = parse_classification(classified.value)
        if not report.entries:
            return StepResult.empty("no meaningful activity", value=report)

        try:
            report.written = self.writer(self.store_for(hook.cwd), report.entries, self.clock())
        except OSError as e:
            return StepResult.failed(FailureKind.FILESYSTEM, f"document not writable: {e}")

        logger.debug("%s: recorded %d entries in %s", self.variant.value, len(report.entries), report.written)
        return StepResult.ok(report)


def context_pipeline(
    config: MemoryConfig | None = None,
    classifier: ClassifierClient | None = None,
    clock: Callable[[], datetime] = datetime.now,
) -> CapturePipeline:
    """Pipeline that keeps the handoff document's auto-captured section current."""
    return CapturePipeline(
        PromptVariant.SESSION_CONTEXT,
        CONTEXT_CURSOR,
        merge_handoff,
        config=config,
        classifier=classifier,
        clock=clock,
    )


def development_pipeline(
    config: MemoryConfig | None = None,
    classifier: ClassifierClient | None = None,
    clock: Callable[[], datetime] = datetime.now,
) -> CapturePipeline:
    """Pipeline that appends completed work to the daily log."""
    return CapturePipeline(
        PromptVariant.DEVELOPMENT,
        DEV_CURSOR,
        append_daily_log,
        config=config,
        classifier=classifier,
        clock=clock,
    )


__all__ = [
    "CapturePipeline",
    "CaptureReport",
    "context_pipeline",
    "development_pipeline",
]
