"""Step results for the capture pipeline.

Every fallible step reports success, an empty outcome, or a typed failure
instead of raising. The hook runner is the only place that turns a failure
into a silent exit, so tests can still inspect why a run did nothing.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class Outcome(str, Enum):
    """How a step ended."""

    OK = "ok"
    EMPTY = "empty"
    FAILED = "failed"


class FailureKind(str, Enum):
    """Why a step failed."""

    INPUT_MALFORMED = "input_malformed"
    CREDENTIAL_ABSENT = "credential_absent"
    CLASSIFIER_UNREACHABLE = "classifier_unreachable"
    FILESYSTEM = "filesystem"
    VERSION_CONTROL = "version_control"


@dataclass
class StepResult(Generic[T]):
    """Result of one pipeline step."""

    outcome: Outcome
    value: T | None = None
    failure: FailureKind | None = None
    detail: str = ""

    @classmethod
    def ok(cls, value: T | None = None, detail: str = "") -> "StepResult[T]":
        return cls(Outcome.OK, value=value, detail=detail)

    @classmethod
    def empty(cls, detail: str = "", value: T | None = None) -> "StepResult[T]":
        return cls(Outcome.EMPTY, value=value, detail=detail)

    @classmethod
    def failed(cls, kind: FailureKind, detail: str = "") -> "StepResult[T]":
        return cls(Outcome.FAILED, failure=kind, detail=detail)

    @property
    def is_ok(self) -> bool:
        return self.outcome is Outcome.OK

    @property
    def is_empty(self) -> bool:
        return self.outcome is Outcome.EMPTY

    @property
    def is_failed(self) -> bool:
        return self.outcome is Outcome.FAILED


__all__ = ["FailureKind", "Outcome", "StepResult"]
