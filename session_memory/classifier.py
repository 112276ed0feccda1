"""Semantic classifier client.

Sends a normalized exchange to a small Anthropic model and parses the
line-oriented answer. Any failure (no key, network, non-2xx, odd response)
means "nothing to record"; the caller never sees an exception.
"""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import anthropic
from dotenv import load_dotenv

from .config import MemoryConfig
from .exceptions import ClassifierError
from .prompts import NONE_SENTINEL, PromptVariant, build_prompt
from .result import FailureKind, StepResult

logger = logging.getLogger(__name__)

# Auto-load .env from project root
_project_root = Path(__file__).parent.parent
_env_file = _project_root / ".env"
if _env_file.exists():
    load_dotenv(_env_file)

JSON_KEY_FILES = (
    (".memory-mcp", "config.json"),
    (".nlc", "config.json"),
)
PLAIN_KEY_FILES = (
    (".config", "anthropic", "api_key"),
    (".anthropic", "api_key"),
)

_CATEGORY_RE = re.compile(r"^(?:[-*]\s*)?\[(DECISION|DONE|TESTED|OPEN)\]", re.IGNORECASE)


class EntryCategory(str, Enum):
    """Category tag on a session-context line."""

    DECISION = "decision"
    DONE = "done"
    TESTED = "tested"
    OPEN = "open"


@dataclass
class ClassifiedEntry:
    """One line of classifier output."""

    text: str
    category: EntryCategory | None = None


def _home() -> Path:
    return Path(os.environ.get("USERPROFILE") or os.environ.get("HOME") or Path.home())


def resolve_api_key(config: MemoryConfig | None = None, home: Path | None = None) -> str | None:
    """
    Find an API key. First hit wins, absence is not an error.

    Priority order:
    1. ANTHROPIC_API_KEY, then ANTHROPIC_AUTH_TOKEN
    2. api_key in the session-memory config
    3. apiKey in ~/.memory-mcp/config.json or ~/.nlc/config.json
    4. ~/.config/anthropic/api_key or ~/.anthropic/api_key (plain text)
    """
    for var in ("ANTHROPIC_API_KEY", "ANTHROPIC_AUTH_TOKEN"):
        value = os.environ.get(var)
        if value:
            return value

    if config is not None and config.api_key:
        return config.api_key

    home = home or _home()

    for parts in JSON_KEY_FILES:
        path = home.joinpath(*parts)
        if not path.exists():
            continue
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError, UnicodeDecodeError):
            continue
        if isinstance(data, dict) and data.get("apiKey"):
            return str(data["apiKey"])

    for parts in PLAIN_KEY_FILES:
        path = home.joinpath(*parts)
        if not path.exists():
            continue
        try:
            key = path.read_text(encoding="utf-8").strip()
        except (OSError, UnicodeDecodeError):
            continue
        if key:
            return key

    return None


def is_none_response(response: str | None) -> bool:
    """True for an empty answer or one whose trimmed text begins with NONE."""
    if response is None:
        return True
    trimmed = response.strip()
    return not trimmed or trimmed.startswith(NONE_SENTINEL)


def parse_classification(response: str | None) -> list[ClassifiedEntry]:
    """
    Split a classifier answer into entries.

    Returns:
        One entry per non-blank line, or an empty list for the NONE sentinel
    """
    if is_none_response(response):
        return []

    entries = []
    for line in response.strip().split("\n"):
        line = line.strip()
        if not line or line == NONE_SENTINEL:
            continue
        match = _CATEGORY_RE.match(line)
        category = EntryCategory(match.group(1).lower()) if match else None
        entries.append(ClassifiedEntry(text=line, category=category))
    return entries


@dataclass
class ClassifierClient:
    """
    Small-model classifier over the Anthropic Messages API.

    The SDK client is built lazily and never retries: the hosting hook's
    timeout bounds the call, and a dropped classification is acceptable.
    """

    config: MemoryConfig = field(default_factory=MemoryConfig)
    api_key: str | None = None
    _client: anthropic.Anthropic | None = field(default=None, repr=False)

    def __post_init__(self):
        """Resolve credentials if none were given."""
        if self.api_key is None:
            self.api_key = resolve_api_key(self.config)

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> anthropic.Anthropic:
        """Get or create Anthropic client."""
        if self._client is None:
            if not self.api_key:
                raise ClassifierError("No Anthropic API key available")
            client_kwargs = {"api_key": self.api_key, "max_retries": 0}
            if self.config.base_url:
                client_kwargs["base_url"] = self.config.base_url
            self._client = anthropic.Anthropic(**client_kwargs)
        return self._client

    def max_tokens_for(self, variant: PromptVariant) -> int:
        if PromptVariant(variant) is PromptVariant.DEVELOPMENT:
            return self.config.dev_max_tokens
        return self.config.context_max_tokens

    def try_classify(self, variant: PromptVariant, text: str) -> StepResult[str]:
        """
        Classify an exchange, reporting why nothing came back.

        Returns:
            OK with the raw answer, or FAILED with CREDENTIAL_ABSENT /
            CLASSIFIER_UNREACHABLE
        """
        if not self.enabled:
            return StepResult.failed(FailureKind.CREDENTIAL_ABSENT, "no API key")

        prompt = build_prompt(variant, text, self.config.input_char_budget)

        try:
            response = self._get_client().messages.create(
                model=self.config.classifier_model,
                max_tokens=self.max_tokens_for(variant),
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIStatusError as e:
            logger.debug("Classifier returned status %s", e.status_code)
            return StepResult.failed(FailureKind.CLASSIFIER_UNREACHABLE, f"status {e.status_code}")
        except anthropic.APIError as e:
            logger.debug("Classifier call failed: %s", e)
            return StepResult.failed(FailureKind.CLASSIFIER_UNREACHABLE, str(e))

        for block in getattr(response, "content", None) or []:
            if getattr(block, "type", None) == "text":
                text_out = getattr(block, "text", "")
                if text_out:
                    return StepResult.ok(text_out)
                break

        return StepResult.failed(FailureKind.CLASSIFIER_UNREACHABLE, "no text block in response")

    def classify(self, variant: PromptVariant, text: str) -> str | None:
        """Classify an exchange; None means nothing to record."""
        result = self.try_classify(variant, text)
        return result.value if result.is_ok else None


__all__ = [
    "ClassifiedEntry",
    "ClassifierClient",
    "EntryCategory",
    "is_none_response",
    "parse_classification",
    "resolve_api_key",
]
