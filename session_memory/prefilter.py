"""Pre-filter gate in front of the classifier.

Most responses are plain conversation with no tool use. Those are not worth
a classifier call unless they carry a fair amount of text.
"""

from __future__ import annotations

from .transcript_parser import NormalizedExchange

DEFAULT_MIN_CHARS = 100


def should_classify(exchange: NormalizedExchange, min_chars: int = DEFAULT_MIN_CHARS) -> bool:
    """True when the exchange is worth sending to the classifier."""
    if exchange.has_state_change:
        return True
    return len(exchange.text) >= min_chars


__all__ = ["DEFAULT_MIN_CHARS", "should_classify"]
