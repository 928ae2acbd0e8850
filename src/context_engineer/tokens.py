# src/context_engineer/tokens.py
"""
Approximate token estimation.

Token counts here are estimates from a fixed characters-per-token ratio,
not the output of a real tokenizer.  Everything downstream (selection,
metadata) is written to stay correct when the estimate is off in either
direction.
"""

from __future__ import annotations

import math
from typing import Protocol

DEFAULT_CHARS_PER_TOKEN = 4


class TokenCounter(Protocol):
    """Protocol for counting tokens in text."""

    def count(self, text: str) -> int:
        """
        Count tokens in the given text.

        Args:
            text: Input string.

        Returns:
            Number of tokens (never negative).
        """
        ...


class EstimateCounter:
    """
    Token counter using character-based estimation.

    Uses ``ceil(len(text) / chars_per_token)``, so any non-empty text costs
    at least one token and the empty string costs zero.
    """

    def __init__(self, chars_per_token: int = DEFAULT_CHARS_PER_TOKEN) -> None:
        if chars_per_token <= 0:
            raise ValueError("chars_per_token must be positive")
        self._chars_per_token = chars_per_token

    @property
    def chars_per_token(self) -> int:
        return self._chars_per_token

    def count(self, text: str) -> int:
        """Estimate tokens from character count."""
        if not text:
            return 0
        return math.ceil(len(text) / self._chars_per_token)


_DEFAULT_COUNTER = EstimateCounter()


def estimate_tokens(text: str) -> int:
    """Estimate tokens for ``text`` with the default 4 chars/token ratio."""
    return _DEFAULT_COUNTER.count(text)
