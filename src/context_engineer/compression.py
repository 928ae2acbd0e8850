# src/context_engineer/compression.py
"""
Built-in summarizers for the selector's compression fallback.

The selector only needs something with ``async compress(text,
target_tokens) -> str``.  Applications normally plug in an LLM-backed
summarizer; this module provides local strategies that cost nothing and
can also serve as the fallback behind an LLM summarizer:

1. **Truncation** (``TruncatingSummarizer``):
   Keeps the head of the text and appends a ``[Truncated]`` marker.

2. **Extractive** (``ExtractiveSummarizer``):
   Keeps the highest-scoring sentences (position, length, code blocks)
   in their original order.

3. **Fallback chain** (``FallbackSummarizer``):
   Tries a primary summarizer and falls back to another one on failure.

Example::

    summarizer = FallbackSummarizer(
        primary=my_llm_summarizer,
        fallback=TruncatingSummarizer(),
    )
    short = await summarizer.compress(long_text, target_tokens=300)
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from .exceptions import CompressionError
from .interfaces import Summarizer
from .tokens import DEFAULT_CHARS_PER_TOKEN, EstimateCounter, TokenCounter

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "... [Truncated]"


# =============================================================================
# Summarizers
# =============================================================================


class TruncatingSummarizer:
    """
    Tail-truncation summarizer.

    Text that already fits is returned unchanged.  Otherwise the head is
    kept so that the result, marker included, is at most
    ``target_tokens * chars_per_token`` characters.
    """

    def __init__(self, chars_per_token: int = DEFAULT_CHARS_PER_TOKEN, marker: str = TRUNCATION_MARKER) -> None:
        self.chars_per_token = chars_per_token
        self.marker = marker

    async def compress(self, text: str, target_tokens: int) -> str:
        max_chars = target_tokens * self.chars_per_token
        if len(text) <= max_chars:
            return text

        keep = max_chars - len(self.marker)
        if keep <= 0:
            raise CompressionError(f"Target of {target_tokens} tokens leaves no room for content")
        return text[:keep].rstrip() + self.marker


class ExtractiveSummarizer:
    """
    Heuristic sentence-extraction summarizer.

    Markdown header lines are kept, then sentences are picked by score
    until the token target is reached and re-emitted in original order.

    Raises:
        CompressionError: If no sentence fits the target.
    """

    def __init__(self, token_counter: Optional[TokenCounter] = None) -> None:
        self.token_counter = token_counter or EstimateCounter()

    async def compress(self, text: str, target_tokens: int) -> str:
        if self.token_counter.count(text) <= target_tokens:
            return text

        result = _extract_key_sentences(text, target_tokens, self.token_counter)
        if not result.strip():
            raise CompressionError(f"No sentence fits within {target_tokens} tokens")
        return result


class FallbackSummarizer:
    """
    Tries ``primary`` first and ``fallback`` if it raises.

    Mirrors the usual setup of an LLM summarizer backed by a local
    strategy, so a provider outage degrades quality instead of dropping
    slices.
    """

    def __init__(self, primary: Summarizer, fallback: Summarizer) -> None:
        self.primary = primary
        self.fallback = fallback

    async def compress(self, text: str, target_tokens: int) -> str:
        try:
            return await self.primary.compress(text, target_tokens)
        except Exception as exc:
            logger.warning("Primary summarizer failed: %s; using fallback", exc)
            return await self.fallback.compress(text, target_tokens)


# =============================================================================
# Utilities
# =============================================================================


_CODE_PREFIXES = ("def ", "class ", "async ")


def _sentence_score(position: int, count: int, sentence: str) -> float:
    """Earlier, medium-length and code-bearing sentences score higher."""
    score = max(0.0, 1.0 - position / max(1, count))

    words = len(sentence.split())
    if 20 <= words <= 80:
        score += 0.3
    elif words > 5:
        score += 0.1

    if "```" in sentence or sentence.strip().startswith(_CODE_PREFIXES):
        score += 0.5
    return score


def _extract_key_sentences(
    text: str,
    budget_tokens: int,
    counter: TokenCounter,
) -> str:
    """
    Keep markdown headers plus the best-scoring sentences of ``text``.

    Sentences are taken greedily by score (see ``_sentence_score``) while
    they fit ``budget_tokens`` and are emitted in their original order.
    Headers are dropped when they alone exceed the budget.
    """
    headers: list[str] = []
    body_lines: list[str] = []
    for line in text.split("\n"):
        (headers if line.startswith("#") else body_lines).append(line)

    prefix = "\n".join(headers) + "\n\n" if headers else ""
    spent = counter.count(prefix)
    if spent > budget_tokens:
        prefix, spent = "", 0

    sentences = _split_into_sentences("\n".join(body_lines))
    if not sentences:
        return prefix.rstrip()

    # Highest score first; earlier sentence wins ties
    ranked = sorted(
        range(len(sentences)),
        key=lambda i: (-_sentence_score(i, len(sentences), sentences[i]), i),
    )

    kept: set[int] = set()
    for i in ranked:
        # Each kept sentence is followed by a newline in the output
        cost = counter.count(sentences[i] + "\n")
        if spent + cost <= budget_tokens:
            kept.add(i)
            spent += cost

    return (prefix + "\n".join(sentences[i] for i in sorted(kept))).rstrip()


def _split_into_sentences(text: str) -> list[str]:
    """Split text into sentences, keeping fenced code blocks whole."""
    sentences: list[str] = []
    in_code_block = False
    current_block: list[str] = []

    for line in text.split("\n"):
        stripped = line.strip()

        if stripped.startswith("```"):
            current_block.append(line)
            if in_code_block:
                sentences.append("\n".join(current_block))
                current_block = []
            in_code_block = not in_code_block
            continue

        if in_code_block:
            current_block.append(line)
            continue

        if stripped:
            sentences.extend(re.split(r"(?<=[.!?])\s+", stripped))

    if current_block:
        sentences.append("\n".join(current_block))

    return [s for s in sentences if s.strip()]
