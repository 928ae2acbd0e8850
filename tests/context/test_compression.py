# tests/context/test_compression.py
"""
Tests for the built-in summarizers.

Covers:
- TruncatingSummarizer: already-fits, marker, no room
- ExtractiveSummarizer: budget, headers, sentence order, failure
- FallbackSummarizer: primary success and failure
- _split_into_sentences / _extract_key_sentences helpers
"""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from context_engineer.compression import (
    TRUNCATION_MARKER,
    ExtractiveSummarizer,
    FallbackSummarizer,
    TruncatingSummarizer,
    _extract_key_sentences,
    _split_into_sentences,
)
from context_engineer.exceptions import CompressionError

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def prose():
    return (
        "# Brand Guide\n"
        "The brand uses teal and coral as primary colors. "
        "Secondary colors are reserved for charts and data displays only. "
        "Logos must keep clear space equal to the height of the wordmark. "
        "Photography should feature natural light and real customers. "
        "Avoid stock imagery with staged poses or exaggerated expressions."
    )


# =============================================================================
# TruncatingSummarizer
# =============================================================================


class TestTruncatingSummarizer:
    @pytest.mark.asyncio
    async def test_fitting_text_unchanged(self):
        text = "Short text."
        assert await TruncatingSummarizer().compress(text, 100) == text

    @pytest.mark.asyncio
    async def test_truncates_with_marker(self, estimate_counter):
        text = "word " * 200  # 1000 chars
        result = await TruncatingSummarizer().compress(text, 50)

        assert result.endswith(TRUNCATION_MARKER)
        assert len(result) <= 200
        assert estimate_counter.count(result) <= 50
        assert text.startswith(result[: -len(TRUNCATION_MARKER)])

    @pytest.mark.asyncio
    async def test_custom_marker(self):
        result = await TruncatingSummarizer(marker=" [...]").compress("x" * 100, 5)
        assert result == "x" * 14 + " [...]"

    @pytest.mark.asyncio
    async def test_no_room_raises(self):
        with pytest.raises(CompressionError):
            await TruncatingSummarizer().compress("x" * 100, 2)


# =============================================================================
# ExtractiveSummarizer
# =============================================================================


class TestExtractiveSummarizer:
    @pytest.mark.asyncio
    async def test_fitting_text_unchanged(self, prose):
        assert await ExtractiveSummarizer().compress(prose, 1000) == prose

    @pytest.mark.asyncio
    async def test_respects_target(self, prose, estimate_counter):
        result = await ExtractiveSummarizer(estimate_counter).compress(prose, 40)
        assert result
        assert estimate_counter.count(result) <= 40

    @pytest.mark.asyncio
    async def test_keeps_original_sentence_order(self, prose):
        result = await ExtractiveSummarizer().compress(prose, 60)
        sentences = [s for s in _split_into_sentences(prose.split("\n", 1)[1])]
        positions = [prose.index(line) for line in result.split("\n") if line in sentences]
        assert positions == sorted(positions)

    @pytest.mark.asyncio
    async def test_nothing_fits_raises(self):
        text = "A single very long sentence " + "that keeps going " * 30 + "until the end."
        with pytest.raises(CompressionError):
            await ExtractiveSummarizer().compress(text, 5)


# =============================================================================
# FallbackSummarizer
# =============================================================================


class TestFallbackSummarizer:
    @pytest.mark.asyncio
    async def test_primary_used_when_it_succeeds(self):
        primary = MagicMock()
        primary.compress = AsyncMock(return_value="llm summary")
        fallback = MagicMock()
        fallback.compress = AsyncMock(return_value="fallback summary")

        result = await FallbackSummarizer(primary, fallback).compress("text", 10)

        assert result == "llm summary"
        fallback.compress.assert_not_called()

    @pytest.mark.asyncio
    async def test_fallback_on_primary_failure(self):
        primary = MagicMock()
        primary.compress = AsyncMock(side_effect=TimeoutError("provider timeout"))

        result = await FallbackSummarizer(primary, TruncatingSummarizer()).compress("x" * 400, 10)

        assert result.endswith(TRUNCATION_MARKER)
        primary.compress.assert_awaited_once_with("x" * 400, 10)

    @pytest.mark.asyncio
    async def test_fallback_failure_propagates(self):
        primary = MagicMock()
        primary.compress = AsyncMock(side_effect=RuntimeError("down"))

        with pytest.raises(CompressionError):
            await FallbackSummarizer(primary, TruncatingSummarizer()).compress("x" * 400, 1)


# =============================================================================
# Helpers
# =============================================================================


class TestSplitIntoSentences:
    def test_basic_splitting(self):
        assert _split_into_sentences("One. Two! Three?") == ["One.", "Two!", "Three?"]

    def test_code_block_preserved(self):
        text = "Intro.\n```python\nx = 1\ny = 2\n```\nOutro."
        sentences = _split_into_sentences(text)
        assert "```python\nx = 1\ny = 2\n```" in sentences
        assert sentences[0] == "Intro."
        assert sentences[-1] == "Outro."

    def test_unclosed_code_block(self):
        sentences = _split_into_sentences("Intro.\n```\ncode")
        assert sentences[-1] == "```\ncode"

    def test_empty_text(self):
        assert _split_into_sentences("") == []


class TestExtractKeySentences:
    def test_respects_budget(self, prose, estimate_counter):
        result = _extract_key_sentences(prose, 30, estimate_counter)
        assert estimate_counter.count(result) <= 30

    def test_preserves_headers(self, prose, estimate_counter):
        result = _extract_key_sentences(prose, 60, estimate_counter)
        assert result.startswith("# Brand Guide")

    def test_header_dropped_when_over_budget(self, estimate_counter):
        text = "# " + "Very long header " * 20 + "\nShort body."
        result = _extract_key_sentences(text, 5, estimate_counter)
        assert "#" not in result
        assert result == "Short body."
