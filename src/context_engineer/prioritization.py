# src/context_engineer/prioritization.py
"""
Priority selection of slices under a token budget.

The selector walks slices from highest to lowest weight and keeps every
slice that still fits.  A slice that does not fit verbatim gets a second
chance through the summarizer, but only when it is valuable enough
(``weight > compression_weight_threshold``) and enough budget remains
(``remaining >= min_compression_budget``).  Everything else is skipped.

This is greedy, not an optimal knapsack: a large high-weight slice can
crowd out several smaller ones that together would have been worth more.

Example::

    selector = PrioritySelector(
        token_counter=EstimateCounter(),
        summarizer=my_summarizer,
    )
    selected = await selector.select(slices, token_budget=8000)

Guarantees:
    - Estimated tokens of the selected slices never exceed the budget.
    - Selected slices appear in non-increasing weight order; equal weights
      keep their collection order.
    - Slices with ``weight <= compression_weight_threshold`` are never sent
      to the summarizer.
    - Summarizer calls happen one at a time, because each decision depends
      on the budget left by the previous ones.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .interfaces import Summarizer
from .models import Slice
from .tokens import EstimateCounter, TokenCounter

logger = logging.getLogger(__name__)

DEFAULT_COMPRESSION_WEIGHT_THRESHOLD = 0.4
DEFAULT_MIN_COMPRESSION_BUDGET = 100


@dataclass
class SelectionResult:
    """
    Outcome of a selection run.

    Attributes:
        slices: Accepted slices in acceptance order.
        total_tokens: Estimated tokens of the accepted slices.
        token_budget: Budget the run was given.
        skipped_ids: Ids of slices left out.
        compressed_ids: Ids of slices accepted in compressed form.
        compression_attempts: Number of summarizer calls made.
    """

    slices: List[Slice]
    total_tokens: int
    token_budget: int
    skipped_ids: List[str] = field(default_factory=list)
    compressed_ids: List[str] = field(default_factory=list)
    compression_attempts: int = 0

    @property
    def remaining_tokens(self) -> int:
        return max(0, self.token_budget - self.total_tokens)


class PrioritySelector:
    """
    Greedy weight-ordered selector with a compress-to-fit fallback.

    Args:
        token_counter: Counter used to cost slices.  Defaults to the
            4 chars/token estimator.
        summarizer: Optional summarizer for the fallback.  Without one,
            slices that do not fit are simply skipped.
        compression_weight_threshold: Only slices with a weight strictly
            above this value are considered for compression.
        min_compression_budget: Minimum remaining tokens required before
            a compression attempt is made.
    """

    def __init__(
        self,
        token_counter: Optional[TokenCounter] = None,
        summarizer: Optional[Summarizer] = None,
        compression_weight_threshold: float = DEFAULT_COMPRESSION_WEIGHT_THRESHOLD,
        min_compression_budget: int = DEFAULT_MIN_COMPRESSION_BUDGET,
    ) -> None:
        self.token_counter: TokenCounter = token_counter if token_counter is not None else EstimateCounter()
        self.summarizer = summarizer
        self.compression_weight_threshold = compression_weight_threshold
        self.min_compression_budget = min_compression_budget

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def select(self, slices: Sequence[Slice], token_budget: int) -> List[Slice]:
        """Select slices within ``token_budget``; see ``select_with_report``."""
        result = await self.select_with_report(slices, token_budget)
        return result.slices

    async def select_with_report(self, slices: Sequence[Slice], token_budget: int) -> SelectionResult:
        """
        Select slices within ``token_budget`` and report what happened.

        Args:
            slices: Candidate slices in collection order.
            token_budget: Maximum total estimated tokens.

        Returns:
            ``SelectionResult`` with the accepted slices in acceptance order.
        """
        if token_budget <= 0:
            return SelectionResult(
                slices=[],
                total_tokens=0,
                token_budget=token_budget,
                skipped_ids=[s.id for s in slices],
            )

        # sorted() is stable, so equal weights keep collection order
        ordered = sorted(slices, key=lambda s: s.weight, reverse=True)

        result = SelectionResult(slices=[], total_tokens=0, token_budget=token_budget)

        for candidate in ordered:
            cost = self.token_counter.count(candidate.content)

            if result.total_tokens + cost <= token_budget:
                result.slices.append(candidate)
                result.total_tokens += cost
                continue

            remaining = token_budget - result.total_tokens
            if not self._should_compress(candidate, remaining):
                logger.debug(
                    "Skipping slice %s (weight=%.2f, cost=%d, remaining=%d)",
                    candidate.id,
                    candidate.weight,
                    cost,
                    remaining,
                )
                result.skipped_ids.append(candidate.id)
                continue

            result.compression_attempts += 1
            compressed = await self._compress(self.summarizer, candidate, remaining)
            if compressed is None:
                result.skipped_ids.append(candidate.id)
                continue

            compressed_cost = self.token_counter.count(compressed.content)
            result.slices.append(compressed)
            result.total_tokens += compressed_cost
            result.compressed_ids.append(candidate.id)
            logger.debug(
                "Compressed slice %s from %d to %d tokens",
                candidate.id,
                cost,
                compressed_cost,
            )

        return result

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _should_compress(self, candidate: Slice, remaining: int) -> bool:
        return (
            self.summarizer is not None
            and candidate.weight > self.compression_weight_threshold
            and remaining >= self.min_compression_budget
        )

    async def _compress(
        self,
        summarizer: Optional[Summarizer],
        candidate: Slice,
        remaining: int,
    ) -> Optional[Slice]:
        """
        Ask ``summarizer`` to shrink ``candidate`` to ``remaining`` tokens.

        Returns:
            The compressed slice, or ``None`` if the summarizer failed or
            its output still does not fit.
        """
        if summarizer is None:
            return None
        try:
            text = await summarizer.compress(candidate.content, remaining)
        except Exception as exc:
            logger.warning("Compression failed for slice %s: %s", candidate.id, exc)
            return None

        if not text or not text.strip():
            logger.warning("Compression of slice %s returned empty text", candidate.id)
            return None

        cost = self.token_counter.count(text)
        if cost > remaining:
            logger.warning(
                "Compressed slice %s still too large (%d > %d tokens)",
                candidate.id,
                cost,
                remaining,
            )
            return None

        return candidate.with_content(text, compressed=True)
