# src/context_engineer/sources/base.py
"""
Collector protocol and slice normalization.

A collector turns one kind of domain data into slices.  Collectors are
independent of each other and hold no per-request state, so the assembler
can run them concurrently.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Protocol, Sequence

from ..exceptions import CollectorError
from ..models import ContextRequest, Slice

logger = logging.getLogger(__name__)


class SliceCollector(Protocol):
    """
    Protocol for source collectors.

    ``collect`` returns an empty list for expected empty results and only
    raises for unexpected infrastructure failures.
    """

    name: str

    async def collect(self, request: ContextRequest) -> List[Slice]:
        ...


def require_sequence(collector_name: str, value: Any, what: str) -> Sequence[Any]:
    """Return ``value`` if a backend gave back a list or tuple, else raise ``CollectorError``."""
    if not isinstance(value, (list, tuple)):
        raise CollectorError(collector_name, f"expected a list of {what}, got {type(value).__name__}")
    return value


def normalize_slices(groups: Iterable[Sequence[Slice]]) -> List[Slice]:
    """
    Merge collector outputs into one ordered list.

    Groups are concatenated in the order given, each group keeping its own
    order.  Slices with blank content are dropped, as are repeated ids
    (the first occurrence wins).

    Args:
        groups: Collector outputs, in collector order.

    Returns:
        Flat list of slices in collection order.
    """
    merged: List[Slice] = []
    seen_ids: set[str] = set()

    for group in groups:
        for s in group:
            if not s.content.strip():
                logger.debug("Dropping empty slice %s", s.id)
                continue
            if s.id in seen_ids:
                logger.debug("Dropping duplicate slice id %s", s.id)
                continue
            seen_ids.add(s.id)
            merged.append(s)

    return merged
