# src/context_engineer/sources/segments.py
"""
Precomputed segment source.

Fetches already-compressed summaries of a project's documents.  They give
broad coverage of the project at a fixed weight (0.8 by default).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from ..interfaces import Segment, SegmentStore
from ..models import ContextRequest, Slice, SliceSourceType
from .base import require_sequence

logger = logging.getLogger(__name__)

SEGMENT_PREFIX = "[Compressed Summary]"


class PrecomputedSegmentCollector:
    """Context source for precomputed (compressed) document segments."""

    name = "precomputed_segments"

    def __init__(self, segment_store: SegmentStore, weight: float = 0.8) -> None:
        self.segment_store = segment_store
        self.weight = weight

    async def collect(self, request: ContextRequest) -> List[Slice]:
        segments = await self.segment_store.get_precomputed_segments(request.project_id)
        segments = require_sequence(self.name, segments, "segments")
        return [self._to_slice(seg) for seg in segments if seg.content and seg.content.strip()]

    def _to_slice(self, segment: Segment) -> Slice:
        meta: Dict[str, Any] = {"segment_id": segment.id}
        if segment.document_id is not None:
            meta["document_id"] = segment.document_id

        return Slice(
            id=f"seg_{segment.id}",
            source_type=SliceSourceType.PRECOMPUTED_SEGMENT,
            content=f"{SEGMENT_PREFIX}\n{segment.content.strip()}",
            weight=self.weight,
            source_meta=meta,
        )
