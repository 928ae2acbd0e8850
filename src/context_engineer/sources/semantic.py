# src/context_engineer/sources/semantic.py
"""
Semantic search source.

Delegates to a ``SearchProvider`` using the request's goal as the query.
Each hit becomes one ``search_result`` slice whose weight is the hit's
similarity score, so better matches are kept first.

Requests without a goal produce no slices and never touch the provider.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from ..interfaces import SearchHit, SearchProvider
from ..models import ContextRequest, Slice, SliceSourceType
from .base import require_sequence

logger = logging.getLogger(__name__)


class SemanticSearchCollector:
    """
    Context source backed by a semantic search provider.

    Example::

        collector = SemanticSearchCollector(provider, limit=10, threshold=0.7)
        slices = await collector.collect(request)
    """

    name = "semantic_search"

    def __init__(
        self,
        search_provider: SearchProvider,
        limit: int = 10,
        threshold: float = 0.7,
    ) -> None:
        """
        Args:
            search_provider: Object implementing ``SearchProvider``.
            limit: Maximum hits requested (top-K).
            threshold: Minimum similarity requested from the provider.
        """
        self.search_provider = search_provider
        self.limit = limit
        self.threshold = threshold

    async def collect(self, request: ContextRequest) -> List[Slice]:
        query = request.query
        if not query:
            return []

        hits = await self.search_provider.search(
            request.project_id,
            query,
            self.limit,
            self.threshold,
        )
        slices = [self._to_slice(hit) for hit in require_sequence(self.name, hits, "search hits")]
        logger.debug("Semantic search returned %d hits for project %s", len(slices), request.project_id)
        return slices

    @staticmethod
    def _to_slice(hit: SearchHit) -> Slice:
        meta: Dict[str, Any] = {
            "chunk_id": hit.id,
            "document_id": hit.document_id,
            "similarity": hit.similarity,
        }
        if hit.document_title is not None:
            meta["document_title"] = hit.document_title
        if hit.chunk_index is not None:
            meta["chunk_index"] = hit.chunk_index

        return Slice(
            id=f"doc_{hit.id}",
            source_type=SliceSourceType.SEARCH_RESULT,
            content=hit.content,
            weight=max(0.0, min(float(hit.similarity), 1.0)),
            source_meta=meta,
        )
