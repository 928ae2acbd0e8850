# src/context_engineer/registry.py
"""
Collaborator registry.

One ``CollaboratorRegistry`` is built at process start and handed to the
assembler.  It is a plain value holding the external collaborators; there
is no module-level registry and nothing is looked up by name at runtime.

Example::

    registry = CollaboratorRegistry(
        project_store=projects,
        permission_checker=permissions,
        search_provider=vector_search,
        segment_store=segments,
        history_store=history,
        summarizer=FallbackSummarizer(llm_summarizer, TruncatingSummarizer()),
        telemetry_sink=LoggingTelemetrySink(),
    )
    assembler = ContextAssembler(registry, config)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from .interfaces import (
    HistoryStore,
    PermissionChecker,
    ProjectStore,
    SearchProvider,
    SegmentStore,
    Summarizer,
    TelemetrySink,
)


@dataclass(frozen=True)
class CollaboratorRegistry:
    """
    External collaborators used by the context assembler.

    Attributes:
        project_store: Source of project metadata (required).
        permission_checker: Consulted whenever a request names an agent
            (required; there is no implicit allow-all).
        search_provider: Semantic search; without it no search slices.
        segment_store: Precomputed segments; without it no segment slices.
        history_store: Agent history; without it no history slices.
        summarizer: Compression fallback; without it oversized slices
            are skipped.
        telemetry_sink: Receives one event per built package.
    """

    project_store: ProjectStore
    permission_checker: PermissionChecker
    search_provider: Optional[SearchProvider] = None
    segment_store: Optional[SegmentStore] = None
    history_store: Optional[HistoryStore] = None
    summarizer: Optional[Summarizer] = None
    telemetry_sink: Optional[TelemetrySink] = None

    def describe(self) -> Dict[str, Optional[str]]:
        """Class names of the configured collaborators, for logging."""
        return {
            "project_store": type(self.project_store).__name__,
            "permission_checker": type(self.permission_checker).__name__,
            "search_provider": _name(self.search_provider),
            "segment_store": _name(self.segment_store),
            "history_store": _name(self.history_store),
            "summarizer": _name(self.summarizer),
            "telemetry_sink": _name(self.telemetry_sink),
        }


def _name(obj: object) -> Optional[str]:
    return None if obj is None else type(obj).__name__
