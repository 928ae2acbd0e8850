# src/context_engineer/interfaces.py
"""
Collaborator contracts consumed by the context assembly core.

Everything the core needs from the outside world (permission checks,
semantic search, stored segments, agent history, project records,
summarization and telemetry) is described here as a ``Protocol`` plus the
small record types those collaborators return.  Concrete implementations
live with the application; this module only ships trivial permission
checkers for local use and tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Iterable, List, Optional, Protocol, Tuple

if TYPE_CHECKING:
    from .observability.events import ContextEvent


# =============================================================================
# Records
# =============================================================================


@dataclass(frozen=True)
class ProjectMetadata:
    """Descriptive fields of a project."""

    id: str
    name: str
    sector: str
    project_type: str
    description: Optional[str] = None


@dataclass(frozen=True)
class SearchHit:
    """One semantic search result; ``similarity`` is in ``[0, 1]``."""

    id: str
    content: str
    document_id: str
    similarity: float
    document_title: Optional[str] = None
    chunk_index: Optional[int] = None


@dataclass(frozen=True)
class Segment:
    """An already-compressed content segment of a project document."""

    id: str
    content: str
    document_id: Optional[str] = None


@dataclass(frozen=True)
class HistoryEntry:
    """A prior agent action recorded for a project."""

    id: str
    agent_name: str
    task_type: str
    input: Any = None
    output: Any = None
    created_at: Optional[datetime] = None


# =============================================================================
# Protocols
# =============================================================================


class PermissionChecker(Protocol):
    async def has_agent_access(self, actor_id: str, project_id: str, agent_name: str) -> bool: ...


class ProjectStore(Protocol):
    async def get_project(self, project_id: str) -> Optional[ProjectMetadata]: ...


class SearchProvider(Protocol):
    async def search(
        self,
        project_id: str,
        query: str,
        limit: int,
        threshold: float,
    ) -> List[SearchHit]: ...


class SegmentStore(Protocol):
    async def get_precomputed_segments(self, project_id: str) -> List[Segment]: ...


class HistoryStore(Protocol):
    async def get_recent_history(self, project_id: str, limit: int) -> List[HistoryEntry]: ...


class Summarizer(Protocol):
    """
    Compresses text to roughly ``target_tokens`` tokens.

    Implementations may raise; the selector treats any exception as
    "skip this slice".
    """

    async def compress(self, text: str, target_tokens: int) -> str: ...


class TelemetrySink(Protocol):
    """Fire-and-forget event sink.  Must not block the caller."""

    def emit(self, event: "ContextEvent") -> None: ...


# =============================================================================
# Simple permission checkers
# =============================================================================


class AllowAllPermissionChecker:
    """Grants every actor access to every agent."""

    async def has_agent_access(self, actor_id: str, project_id: str, agent_name: str) -> bool:
        return True


class StaticPermissionChecker:
    """
    Grants access from a fixed set of ``(actor_id, project_id, agent_name)``
    triples.  ``"*"`` in any position matches anything.
    """

    def __init__(self, grants: Iterable[Tuple[str, str, str]]) -> None:
        self._grants = set(grants)

    async def has_agent_access(self, actor_id: str, project_id: str, agent_name: str) -> bool:
        for g_actor, g_project, g_agent in self._grants:
            if (
                g_actor in ("*", actor_id)
                and g_project in ("*", project_id)
                and g_agent in ("*", agent_name)
            ):
                return True
        return False
