# src/context_engineer/sources/history.py
"""
Agent history source.

Turns the most recent agent actions recorded for a project into
``history_entry`` slices, giving agents continuity with earlier work.

History is nice-to-have: a failing history store is logged and yields no
slices rather than failing the build.  A store that answers with something
other than a list raises ``CollectorError``.
"""

from __future__ import annotations

import json
import logging
from typing import Any, List

from ..interfaces import HistoryEntry, HistoryStore
from ..models import ContextRequest, Slice, SliceSourceType
from .base import require_sequence

logger = logging.getLogger(__name__)


class HistoryCollector:
    """
    Context source for recent agent actions.

    Example::

        collector = HistoryCollector(history_store, limit=5)
        slices = await collector.collect(request)
    """

    name = "history"

    def __init__(self, history_store: HistoryStore, limit: int = 5, weight: float = 0.6) -> None:
        """
        Args:
            history_store: Object implementing ``HistoryStore``.
            limit: Number of most recent actions to fetch.
            weight: Weight given to every history slice.
        """
        self.history_store = history_store
        self.limit = limit
        self.weight = weight

    async def collect(self, request: ContextRequest) -> List[Slice]:
        try:
            entries = await self.history_store.get_recent_history(request.project_id, self.limit)
        except Exception as exc:
            logger.warning("History fetch failed for project %s: %s", request.project_id, exc)
            return []

        entries = require_sequence(self.name, entries, "history entries")
        return [self._to_slice(entry) for entry in entries]

    def _to_slice(self, entry: HistoryEntry) -> Slice:
        meta: dict[str, Any] = {"history_id": entry.id, "agent_name": entry.agent_name}
        if entry.created_at is not None:
            meta["created_at"] = entry.created_at.isoformat()

        return Slice(
            id=f"history_{entry.id}",
            source_type=SliceSourceType.HISTORY_ENTRY,
            content=describe_entry(entry),
            weight=self.weight,
            source_meta=meta,
        )


def describe_entry(entry: HistoryEntry) -> str:
    """
    Render a history entry as a short structured description.

    Example output::

        Agent: design_agent
        Task: design_spec
        Input: {"goal": "landing page"}
        Output: {"status": "done"}
    """
    lines = [f"Agent: {entry.agent_name}", f"Task: {entry.task_type}"]
    if entry.created_at is not None:
        lines.append(f"When: {entry.created_at.isoformat()}")
    lines.append(f"Input: {_format_payload(entry.input)}")
    lines.append(f"Output: {_format_payload(entry.output)}")
    return "\n".join(lines)


def _format_payload(payload: Any) -> str:
    if payload is None:
        return "(none)"
    if isinstance(payload, str):
        return payload
    try:
        return json.dumps(payload, sort_keys=True, default=str)
    except (TypeError, ValueError):
        return str(payload)
