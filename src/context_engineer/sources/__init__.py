# src/context_engineer/sources/__init__.py
"""
Built-in slice collectors.

Sources:
    - ``ProjectSummaryCollector``: project name/sector/type/description.
    - ``SemanticSearchCollector``: search hits for the request goal.
    - ``PrecomputedSegmentCollector``: already-compressed document segments.
    - ``HistoryCollector``: recent agent actions on the project.
"""

from .base import SliceCollector, normalize_slices, require_sequence
from .history import HistoryCollector, describe_entry
from .project import ProjectSummaryCollector
from .segments import PrecomputedSegmentCollector
from .semantic import SemanticSearchCollector

__all__ = [
    "HistoryCollector",
    "PrecomputedSegmentCollector",
    "ProjectSummaryCollector",
    "SemanticSearchCollector",
    "SliceCollector",
    "describe_entry",
    "normalize_slices",
    "require_sequence",
]
