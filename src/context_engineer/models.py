# src/context_engineer/models.py
"""
Core data models for the context_engineer library.

Defines the slice (one unit of candidate context), the request envelope
accepted by the assembler and the package envelope it returns.  Slices are
immutable: compressing one produces a new slice, the original is untouched.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

DEFAULT_TASK_TYPE = "general"


class SliceSourceType(str, Enum):
    """Closed set of sources a slice can come from."""

    PROJECT_SUMMARY = "project_summary"
    SEARCH_RESULT = "search_result"
    PRECOMPUTED_SEGMENT = "precomputed_segment"
    HISTORY_ENTRY = "history_entry"


class ContextStrategy(str, Enum):
    """
    Which document sources feed a context build.

    ``raw_only`` uses semantic search hits only, ``compressed_only`` uses
    precomputed segments only, ``hybrid`` uses both.
    """

    RAW_ONLY = "raw_only"
    COMPRESSED_ONLY = "compressed_only"
    HYBRID = "hybrid"

    @property
    def uses_search(self) -> bool:
        return self in (ContextStrategy.RAW_ONLY, ContextStrategy.HYBRID)

    @property
    def uses_segments(self) -> bool:
        return self in (ContextStrategy.COMPRESSED_ONLY, ContextStrategy.HYBRID)


@dataclass(frozen=True)
class Slice:
    """
    A unit of candidate context.

    Attributes:
        id: Opaque unique identifier.
        source_type: Which collector produced the slice.
        content: Text inserted into the prompt.
        weight: Relative importance in ``[0, 1]``; higher is kept first.
        source_meta: Provenance fields for display and tracing only.
        compressed: True when ``content`` was produced by a summarizer.
    """

    id: str
    source_type: SliceSourceType
    content: str
    weight: float
    source_meta: Mapping[str, Any] = field(default_factory=dict, hash=False, compare=False)
    compressed: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.weight, (int, float)) or not math.isfinite(self.weight):
            raise ValueError(f"Slice '{self.id}' weight must be a finite number, got {self.weight!r}")
        if not 0.0 <= self.weight <= 1.0:
            raise ValueError(f"Slice '{self.id}' weight must be within [0, 1], got {self.weight}")
        object.__setattr__(self, "source_type", SliceSourceType(self.source_type))
        object.__setattr__(self, "source_meta", MappingProxyType(dict(self.source_meta)))

    def with_content(self, content: str, compressed: bool = True) -> "Slice":
        """Return a copy of this slice carrying ``content``."""
        return replace(self, content=content, compressed=compressed, source_meta=dict(self.source_meta))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source_type": self.source_type.value,
            "content": self.content,
            "weight": self.weight,
            "source_meta": dict(self.source_meta),
            "compressed": self.compressed,
        }


class ContextRequest(BaseModel):
    """
    Input envelope for a context build.

    Attributes:
        actor_id: Who is asking (used by the permission check).
        project_id: Project whose context is assembled.
        task_type: Kind of task the agent performs (e.g. ``design_spec``).
        goal: Optional free-text goal; doubles as the semantic search query.
        agent_name: Optional agent name; when set, access is checked first.
        token_budget: Optional budget; the configured default applies if unset.
        strategy: Which document sources to use.
        include_history: Whether prior agent actions are collected.
    """

    actor_id: str = Field(description="Identifier of the requesting actor.")
    project_id: str = Field(description="Identifier of the project.")
    task_type: str = Field(default=DEFAULT_TASK_TYPE, description="Task type the context is built for.")
    goal: Optional[str] = Field(default=None, description="Free-text goal or search query.")
    agent_name: Optional[str] = Field(default=None, description="Agent that will consume the context.")
    token_budget: Optional[int] = Field(default=None, description="Maximum estimated tokens of selected slices.")
    strategy: ContextStrategy = Field(default=ContextStrategy.HYBRID)
    include_history: bool = Field(default=True)

    model_config = {"frozen": True}

    @field_validator("task_type")
    @classmethod
    def ensure_task_type(cls, v: str) -> str:
        """Blank task types fall back to ``general``."""
        v = (v or "").strip()
        return v or DEFAULT_TASK_TYPE

    @property
    def query(self) -> str:
        """The goal stripped of surrounding whitespace ("" when absent)."""
        return (self.goal or "").strip()


@dataclass(frozen=True)
class PackageMetadata:
    """Summary numbers describing a context package."""

    project_id: str
    task_type: str
    token_budget: int
    total_tokens: int
    slice_count: int
    sources: Dict[str, int]
    compressed_count: int = 0
    prompt_tokens: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project_id": self.project_id,
            "task_type": self.task_type,
            "token_budget": self.token_budget,
            "total_tokens": self.total_tokens,
            "slice_count": self.slice_count,
            "sources": dict(self.sources),
            "compressed_count": self.compressed_count,
            "prompt_tokens": self.prompt_tokens,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class ContextPackage:
    """The rendered prompts plus the slices used to build them."""

    system_prompt: str
    user_prompt: str
    slices: List[Slice]
    metadata: PackageMetadata
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "system_prompt": self.system_prompt,
            "user_prompt": self.user_prompt,
            "slices": [s.to_dict() for s in self.slices],
            "metadata": self.metadata.to_dict(),
        }


def count_sources(slices: List[Slice]) -> Dict[str, int]:
    """Count slices per source type; types with no slices are absent."""
    counts: Dict[str, int] = {}
    for s in slices:
        counts[s.source_type.value] = counts.get(s.source_type.value, 0) + 1
    return counts
