# tests/context/conftest.py
"""
Shared fixtures for context assembly tests.

Provides in-memory collaborators (project store, search provider, segment
store, history store, summarizer), a deterministic token counter and a
pre-wired registry.
"""

import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

import pytest

# Ensure source is importable
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from context_engineer.interfaces import (
    HistoryEntry,
    ProjectMetadata,
    SearchHit,
    Segment,
    StaticPermissionChecker,
)
from context_engineer.models import Slice, SliceSourceType

# =============================================================================
# Fake Collaborators
# =============================================================================


class FakeProjectStore:
    """Project store backed by a dict; ``fail`` makes every call raise."""

    def __init__(self, projects: Optional[Dict[str, ProjectMetadata]] = None, fail: bool = False) -> None:
        self.projects = dict(projects or {})
        self.fail = fail
        self.calls: List[str] = []

    async def get_project(self, project_id: str) -> Optional[ProjectMetadata]:
        self.calls.append(project_id)
        if self.fail:
            raise RuntimeError("Project store unavailable")
        return self.projects.get(project_id)


class FakeSearchProvider:
    """Returns fixed hits and records the arguments of every call."""

    def __init__(self, hits: Optional[List[SearchHit]] = None, fail: bool = False) -> None:
        self.hits = list(hits or [])
        self.fail = fail
        self.calls: List[tuple] = []

    async def search(self, project_id: str, query: str, limit: int, threshold: float) -> List[SearchHit]:
        self.calls.append((project_id, query, limit, threshold))
        if self.fail:
            raise ConnectionError("Vector store unavailable")
        return self.hits[:limit]


class FakeSegmentStore:
    def __init__(self, segments: Optional[List[Segment]] = None, fail: bool = False) -> None:
        self.segments = list(segments or [])
        self.fail = fail
        self.calls: List[str] = []

    async def get_precomputed_segments(self, project_id: str) -> List[Segment]:
        self.calls.append(project_id)
        if self.fail:
            raise RuntimeError("Segment store unavailable")
        return list(self.segments)


class FakeHistoryStore:
    def __init__(self, entries: Optional[List[HistoryEntry]] = None, fail: bool = False) -> None:
        self.entries = list(entries or [])
        self.fail = fail
        self.calls: List[tuple] = []

    async def get_recent_history(self, project_id: str, limit: int) -> List[HistoryEntry]:
        self.calls.append((project_id, limit))
        if self.fail:
            raise RuntimeError("History store unavailable")
        return self.entries[:limit]


class MockSummarizer:
    """
    Configurable summarizer for testing the compression fallback.

    Attributes:
        output: Fixed text to return; ``None`` returns the first
            ``target_tokens * 4`` characters of the input.
        fail: If True, ``compress`` raises RuntimeError.
        calls: ``(text, target_tokens)`` of every invocation.
    """

    def __init__(self, output: Optional[str] = None, fail: bool = False) -> None:
        self.output = output
        self.fail = fail
        self.calls: List[tuple] = []

    async def compress(self, text: str, target_tokens: int) -> str:
        self.calls.append((text, target_tokens))
        if self.fail:
            raise RuntimeError("Summarizer unavailable")
        if self.output is not None:
            return self.output
        return text[: target_tokens * 4]


# =============================================================================
# Helpers
# =============================================================================


def make_slice(
    slice_id: str,
    tokens: int,
    weight: float,
    source_type: SliceSourceType = SliceSourceType.SEARCH_RESULT,
) -> Slice:
    """Slice whose content costs exactly ``tokens`` tokens at 4 chars/token."""
    return Slice(id=slice_id, source_type=source_type, content="x" * (tokens * 4), weight=weight)


@pytest.fixture
def slice_factory():
    return make_slice


# =============================================================================
# Token Counter Fixtures
# =============================================================================


@pytest.fixture
def estimate_counter():
    """Create a deterministic EstimateCounter (4 chars/token)."""
    from context_engineer.tokens import EstimateCounter

    return EstimateCounter(chars_per_token=4)


# =============================================================================
# Sample Data
# =============================================================================


@pytest.fixture
def sample_project():
    return ProjectMetadata(
        id="p1",
        name="Acme Rebrand",
        sector="retail",
        project_type="branding",
        description="Refresh of the Acme visual identity.",
    )


@pytest.fixture
def sample_hits():
    return [
        SearchHit(
            id="c1",
            content="Brand colors are teal and coral.",
            document_id="d1",
            similarity=0.92,
            document_title="Brand Guide",
            chunk_index=0,
        ),
        SearchHit(
            id="c2",
            content="The logo must keep clear space on every side.",
            document_id="d1",
            similarity=0.81,
            document_title="Brand Guide",
            chunk_index=3,
        ),
    ]


@pytest.fixture
def sample_segments():
    return [
        Segment(id="s1", content="Audience: young urban shoppers.", document_id="d2"),
        Segment(id="s2", content="Tone: playful but confident.", document_id="d3"),
    ]


@pytest.fixture
def sample_history():
    return [
        HistoryEntry(
            id="h1",
            agent_name="design_agent",
            task_type="design_spec",
            input={"goal": "landing page"},
            output={"status": "done"},
            created_at=datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc),
        ),
    ]


# =============================================================================
# Collaborator Fixtures
# =============================================================================


@pytest.fixture
def project_store(sample_project):
    return FakeProjectStore({"p1": sample_project})


@pytest.fixture
def search_provider(sample_hits):
    return FakeSearchProvider(sample_hits)


@pytest.fixture
def segment_store(sample_segments):
    return FakeSegmentStore(sample_segments)


@pytest.fixture
def history_store(sample_history):
    return FakeHistoryStore(sample_history)


@pytest.fixture
def permission_checker():
    """Grants every actor the ``design_agent`` agent only."""
    return StaticPermissionChecker([("*", "*", "design_agent")])


@pytest.fixture
def registry(project_store, permission_checker, search_provider, segment_store, history_store):
    """Registry wired with all in-memory collaborators and no summarizer."""
    from context_engineer.registry import CollaboratorRegistry

    return CollaboratorRegistry(
        project_store=project_store,
        permission_checker=permission_checker,
        search_provider=search_provider,
        segment_store=segment_store,
        history_store=history_store,
    )


@pytest.fixture
def make_request():
    """Factory for ContextRequest with sensible defaults."""
    from context_engineer.models import ContextRequest

    def _make(**kwargs):
        fields = {"actor_id": "u1", "project_id": "p1", "task_type": "design_spec", "goal": "Landing page"}
        fields.update(kwargs)
        return ContextRequest(**fields)

    return _make


@pytest.fixture
def summarizer_factory():
    """Factory fixture for creating MockSummarizer instances."""
    return MockSummarizer


@pytest.fixture
def fakes():
    """Namespace of the fake collaborator classes, for tests that need custom setups."""

    class _Fakes:
        ProjectStore = FakeProjectStore
        SearchProvider = FakeSearchProvider
        SegmentStore = FakeSegmentStore
        HistoryStore = FakeHistoryStore
        Summarizer = MockSummarizer

    return _Fakes
