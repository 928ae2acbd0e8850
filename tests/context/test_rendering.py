# tests/context/test_rendering.py
"""
Tests for prompt rendering.

Covers:
- System prompt layout: intro line, project block, per-source blocks, closing
- Empty blocks are omitted
- User prompt from goal or task-type fallback
- Project name resolution
- Markdown package summary
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from context_engineer.models import ContextPackage, PackageMetadata, Slice, SliceSourceType
from context_engineer.rendering import (
    CLOSING_INSTRUCTION,
    PromptRenderer,
    group_slices,
    project_name_of,
    render_package_summary,
)


def _slice(slice_id, source_type, content, weight=0.5, **meta):
    return Slice(id=slice_id, source_type=source_type, content=content, weight=weight, source_meta=meta)


@pytest.fixture
def project_slice():
    return _slice(
        "project_meta_p1",
        SliceSourceType.PROJECT_SUMMARY,
        "Project: Acme\nSector: retail\nType: web",
        weight=1.0,
        project_id="p1",
        project_name="Acme",
    )


@pytest.fixture
def renderer():
    return PromptRenderer()


class TestSystemPrompt:
    def test_project_only(self, renderer, project_slice):
        system, _ = renderer.render(project_slice, [project_slice], "design_spec")

        assert system == (
            'You are an AI assistant helping with a design_spec task for the project "Acme".\n'
            "\n"
            "PROJECT CONTEXT:\n"
            "Project: Acme\nSector: retail\nType: web\n"
            "\n" + CLOSING_INSTRUCTION
        )

    def test_documents_numbered(self, renderer, project_slice):
        docs = [
            _slice("doc_1", SliceSourceType.SEARCH_RESULT, "First chunk."),
            _slice("doc_2", SliceSourceType.SEARCH_RESULT, "Second chunk."),
        ]
        system, _ = renderer.render(project_slice, [project_slice, *docs], "design_spec")

        assert "RELEVANT DOCUMENTS:\n[Document 1]\nFirst chunk.\n\n[Document 2]\nSecond chunk.\n" in system

    def test_empty_blocks_omitted(self, renderer, project_slice):
        system, _ = renderer.render(project_slice, [project_slice], "design_spec")

        assert "RELEVANT DOCUMENTS" not in system
        assert "DOCUMENT SUMMARIES" not in system
        assert "RECENT AGENT ACTIVITY" not in system

    def test_block_order(self, renderer, project_slice):
        selected = [
            _slice("history_1", SliceSourceType.HISTORY_ENTRY, "Agent: a"),
            _slice("seg_1", SliceSourceType.PRECOMPUTED_SEGMENT, "[Compressed Summary]\nTone."),
            _slice("doc_1", SliceSourceType.SEARCH_RESULT, "Chunk."),
            project_slice,
        ]
        system, _ = renderer.render(project_slice, selected, "design_spec")

        positions = [
            system.index("PROJECT CONTEXT:"),
            system.index("RELEVANT DOCUMENTS:"),
            system.index("DOCUMENT SUMMARIES:"),
            system.index("RECENT AGENT ACTIVITY:"),
            system.index(CLOSING_INSTRUCTION),
        ]
        assert positions == sorted(positions)
        assert "[Action 1]\nAgent: a" in system

    def test_unselected_project_summary_still_names_project(self, renderer, project_slice):
        doc = _slice("doc_1", SliceSourceType.SEARCH_RESULT, "Chunk.")
        system, _ = renderer.render(project_slice, [doc], "design_spec")

        assert 'the project "Acme"' in system
        assert "PROJECT CONTEXT:\n\n" in system
        assert "Sector: retail" not in system

    def test_missing_project_uses_fallback(self, renderer):
        system, _ = renderer.render(None, [], "general", project_fallback="p42")
        assert 'the project "p42"' in system

    def test_deterministic(self, renderer, project_slice):
        doc = _slice("doc_1", SliceSourceType.SEARCH_RESULT, "Chunk.")
        assert renderer.render(project_slice, [project_slice, doc], "t", "g") == renderer.render(
            project_slice, [project_slice, doc], "t", "g"
        )


class TestUserPrompt:
    def test_goal_used_verbatim(self, renderer, project_slice):
        _, user = renderer.render(project_slice, [], "design_spec", "  Design the landing page  ")
        assert user == "  Design the landing page  "

    @pytest.mark.parametrize("goal", [None, "", "   "])
    def test_fallback_names_task_type(self, renderer, project_slice, goal):
        _, user = renderer.render(project_slice, [], "design_spec", goal)
        assert user == "Help me with design_spec for this project."


class TestHelpers:
    def test_group_slices_has_every_type(self):
        groups = group_slices([])
        assert set(groups) == set(SliceSourceType)

    def test_group_slices_keeps_order(self):
        a = _slice("a", SliceSourceType.SEARCH_RESULT, "A")
        b = _slice("b", SliceSourceType.HISTORY_ENTRY, "B")
        c = _slice("c", SliceSourceType.SEARCH_RESULT, "C")
        groups = group_slices([a, b, c])
        assert groups[SliceSourceType.SEARCH_RESULT] == [a, c]
        assert groups[SliceSourceType.HISTORY_ENTRY] == [b]

    def test_project_name_falls_back_to_id(self):
        s = _slice("p", SliceSourceType.PROJECT_SUMMARY, "Project: ?", project_id="p7")
        assert project_name_of(s) == "p7"

    def test_project_name_default(self):
        assert project_name_of(None) == "this project"


class TestPackageSummary:
    def test_markdown_summary(self):
        long_doc = _slice(
            "doc_1",
            SliceSourceType.SEARCH_RESULT,
            "x" * 250,
            weight=0.92,
            document_title="Brand Guide",
        )
        short = _slice("seg_1", SliceSourceType.PRECOMPUTED_SEGMENT, "Tone.", weight=0.8).with_content("Tone!")
        package = ContextPackage(
            system_prompt="sys",
            user_prompt="user",
            slices=[long_doc, short],
            metadata=PackageMetadata(
                project_id="p1",
                task_type="design_spec",
                token_budget=8000,
                total_tokens=65,
                slice_count=2,
                sources={"search_result": 1, "precomputed_segment": 1},
                compressed_count=1,
            ),
        )

        summary = render_package_summary(package)

        assert summary.startswith("# Context Summary\n")
        assert "**Total Slices:** 2" in summary
        assert "**Total Tokens:** 65 / 8000" in summary
        assert "- precomputed_segment: 1\n- search_result: 1" in summary
        assert "### search_result (weight: 0.92)" in summary
        assert "x" * 200 + "..." in summary
        assert "x" * 201 not in summary
        assert "*Source: Brand Guide*" in summary
        assert "### precomputed_segment (weight: 0.80) [compressed]" in summary
