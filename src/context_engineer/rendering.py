# src/context_engineer/rendering.py
"""
Prompt rendering for context packages.

Turns a selected slice list into a system prompt and a user prompt.
Slices are grouped by source type into labelled blocks; empty blocks are
left out entirely.  Rendering is pure: the same inputs always give the same
text.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .models import ContextPackage, Slice, SliceSourceType

logger = logging.getLogger(__name__)

PROJECT_CONTEXT_HEADER = "PROJECT CONTEXT"
DOCUMENTS_HEADER = "RELEVANT DOCUMENTS"
SUMMARIES_HEADER = "DOCUMENT SUMMARIES"
HISTORY_HEADER = "RECENT AGENT ACTIVITY"

CLOSING_INSTRUCTION = (
    "Use the above context to provide accurate, project-specific responses. "
    "Reference specific documents when relevant."
)

PREVIEW_CHARS = 200


def _plain(slices: Sequence[Slice]) -> str:
    return "\n\n".join(s.content for s in slices)


def _numbered(label: str) -> Callable[[Sequence[Slice]], str]:
    def fmt(slices: Sequence[Slice]) -> str:
        return "\n\n".join(f"[{label} {i}]\n{s.content}" for i, s in enumerate(slices, start=1))

    return fmt


# Block order in the system prompt.  Every SliceSourceType must appear.
_SECTIONS: Dict[SliceSourceType, Tuple[str, Callable[[Sequence[Slice]], str]]] = {
    SliceSourceType.PROJECT_SUMMARY: (PROJECT_CONTEXT_HEADER, _plain),
    SliceSourceType.SEARCH_RESULT: (DOCUMENTS_HEADER, _numbered("Document")),
    SliceSourceType.PRECOMPUTED_SEGMENT: (SUMMARIES_HEADER, _plain),
    SliceSourceType.HISTORY_ENTRY: (HISTORY_HEADER, _numbered("Action")),
}

_missing = set(SliceSourceType) - set(_SECTIONS)
if _missing:
    raise RuntimeError(f"No prompt section for slice source types: {sorted(t.value for t in _missing)}")


def group_slices(slices: Sequence[Slice]) -> Dict[SliceSourceType, List[Slice]]:
    """Group slices by source type, keeping their relative order."""
    groups: Dict[SliceSourceType, List[Slice]] = {t: [] for t in _SECTIONS}
    for s in slices:
        groups[s.source_type].append(s)
    return groups


def project_name_of(project_summary: Optional[Slice], fallback: str = "this project") -> str:
    """Project name carried by a project-summary slice, or ``fallback``."""
    if project_summary is None:
        return fallback
    return str(
        project_summary.source_meta.get("project_name")
        or project_summary.source_meta.get("project_id")
        or fallback
    )


class PromptRenderer:
    """
    Renders the system and user prompts for an agent call.

    The system prompt names the task type and project, then embeds one
    block per non-empty slice group::

        You are an AI assistant helping with a design_spec task for the project "Acme".

        PROJECT CONTEXT:
        Project: Acme
        ...

        RELEVANT DOCUMENTS:
        [Document 1]
        ...

        Use the above context to provide accurate, project-specific responses. ...
    """

    def render(
        self,
        project_summary: Optional[Slice],
        selected: Sequence[Slice],
        task_type: str,
        goal: Optional[str] = None,
        project_fallback: str = "this project",
    ) -> Tuple[str, str]:
        """
        Render prompts.

        Args:
            project_summary: The collected project-summary slice (used for
                the project name even if it was not selected), or ``None``.
            selected: Slices chosen by the selector, in selection order.
            task_type: Task type named in the prompts.
            goal: Optional goal text used verbatim as the user prompt.
            project_fallback: Name used when no project summary exists.

        Returns:
            ``(system_prompt, user_prompt)``
        """
        project_name = project_name_of(project_summary, project_fallback)
        groups = group_slices(selected)

        parts = [f'You are an AI assistant helping with a {task_type} task for the project "{project_name}".\n']

        # The project block is always present, even when empty
        parts.append(f"{PROJECT_CONTEXT_HEADER}:\n{_plain(groups[SliceSourceType.PROJECT_SUMMARY])}\n")

        for source_type, (header, fmt) in _SECTIONS.items():
            if source_type is SliceSourceType.PROJECT_SUMMARY:
                continue
            group = groups[source_type]
            if group:
                parts.append(f"{header}:\n{fmt(group)}\n")

        parts.append(CLOSING_INSTRUCTION)
        system_prompt = "\n".join(parts)

        user_prompt = goal if goal and goal.strip() else f"Help me with {task_type} for this project."
        return system_prompt, user_prompt


def render_package_summary(package: ContextPackage) -> str:
    """
    Human-readable markdown summary of a package.

    Lists totals, slice counts per source and a short preview of each
    slice.  Meant for logs and review screens, not for the model.
    """
    meta = package.metadata
    lines = [
        "# Context Summary",
        "",
        f"**Total Slices:** {meta.slice_count}",
        f"**Total Tokens:** {meta.total_tokens} / {meta.token_budget}",
        f"**Task Type:** {meta.task_type}",
        "",
        "## Sources",
    ]
    for source, count in sorted(meta.sources.items()):
        lines.append(f"- {source}: {count}")

    lines.extend(["", "## Context Slices", ""])
    for s in package.slices:
        marker = " [compressed]" if s.compressed else ""
        lines.append(f"### {s.source_type.value} (weight: {s.weight:.2f}){marker}")
        preview = s.content[:PREVIEW_CHARS]
        if len(s.content) > PREVIEW_CHARS:
            preview += "..."
        lines.append(preview)
        title = s.source_meta.get("document_title")
        if title:
            lines.append(f"*Source: {title}*")
        lines.append("")

    return "\n".join(lines).rstrip() + "\n"
