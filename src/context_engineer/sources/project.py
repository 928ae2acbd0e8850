# src/context_engineer/sources/project.py
"""
Project summary source.

Produces exactly one ``project_summary`` slice describing the project
(name, sector, type, description).  Its weight defaults to 1.0 so it is the
first slice the selector considers.
"""

from __future__ import annotations

import logging
from typing import List

from ..interfaces import ProjectMetadata, ProjectStore
from ..models import ContextRequest, Slice, SliceSourceType

logger = logging.getLogger(__name__)


class ProjectSummaryCollector:
    """
    Context source for project metadata.

    Example::

        collector = ProjectSummaryCollector(project_store)
        slices = await collector.collect(request)
        # [Slice(id="project_meta_p1", source_type=PROJECT_SUMMARY, weight=1.0, ...)]
    """

    name = "project_summary"

    def __init__(self, project_store: ProjectStore, weight: float = 1.0) -> None:
        self.project_store = project_store
        self.weight = weight

    async def collect(self, request: ContextRequest) -> List[Slice]:
        project = await self.project_store.get_project(request.project_id)
        if project is None:
            logger.warning("Project %s not found; no project summary", request.project_id)
            return []
        return [self.build_slice(project)]

    def build_slice(self, project: ProjectMetadata) -> Slice:
        """Build the summary slice for ``project``."""
        lines = [
            f"Project: {project.name}",
            f"Sector: {project.sector}",
            f"Type: {project.project_type}",
        ]
        if project.description:
            lines.append(f"Description: {project.description}")

        return Slice(
            id=f"project_meta_{project.id}",
            source_type=SliceSourceType.PROJECT_SUMMARY,
            content="\n".join(lines),
            weight=self.weight,
            source_meta={"project_id": project.id, "project_name": project.name},
        )
