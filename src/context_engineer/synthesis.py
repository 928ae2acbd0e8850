# src/context_engineer/synthesis.py
"""
Context assembly: from a request to a rendered context package.

The assembler orchestrates one build:

1. Check access when the request names an agent.
2. Run the enabled collectors concurrently and normalize their slices.
3. Select slices under the token budget (with compression fallback).
4. Render the system and user prompts.
5. Emit one telemetry event.

States::

    checking_access -> collecting -> selecting -> rendering -> done
           |
           +-> aborted (access denied)

Callers see either a complete ``ContextPackage`` or exactly one of
``PermissionDeniedError`` / ``ContextBuildError``.  A failing collector
only removes that source's slices; a failing summarizer only skips the
slice; a failing telemetry sink is ignored.

Example::

    assembler = ContextAssembler(registry, config)
    package = await assembler.build_context(
        ContextRequest(actor_id="u1", project_id="p1", task_type="design_spec", goal="Landing page"),
    )
    response = await llm.complete(system=package.system_prompt, user=package.user_prompt)
"""

from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from .config import ContextEngineerConfig
from .exceptions import ContextBuildError, PermissionDeniedError
from .models import (
    ContextPackage,
    ContextRequest,
    PackageMetadata,
    Slice,
    SliceSourceType,
    count_sources,
)
from .observability.events import PACKAGE_BUILT, ContextEvent
from .prioritization import PrioritySelector, SelectionResult
from .registry import CollaboratorRegistry
from .rendering import PromptRenderer
from .sources import (
    HistoryCollector,
    PrecomputedSegmentCollector,
    ProjectSummaryCollector,
    SemanticSearchCollector,
    SliceCollector,
    normalize_slices,
)
from .tokens import EstimateCounter, TokenCounter

logger = logging.getLogger(__name__)


class AssemblyState(str, Enum):
    """Phases of a single context build."""

    CHECKING_ACCESS = "checking_access"
    COLLECTING = "collecting"
    SELECTING = "selecting"
    RENDERING = "rendering"
    DONE = "done"
    ABORTED = "aborted"


StateListener = Callable[[ContextRequest, AssemblyState], None]


class ContextAssembler:
    """
    Builds context packages from the registry's collaborators.

    The assembler keeps no per-request state, so one instance can serve
    concurrent builds.

    Args:
        registry: External collaborators.
        config: Settings; defaults apply when omitted.
        token_counter: Counter used for selection and metadata.  Defaults
            to an ``EstimateCounter`` with the configured ratio.
        on_state_change: Optional listener called on every state change.
    """

    def __init__(
        self,
        registry: CollaboratorRegistry,
        config: Optional[ContextEngineerConfig] = None,
        token_counter: Optional[TokenCounter] = None,
        on_state_change: Optional[StateListener] = None,
    ) -> None:
        self.registry = registry
        self.config = config or ContextEngineerConfig()
        self.token_counter: TokenCounter = token_counter or EstimateCounter(self.config.tokens.chars_per_token)
        self.on_state_change = on_state_change

        selection = self.config.selection
        self.selector = PrioritySelector(
            token_counter=self.token_counter,
            summarizer=registry.summarizer,
            compression_weight_threshold=selection.compression_weight_threshold,
            min_compression_budget=selection.min_compression_budget,
        )
        self.renderer = PromptRenderer()

        sources = self.config.sources
        self.project_collector = ProjectSummaryCollector(registry.project_store, weight=sources.project_weight)
        self.search_collector = (
            SemanticSearchCollector(
                registry.search_provider,
                limit=sources.search_limit,
                threshold=sources.search_threshold,
            )
            if registry.search_provider is not None
            else None
        )
        self.segment_collector = (
            PrecomputedSegmentCollector(registry.segment_store, weight=sources.segment_weight)
            if registry.segment_store is not None
            else None
        )
        self.history_collector = (
            HistoryCollector(registry.history_store, limit=sources.history_limit, weight=sources.history_weight)
            if registry.history_store is not None
            else None
        )

        logger.debug("ContextAssembler initialized with collaborators: %s", registry.describe())

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def build_context(self, request: ContextRequest) -> ContextPackage:
        """
        Build a context package for ``request``.

        Raises:
            PermissionDeniedError: The named agent may not be used by the
                actor on this project.  No collector has run.
            ContextBuildError: Anything else went wrong.  The cause is
                logged and chained, not exposed in the message.
        """
        started = time.perf_counter()
        logger.info(
            "Building context for project %s (task=%s, strategy=%s)",
            request.project_id,
            request.task_type,
            request.strategy.value,
        )

        try:
            self._transition(request, AssemblyState.CHECKING_ACCESS)
            await self._check_access(request)

            self._transition(request, AssemblyState.COLLECTING)
            slices, project_summary = await self._collect(request)

            self._transition(request, AssemblyState.SELECTING)
            budget = self.token_budget_for(request)
            selection = await self.selector.select_with_report(slices, budget)

            self._transition(request, AssemblyState.RENDERING)
            package = self._package(request, project_summary, selection)

            self._emit(request, package, selection, started)
            self._transition(request, AssemblyState.DONE)
        except PermissionDeniedError:
            raise
        except Exception as exc:
            logger.error(
                "Context build failed for project %s (task=%s): %s",
                request.project_id,
                request.task_type,
                exc,
                exc_info=True,
            )
            raise ContextBuildError() from exc

        logger.info(
            "Context built for project %s: %d slices, %d/%d tokens, sources=%s",
            request.project_id,
            package.metadata.slice_count,
            package.metadata.total_tokens,
            package.metadata.token_budget,
            package.metadata.sources,
        )
        return package

    def token_budget_for(self, request: ContextRequest) -> int:
        """Budget for ``request``: its own, else the configured default."""
        if request.token_budget is not None:
            return request.token_budget
        return self.config.selection.default_token_budget

    def collectors_for(self, request: ContextRequest) -> List[SliceCollector]:
        """Collectors enabled for ``request``, in collection order."""
        collectors: List[SliceCollector] = [self.project_collector]
        if self.search_collector is not None and request.strategy.uses_search:
            collectors.append(self.search_collector)
        if self.segment_collector is not None and request.strategy.uses_segments:
            collectors.append(self.segment_collector)
        if self.history_collector is not None and request.include_history:
            collectors.append(self.history_collector)
        return collectors

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    async def _check_access(self, request: ContextRequest) -> None:
        if not request.agent_name:
            return

        allowed = await self.registry.permission_checker.has_agent_access(
            request.actor_id,
            request.project_id,
            request.agent_name,
        )
        if not allowed:
            self._transition(request, AssemblyState.ABORTED)
            logger.warning(
                "Access denied: actor %s, agent %s, project %s",
                request.actor_id,
                request.agent_name,
                request.project_id,
            )
            raise PermissionDeniedError(
                actor_id=request.actor_id,
                project_id=request.project_id,
                agent_name=request.agent_name,
            )

    async def _collect(self, request: ContextRequest) -> Tuple[List[Slice], Optional[Slice]]:
        """Run collectors concurrently; returns (slices, project summary slice)."""
        collectors = self.collectors_for(request)
        groups = await asyncio.gather(*(self._run_collector(c, request) for c in collectors))

        project_summary = next(
            (s for s in groups[0] if s.source_type is SliceSourceType.PROJECT_SUMMARY),
            None,
        )
        slices = normalize_slices(groups)
        logger.debug(
            "Collected %d slices from %s",
            len(slices),
            [c.name for c in collectors],
        )
        return slices, project_summary

    async def _run_collector(self, collector: SliceCollector, request: ContextRequest) -> List[Slice]:
        try:
            return list(await collector.collect(request))
        except Exception as exc:
            logger.warning(
                "Collector %s failed for project %s: %s",
                collector.name,
                request.project_id,
                exc,
            )
            return []

    def _package(
        self,
        request: ContextRequest,
        project_summary: Optional[Slice],
        selection: SelectionResult,
    ) -> ContextPackage:
        system_prompt, user_prompt = self.renderer.render(
            project_summary,
            selection.slices,
            request.task_type,
            request.goal,
            project_fallback=request.project_id,
        )
        metadata = PackageMetadata(
            project_id=request.project_id,
            task_type=request.task_type,
            token_budget=selection.token_budget,
            total_tokens=selection.total_tokens,
            slice_count=len(selection.slices),
            sources=count_sources(selection.slices),
            compressed_count=len(selection.compressed_ids),
            prompt_tokens=self.token_counter.count(system_prompt + user_prompt),
        )
        return ContextPackage(
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            slices=list(selection.slices),
            metadata=metadata,
        )

    def _emit(
        self,
        request: ContextRequest,
        package: ContextPackage,
        selection: SelectionResult,
        started: float,
    ) -> None:
        sink = self.registry.telemetry_sink
        if sink is None:
            return

        try:
            sink.emit(
                ContextEvent(
                    event_type=PACKAGE_BUILT,
                    actor_id=request.actor_id,
                    project_id=request.project_id,
                    package_id=package.id,
                    source="context_engineer.synthesis",
                    data={
                        "task_type": request.task_type,
                        "slice_count": package.metadata.slice_count,
                        "total_tokens": package.metadata.total_tokens,
                        "token_budget": package.metadata.token_budget,
                        "sources": dict(package.metadata.sources),
                        "compressed_count": package.metadata.compressed_count,
                        "compression_attempts": selection.compression_attempts,
                        "duration_ms": (time.perf_counter() - started) * 1000.0,
                    },
                )
            )
        except Exception as exc:
            logger.warning("Telemetry emit failed: %s", exc)

    def _transition(self, request: ContextRequest, state: AssemblyState) -> None:
        logger.debug("Context build %s/%s -> %s", request.project_id, request.task_type, state.value)
        if self.on_state_change is not None:
            self.on_state_change(request, state)


async def build_context(
    request: ContextRequest,
    registry: CollaboratorRegistry,
    config: Optional[ContextEngineerConfig] = None,
) -> ContextPackage:
    """Build one package with a throwaway ``ContextAssembler``."""
    return await ContextAssembler(registry, config).build_context(request)


def estimate_total_tokens(slices: Sequence[Slice], counter: Optional[TokenCounter] = None) -> int:
    """Total estimated tokens of ``slices``."""
    counter = counter or EstimateCounter()
    return sum(counter.count(s.content) for s in slices)
