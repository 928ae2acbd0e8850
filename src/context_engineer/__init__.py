# src/context_engineer/__init__.py
"""
context_engineer - Token-budgeted context assembly for LLM agents.

Collects project metadata, semantic search hits, precomputed document
segments and recent agent history, keeps the most important pieces within a
token budget (compressing where worthwhile), and renders them into a
system/user prompt pair.
"""

from importlib.metadata import PackageNotFoundError, version

from .cache import CachedContextAssembler, build_assembler, request_cache_key
from .compression import ExtractiveSummarizer, FallbackSummarizer, TruncatingSummarizer
from .config import (
    CacheConfig,
    ContextEngineerConfig,
    SelectionConfig,
    SourcesConfig,
    TokenConfig,
    load_config,
)
from .exceptions import (
    CollectorError,
    CompressionError,
    ConfigError,
    ContextBuildError,
    ContextEngineerError,
    PermissionDeniedError,
)
from .interfaces import (
    AllowAllPermissionChecker,
    HistoryEntry,
    HistoryStore,
    PermissionChecker,
    ProjectMetadata,
    ProjectStore,
    SearchHit,
    SearchProvider,
    Segment,
    SegmentStore,
    StaticPermissionChecker,
    Summarizer,
    TelemetrySink,
)
from .logging_config import configure_logging, log_display
from .models import (
    ContextPackage,
    ContextRequest,
    ContextStrategy,
    PackageMetadata,
    Slice,
    SliceSourceType,
)
from .prioritization import PrioritySelector, SelectionResult
from .registry import CollaboratorRegistry
from .rendering import PromptRenderer, render_package_summary
from .synthesis import AssemblyState, ContextAssembler, build_context, estimate_total_tokens
from .tokens import EstimateCounter, TokenCounter, estimate_tokens

try:
    __version__ = version("context-engineer")
except PackageNotFoundError:
    __version__ = "0.1.0"

__all__ = [
    "AllowAllPermissionChecker",
    "AssemblyState",
    "CacheConfig",
    "CachedContextAssembler",
    "CollaboratorRegistry",
    "CollectorError",
    "CompressionError",
    "ConfigError",
    "ContextAssembler",
    "ContextBuildError",
    "ContextEngineerConfig",
    "ContextEngineerError",
    "ContextPackage",
    "ContextRequest",
    "ContextStrategy",
    "EstimateCounter",
    "ExtractiveSummarizer",
    "FallbackSummarizer",
    "HistoryEntry",
    "HistoryStore",
    "PackageMetadata",
    "PermissionChecker",
    "PermissionDeniedError",
    "PrioritySelector",
    "ProjectMetadata",
    "ProjectStore",
    "PromptRenderer",
    "SearchHit",
    "SearchProvider",
    "Segment",
    "SegmentStore",
    "SelectionConfig",
    "SelectionResult",
    "Slice",
    "SliceSourceType",
    "SourcesConfig",
    "StaticPermissionChecker",
    "Summarizer",
    "TelemetrySink",
    "TokenConfig",
    "TokenCounter",
    "TruncatingSummarizer",
    "build_assembler",
    "build_context",
    "configure_logging",
    "estimate_tokens",
    "estimate_total_tokens",
    "load_config",
    "log_display",
    "render_package_summary",
    "request_cache_key",
    "__version__",
]
