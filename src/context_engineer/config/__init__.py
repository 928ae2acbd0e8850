# src/context_engineer/config/__init__.py
"""
Configuration for context_engineer.

Settings are Pydantic models with validated defaults, loadable from a TOML
``[context_engineer]`` table, a dictionary, and ``CONTEXT_ENGINEER__*``
environment variables.
"""

from .models import (
    CacheConfig,
    ContextEngineerConfig,
    SelectionConfig,
    SourcesConfig,
    TokenConfig,
    load_config,
)

__all__ = [
    "CacheConfig",
    "ContextEngineerConfig",
    "SelectionConfig",
    "SourcesConfig",
    "TokenConfig",
    "load_config",
]
