# src/context_engineer/config/models.py
"""
Configuration models for context assembly.

The configuration hierarchy:
    ContextEngineerConfig (root)
    ├── SelectionConfig - token budget and compression-fallback gates
    ├── TokenConfig     - token estimation ratio
    ├── SourcesConfig   - collector weights and fetch limits
    ├── CacheConfig     - optional package cache
    └── logging         - raw dict handed to ``configure_logging``

Usage:
    >>> from context_engineer.config import ContextEngineerConfig, load_config
    >>> config = ContextEngineerConfig()  # All defaults
    >>> config.selection.default_token_budget
    8000

    >>> # Load from TOML ([context_engineer] table)
    >>> config = load_config(config_path=Path("context_engineer.toml"))

    >>> # Load with overrides
    >>> config = load_config(overrides={"selection": {"min_compression_budget": 50}})
"""

from __future__ import annotations

import copy
import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..exceptions import ConfigError

logger = logging.getLogger(__name__)

ENV_PREFIX = "CONTEXT_ENGINEER__"
TOML_SECTION = "context_engineer"


# =============================================================================
# SECTION MODELS
# =============================================================================


class SelectionConfig(BaseModel):
    """
    Budget selection settings.

    Slices that do not fit verbatim are only sent to the summarizer when
    their weight is strictly above ``compression_weight_threshold`` and at
    least ``min_compression_budget`` tokens remain.
    """

    default_token_budget: int = Field(default=8000, ge=0, description="Budget used when a request sets none")
    compression_weight_threshold: float = Field(default=0.4, ge=0.0, le=1.0)
    min_compression_budget: int = Field(default=100, ge=1)


class TokenConfig(BaseModel):
    """Token estimation settings."""

    chars_per_token: int = Field(default=4, ge=1, description="Characters per estimated token")


class SourcesConfig(BaseModel):
    """Collector weights and fetch limits."""

    project_weight: float = Field(default=1.0, ge=0.0, le=1.0)
    segment_weight: float = Field(default=0.8, ge=0.0, le=1.0)
    history_weight: float = Field(default=0.6, ge=0.0, le=1.0)
    search_limit: int = Field(default=10, ge=1)
    search_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    history_limit: int = Field(default=5, ge=1)


class CacheConfig(BaseModel):
    """Settings for ``CachedContextAssembler``."""

    enabled: bool = False
    max_entries: int = Field(default=128, ge=1)
    ttl_seconds: Optional[float] = Field(default=None, description="Entry lifetime; None keeps entries until evicted")

    @field_validator("ttl_seconds")
    @classmethod
    def positive_ttl(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v <= 0:
            raise ValueError("ttl_seconds must be positive when set")
        return v


class ContextEngineerConfig(BaseModel):
    """Root configuration."""

    selection: SelectionConfig = Field(default_factory=SelectionConfig)
    tokens: TokenConfig = Field(default_factory=TokenConfig)
    sources: SourcesConfig = Field(default_factory=SourcesConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    logging: Dict[str, Any] = Field(default_factory=dict, description="Passed to configure_logging()")


# =============================================================================
# CONFIG LOADING
# =============================================================================


def load_config(
    config_path: Optional[Path] = None,
    config_dict: Optional[Dict[str, Any]] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> ContextEngineerConfig:
    """
    Load configuration from a TOML file and/or dictionary.

    Configuration is loaded and merged in order:
        1. Default values (from the Pydantic models)
        2. TOML config file (``[context_engineer]`` table, if provided)
        3. Config dictionary (``context_engineer`` key, if provided)
        4. Environment variables (``CONTEXT_ENGINEER__<SECTION>__<KEY>``)
        5. Runtime overrides (if provided)

    Args:
        config_path: Optional path to a TOML config file.
        config_dict: Optional full config dictionary.
        overrides: Optional runtime overrides (section dicts).

    Returns:
        Validated ``ContextEngineerConfig``.

    Raises:
        ConfigError: If the TOML file cannot be parsed or the merged
            values fail validation.
    """
    merged: Dict[str, Any] = {}

    if config_path is not None:
        path = Path(config_path).expanduser()
        try:
            with open(path, "rb") as f:
                full_config = tomllib.load(f)
        except FileNotFoundError:
            logger.warning("Config file not found: %s", path)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {path}: {e}") from e
        else:
            merged = _deep_merge(merged, full_config.get(TOML_SECTION, {}))
            logger.debug("Loaded context_engineer config from %s", path)

    if config_dict is not None:
        merged = _deep_merge(merged, config_dict.get(TOML_SECTION, {}))

    merged = _apply_env_overrides(merged)

    if overrides is not None:
        merged = _deep_merge(merged, overrides)

    try:
        return ContextEngineerConfig(**merged)
    except ValidationError as e:
        raise ConfigError(f"Invalid context_engineer configuration: {e}") from e


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two dictionaries, with ``override`` taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _apply_env_overrides(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Apply environment variable overrides.

    Examples:
        CONTEXT_ENGINEER__SELECTION__DEFAULT_TOKEN_BUDGET=4000
        CONTEXT_ENGINEER__SOURCES__SEARCH_THRESHOLD=0.6
    """
    config = copy.deepcopy(config)
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue

        path_parts = key[len(ENV_PREFIX) :].lower().split("__")
        if len(path_parts) < 2:
            continue

        current = config
        for part in path_parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]

        current[path_parts[-1]] = _convert_env_value(value)

    return config


def _convert_env_value(value: str) -> Any:
    """Convert an environment string to bool, int, float or str."""
    if value.lower() in ("true", "false"):
        return value.lower() == "true"

    try:
        return int(value)
    except ValueError:
        pass

    try:
        return float(value)
    except ValueError:
        pass

    return value
