# src/context_engineer/cache.py
"""
Package cache with at-most-one concurrent build per key.

``CachedContextAssembler`` wraps a ``ContextAssembler`` with an in-memory
LRU of built packages.  Concurrent requests for the same key wait on a
per-key ``asyncio.Lock``, so only one of them builds and the rest reuse
its result.

Cache Key: SHA256 of the request fields (actor, project, task type, goal,
agent, budget, strategy, history flag).
Cache Value: the ``ContextPackage``.

Failures (``PermissionDeniedError``, ``ContextBuildError``) are never
cached.

Usage:
    cached = CachedContextAssembler(assembler, max_entries=256, ttl_seconds=300)
    package = await cached.build_context(request)
    cached.invalidate(project_id="p1")   # after the project's data changed
    print(cached.stats())
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

from .config import ContextEngineerConfig
from .models import ContextPackage, ContextRequest
from .registry import CollaboratorRegistry
from .synthesis import ContextAssembler

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    package: ContextPackage
    project_id: str
    stored_at: float


def request_cache_key(request: ContextRequest) -> str:
    """Stable SHA-256 key for ``request``."""
    payload = json.dumps(request.model_dump(mode="json"), sort_keys=True)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class CachedContextAssembler:
    """
    LRU cache in front of a ``ContextAssembler``.

    Args:
        assembler: The assembler that builds packages on a miss.
        max_entries: Maximum cached packages; least recently used go first.
        ttl_seconds: Optional lifetime of an entry.
    """

    def __init__(
        self,
        assembler: ContextAssembler,
        max_entries: int = 128,
        ttl_seconds: Optional[float] = None,
    ) -> None:
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self.assembler = assembler
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds

        self._entries: "OrderedDict[str, _Entry]" = OrderedDict()
        self._locks: Dict[str, Tuple[asyncio.Lock, int]] = {}
        self._hits = 0
        self._misses = 0

    @classmethod
    def from_config(cls, assembler: ContextAssembler) -> "CachedContextAssembler":
        """Build using ``assembler.config.cache`` settings."""
        cache_config = assembler.config.cache
        return cls(assembler, max_entries=cache_config.max_entries, ttl_seconds=cache_config.ttl_seconds)

    async def build_context(self, request: ContextRequest) -> ContextPackage:
        key = request_cache_key(request)

        cached = self._get(key)
        if cached is not None:
            self._hits += 1
            return cached

        lock = self._acquire_lock_ref(key)
        try:
            async with lock:
                # Another waiter may have built it while we waited
                cached = self._get(key)
                if cached is not None:
                    self._hits += 1
                    return cached

                self._misses += 1
                package = await self.assembler.build_context(request)
                self._put(key, request.project_id, package)
                return package
        finally:
            self._release_lock_ref(key)

    def invalidate(self, project_id: Optional[str] = None) -> int:
        """
        Drop cached packages.

        Args:
            project_id: Only drop this project's packages; ``None`` drops all.

        Returns:
            Number of entries removed.
        """
        if project_id is None:
            removed = len(self._entries)
            self._entries.clear()
        else:
            keys = [k for k, e in self._entries.items() if e.project_id == project_id]
            for k in keys:
                del self._entries[k]
            removed = len(keys)
        logger.debug("Invalidated %d cached context packages (project=%s)", removed, project_id)
        return removed

    def stats(self) -> Dict[str, Any]:
        total = self._hits + self._misses
        return {
            "hits": self._hits,
            "misses": self._misses,
            "size": len(self._entries),
            "max_entries": self.max_entries,
            "hit_rate": self._hits / total if total else 0.0,
        }

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _get(self, key: str) -> Optional[ContextPackage]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self.ttl_seconds is not None and time.monotonic() - entry.stored_at > self.ttl_seconds:
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return entry.package

    def _put(self, key: str, project_id: str, package: ContextPackage) -> None:
        self._entries[key] = _Entry(package=package, project_id=project_id, stored_at=time.monotonic())
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Evicted cached context package %s", evicted[:12])

    def _acquire_lock_ref(self, key: str) -> asyncio.Lock:
        lock, refs = self._locks.get(key, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        self._locks[key] = (lock, refs + 1)
        return lock

    def _release_lock_ref(self, key: str) -> None:
        lock, refs = self._locks[key]
        if refs <= 1:
            del self._locks[key]
        else:
            self._locks[key] = (lock, refs - 1)


def build_assembler(
    registry: CollaboratorRegistry,
    config: Optional[ContextEngineerConfig] = None,
    **assembler_kwargs: Any,
) -> Union[ContextAssembler, CachedContextAssembler]:
    """
    Build an assembler from configuration.

    Returns a ``CachedContextAssembler`` when ``config.cache.enabled`` is
    set, otherwise the plain ``ContextAssembler``.  Extra keyword arguments
    go to ``ContextAssembler``.
    """
    assembler = ContextAssembler(registry, config, **assembler_kwargs)
    if not assembler.config.cache.enabled:
        return assembler
    logger.debug(
        "Package cache enabled (max_entries=%d, ttl=%s)",
        assembler.config.cache.max_entries,
        assembler.config.cache.ttl_seconds,
    )
    return CachedContextAssembler.from_config(assembler)
