# src/context_engineer/observability/events.py
"""
Telemetry events and sinks for context assembly.

The assembler emits one ``ContextEvent`` per built package.  Sinks are
fire-and-forget: ``emit`` must return quickly and the assembler swallows
(and logs) anything a sink raises.

Sinks:
    - NullTelemetrySink: drops everything.
    - LoggingTelemetrySink: writes events to a standard logger.
    - InMemoryTelemetrySink: bounded in-memory buffer, handy for tests.
    - JsonlTelemetrySink: buffers events and appends them to a JSONL file
      from a background thread.
    - CallbackTelemetrySink: fans events out to registered callbacks.

Usage:
    >>> from context_engineer.observability.events import (
    ...     ContextEvent,
    ...     InMemoryTelemetrySink,
    ... )
    >>> sink = InMemoryTelemetrySink(max_events=100)
    >>> sink.emit(ContextEvent(event_type="context.package_built", data={"slice_count": 3}))
    >>> len(sink)
    1
"""

from __future__ import annotations

import json
import logging
import threading
import uuid
from collections import deque
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Deque

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

PACKAGE_BUILT = "context.package_built"

DEFAULT_MAX_EVENTS = 1000
DEFAULT_BUFFER_SIZE = 100


# =============================================================================
# ENUMS
# =============================================================================


class Severity(str, Enum):
    """Event severity levels."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @classmethod
    def from_string(cls, value: str) -> Severity:
        """Parse severity from string (case-insensitive)."""
        try:
            return cls(value.lower())
        except ValueError:
            return cls.INFO

    @property
    def log_level(self) -> int:
        return {
            Severity.DEBUG: logging.DEBUG,
            Severity.INFO: logging.INFO,
            Severity.WARNING: logging.WARNING,
            Severity.ERROR: logging.ERROR,
        }[self]


# =============================================================================
# DATA MODELS
# =============================================================================


class ContextEvent(BaseModel):
    """
    Structured telemetry record.

    ``data`` carries event-specific numbers; for ``context.package_built``
    these are ``slice_count``, ``total_tokens``, ``sources``,
    ``compressed_count`` and ``duration_ms``.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))
    event_type: str = Field(..., description="Dotted event name")
    severity: Severity = Field(default=Severity.INFO)

    actor_id: str | None = Field(default=None)
    project_id: str | None = Field(default=None)
    package_id: str | None = Field(default=None)

    data: dict[str, Any] = Field(default_factory=dict, description="Event-specific data payload")
    source: str | None = Field(default=None, description="Component that emitted the event")

    def to_jsonl(self) -> str:
        """Convert to a single JSON line."""
        return self.model_dump_json()

    @classmethod
    def from_jsonl(cls, line: str) -> ContextEvent:
        """Parse from a JSON line."""
        return cls.model_validate_json(line)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


# =============================================================================
# SINKS
# =============================================================================


class NullTelemetrySink:
    """Discards every event."""

    def emit(self, event: ContextEvent) -> None:
        return None


class LoggingTelemetrySink:
    """Writes each event as JSON to a logger, at the event's severity."""

    def __init__(self, logger_name: str = "context_engineer.telemetry") -> None:
        self._logger = logging.getLogger(logger_name)

    def emit(self, event: ContextEvent) -> None:
        self._logger.log(event.severity.log_level, "%s %s", event.event_type, event.to_jsonl())


class InMemoryTelemetrySink:
    """
    Thread-safe bounded buffer of events.

    Oldest events are dropped once ``max_events`` is reached.
    """

    def __init__(self, max_events: int = DEFAULT_MAX_EVENTS) -> None:
        self._events: Deque[ContextEvent] = deque(maxlen=max_events)
        self._lock = threading.Lock()

    def emit(self, event: ContextEvent) -> None:
        with self._lock:
            self._events.append(event)

    @property
    def events(self) -> list[ContextEvent]:
        with self._lock:
            return list(self._events)

    def by_type(self, event_type: str) -> list[ContextEvent]:
        return [e for e in self.events if e.event_type == event_type]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)


class JsonlTelemetrySink:
    """
    Buffered JSONL file sink.

    ``emit`` only appends to an in-memory buffer.  A full buffer is handed
    to a single background writer thread, so batches land in emit order
    and the caller never touches the file.  ``flush()`` writes whatever is
    pending and waits for the writer; ``close()`` flushes and stops it.
    """

    def __init__(self, log_path: str | Path, buffer_size: int = DEFAULT_BUFFER_SIZE) -> None:
        if buffer_size <= 0:
            raise ValueError("buffer_size must be positive")
        self._path = Path(log_path).expanduser()
        self._buffer_size = buffer_size
        self._buffer: list[str] = []
        self._pending: list[Future[None]] = []
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="context-telemetry")
        self._closed = False

    @property
    def log_path(self) -> Path:
        return self._path

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffer)

    def emit(self, event: ContextEvent) -> None:
        line = event.to_jsonl()
        with self._lock:
            if self._closed:
                logger.debug("Dropping %s event; telemetry sink is closed", event.event_type)
                return
            self._buffer.append(line)
            if len(self._buffer) >= self._buffer_size:
                self._submit_locked()

    def flush(self) -> None:
        """Write buffered events and wait until every batch is on disk."""
        with self._lock:
            if self._buffer and not self._closed:
                self._submit_locked()
            pending, self._pending = self._pending, []
        for future in pending:
            future.result()

    def close(self) -> None:
        self.flush()
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=True)

    def _submit_locked(self) -> None:
        batch, self._buffer = self._buffer, []
        self._pending = [f for f in self._pending if not f.done()]
        self._pending.append(self._executor.submit(self._write, batch))

    def _write(self, lines: list[str]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, "a", encoding="utf-8") as f:
                f.write("\n".join(lines) + "\n")
        except OSError as e:
            logger.error("Failed to write %d telemetry events to %s: %s", len(lines), self._path, e)


class CallbackTelemetrySink:
    """
    Forwards events to registered callbacks.

    A failing callback is logged and does not stop the others.
    """

    def __init__(self, callbacks: list[Callable[[ContextEvent], None]] | None = None) -> None:
        self._callbacks: list[Callable[[ContextEvent], None]] = list(callbacks or [])

    def add_callback(self, callback: Callable[[ContextEvent], None]) -> None:
        self._callbacks.append(callback)

    def remove_callback(self, callback: Callable[[ContextEvent], None]) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def emit(self, event: ContextEvent) -> None:
        for callback in list(self._callbacks):
            try:
                callback(event)
            except Exception as e:
                logger.warning("Telemetry callback failed: %s", e)


def load_events_from_file(log_path: str | Path) -> list[ContextEvent]:
    """Read back events written by ``JsonlTelemetrySink``; bad lines are skipped."""
    events: list[ContextEvent] = []
    path = Path(log_path).expanduser()
    if not path.exists():
        return events

    with open(path, encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                events.append(ContextEvent.from_jsonl(line))
            except (ValueError, json.JSONDecodeError) as e:
                logger.debug("Skipping malformed event line %d in %s: %s", line_no, path, e)
    return events
