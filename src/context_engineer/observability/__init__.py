# src/context_engineer/observability/__init__.py
"""
Telemetry for context assembly.

See ``events`` for the event model and the available sinks.
"""

from .events import (
    PACKAGE_BUILT,
    CallbackTelemetrySink,
    ContextEvent,
    InMemoryTelemetrySink,
    JsonlTelemetrySink,
    LoggingTelemetrySink,
    NullTelemetrySink,
    Severity,
    load_events_from_file,
)

__all__ = [
    "PACKAGE_BUILT",
    "CallbackTelemetrySink",
    "ContextEvent",
    "InMemoryTelemetrySink",
    "JsonlTelemetrySink",
    "LoggingTelemetrySink",
    "NullTelemetrySink",
    "Severity",
    "load_events_from_file",
]
