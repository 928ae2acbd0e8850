# tests/observability/__init__.py
"""Tests for the context_engineer telemetry events and sinks."""
