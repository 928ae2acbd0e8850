# src/context_engineer/exceptions.py
"""
Custom exceptions for the context_engineer library.

This module defines a hierarchy of exception classes so that callers can
tell the two fatal outcomes of a context build (access denied, build failed)
apart from each other and from locally recovered failures.

Every exception carries a stable ``code`` string matching the error taxonomy
surfaced to callers (e.g. ``"PERMISSION_DENIED"``).
"""


class ContextEngineerError(Exception):
    """Base class for all context_engineer specific errors."""

    code = "CONTEXT_ENGINEER_ERROR"

    def __init__(self, message: str = "An unspecified error occurred in context_engineer."):
        super().__init__(message)


class ConfigError(ContextEngineerError):
    """Raised for errors related to configuration loading or validation."""

    code = "CONFIG_ERROR"

    def __init__(self, message: str = "Configuration error."):
        super().__init__(message)


class PermissionDeniedError(ContextEngineerError):
    """
    Raised when the permission checker denies an agent access to a project.

    Fatal: raised before any source collection happens, and no partial
    package is produced.
    """

    code = "PERMISSION_DENIED"

    def __init__(
        self,
        actor_id: str = "Unknown",
        project_id: str = "Unknown",
        agent_name: str = "Unknown",
        message: str = "Access denied.",
    ):
        self.actor_id = actor_id
        self.project_id = project_id
        self.agent_name = agent_name
        super().__init__(
            f"{message} Actor '{actor_id}' may not run agent '{agent_name}' "
            f"on project '{project_id}'."
        )


class ContextBuildError(ContextEngineerError):
    """
    Raised when building a context package fails unexpectedly.

    The message is intentionally generic; the underlying cause is chained
    (``__cause__``) and logged, but not part of the message.
    """

    code = "CONTEXT_BUILD_FAILED"

    def __init__(self, message: str = "Failed to build context."):
        super().__init__(message)


class CollectorError(ContextEngineerError):
    """Raised by a source collector for an infrastructure failure it detects."""

    code = "COLLECTOR_FAILED"

    def __init__(self, collector_name: str = "Unknown", message: str = "Collector error."):
        self.collector_name = collector_name
        super().__init__(f"Error in collector '{collector_name}': {message}")


class CompressionError(ContextEngineerError):
    """Raised by a summarizer that cannot compress the given text."""

    code = "COMPRESSION_FAILED"

    def __init__(self, message: str = "Compression failed."):
        super().__init__(message)
