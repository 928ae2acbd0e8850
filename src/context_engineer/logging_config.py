# src/context_engineer/logging_config.py
"""
Logging configuration for context_engineer.

Library modules only ever call ``logging.getLogger(__name__)``; this module
is for applications that want a ready-made setup:

- Console logging with display-level gating (see DisplayFilter)
- Optional file logging, per run or a single rotating file
- Per-component log level overrides

Quiet mode (``console_enabled=False``, the default) keeps a console handler
but lets through only records flagged with ``extra={"display": True}``, so
an agent runner can report "context ready" lines without the debug chatter.

Usage:
    from context_engineer.logging_config import configure_logging, log_display

    configure_logging(app_name="agent-runner", config={"console_enabled": True})

    import logging
    logger = logging.getLogger("agent_runner.startup")
    log_display(logger, logging.INFO, "Context engine ready (budget=%d)", 8000)
"""

import logging
import os
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

DEFAULT_LOGGING_CONFIG: dict[str, Any] = {
    "console_enabled": False,
    "console_level": "WARNING",
    "console_format": "%(levelname)s - %(message)s",
    "file_enabled": False,
    "file_level": "DEBUG",
    "file_directory": "~/.local/share/context_engineer/logs",
    "file_mode": "per_run",
    "file_name_pattern": "{app}_{timestamp:%Y%m%d_%H%M%S}.log",
    "file_single_name": "{app}.log",
    "file_format": "%(asctime)s [%(levelname)-8s] %(name)-30s - %(message)s (%(filename)s:%(lineno)d)",
    "rotation_max_bytes": 10 * 1024 * 1024,  # 10 MB
    "rotation_backup_count": 5,
    "display_min_level": "INFO",
    "components": {
        "context_engineer": "INFO",
        "context_engineer.telemetry": "INFO",
        "asyncio": "WARNING",
    },
}


class DisplayFilter(logging.Filter):
    """Gate for the console handler.

    In verbose mode every record passes.  In quiet mode only records logged
    with ``extra={"display": True}`` at or above ``display_min_level`` pass.
    """

    def __init__(
        self,
        console_globally_enabled: bool = False,
        display_min_level: int = logging.INFO,
    ) -> None:
        super().__init__()
        self.console_globally_enabled = console_globally_enabled
        self.display_min_level = display_min_level

    def filter(self, record: logging.LogRecord) -> bool:
        if self.console_globally_enabled:
            return True

        if getattr(record, "display", False):
            return record.levelno >= self.display_min_level

        return False


class UnifiedLoggingManager:
    """
    Singleton manager for logging configuration.

    Ensures logging is only configured once and provides methods
    for runtime adjustment of log levels.
    """

    _instance: Optional["UnifiedLoggingManager"] = None
    _configured: bool = False
    _log_file_path: Optional[Path] = None
    _console_handler: Optional[logging.Handler] = None
    _file_handler: Optional[logging.Handler] = None

    def __new__(cls) -> "UnifiedLoggingManager":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @classmethod
    def is_configured(cls) -> bool:
        return cls._configured

    @classmethod
    def get_log_file_path(cls) -> Optional[Path]:
        return cls._log_file_path

    def configure(
        self,
        app_name: str = "context_engineer",
        config: Optional[dict[str, Any]] = None,
        force_reconfigure: bool = False,
    ) -> Optional[Path]:
        """
        Configure logging for the application.

        Args:
            app_name: Name of the application (used in log filename).
            config: Logging settings merged over ``DEFAULT_LOGGING_CONFIG``.
            force_reconfigure: Reconfigure even if already configured.

        Returns:
            Path to the log file, or ``None`` when file logging is off.
        """
        if self._configured and not force_reconfigure:
            return self._log_file_path

        log_config = {**DEFAULT_LOGGING_CONFIG, **(config or {})}

        root_logger = logging.getLogger()
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
            handler.close()
        root_logger.setLevel(logging.DEBUG)

        console_globally_enabled = bool(log_config.get("console_enabled", False))
        display_min_level = _level(log_config.get("display_min_level", "INFO"), logging.INFO)
        display_filter = DisplayFilter(
            console_globally_enabled=console_globally_enabled,
            display_min_level=display_min_level,
        )

        console_handler = logging.StreamHandler(sys.stderr)
        if console_globally_enabled:
            console_handler.setLevel(_level(log_config.get("console_level"), logging.WARNING))
        else:
            # The filter is the sole gate in quiet mode
            console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(logging.Formatter(log_config["console_format"]))
        console_handler.addFilter(display_filter)
        root_logger.addHandler(console_handler)
        UnifiedLoggingManager._console_handler = console_handler

        file_handler: Optional[logging.Handler] = None
        log_file_path: Optional[Path] = None
        if log_config.get("file_enabled", False):
            file_handler, log_file_path = _create_file_handler(log_config, app_name)
            if file_handler is not None:
                root_logger.addHandler(file_handler)
        UnifiedLoggingManager._file_handler = file_handler

        for component_name, level_str in log_config.get("components", {}).items():
            logging.getLogger(component_name).setLevel(_level(level_str, logging.INFO))

        UnifiedLoggingManager._configured = True
        UnifiedLoggingManager._log_file_path = log_file_path

        if log_file_path:
            logging.getLogger(__name__).debug("Logging configured. Log file: %s", log_file_path)

        return log_file_path

    def set_console_level(self, level: str | int) -> None:
        if self._console_handler is not None:
            self._console_handler.setLevel(_level(level, logging.WARNING))

    def set_component_level(self, component: str, level: str | int) -> None:
        logging.getLogger(component).setLevel(_level(level, logging.INFO))


def _level(value: Any, default: int) -> int:
    """Resolve a level name or number, falling back to ``default``."""
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        resolved = logging.getLevelName(value.upper())
        if isinstance(resolved, int):
            return resolved
    return default


def _resolve_log_path(config: dict[str, Any], app_name: str) -> Path:
    """Log file path for ``app_name`` under the configured directory and mode."""
    log_dir = Path(os.path.expanduser(config["file_directory"]))
    if config.get("file_mode", "per_run") == "single":
        pattern = config.get("file_single_name", "{app}.log")
        fallback = f"{app_name}.log"
    else:
        pattern = config["file_name_pattern"]
        fallback = f"{app_name}_{datetime.now():%Y%m%d_%H%M%S}.log"
    try:
        return log_dir / pattern.format(app=app_name, timestamp=datetime.now())
    except (KeyError, ValueError):
        return log_dir / fallback


def _create_file_handler(
    config: dict[str, Any], app_name: str
) -> tuple[Optional[logging.Handler], Optional[Path]]:
    """Open the log file; returns ``(None, None)`` when that is not possible."""
    log_file_path = _resolve_log_path(config, app_name)

    handler: logging.Handler
    try:
        log_file_path.parent.mkdir(parents=True, exist_ok=True)
        if config.get("file_mode", "per_run") == "single":
            handler = RotatingFileHandler(
                log_file_path,
                maxBytes=config.get("rotation_max_bytes", 10 * 1024 * 1024),
                backupCount=config.get("rotation_backup_count", 5),
                encoding="utf-8",
            )
        else:
            handler = logging.FileHandler(log_file_path, encoding="utf-8")
    except OSError as e:
        # Logging is not set up yet, so report straight to stderr
        sys.stderr.write(f"context_engineer: file logging disabled ({log_file_path}): {e}\n")
        return None, None

    handler.setLevel(_level(config.get("file_level"), logging.DEBUG))
    handler.setFormatter(logging.Formatter(config["file_format"]))
    return handler, log_file_path


# ---------------------------------------------------------------------------
# Public module-level functions
# ---------------------------------------------------------------------------


def configure_logging(
    app_name: str = "context_engineer",
    config: Optional[dict[str, Any]] = None,
    force_reconfigure: bool = False,
) -> Optional[Path]:
    """
    Configure logging for the application.

    Example:
        configure_logging(
            app_name="agent-runner",
            config={"console_enabled": True, "file_enabled": True, "file_directory": "/var/log/agents"},
        )
    """
    return UnifiedLoggingManager().configure(
        app_name=app_name,
        config=config,
        force_reconfigure=force_reconfigure,
    )


def get_log_file_path() -> Optional[Path]:
    return UnifiedLoggingManager.get_log_file_path()


def set_console_level(level: str | int) -> None:
    UnifiedLoggingManager().set_console_level(level)


def set_component_level(component: str, level: str | int) -> None:
    UnifiedLoggingManager().set_component_level(component, level)


def log_display(logger: logging.Logger, level: int, msg: str, *args: Any) -> None:
    """Log a message that reaches the console even in quiet mode."""
    logger.log(level, msg, *args, extra={"display": True})
