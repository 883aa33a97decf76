"""
Logger Utility
==============

Context-aware logging for the relay.

Every component creates its own Logger with a short context name
("Agent", "Decision", "Search", ...). Per-reply loggers are derived with
child() so a streamed reply can be followed through the output:

    [2024-01-31T10:30:00] [INFO] [Agent:Handler:1706696400.1234] Stream completed

Usage:
    from scribe.utils.logger import Logger, logger

    logger.info("Relay started")

    agent_logger = Logger("Agent")
    agent_logger.debug("Dispatching message", {"channel": "C123"})
"""

import json
import os
import sys
from datetime import datetime
from enum import IntEnum
from typing import Any


class LogLevel(IntEnum):
    """Log levels with numeric values for comparison."""
    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40


class Colors:
    """ANSI escape codes for colored terminal output."""
    RESET = "\033[0m"
    DEBUG = "\033[36m"    # Cyan
    INFO = "\033[32m"     # Green
    WARNING = "\033[33m"  # Yellow
    ERROR = "\033[31m"    # Red
    DIM = "\033[2m"


_LEVEL_NAMES = {
    "DEBUG": LogLevel.DEBUG,
    "INFO": LogLevel.INFO,
    "WARNING": LogLevel.WARNING,
    "WARN": LogLevel.WARNING,
    "ERROR": LogLevel.ERROR,
}


def parse_log_level(value: str | None) -> LogLevel:
    """
    Map a level name (case-insensitive) to a LogLevel.

    Unknown or empty values fall back to INFO.
    """
    return _LEVEL_NAMES.get((value or "INFO").upper(), LogLevel.INFO)


class Logger:
    """
    A context-aware logger with colored output.

    Example:
        logger = Logger("Streamer")
        logger.info("Opening stream")

        child = logger.child("msg-42")
        child.warning("Slow provider", {"elapsed_ms": 3200})
    """

    def __init__(self, context: str = "", level: LogLevel | None = None):
        """
        Initialize a logger.

        Args:
            context: Prefix for all log messages (e.g., "Agent", "Search")
            level: Minimum level; read from LOG_LEVEL when omitted
        """
        self.context = context
        self._min_level = level if level is not None else parse_log_level(os.getenv("LOG_LEVEL"))

    def child(self, child_context: str) -> "Logger":
        """
        Create a child logger with additional context.

        The child inherits this logger's level. Logs show [Parent:Child].
        """
        new_context = f"{self.context}:{child_context}" if self.context else child_context
        return Logger(new_context, level=self._min_level)

    def set_level(self, level: LogLevel | str) -> None:
        """Change the minimum level, accepting a LogLevel or its name."""
        self._min_level = level if isinstance(level, LogLevel) else parse_log_level(level)

    def is_enabled_for(self, level: LogLevel) -> bool:
        return level >= self._min_level

    def _format_message(self, level: str, message: str, color: str) -> str:
        timestamp = datetime.now().isoformat(timespec="seconds")
        context_str = f"[{self.context}] " if self.context else ""

        return (
            f"{Colors.DIM}[{timestamp}]{Colors.RESET} "
            f"{color}[{level}]{Colors.RESET} "
            f"{context_str}{message}"
        )

    def _log(
        self,
        level: LogLevel,
        level_name: str,
        color: str,
        message: str,
        data: dict[str, Any] | None = None
    ) -> None:
        if not self.is_enabled_for(level):
            return

        stream = sys.stderr if level >= LogLevel.ERROR else sys.stdout
        print(self._format_message(level_name, message, color), file=stream)

        if data:
            data_str = json.dumps(data, indent=2, default=str)
            print(f"{Colors.DIM}{data_str}{Colors.RESET}", file=stream)

    def debug(self, message: str, data: dict[str, Any] | None = None) -> None:
        """Log a debug message. Only shown when LOG_LEVEL=DEBUG."""
        self._log(LogLevel.DEBUG, "DEBUG", Colors.DEBUG, message, data)

    def info(self, message: str, data: dict[str, Any] | None = None) -> None:
        """Log an info message."""
        self._log(LogLevel.INFO, "INFO", Colors.INFO, message, data)

    def warning(self, message: str, data: dict[str, Any] | None = None) -> None:
        """Log a warning: something degraded but the relay keeps going."""
        self._log(LogLevel.WARNING, "WARN", Colors.WARNING, message, data)

    def error(
        self,
        message: str,
        error: BaseException | None = None,
        data: dict[str, Any] | None = None
    ) -> None:
        """
        Log an error message.

        Args:
            message: The error message
            error: Optional exception whose type and text are attached
            data: Optional extra structured data
        """
        payload = dict(data) if data else {}
        if error is not None:
            payload["error_type"] = type(error).__name__
            payload["error_message"] = str(error)
        self._log(LogLevel.ERROR, "ERROR", Colors.ERROR, message, payload or None)


# Default logger instance for general use
logger = Logger("Scribe")
