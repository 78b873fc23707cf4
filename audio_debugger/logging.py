"""
Structured logging for Audio Debugger.

This module provides a small structured logger that writes either a
coloured console line or a JSON record to stderr, so log output never mixes
with text presented to the user on stdout.

Usage:
    from audio_debugger.logging import get_logger

    logger = get_logger("completion")
    logger.info("Sending request", model="gpt-4o-mini")
    logger.request("POST chat/completions", model="gpt-4o-mini")
    logger.speech("Text has been spoken.")
"""

import json
import sys
import time
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Optional, TextIO


class LogLevel(Enum):
    """Log severity levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"

    @classmethod
    def parse(cls, value: str) -> "LogLevel":
        """Parse a level name, accepting WARNING as an alias of WARN."""
        name = value.strip().upper()
        if name == "WARNING":
            name = "WARN"
        return cls(name)


@dataclass
class LogEntry:
    """Structured log entry."""
    ts: float           # Unix timestamp
    module: str         # Module name
    level: str          # Log level
    msg: str            # Message
    tag: Optional[str] = None      # Semantic tag (REQUEST/RESPONSE/SPEECH)
    details: Optional[dict] = None  # Additional data

    def to_json(self) -> str:
        """Convert to JSON string, omitting None fields."""
        data = {k: v for k, v in asdict(self).items() if v is not None}
        return json.dumps(data, ensure_ascii=False, default=str)

    def to_console(self) -> str:
        """Format for console output with colors."""
        colors = {
            "DEBUG": "\033[90m",    # Gray
            "INFO": "\033[97m",     # White
            "WARN": "\033[93m",     # Yellow
            "ERROR": "\033[91m",    # Red
        }
        reset = "\033[0m"

        color = colors.get(self.level, "")
        timestamp = time.strftime("%H:%M:%S", time.localtime(self.ts))
        details_str = ""
        if self.details:
            details_str = " " + " ".join(f"{k}={v}" for k, v in self.details.items())

        if self.tag == "REQUEST":
            return f"{color}[{timestamp}] >> {self.msg}{details_str}{reset}"
        elif self.tag == "RESPONSE":
            return f"{color}[{timestamp}] << {self.msg}{details_str}{reset}"
        elif self.tag == "SPEECH":
            return f"{color}[{timestamp}] ~~ {self.msg}{details_str}{reset}"
        else:
            return f"{color}[{timestamp}] [{self.level}] [{self.module}] {self.msg}{details_str}{reset}"


class StructuredLogger:
    """
    Structured logger with console or JSON output.

    Args:
        module: Module name for identification
        min_level: Minimum level to log (default: INFO)
        json_format: Emit JSON records instead of console lines
        stream: Output stream (default: sys.stderr at write time)
    """

    _LEVEL_ORDER = {
        LogLevel.DEBUG: 0,
        LogLevel.INFO: 1,
        LogLevel.WARN: 2,
        LogLevel.ERROR: 3,
    }

    def __init__(
        self,
        module: str,
        min_level: LogLevel = LogLevel.INFO,
        json_format: bool = False,
        stream: Optional[TextIO] = None,
    ):
        self.module = module
        self.min_level = min_level
        self.json_format = json_format
        self.stream = stream

    def _should_log(self, level: LogLevel) -> bool:
        """Check if level meets minimum threshold."""
        return self._LEVEL_ORDER[level] >= self._LEVEL_ORDER[self.min_level]

    def log(
        self,
        level: LogLevel,
        msg: str,
        tag: Optional[str] = None,
        **extra: Any
    ) -> None:
        """
        Log a message with optional extra fields.

        Args:
            level: Log level
            msg: Log message
            tag: Optional semantic tag
            **extra: Additional fields to include
        """
        if not self._should_log(level):
            return

        entry = LogEntry(
            ts=time.time(),
            module=self.module,
            level=level.value,
            msg=msg,
            tag=tag,
            details=extra if extra else None
        )

        stream = self.stream or sys.stderr
        line = entry.to_json() if self.json_format else entry.to_console()
        try:
            print(line, file=stream)
        except UnicodeEncodeError:
            stream.write(entry.to_json().encode("ascii", "backslashreplace").decode("ascii") + "\n")
            stream.flush()

    # ========== Standard Levels ==========

    def debug(self, msg: str, **extra: Any) -> None:
        """Log debug message."""
        self.log(LogLevel.DEBUG, msg, **extra)

    def info(self, msg: str, **extra: Any) -> None:
        """Log info message."""
        self.log(LogLevel.INFO, msg, **extra)

    def warn(self, msg: str, **extra: Any) -> None:
        """Log warning message."""
        self.log(LogLevel.WARN, msg, **extra)

    def error(self, msg: str, **extra: Any) -> None:
        """Log error message."""
        self.log(LogLevel.ERROR, msg, **extra)

    # ========== Tagged Events ==========

    def request(self, msg: str, **extra: Any) -> None:
        """Log an outgoing completion request."""
        self.log(LogLevel.DEBUG, msg, tag="REQUEST", **extra)

    def response(self, msg: str, **extra: Any) -> None:
        """Log a completion response."""
        self.log(LogLevel.DEBUG, msg, tag="RESPONSE", **extra)

    def speech(self, msg: str, **extra: Any) -> None:
        """Log a speech event."""
        self.log(LogLevel.INFO, msg, tag="SPEECH", **extra)


# ========== Logger Factory ==========

_loggers: dict[str, StructuredLogger] = {}
_default_level: LogLevel = LogLevel.INFO
_json_format: bool = False


def configure_logging(level: LogLevel | str = LogLevel.INFO, json_format: bool = False) -> None:
    """Set the level and format for all current and future loggers."""
    global _default_level, _json_format
    if isinstance(level, str):
        level = LogLevel.parse(level)
    _default_level = level
    _json_format = json_format
    for logger in _loggers.values():
        logger.min_level = level
        logger.json_format = json_format


def get_logger(module: str) -> StructuredLogger:
    """
    Get or create a logger for the given module.

    Args:
        module: Module name

    Returns:
        StructuredLogger instance
    """
    if module not in _loggers:
        _loggers[module] = StructuredLogger(module, _default_level, _json_format)
    return _loggers[module]
