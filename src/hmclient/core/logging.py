"""Structured logging utilities.

Records are emitted as one JSON object per line. Progress (DEBUG/INFO) goes
to stdout; WARN/ERROR go to stderr so that protocol traces and diagnostics
can be separated.
"""

from __future__ import annotations

import json
import os
import sys
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, TextIO

LEVELS = {"DEBUG": 0, "INFO": 1, "WARN": 2, "ERROR": 3}
DEFAULT_LEVEL = os.environ.get("HMCLIENT_LOG_LEVEL", "INFO")


@dataclass
class LogRecord:
    """Structured log record."""

    level: str
    message: str
    timestamp: float = field(default_factory=time.time)
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level,
            "message": self.message,
            "timestamp": self.timestamp,
            **self.data,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


def _level_value(level: str) -> int:
    level = level.upper()
    if level == "WARNING":
        level = "WARN"
    return LEVELS.get(level, LEVELS["INFO"])


class StructuredLogger:
    """Structured logger with JSON output."""

    def __init__(
        self,
        name: str,
        output: TextIO | None = None,
        error_output: TextIO | None = None,
        min_level: str = DEFAULT_LEVEL,
    ) -> None:
        self.name = name
        self._output = output
        self._error_output = error_output
        self._min_level = _level_value(min_level)

    # Resolved lazily so pytest's capsys/capfd replacements are honoured.
    @property
    def output(self) -> TextIO:
        return self._output or sys.stdout

    @property
    def error_output(self) -> TextIO:
        return self._error_output or sys.stderr

    def is_enabled_for(self, level: str) -> bool:
        return _level_value(level) >= self._min_level

    def _log(self, level: str, message: str, **data: Any) -> None:
        if not self.is_enabled_for(level):
            return

        record = LogRecord(level=level, message=message, data={"logger": self.name, **data})
        stream = self.error_output if LEVELS[level] >= LEVELS["WARN"] else self.output
        print(record.to_json(), file=stream, flush=True)

    def debug(self, message: str, **data: Any) -> None:
        self._log("DEBUG", message, **data)

    def info(self, message: str, **data: Any) -> None:
        self._log("INFO", message, **data)

    def warn(self, message: str, **data: Any) -> None:
        self._log("WARN", message, **data)

    def error(self, message: str, **data: Any) -> None:
        self._log("ERROR", message, **data)

    @contextmanager
    def timer(self, operation: str, **data: Any):
        """Log the duration of the wrapped block at DEBUG level.

        Usage:
            with logger.timer("evaluate_round", round=3):
                ...
        """
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - start
            self.debug(f"{operation} completed", elapsed_ms=elapsed * 1000, **data)


_loggers: dict[str, StructuredLogger] = {}
_current_level = DEFAULT_LEVEL


def get_logger(name: str) -> StructuredLogger:
    """Get or create a structured logger.

    Args:
        name: Logger name (typically __name__).
    """
    if name not in _loggers:
        _loggers[name] = StructuredLogger(name, min_level=_current_level)
    return _loggers[name]


def set_log_level(level: str) -> None:
    """Set minimum log level for existing and future loggers.

    Args:
        level: One of DEBUG, INFO, WARN, ERROR.
    """
    global _current_level
    _current_level = level
    for logger in _loggers.values():
        logger._min_level = _level_value(level)
