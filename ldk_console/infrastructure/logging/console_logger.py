"""
Structured logging for the console.

Provides:
- JSON output for log files and log shippers
- Human-readable output for the terminal
- Timing of remote calls
"""
import logging
import json
import sys
import time
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Optional, Dict, Any
from pathlib import Path

ROOT_LOGGER_NAME = "ldk_console"


@dataclass
class LogEntry:
    """Structured log entry."""
    timestamp: str
    level: str
    message: str
    logger: Optional[str] = None
    operation: Optional[str] = None
    duration_ms: Optional[float] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> str:
        """Convert to JSON string."""
        data = {k: v for k, v in asdict(self).items() if v is not None}
        if not data.get('extra'):
            data.pop('extra', None)
        return json.dumps(data, default=str)

    def to_human(self) -> str:
        """Convert to human-readable string."""
        parts = [
            f"[{self.timestamp}]",
            f"[{self.level}]",
        ]

        if self.logger:
            parts.append(f"[{self.logger}]")

        parts.append(self.message)

        if self.duration_ms is not None:
            parts.append(f"({self.duration_ms:.2f}ms)")

        if self.error:
            parts.append(f"ERROR: {self.error}")

        return " ".join(parts)


def _short_name(name: str) -> str:
    prefix = ROOT_LOGGER_NAME + "."
    return name[len(prefix):] if name.startswith(prefix) else name


class JSONFormatter(logging.Formatter):
    """JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        entry = LogEntry(
            timestamp=datetime.now(timezone.utc).isoformat(),
            level=record.levelname,
            message=record.getMessage(),
            logger=record.name,
            operation=getattr(record, 'operation', None),
            duration_ms=getattr(record, 'duration_ms', None),
            error=str(record.exc_info[1]) if record.exc_info else None,
            error_type=record.exc_info[0].__name__ if record.exc_info and record.exc_info[0] else None,
            extra=getattr(record, 'fields', {}) or {},
        )
        return entry.to_json()


class HumanFormatter(logging.Formatter):
    """Human-readable formatter for the terminal."""

    def format(self, record: logging.LogRecord) -> str:
        entry = LogEntry(
            timestamp=datetime.now().strftime("%H:%M:%S"),
            level=record.levelname,
            message=record.getMessage(),
            logger=_short_name(record.name),
            duration_ms=getattr(record, 'duration_ms', None),
            error=str(record.exc_info[1]) if record.exc_info else None,
        )
        return entry.to_human()


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Optional[Path] = None,
    stream=None,
    console: bool = True,
) -> logging.Logger:
    """
    Configure the package logger.

    Args:
        level: Level name for the console handler
        json_output: Emit JSON lines instead of human-readable text
        log_file: Optional file that always receives DEBUG-level JSON
        stream: Console stream (defaults to stderr)
        console: Attach the console handler; the TUI turns this off because
            it owns the terminal

    Returns:
        The configured ``ldk_console`` logger
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG if log_file else getattr(logging, level.upper(), logging.INFO))
    logger.handlers.clear()
    logger.propagate = False

    if console:
        console_handler = logging.StreamHandler(stream or sys.stderr)
        console_handler.setLevel(getattr(logging, level.upper(), logging.INFO))
        console_handler.setFormatter(JSONFormatter() if json_output else HumanFormatter())
        logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JSONFormatter())
        logger.addHandler(file_handler)

    if not logger.handlers:
        # Keeps records away from the last-resort stderr handler
        logger.addHandler(logging.NullHandler())

    return logger


class TimedOperation:
    """Context manager logging how long an operation took."""

    def __init__(self, logger: logging.Logger, operation: str, **fields):
        self._logger = logger
        self._operation = operation
        self._fields = fields
        self._start: Optional[float] = None
        self.duration_ms: Optional[float] = None

    def __enter__(self):
        self._start = time.perf_counter()
        self._logger.debug(
            f"Starting {self._operation}",
            extra={'operation': self._operation, 'fields': self._fields},
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration_ms = (time.perf_counter() - self._start) * 1000
        extra = {
            'operation': self._operation,
            'duration_ms': self.duration_ms,
            'fields': self._fields,
        }

        if exc_type:
            self._logger.warning(f"Failed {self._operation}: {exc_val}", extra=extra)
        else:
            self._logger.info(f"Completed {self._operation}", extra=extra)

        return False  # Don't suppress exceptions


def timed_operation(logger: logging.Logger, operation: str, **fields) -> TimedOperation:
    """Factory for ``TimedOperation``."""
    return TimedOperation(logger, operation, **fields)
