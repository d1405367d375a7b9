"""
Logging configuration for the futures replay engine.

Provides consistent logging format across all modules with:
- JSON-ish structured output when requested
- Human-readable output for development
- Session ID tracking so every line of a replay can be correlated
- A bounded in-memory buffer for diagnostics panels
"""

import logging
import sys
from collections import deque
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

# Context variable for tracking the active replay session
current_session_id: ContextVar[str | None] = ContextVar("current_session_id", default=None)


class ReplayFormatter(logging.Formatter):
    """
    Formatter for replay engine logs.

    Includes timestamp, level, module, session_id (if set), and message.
    """

    def format(self, record: logging.LogRecord) -> str:
        record.timestamp = datetime.now(UTC).isoformat()

        session_id = current_session_id.get()
        record.session_id = f"[{session_id}] " if session_id else ""

        return super().format(record)


class InMemoryHandler(logging.Handler):
    """In-memory log handler for UI diagnostics."""

    def __init__(self, capacity: int = 1000):
        super().__init__()
        self.logs: deque[dict[str, Any]] = deque(maxlen=capacity)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            log_entry = {
                "timestamp": getattr(record, "timestamp", datetime.now(UTC).isoformat()),
                "level": record.levelname,
                "level_no": record.levelno,
                "logger": record.name,
                "session_id": current_session_id.get(),
                "message": record.getMessage(),
            }
            self.logs.append(log_entry)
        except Exception:
            self.handleError(record)


_in_memory_handler = InMemoryHandler()


def setup_logging(level: str = "INFO", json_output: bool = False) -> logging.Logger:
    """
    Configure logging for the replay engine.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: If True, output one JSON object per line

    Returns:
        Configured root logger
    """
    root = logging.getLogger()
    root.handlers.clear()

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(numeric_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)

    if json_output:
        fmt = (
            '{"timestamp": "%(timestamp)s", "level": "%(levelname)s", '
            '"module": "%(name)s", "session_id": "%(session_id)s", "message": "%(message)s"}'
        )
    else:
        fmt = "%(timestamp)s | %(levelname)-8s | %(name)s | %(session_id)s%(message)s"

    formatter = ReplayFormatter(fmt)
    handler.setFormatter(formatter)
    root.addHandler(handler)

    _in_memory_handler.setLevel(numeric_level)
    _in_memory_handler.setFormatter(formatter)
    root.addHandler(_in_memory_handler)

    # asyncio logs a debug line per scheduled callback in debug mode
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    return root


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a specific module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def get_in_memory_logs(level: str = "INFO", limit: int = 50) -> list[dict[str, Any]]:
    """Get filtered logs from memory."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    filtered = [log for log in _in_memory_handler.logs if log["level_no"] >= numeric_level]
    return filtered[-limit:]


def clear_in_memory_logs() -> None:
    """Drop everything buffered by the in-memory handler."""
    _in_memory_handler.logs.clear()


def set_session_id(session_id: str) -> None:
    """Set the current session ID for log correlation."""
    current_session_id.set(session_id)


def clear_session_id() -> None:
    """Clear the current session ID."""
    current_session_id.set(None)
