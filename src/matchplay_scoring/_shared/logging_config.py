# Area: Shared
"""
matchplay_scoring._shared.logging_config — Structured logging setup
===================================================================

Configures dual logging: terminal (colored) + file (JSON lines).
Provides structured logging for errors surfaced by a scoring session.
"""

from __future__ import annotations
import logging
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..errors import ScoringError

logger = logging.getLogger("matchplay_scoring")


class TerminalFormatter(logging.Formatter):
    """Colored formatter for terminal output."""

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


class JSONFormatter(logging.Formatter):
    """JSON formatter for file output."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in ("match_id", "session_id", "error_kind"):
            value = getattr(record, key, None)
            if value is not None:
                log_data[key] = value
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data)


def setup_logging(
    log_file_path: str = "matchplay_scoring.log",
    level: int = logging.INFO,
) -> None:
    """
    Configure logging for the package.

    Parameters
    ----------
    log_file_path : str
        Path to the log file. An empty string disables file logging.
    level : int
        Logging level. Defaults to INFO.
    """
    pkg_logger = logging.getLogger("matchplay_scoring")
    pkg_logger.setLevel(level)
    pkg_logger.handlers.clear()

    terminal_handler = logging.StreamHandler(sys.stderr)
    terminal_handler.setLevel(level)
    terminal_handler.setFormatter(TerminalFormatter(
        fmt="%(asctime)s │ %(levelname)s │ %(name)s │ %(message)s",
        datefmt="%H:%M:%S",
    ))
    pkg_logger.addHandler(terminal_handler)

    if log_file_path:
        try:
            log_path = Path(log_file_path)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path, encoding="utf-8")
            file_handler.setLevel(level)
            file_handler.setFormatter(JSONFormatter())
            pkg_logger.addHandler(file_handler)
        except OSError as e:
            pkg_logger.warning(f"Could not create log file: {e}")

    pkg_logger.propagate = False


def log_scoring_error(error: "ScoringError", match_id: str = None) -> None:
    """
    Log an error surfaced on a scoring session.

    Transient network failures are logged at WARNING, everything else
    at ERROR together with the formatted context block.
    """
    extra = {"match_id": match_id, "error_kind": error.kind}
    if error.kind == "network":
        logger.warning(f"Transient failure: {error}", extra=extra)
        return
    logger.error(error.format_error_log(), extra=extra)
