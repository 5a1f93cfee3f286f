# Area: Shared
"""
Shared utilities used by the sync, scoring and session layers.

This package contains:
- Logging configuration
- SQLite storage helpers
"""

from .logging_config import setup_logging, log_scoring_error
from .database import BaseRepository, DEFAULT_DB_PATH, get_connection, init_database

__all__ = [
    "setup_logging",
    "log_scoring_error",
    "BaseRepository",
    "DEFAULT_DB_PATH",
    "get_connection",
    "init_database",
]
