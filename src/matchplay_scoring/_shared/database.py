# Area: Shared
"""
matchplay_scoring._shared.database — Local Storage
==================================================

SQLite connection management for the state that has to survive reloads
and be visible to every open scoring session on the device: the offline
queue, the session lock and the lock event log.
"""

import sqlite3
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from ..errors import StorageError

logger = logging.getLogger("matchplay_scoring.database")

SCHEMA_PATH = Path(__file__).parent / "schema.sql"

DEFAULT_DB_PATH = "scoring_state.db"


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """
    Get a database connection.

    Args:
        db_path: Path to the SQLite database file

    Returns:
        SQLite connection with row factory set
    """
    conn = sqlite3.connect(db_path, timeout=5.0)
    conn.row_factory = sqlite3.Row
    return conn


def init_database(db_path: str = DEFAULT_DB_PATH) -> None:
    """
    Create the tables if they do not exist yet.

    Args:
        db_path: Path to the SQLite database file
    """
    conn = get_connection(db_path)
    try:
        conn.executescript(SCHEMA_PATH.read_text(encoding="utf-8"))
        conn.commit()
        logger.debug("Database initialized at %s", db_path)
    finally:
        conn.close()


class BaseRepository:
    """
    Base class for local storage repositories.

    Every call opens its own short-lived connection so that several
    sessions (processes) can share one database file.
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        self.db_path = db_path
        try:
            init_database(db_path)
        except sqlite3.DatabaseError as e:
            logger.warning("Local storage unavailable at %s: %s", db_path, e)

    def _get_conn(self) -> sqlite3.Connection:
        return get_connection(self.db_path)

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """
        Open a connection and close it afterwards.

        Raises:
            StorageError: the file is locked, corrupt or not a database
        """
        try:
            conn = self._get_conn()
        except sqlite3.DatabaseError as e:
            raise StorageError(f"Local storage failed: {e}", db_path=self.db_path) from e
        try:
            yield conn
        except sqlite3.DatabaseError as e:
            raise StorageError(f"Local storage failed: {e}", db_path=self.db_path) from e
        finally:
            conn.close()

    def _execute(
        self, query: str, params: tuple = (), fetch: bool = False
    ) -> Optional[list]:
        """
        Execute a query.

        Args:
            query: SQL query string
            params: Query parameters
            fetch: If True, fetch and return results

        Returns:
            Query results if fetch=True, else None
        """
        with self._connection() as conn:
            cursor = conn.execute(query, params)
            if fetch:
                return [dict(row) for row in cursor.fetchall()]
            conn.commit()
            return None

    def _execute_one(self, query: str, params: tuple = ()) -> Optional[dict]:
        """Execute query and return single result."""
        results = self._execute(query, params, fetch=True)
        return results[0] if results else None

    def _execute_many(self, statements: list) -> None:
        """Run several (query, params) pairs in one transaction."""
        with self._connection() as conn, conn:
            for query, params in statements:
                conn.execute(query, params)
