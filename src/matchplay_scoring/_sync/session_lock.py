# Area: Sync
"""
matchplay_scoring._sync.session_lock — Scoring Session Lock
===========================================================

Mutual exclusion between open scoring sessions on one device, so that
only one session at a time submits scores for a match.

Recovery is purely staleness based: a holder heartbeats with
``refresh()``; a lock whose timestamp is older than ``stale_after``
seconds is treated as abandoned and may be taken by anyone.

Lock scope
----------
``"match"`` (default) keeps one slot per match, so two sessions can
score two different matches side by side. ``"global"`` keeps a single
slot for the whole device: any live lock blocks every other session.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import List, Optional

from .._shared.database import BaseRepository
from ..errors import StorageError
from .event_bus import LockEventBus, LockEventType

logger = logging.getLogger("matchplay_scoring.lock")

STALE_AFTER_SECONDS = 120.0
GLOBAL_SLOT = "*"
LOCK_SCOPES = ("match", "global")


@dataclass
class LockRecord:
    """The session currently authoritative for a match."""

    match_id: str
    session_id: str
    timestamp: float

    def age(self) -> float:
        return time.time() - self.timestamp


class SessionLock(BaseRepository):
    """
    Repository for the scoring_session table.

    Acquisition and release are broadcast on the injected event bus so
    other sessions can react without polling the lock themselves.
    """

    def __init__(self, db_path: str, bus: Optional[LockEventBus] = None,
                 stale_after: float = STALE_AFTER_SECONDS, scope: str = "match"):
        if scope not in LOCK_SCOPES:
            raise ValueError(f"Invalid lock scope: {scope!r}")
        super().__init__(db_path)
        self.bus = bus
        self.stale_after = stale_after
        self.scope = scope

    def acquire(self, match_id: str, session_id: str, force: bool = False) -> bool:
        """
        Try to become the authoritative session for a match.

        Succeeds when the slot is free, already held by ``session_id``,
        stale, or when ``force`` is set (explicit take-over).

        Returns:
            True if the lock is now held by ``session_id``

        Raises:
            StorageError: the lock record cannot be read or written
        """
        slot = self._slot(match_id)
        now = time.time()
        with self._connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute(
                "SELECT * FROM scoring_session WHERE slot = ?", (slot,)
            ).fetchone()
            if row and row["session_id"] != session_id and not force:
                if now - row["timestamp"] <= self.stale_after:
                    conn.rollback()
                    logger.info(
                        "Lock for match %s held by session %s", row["match_id"], row["session_id"]
                    )
                    return False
                logger.info("Reclaiming stale lock of session %s", row["session_id"])
            conn.execute(
                "INSERT OR REPLACE INTO scoring_session (slot, match_id, session_id, timestamp) "
                "VALUES (?, ?, ?, ?)",
                (slot, match_id, session_id, now),
            )
            conn.commit()

        logger.info("Session %s acquired lock for match %s", session_id, match_id)
        self._publish(LockEventType.LOCK_ACQUIRED, match_id, session_id)
        return True

    def refresh(self, session_id: str) -> bool:
        """
        Heartbeat every lock owned by ``session_id``.

        Returns:
            False if the session no longer owns any lock

        Raises:
            StorageError: the lock record cannot be written
        """
        with self._connection() as conn:
            cursor = conn.execute(
                "UPDATE scoring_session SET timestamp = ? WHERE session_id = ?",
                (time.time(), session_id),
            )
            conn.commit()
            return cursor.rowcount > 0

    def release(self, session_id: str) -> None:
        """
        Clear the locks owned by ``session_id``. No-op for non-owners.

        Never raises: a lock that cannot be cleared goes stale and is
        reclaimed by the next session after ``stale_after`` seconds.
        """
        owned = self._records("SELECT * FROM scoring_session WHERE session_id = ?", (session_id,))
        if not owned:
            return
        try:
            self._execute("DELETE FROM scoring_session WHERE session_id = ?", (session_id,))
        except StorageError as e:
            logger.warning("Could not release lock of session %s, it expires in %ss: %s",
                           session_id, self.stale_after, e)
            return
        for record in owned:
            logger.info("Session %s released lock for match %s", session_id, record.match_id)
            self._publish(LockEventType.LOCK_RELEASED, record.match_id, session_id)

    def get_session(self, match_id: Optional[str] = None) -> Optional[LockRecord]:
        """
        Return the lock record for a match (or the global slot), stale or not.
        """
        if match_id is None and self.scope == "match":
            records = self._records("SELECT * FROM scoring_session ORDER BY timestamp DESC")
            return records[0] if records else None
        records = self._records(
            "SELECT * FROM scoring_session WHERE slot = ?", (self._slot(match_id),)
        )
        return records[0] if records else None

    def is_locked(self, match_id: Optional[str] = None) -> bool:
        record = self.get_session(match_id)
        return record is not None and record.age() <= self.stale_after

    def is_held_by_other(self, match_id: str, session_id: str) -> bool:
        """True if a live lock on the match's slot belongs to someone else."""
        record = self.get_session(match_id)
        return (
            record is not None
            and record.session_id != session_id
            and record.age() <= self.stale_after
        )

    def reset(self) -> None:
        """Drop every lock record."""
        self._execute("DELETE FROM scoring_session")

    def _slot(self, match_id: Optional[str]) -> str:
        if self.scope == "global":
            return GLOBAL_SLOT
        return match_id

    def _records(self, query: str, params: tuple = ()) -> List[LockRecord]:
        try:
            rows = self._execute(query, params, fetch=True) or []
        except StorageError as e:
            logger.warning("Lock record unreadable, treating as unlocked: %s", e)
            return []
        return [
            LockRecord(row["match_id"], row["session_id"], row["timestamp"])
            for row in rows
        ]

    def _publish(self, event_type: LockEventType, match_id: str, session_id: str) -> None:
        if self.bus is not None:
            self.bus.publish(event_type, match_id, session_id)
