# Area: Sync
"""
matchplay_scoring._sync.offline_queue — Offline Score Queue
===========================================================

Durable buffer of hole scores that could not reach the backend.
Entries are keyed by (match_id, hole_number): enqueuing the same key
again replaces the earlier entry and moves it to the back of the queue.
Unreadable storage degrades to an empty queue on reads; writes raise
StorageError so the caller can surface that the score was not kept.
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .._shared.database import BaseRepository
from ..errors import StorageError

logger = logging.getLogger("matchplay_scoring.queue")


@dataclass
class QueueEntry:
    """
    An unsent hole-score submission.

    Attributes:
        match_id: Match the score belongs to
        hole_number: Hole the score is for
        score_data: Submission payload (own_score, marked_player_id, marked_score)
        timestamp: Wall-clock time the entry was (re)queued
    """

    match_id: str
    hole_number: int
    score_data: Dict[str, Any]
    timestamp: float


class OfflineQueue(BaseRepository):
    """Repository for the scoring_queue table."""

    def enqueue(self, match_id: str, hole_number: int,
                score_data: Dict[str, Any]) -> None:
        """
        Add a score, replacing any queued score for the same match and hole.

        Args:
            match_id: Match identifier
            hole_number: Hole number
            score_data: JSON-serializable submission payload

        Raises:
            StorageError: the entry could not be written
        """
        self._execute_many([
            ("DELETE FROM scoring_queue WHERE match_id = ? AND hole_number = ?",
             (match_id, hole_number)),
            ("INSERT INTO scoring_queue (match_id, hole_number, score_data, timestamp) "
             "VALUES (?, ?, ?, ?)",
             (match_id, hole_number, json.dumps(score_data), time.time())),
        ])
        logger.info("Queued hole %d for match %s", hole_number, match_id)

    def get_all(self) -> List[QueueEntry]:
        """Return every queued entry in insertion order."""
        return self._read("SELECT * FROM scoring_queue ORDER BY seq")

    def get_by_match(self, match_id: str) -> List[QueueEntry]:
        """Return the queued entries of one match in insertion order."""
        return self._read(
            "SELECT * FROM scoring_queue WHERE match_id = ? ORDER BY seq",
            (match_id,),
        )

    def size(self) -> int:
        return len(self.get_all())

    def remove(self, match_id: str, hole_number: int) -> None:
        """Remove one entry. No-op if it is not queued."""
        self._execute(
            "DELETE FROM scoring_queue WHERE match_id = ? AND hole_number = ?",
            (match_id, hole_number),
        )

    def dequeue(self) -> Optional[QueueEntry]:
        """
        Remove and return the oldest entry, or None if the queue is empty.

        The select and the delete share one write transaction, so two
        processes never pop the same entry. Unreadable entries on the
        way are dropped.
        """
        with self._connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            rows = conn.execute("SELECT * FROM scoring_queue ORDER BY seq").fetchall()
            entry = None
            for row in rows:
                conn.execute("DELETE FROM scoring_queue WHERE seq = ?", (row["seq"],))
                entry = _entry_from_row(row)
                if entry is not None:
                    break
            conn.commit()
        return entry

    def clear(self) -> None:
        self._execute("DELETE FROM scoring_queue")
        logger.info("Offline queue cleared")

    def _read(self, query: str, params: tuple = ()) -> List[QueueEntry]:
        try:
            rows = self._execute(query, params, fetch=True) or []
        except StorageError as e:
            logger.warning("Offline queue unreadable, treating as empty: %s", e)
            return []
        entries = (_entry_from_row(row) for row in rows)
        return [entry for entry in entries if entry is not None]


def _entry_from_row(row) -> Optional[QueueEntry]:
    try:
        score_data = json.loads(row["score_data"])
    except ValueError:
        logger.warning(
            "Skipping unreadable queue entry for match %s hole %s",
            row["match_id"], row["hole_number"],
        )
        return None
    return QueueEntry(
        match_id=row["match_id"],
        hole_number=row["hole_number"],
        score_data=score_data,
        timestamp=row["timestamp"],
    )
