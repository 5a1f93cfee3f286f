# Area: Sync
"""
matchplay_scoring._sync.event_bus — Cross-session lock notifications
====================================================================

A local publish/subscribe channel shared by every scoring session that
uses the same storage file. Events are appended to the lock_events table
and each bus instance polls for rows it has not seen yet, so separate
processes (tabs, terminals) receive each other's lock changes.

A bus never delivers its own events back to its subscribers.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from .._shared.database import BaseRepository
from ..errors import StorageError

logger = logging.getLogger("matchplay_scoring.lock.bus")

# Events older than this are pruned whenever a new event is published
EVENT_RETENTION_SECONDS = 600


class LockEventType(Enum):
    LOCK_ACQUIRED = "LOCK_ACQUIRED"
    LOCK_RELEASED = "LOCK_RELEASED"


@dataclass
class LockEvent:
    event_type: LockEventType
    match_id: Optional[str]
    session_id: str
    timestamp: float


LockEventHandler = Callable[[LockEvent], None]


class LockEventBus(BaseRepository):
    """
    Polling-backed broadcast channel for lock events.

    Usage:
        bus = LockEventBus(db_path)
        unsubscribe = bus.subscribe(handler)
        bus.publish(LockEventType.LOCK_ACQUIRED, "M1", "session-1")
        bus.poll()  # in the other session: dispatches new events
    """

    def __init__(self, db_path: str):
        super().__init__(db_path)
        self.origin = uuid.uuid4().hex
        self._handlers: Dict[int, LockEventHandler] = {}
        self._next_handler_id = 0
        self._last_event_id = self._current_max_id()

    def publish(self, event_type: LockEventType, match_id: Optional[str],
                session_id: str) -> None:
        now = time.time()
        try:
            self._execute_many([
                ("INSERT INTO lock_events (event_type, match_id, session_id, origin, timestamp) "
                 "VALUES (?, ?, ?, ?, ?)",
                 (event_type.value, match_id, session_id, self.origin, now)),
                ("DELETE FROM lock_events WHERE timestamp < ?",
                 (now - EVENT_RETENTION_SECONDS,)),
            ])
        except StorageError as e:
            logger.warning("Could not publish %s for match %s: %s", event_type.value, match_id, e)
            return
        logger.debug("Published %s for match %s", event_type.value, match_id)

    def subscribe(self, handler: LockEventHandler) -> Callable[[], None]:
        """
        Register a handler for events from other sessions.

        Returns:
            A function that removes the handler again
        """
        handler_id = self._next_handler_id
        self._next_handler_id += 1
        self._handlers[handler_id] = handler

        def unsubscribe() -> None:
            self._handlers.pop(handler_id, None)

        return unsubscribe

    def poll(self) -> List[LockEvent]:
        """Dispatch events published by other sessions since the last poll."""
        try:
            rows = self._execute(
                "SELECT * FROM lock_events WHERE event_id > ? ORDER BY event_id",
                (self._last_event_id,), fetch=True,
            ) or []
        except StorageError as e:
            logger.debug("Lock events unreadable: %s", e)
            return []
        delivered = []
        for row in rows:
            self._last_event_id = row["event_id"]
            if row["origin"] == self.origin:
                continue
            event = LockEvent(
                event_type=LockEventType(row["event_type"]),
                match_id=row["match_id"],
                session_id=row["session_id"],
                timestamp=row["timestamp"],
            )
            delivered.append(event)
            for handler in list(self._handlers.values()):
                handler(event)
        return delivered

    def close(self) -> None:
        self._handlers.clear()

    def _current_max_id(self) -> int:
        try:
            row = self._execute_one("SELECT MAX(event_id) AS max_id FROM lock_events")
        except StorageError:
            return 0
        return (row or {}).get("max_id") or 0
