# Area: Sync
"""
Local durable state shared by every scoring session on the device:
the offline queue, the session lock and its event bus.
"""

from .offline_queue import OfflineQueue, QueueEntry
from .event_bus import LockEvent, LockEventBus, LockEventType
from .session_lock import LockRecord, SessionLock, STALE_AFTER_SECONDS

__all__ = [
    "OfflineQueue",
    "QueueEntry",
    "LockEvent",
    "LockEventBus",
    "LockEventType",
    "LockRecord",
    "SessionLock",
    "STALE_AFTER_SECONDS",
]
