# Area: Sync Tests
"""Tests for SessionLock and LockEventBus."""

from unittest.mock import patch

import pytest

from matchplay_scoring._sync.event_bus import LockEventBus, LockEventType
from matchplay_scoring._sync.session_lock import GLOBAL_SLOT, SessionLock
from matchplay_scoring.errors import StorageError


MOCK_TIME = "matchplay_scoring._sync.session_lock.time"


class TestSessionLockAcquire:
    """Acquisition, staleness and take-over."""

    @pytest.fixture
    def lock(self, db_path):
        return SessionLock(db_path)

    def test_acquire_free_lock(self, lock):
        assert lock.acquire("m1", "tab-a") is True
        record = lock.get_session("m1")
        assert record.session_id == "tab-a"
        assert record.match_id == "m1"

    def test_reacquire_own_lock(self, lock):
        lock.acquire("m1", "tab-a")
        assert lock.acquire("m1", "tab-a") is True

    def test_live_lock_blocks_other_session(self, lock):
        lock.acquire("m1", "tab-a")

        assert lock.acquire("m1", "tab-b") is False
        assert lock.get_session("m1").session_id == "tab-a"
        assert lock.is_held_by_other("m1", "tab-b") is True
        assert lock.is_held_by_other("m1", "tab-a") is False

    def test_stale_lock_is_reclaimed(self, lock):
        with patch(MOCK_TIME) as mock_time:
            mock_time.time.return_value = 1000.0
            lock.acquire("m1", "tab-a")

            # 120s is the boundary: still live
            mock_time.time.return_value = 1120.0
            assert lock.acquire("m1", "tab-b") is False

            mock_time.time.return_value = 1121.0
            assert lock.is_locked("m1") is False
            assert lock.acquire("m1", "tab-b") is True

        assert lock.get_session("m1").session_id == "tab-b"

    def test_refresh_keeps_lock_live(self, lock):
        with patch(MOCK_TIME) as mock_time:
            mock_time.time.return_value = 1000.0
            lock.acquire("m1", "tab-a")

            mock_time.time.return_value = 1100.0
            assert lock.refresh("tab-a") is True

            mock_time.time.return_value = 1200.0
            assert lock.acquire("m1", "tab-b") is False

    def test_refresh_without_lock(self, lock):
        assert lock.refresh("tab-a") is False

    def test_force_takes_live_lock(self, lock):
        lock.acquire("m1", "tab-a")

        assert lock.acquire("m1", "tab-b", force=True) is True
        assert lock.get_session("m1").session_id == "tab-b"
        assert lock.refresh("tab-a") is False

    def test_matches_have_separate_slots(self, lock):
        assert lock.acquire("m1", "tab-a") is True
        assert lock.acquire("m2", "tab-b") is True


class TestSessionLockRelease:
    """Release is owner-only."""

    @pytest.fixture
    def lock(self, db_path):
        lock = SessionLock(db_path)
        lock.acquire("m1", "tab-a")
        return lock

    def test_release_by_owner(self, lock):
        lock.release("tab-a")
        assert lock.get_session("m1") is None
        assert lock.is_locked("m1") is False

    def test_release_by_non_owner_is_noop(self, lock):
        lock.release("tab-b")
        assert lock.get_session("m1").session_id == "tab-a"

    def test_reset(self, lock):
        lock.reset()
        assert lock.get_session() is None


class TestGlobalScope:
    """A single device-wide slot."""

    @pytest.fixture
    def lock(self, db_path):
        return SessionLock(db_path, scope="global")

    def test_lock_on_one_match_blocks_another(self, lock):
        assert lock.acquire("m1", "tab-a") is True
        assert lock.acquire("m2", "tab-b") is False
        assert lock.is_held_by_other("m2", "tab-b") is True

    def test_single_slot_record(self, lock, db_path):
        lock.acquire("m1", "tab-a")
        record = lock.get_session()
        assert record.match_id == "m1"
        assert lock._slot("m7") == GLOBAL_SLOT

    def test_invalid_scope(self, db_path):
        with pytest.raises(ValueError):
            SessionLock(db_path, scope="device")


class TestLockEventBus:
    """Cross-session broadcast of lock changes."""

    def test_events_reach_other_bus(self, db_path):
        bus_a = LockEventBus(db_path)
        bus_b = LockEventBus(db_path)
        received = []
        bus_b.subscribe(received.append)

        SessionLock(db_path, bus=bus_a).acquire("m1", "tab-a")
        bus_b.poll()

        assert len(received) == 1
        assert received[0].event_type == LockEventType.LOCK_ACQUIRED
        assert received[0].match_id == "m1"
        assert received[0].session_id == "tab-a"

    def test_own_events_not_delivered(self, db_path):
        bus = LockEventBus(db_path)
        received = []
        bus.subscribe(received.append)

        bus.publish(LockEventType.LOCK_ACQUIRED, "m1", "tab-a")

        assert bus.poll() == []
        assert received == []

    def test_events_delivered_once(self, db_path):
        bus_a = LockEventBus(db_path)
        bus_b = LockEventBus(db_path)
        bus_a.publish(LockEventType.LOCK_ACQUIRED, "m1", "tab-a")

        assert len(bus_b.poll()) == 1
        assert bus_b.poll() == []

    def test_history_before_creation_is_skipped(self, db_path):
        LockEventBus(db_path).publish(LockEventType.LOCK_RELEASED, "m1", "tab-a")

        late = LockEventBus(db_path)
        assert late.poll() == []

    def test_release_publishes_per_match(self, db_path):
        bus_a = LockEventBus(db_path)
        bus_b = LockEventBus(db_path)
        lock = SessionLock(db_path, bus=bus_a)
        lock.acquire("m1", "tab-a")
        lock.acquire("m2", "tab-a")
        bus_b.poll()

        lock.release("tab-a")
        events = bus_b.poll()

        assert {(e.event_type, e.match_id) for e in events} == {
            (LockEventType.LOCK_RELEASED, "m1"),
            (LockEventType.LOCK_RELEASED, "m2"),
        }

    def test_non_owner_release_publishes_nothing(self, db_path):
        bus_a = LockEventBus(db_path)
        bus_b = LockEventBus(db_path)
        lock = SessionLock(db_path, bus=bus_a)
        lock.acquire("m1", "tab-a")
        bus_b.poll()

        lock.release("tab-z")
        assert bus_b.poll() == []

    def test_unsubscribe(self, db_path):
        bus_a = LockEventBus(db_path)
        bus_b = LockEventBus(db_path)
        received = []
        unsubscribe = bus_b.subscribe(received.append)
        unsubscribe()

        bus_a.publish(LockEventType.LOCK_ACQUIRED, "m1", "tab-a")
        bus_b.poll()

        assert received == []


class TestCorruptStorage:
    """An unreadable state file: reads look unlocked, release falls back to staleness."""

    @pytest.fixture
    def corrupt_path(self, db_path):
        lock = SessionLock(db_path)
        lock.acquire("m1", "tab-a")
        with open(db_path, "wb") as f:
            f.write(b"this is not a sqlite database" * 100)
        return db_path

    def test_reads_look_unlocked(self, corrupt_path):
        lock = SessionLock(corrupt_path)
        assert lock.get_session("m1") is None
        assert lock.is_locked("m1") is False

    def test_release_does_not_raise(self, corrupt_path):
        SessionLock(corrupt_path).release("tab-a")

    def test_acquire_and_refresh_raise_storage_error(self, corrupt_path):
        lock = SessionLock(corrupt_path)
        with pytest.raises(StorageError):
            lock.acquire("m1", "tab-b")
        with pytest.raises(StorageError):
            lock.refresh("tab-a")

    def test_bus_degrades(self, corrupt_path):
        bus = LockEventBus(corrupt_path)
        bus.publish(LockEventType.LOCK_RELEASED, "m1", "tab-a")
        assert bus.poll() == []
