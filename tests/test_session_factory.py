# Area: Session Tests
"""Tests for open_session and build_repository."""

import pytest

from matchplay_scoring._config import with_defaults
from matchplay_scoring.client import ApiScoringRepository
from matchplay_scoring.session import build_repository, open_leaderboard, open_session


class TestOpenSession:
    def test_wires_stores_from_config(self, backend, db_path):
        session = open_session(
            {"db_path": db_path, "lock_scope": "global", "lock_stale_seconds": 60},
            "m1", "alice", repository=backend.client("alice"),
        )

        assert session.queue.db_path == db_path
        assert session.lock.scope == "global"
        assert session.lock.stale_after == 60
        assert session.lock.bus is session.bus
        assert session.config["poll_interval_seconds"] == 10

    def test_offline_start(self, backend, db_path):
        session = open_session({"db_path": db_path}, "m1", "alice",
                               repository=backend.client("alice"), online=False)
        assert session.is_offline is True

    def test_sessions_get_distinct_ids(self, backend, db_path):
        config = {"db_path": db_path}
        first = open_session(config, "m1", "alice", repository=backend.client("alice"))
        second = open_session(config, "m1", "alice", repository=backend.client("alice"))
        assert first.session_id != second.session_id
        assert first.bus.origin != second.bus.origin

    def test_http_repository_by_default(self, db_path):
        session = open_session({"db_path": db_path, "api_base_url": "https://api.test",
                                "api_token": "t"}, "m1", "alice")
        assert isinstance(session._get_view.repository, ApiScoringRepository)

    def test_http_repository_needs_url(self, db_path):
        with pytest.raises(ValueError):
            open_session({"db_path": db_path}, "m1", "alice")


class TestBuildRepository:
    def test_token_optional(self):
        repo = build_repository(with_defaults({"api_base_url": "https://api.test/"}))
        assert repo.base_url == "https://api.test"
        assert "Authorization" not in repo.http.headers


class TestOpenLeaderboard:
    def test_interval_from_config(self, backend):
        poller = open_leaderboard({"leaderboard_poll_seconds": 5}, "c1",
                                  repository=backend.client("alice"))
        assert poller.interval == 5
        assert poller.competition_id == "c1"

    def test_default_interval(self, backend):
        poller = open_leaderboard(None, "c1", repository=backend.client("alice"))
        assert poller.interval == 30

    def test_http_repository_by_default(self):
        poller = open_leaderboard({"api_base_url": "https://api.test"}, "c1")
        assert isinstance(poller._get_leaderboard.repository, ApiScoringRepository)
