"""
matchplay_scoring.session — Scoring session entry point
=======================================================

Wires the device-local stores (offline queue, session lock, lock event
bus) and a backend repository into a ScoringSession.

Usage:
    config = load_config("scoring.json")
    async with open_session(config, "match-1", "alice") as session:
        await session.submit_score(1, {"own_score": 4,
                                       "marked_player_id": "bob",
                                       "marked_score": 5})

    async with open_leaderboard(config, "club-cup") as poller:
        print(poller.leaderboard)
"""

from typing import Any, Dict, Optional

from ._config import validate_config, with_defaults
from ._scoring.use_cases import ScoringRepository
from ._session.leaderboard import LeaderboardPoller
from ._session.orchestrator import ScoringSession
from ._sync.event_bus import LockEventBus
from ._sync.offline_queue import OfflineQueue
from ._sync.session_lock import SessionLock
from .client import ApiScoringRepository


def build_repository(config: Dict[str, Any]) -> ApiScoringRepository:
    """HTTP repository from ``api_base_url``/``api_token``."""
    validate_config(config)
    return ApiScoringRepository(
        config["api_base_url"],
        token=config.get("api_token") or None,
        timeout=config["request_timeout_seconds"],
    )


def open_session(
    config: Optional[Dict[str, Any]],
    match_id: str,
    user_id: str,
    repository: Optional[ScoringRepository] = None,
    online: bool = True,
) -> ScoringSession:
    """
    Build a ScoringSession for ``user_id`` on ``match_id``.

    Args:
        config: Config dict; missing keys fall back to defaults
        match_id: Match to score
        user_id: Authenticated user
        repository: Backend to use; defaults to the HTTP client
        online: Initial connectivity

    Returns:
        An unstarted session; use it as an async context manager or
        call ``await session.start()``.
    """
    config = with_defaults(config)
    if repository is None:
        repository = build_repository(config)

    db_path = config["db_path"]
    bus = LockEventBus(db_path)
    lock = SessionLock(
        db_path, bus=bus,
        stale_after=config["lock_stale_seconds"],
        scope=config["lock_scope"],
    )
    return ScoringSession(
        match_id=match_id,
        user_id=user_id,
        repository=repository,
        queue=OfflineQueue(db_path),
        lock=lock,
        bus=bus,
        config=config,
        online=online,
    )


def open_leaderboard(
    config: Optional[Dict[str, Any]],
    competition_id: str,
    repository: Optional[ScoringRepository] = None,
) -> LeaderboardPoller:
    """Build a LeaderboardPoller refreshing every ``leaderboard_poll_seconds``."""
    config = with_defaults(config)
    if repository is None:
        repository = build_repository(config)
    return LeaderboardPoller(
        competition_id, repository, interval=config["leaderboard_poll_seconds"],
    )
