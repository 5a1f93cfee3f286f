"""
matchplay_scoring — Match Play Live Scoring
===========================================

Client-side sync engine for live match-play golf scoring: a durable
offline queue, a cross-session scoring lock, marker-validated hole
scores and the match standing with early-decision detection.

Quick Start:
    from matchplay_scoring import load_config, open_session

    async with open_session(load_config(), "match-1", "alice") as session:
        await session.submit_score(1, {"own_score": 4,
                                       "marked_player_id": "bob",
                                       "marked_score": 5})
        print(session.scoring_view.match_standing.status)

Local demos and tests can swap the HTTP client for the in-memory
reference backend:

    backend = InMemoryScoringBackend()
    session = open_session(config, "match-1", "alice",
                           repository=backend.client("alice"))
"""

from ._config import load_config, validate_config
from ._shared.logging_config import setup_logging
from ._session.leaderboard import LeaderboardPoller
from ._session.orchestrator import ScoringSession
from .client import ApiScoringRepository
from .demo_backend import InMemoryScoringBackend
from .errors import (
    ScoringError,
    NetworkError,
    BusinessRuleError,
    InvalidScoreError,
    NotMatchPlayerError,
    ScorecardLockedError,
    MatchDecidedError,
    SessionConflictError,
    StorageError,
)
from .session import open_leaderboard, open_session
from .types import (
    MatchFormat,
    MatchStatus,
    ValidationStatus,
    ScoreData,
    Player,
    Hole,
    ScoringView,
    MatchStanding,
    MatchSummary,
    Leaderboard,
)

__all__ = [
    # Entry points
    "open_session",
    "open_leaderboard",
    "load_config",
    "validate_config",
    "setup_logging",
    "ScoringSession",
    "LeaderboardPoller",
    # Backends
    "ApiScoringRepository",
    "InMemoryScoringBackend",
    # Errors
    "ScoringError",
    "NetworkError",
    "BusinessRuleError",
    "InvalidScoreError",
    "NotMatchPlayerError",
    "ScorecardLockedError",
    "MatchDecidedError",
    "SessionConflictError",
    "StorageError",
    # Types
    "MatchFormat",
    "MatchStatus",
    "ValidationStatus",
    "ScoreData",
    "Player",
    "Hole",
    "ScoringView",
    "MatchStanding",
    "MatchSummary",
    "Leaderboard",
]
__version__ = "1.0.0"
