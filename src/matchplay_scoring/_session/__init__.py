# Area: Session
"""
Scoring session layer: the orchestrator that composes fetching,
submitting, the offline queue and the session lock, plus the state
machine and scoped timers it runs on.
"""

from .enums import ScoringEvent, ScoringPhase
from .state_machine import ScoringState, ScoringStateMachine
from .scheduler import PeriodicTask, TaskScope
from .orchestrator import ScoringSession
from .leaderboard import LeaderboardPoller

__all__ = [
    "ScoringEvent",
    "ScoringPhase",
    "ScoringState",
    "ScoringStateMachine",
    "PeriodicTask",
    "TaskScope",
    "ScoringSession",
    "LeaderboardPoller",
]
