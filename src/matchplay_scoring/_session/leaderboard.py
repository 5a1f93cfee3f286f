# Area: Session
"""
matchplay_scoring._session.leaderboard — Leaderboard poller
===========================================================

Keeps a cached competition leaderboard fresh on a fixed interval.
"""

import logging
from typing import Optional

from .._scoring.use_cases import GetLeaderboard, ScoringRepository
from ..errors import ScoringError
from ..types import Leaderboard
from .scheduler import TaskScope

logger = logging.getLogger("matchplay_scoring.leaderboard")

LEADERBOARD_POLL_SECONDS = 30


class LeaderboardPoller:
    """Polls one competition's leaderboard until closed."""

    def __init__(self, competition_id: str, repository: ScoringRepository,
                 interval: float = LEADERBOARD_POLL_SECONDS):
        self.competition_id = competition_id
        self.interval = interval
        self.leaderboard: Optional[Leaderboard] = None
        self.error: Optional[ScoringError] = None
        self._get_leaderboard = GetLeaderboard(repository)
        self._scope = TaskScope()

    async def refetch(self) -> Optional[Leaderboard]:
        try:
            leaderboard = await self._get_leaderboard.execute(self.competition_id)
        except ScoringError as e:
            logger.warning("Leaderboard fetch failed: %s", e)
            self.error = e
            return None
        self.leaderboard, self.error = leaderboard, None
        return leaderboard

    async def start(self) -> "LeaderboardPoller":
        await self.refetch()
        self._scope.every("leaderboard", self.interval, self.refetch)
        return self

    async def close(self) -> None:
        await self._scope.close()

    async def __aenter__(self) -> "LeaderboardPoller":
        return await self.start()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        await self.close()
        return False
