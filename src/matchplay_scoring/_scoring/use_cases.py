# Area: Scoring
"""
matchplay_scoring._scoring.use_cases — Scoring use cases
========================================================

Thin coroutines in front of a scoring repository. Each validates its
input and never reaches the repository with invalid arguments.
"""

import logging
from typing import Any, Dict, Optional, Protocol, Union

from pydantic import ValidationError

from ..errors import InvalidScoreError
from ..types import (
    TOTAL_HOLES,
    Leaderboard,
    MatchSummary,
    ScoreData,
    ScoringView,
)

logger = logging.getLogger("matchplay_scoring.use_cases")

TEAMS = ("A", "B")


class ScoringRepository(Protocol):
    """Backend operations consumed by the scoring core."""

    async def get_scoring_view(self, match_id: str) -> ScoringView:
        ...

    async def submit_hole_score(self, match_id: str, hole_number: int,
                                score_data: ScoreData) -> ScoringView:
        ...

    async def submit_scorecard(self, match_id: str) -> MatchSummary:
        ...

    async def concede_match(self, match_id: str, conceding_team: str,
                            reason: Optional[str]) -> Any:
        """Returns the backend's acknowledgement; callers refetch the view."""
        ...

    async def get_leaderboard(self, competition_id: str) -> Leaderboard:
        ...


def parse_score_data(score_data: Union[ScoreData, Dict[str, Any]]) -> ScoreData:
    """Coerce a dict into ScoreData, mapping pydantic failures to InvalidScoreError."""
    if isinstance(score_data, ScoreData):
        return score_data
    if not score_data:
        raise InvalidScoreError("Score data is required")
    try:
        return ScoreData.model_validate(score_data)
    except ValidationError as e:
        errors = [f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors()]
        raise InvalidScoreError(
            f"Invalid score data: {errors}", context={"errors": errors}
        ) from e


def _require_match_id(match_id: str) -> None:
    if not match_id:
        raise InvalidScoreError("Match ID is required")


class GetScoringView:
    def __init__(self, repository: ScoringRepository):
        self.repository = repository

    async def execute(self, match_id: str) -> ScoringView:
        _require_match_id(match_id)
        return await self.repository.get_scoring_view(match_id)


class SubmitHoleScore:
    """Validate and send one hole submission."""

    def __init__(self, repository: ScoringRepository):
        self.repository = repository

    async def execute(self, match_id: str, hole_number: int,
                      score_data: Union[ScoreData, Dict[str, Any]]) -> ScoringView:
        _require_match_id(match_id)
        if (not isinstance(hole_number, int) or isinstance(hole_number, bool)
                or not 1 <= hole_number <= TOTAL_HOLES):
            raise InvalidScoreError(
                f"Hole number must be between 1 and {TOTAL_HOLES}",
                context={"hole_number": hole_number},
            )
        data = parse_score_data(score_data)
        logger.debug("Submitting hole %d for match %s", hole_number, match_id)
        return await self.repository.submit_hole_score(match_id, hole_number, data)


class SubmitScorecard:
    def __init__(self, repository: ScoringRepository):
        self.repository = repository

    async def execute(self, match_id: str) -> MatchSummary:
        _require_match_id(match_id)
        return await self.repository.submit_scorecard(match_id)


class ConcedeMatch:
    def __init__(self, repository: ScoringRepository):
        self.repository = repository

    async def execute(self, match_id: str, conceding_team: str,
                      reason: Optional[str] = None) -> Any:
        _require_match_id(match_id)
        if conceding_team not in TEAMS:
            raise InvalidScoreError("Conceding team must be A or B")
        return await self.repository.concede_match(match_id, conceding_team, reason or None)


class GetLeaderboard:
    def __init__(self, repository: ScoringRepository):
        self.repository = repository

    async def execute(self, competition_id: str) -> Leaderboard:
        if not competition_id:
            raise InvalidScoreError("Competition ID is required")
        return await self.repository.get_leaderboard(competition_id)
