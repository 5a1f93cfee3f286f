"""
matchplay_scoring.types — Wire models for the scoring backend
=============================================================

pydantic models mirroring the backend's snake_case JSON. The session
layer, the use cases and the in-memory backend all exchange these.

    >>> view = ScoringView.model_validate(payload)
    >>> view.match_standing.status
    '2UP'
"""

from enum import Enum
from typing import Annotated, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt


TOTAL_HOLES = 18
MIN_SCORE = 1
MAX_SCORE = 9

Team = Literal["A", "B"]
HoleWinner = Literal["A", "B", "HALVED"]


class MatchFormat(str, Enum):
    SINGLES = "SINGLES"
    FOURBALL = "FOURBALL"
    FOURSOMES = "FOURSOMES"


class MatchStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    WALKOVER = "WALKOVER"
    CONCEDED = "CONCEDED"


TERMINAL_STATUSES = {MatchStatus.COMPLETED, MatchStatus.WALKOVER, MatchStatus.CONCEDED}


class ValidationStatus(str, Enum):
    """Agreement between a player's own score and their marker's."""
    PENDING = "pending"
    MATCH = "match"
    MISMATCH = "mismatch"


class _Model(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# ============================================
# Submissions
# ============================================

GrossScore = Annotated[StrictInt, Field(ge=MIN_SCORE, le=MAX_SCORE)]


class ScoreData(_Model):
    """One hole submission: the submitter's own score and the score
    they marked for another player. ``None`` means picked up."""
    own_score: Optional[GrossScore] = None
    marked_player_id: str = Field(min_length=1)
    marked_score: Optional[GrossScore] = None


# ============================================
# Scoring view
# ============================================

class Hole(_Model):
    hole_number: int = Field(ge=1, le=TOTAL_HOLES)
    par: int
    stroke_index: int = Field(ge=1, le=TOTAL_HOLES)


class Player(_Model):
    user_id: str
    user_name: str = ""
    team: Team
    tee_category: Optional[str] = None
    playing_handicap: int = 0
    strokes_received: List[int] = Field(default_factory=list)


class MarkerAssignment(_Model):
    """``scorer_user_id`` marks ``marks_user_id`` and is marked by
    ``marked_by_user_id``."""
    scorer_user_id: str
    scorer_name: str = ""
    marks_user_id: str
    marks_name: str = ""
    marked_by_user_id: Optional[str] = None
    marked_by_name: str = ""


class PlayerScore(_Model):
    user_id: str
    own_score: Optional[int] = None
    marker_score: Optional[int] = None
    validation_status: ValidationStatus = ValidationStatus.PENDING
    net_score: Optional[int] = None
    strokes_received_this_hole: int = 0


class HoleResult(_Model):
    winner: HoleWinner
    standing: str
    standing_team: Optional[Team] = None


class HoleScores(_Model):
    hole_number: int
    player_scores: List[PlayerScore] = Field(default_factory=list)
    hole_result: Optional[HoleResult] = None

    def score_for(self, user_id: str) -> Optional[PlayerScore]:
        for player_score in self.player_scores:
            if player_score.user_id == user_id:
                return player_score
        return None


class MatchStanding(_Model):
    status: str = "AS"
    leading_team: Optional[Team] = None
    holes_played: int = 0
    holes_remaining: int = TOTAL_HOLES


class DecidedResult(_Model):
    winner: HoleWinner
    score: str


class RoundInfo(_Model):
    id: Optional[str] = None
    date: Optional[str] = None
    session_type: Optional[str] = None
    golf_course_name: Optional[str] = None


class ScoringView(_Model):
    """Everything a scoring screen needs for one match."""
    match_id: str
    match_number: Optional[int] = None
    match_format: MatchFormat = MatchFormat.SINGLES
    match_status: MatchStatus = MatchStatus.SCHEDULED
    is_decided: bool = False
    decided_result: Optional[DecidedResult] = None
    round_info: Optional[RoundInfo] = None
    competition_id: Optional[str] = None
    team_a_name: str = ""
    team_b_name: str = ""
    marker_assignments: List[MarkerAssignment] = Field(default_factory=list)
    players: List[Player] = Field(default_factory=list)
    holes: List[Hole] = Field(default_factory=list)
    scores: List[HoleScores] = Field(default_factory=list)
    match_standing: Optional[MatchStanding] = None
    scorecard_submitted_by: List[str] = Field(default_factory=list)

    def player(self, user_id: str) -> Optional[Player]:
        for player in self.players:
            if player.user_id == user_id:
                return player
        return None


# ============================================
# Scorecard submission
# ============================================

class MatchResult(_Model):
    winner: HoleWinner
    score: str
    team_a_points: float = 0
    team_b_points: float = 0


class MatchStats(_Model):
    player_gross_total: Optional[int] = None
    player_net_total: Optional[int] = None
    holes_won: int = 0
    holes_lost: int = 0
    holes_halved: int = 0


class MatchSummary(_Model):
    match_id: str
    submitted_by: str
    result: Optional[MatchResult] = None
    stats: Optional[MatchStats] = None
    match_complete: bool = False


# ============================================
# Leaderboard
# ============================================

class LeaderboardPlayer(_Model):
    user_id: str
    user_name: str = ""


class LeaderboardMatch(_Model):
    match_id: str
    match_number: Optional[int] = None
    match_format: MatchFormat = MatchFormat.SINGLES
    status: MatchStatus = MatchStatus.SCHEDULED
    current_hole: Optional[int] = None
    standing: Optional[str] = None
    leading_team: Optional[Team] = None
    team_a_players: List[LeaderboardPlayer] = Field(default_factory=list)
    team_b_players: List[LeaderboardPlayer] = Field(default_factory=list)
    result: Optional[DecidedResult] = None


class Leaderboard(_Model):
    competition_id: str
    competition_name: str = ""
    team_a_name: str = ""
    team_b_name: str = ""
    team_a_points: float = 0
    team_b_points: float = 0
    matches: List[LeaderboardMatch] = Field(default_factory=list)
