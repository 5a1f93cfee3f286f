# Area: Scoring
"""
Hole scoring protocol, match standing calculator and the use cases
that front the scoring backend.
"""

from .protocol import (
    HoleEntry,
    apply_submission,
    check_submission,
    derive_validation_status,
    marked_player_for,
    total_holes_for,
)
from .standing import MatchCalculation, calculate_match, strokes_on_hole
from .use_cases import (
    ConcedeMatch,
    GetLeaderboard,
    GetScoringView,
    ScoringRepository,
    SubmitHoleScore,
    SubmitScorecard,
)

__all__ = [
    "HoleEntry",
    "apply_submission",
    "check_submission",
    "derive_validation_status",
    "marked_player_for",
    "total_holes_for",
    "MatchCalculation",
    "calculate_match",
    "strokes_on_hole",
    "ConcedeMatch",
    "GetLeaderboard",
    "GetScoringView",
    "ScoringRepository",
    "SubmitHoleScore",
    "SubmitScorecard",
]
