# Area: Scoring
"""
matchplay_scoring._scoring.protocol — Marker-validated hole scoring
===================================================================

Every player's score on a hole is reported twice: once by the player
(own score) and once by their assigned marker. The entry for a
(hole, player) pair is validated when both sides agree.

The functions here hold no state; the authoritative backend keeps the
entry map and calls them on every submission.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ..errors import (
    InvalidScoreError,
    MatchDecidedError,
    NotMatchPlayerError,
    ScorecardLockedError,
)
from ..types import (
    TERMINAL_STATUSES,
    TOTAL_HOLES,
    ScoreData,
    ScoringView,
    ValidationStatus,
)


@dataclass
class HoleEntry:
    """
    Both reported sides for one (hole, player) pair.

    ``own_reported``/``marker_reported`` distinguish "picked up"
    (score None, reported) from "not reported yet".
    """

    own_score: Optional[int] = None
    own_reported: bool = False
    marker_score: Optional[int] = None
    marker_reported: bool = False

    @property
    def validation_status(self) -> ValidationStatus:
        return derive_validation_status(self)


EntryMap = Dict[Tuple[int, str], HoleEntry]


def derive_validation_status(entry: HoleEntry) -> ValidationStatus:
    """pending until both sides reported, then match or mismatch."""
    if not (entry.own_reported and entry.marker_reported):
        return ValidationStatus.PENDING
    if entry.own_score == entry.marker_score:
        return ValidationStatus.MATCH
    return ValidationStatus.MISMATCH


def marked_player_for(view: ScoringView, user_id: str) -> Optional[str]:
    """Return the player ``user_id`` is assigned to mark, if any."""
    for assignment in view.marker_assignments:
        if assignment.scorer_user_id == user_id:
            return assignment.marks_user_id
    return None


def total_holes_for(view: ScoringView) -> int:
    """18, or the number of holes played when the match was decided early."""
    if view.is_decided and view.match_standing is not None:
        return view.match_standing.holes_played
    return TOTAL_HOLES


def check_submission(view: ScoringView, user_id: str, hole_number: int,
                     score_data: ScoreData) -> None:
    """
    Enforce the business rules for one hole submission.

    Raises:
        InvalidScoreError: hole outside 1-18
        MatchDecidedError: match finished, or hole beyond the decided boundary
        NotMatchPlayerError: caller is not a player, or marks someone else
        ScorecardLockedError: caller already submitted their scorecard
    """
    if not 1 <= hole_number <= TOTAL_HOLES:
        raise InvalidScoreError(
            f"Hole number must be between 1 and {TOTAL_HOLES}",
            context={"hole_number": hole_number},
        )
    if view.match_status in TERMINAL_STATUSES:
        raise MatchDecidedError(
            f"Match is {view.match_status.value}", context={"match_id": view.match_id}
        )
    if view.player(user_id) is None:
        raise NotMatchPlayerError(
            "Only match players can submit scores",
            context={"match_id": view.match_id, "user_id": user_id},
        )
    if user_id in view.scorecard_submitted_by:
        raise ScorecardLockedError(
            "Scorecard already submitted", context={"match_id": view.match_id}
        )
    if view.is_decided and hole_number > total_holes_for(view):
        raise MatchDecidedError(
            f"Match was decided after hole {total_holes_for(view)}",
            context={"hole_number": hole_number},
        )

    expected = marked_player_for(view, user_id)
    marked = score_data.marked_player_id
    if expected is not None and marked != expected:
        raise NotMatchPlayerError(
            f"User {user_id} marks {expected}, not {marked}",
            context={"match_id": view.match_id},
        )
    if expected is None and (marked == user_id or view.player(marked) is None):
        raise NotMatchPlayerError(
            f"Marked player {marked} is not a valid marking target",
            context={"match_id": view.match_id},
        )


def apply_submission(entries: EntryMap, user_id: str, hole_number: int,
                     score_data: ScoreData) -> None:
    """
    Upsert both sides carried by one submission.

    The submitter's own score lands on their entry, the marked score on
    the marked player's entry. Resubmitting overwrites, never duplicates.
    """
    own = entries.setdefault((hole_number, user_id), HoleEntry())
    own.own_score = score_data.own_score
    own.own_reported = True

    marked = entries.setdefault((hole_number, score_data.marked_player_id), HoleEntry())
    marked.marker_score = score_data.marked_score
    marked.marker_reported = True
