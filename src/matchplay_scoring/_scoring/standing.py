# Area: Scoring
"""
matchplay_scoring._scoring.standing — Match standing and early decision
=======================================================================

Derives hole winners, the running match-play standing and the
"decided" state (e.g. 5&4) from validated scores.

Holes are resolved in order from hole 1. A hole counts once every
player's entry for it is validated; the first unresolved hole stops
the count, as does the hole on which the match is decided.

Picked-up holes (score None) count as the worst possible score: a side
that completed the hole beats a side that picked up, and two sides that
both picked up halve the hole.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..types import (
    TOTAL_HOLES,
    DecidedResult,
    Hole,
    HoleResult,
    MatchFormat,
    MatchStanding,
    Player,
    PlayerScore,
    ValidationStatus,
)


@dataclass
class MatchCalculation:
    """Result of replaying a match hole by hole."""

    standing: MatchStanding
    hole_results: Dict[int, HoleResult] = field(default_factory=dict)
    is_decided: bool = False
    decided_result: Optional[DecidedResult] = None


def strokes_on_hole(playing_handicap: int, stroke_index: int,
                    holes: int = TOTAL_HOLES) -> int:
    """
    Handicap strokes a player receives on a hole.

    Strokes go to the lowest stroke-index holes first; a handicap above
    18 wraps around for a second stroke. A plus handicap gives strokes
    back on the easiest holes.
    """
    if playing_handicap >= 0:
        full, extra = divmod(playing_handicap, holes)
        return full + (1 if stroke_index <= extra else 0)
    return -1 if stroke_index > holes + playing_handicap else 0


def net_score(gross: Optional[int], strokes: int) -> Optional[int]:
    if gross is None:
        return None
    return gross - strokes


def team_hole_score(match_format: MatchFormat, nets: List[Optional[int]]) -> Optional[int]:
    """Best net of the side; foursomes sides share a ball so the same rule applies."""
    completed = [n for n in nets if n is not None]
    if not completed:
        return None
    if match_format == MatchFormat.SINGLES:
        return completed[0]
    return min(completed)


def hole_winner(team_a: Optional[int], team_b: Optional[int]) -> str:
    if team_a is None and team_b is None:
        return "HALVED"
    if team_b is None or (team_a is not None and team_a < team_b):
        return "A"
    if team_a is None or team_b < team_a:
        return "B"
    return "HALVED"


def standing_label(diff: int) -> Tuple[str, Optional[str]]:
    """Return ("nUP", leading team) for a holes-up difference (A minus B)."""
    if diff == 0:
        return "AS", None
    return f"{abs(diff)}UP", ("A" if diff > 0 else "B")


def format_margin(lead: int, remaining: int) -> str:
    """Margin label: "5&4" while holes remain, "2UP" on the last hole."""
    if remaining == 0:
        return f"{lead}UP"
    return f"{lead}&{remaining}"


def calculate_match(
    match_format: MatchFormat,
    players: List[Player],
    holes: List[Hole],
    scores: Dict[int, Dict[str, PlayerScore]],
) -> MatchCalculation:
    """
    Replay the validated holes of a match.

    Args:
        match_format: SINGLES, FOURBALL or FOURSOMES
        players: Match players with team and playing handicap
        holes: Course holes with stroke index
        scores: hole number -> user id -> PlayerScore

    Returns:
        MatchCalculation with per-hole results and the current standing
    """
    stroke_index = {h.hole_number: h.stroke_index for h in holes}
    total = len(holes) or TOTAL_HOLES
    diff = 0
    played = 0
    results: Dict[int, HoleResult] = {}

    for hole_number in range(1, total + 1):
        hole_scores = scores.get(hole_number, {})
        if not players or not _hole_resolved(players, hole_scores):
            break

        nets = {"A": [], "B": []}
        for player in players:
            strokes = strokes_on_hole(player.playing_handicap,
                                      stroke_index.get(hole_number, hole_number), total)
            nets[player.team].append(net_score(hole_scores[player.user_id].own_score, strokes))

        winner = hole_winner(
            team_hole_score(match_format, nets["A"]),
            team_hole_score(match_format, nets["B"]),
        )
        diff += {"A": 1, "B": -1}.get(winner, 0)
        played += 1
        label, leader = standing_label(diff)
        results[hole_number] = HoleResult(winner=winner, standing=label, standing_team=leader)

        if abs(diff) > total - played:
            break

    remaining = total - played
    label, leader = standing_label(diff)
    standing = MatchStanding(
        status=label, leading_team=leader,
        holes_played=played, holes_remaining=remaining,
    )
    calculation = MatchCalculation(standing=standing, hole_results=results)
    if abs(diff) > remaining:
        calculation.is_decided = True
        calculation.decided_result = DecidedResult(
            winner=leader, score=format_margin(abs(diff), remaining)
        )
    return calculation


def _hole_resolved(players: List[Player], hole_scores: Dict[str, PlayerScore]) -> bool:
    for player in players:
        entry = hole_scores.get(player.user_id)
        if entry is None or entry.validation_status != ValidationStatus.MATCH:
            return False
    return True
