"""
matchplay_scoring.demo_backend — In-memory reference backend
=============================================================

Authoritative match state held in process memory. Applies the hole
scoring protocol and the standing calculator exactly as the live
backend does, so sessions can be exercised without a server.

Usage:
    backend = InMemoryScoringBackend()
    backend.add_match("m1", players=[
        Player(user_id="alice", team="A"),
        Player(user_id="bob", team="B"),
    ])
    repo = backend.client("alice")
    view = await repo.get_scoring_view("m1")

Setting ``backend.available = False`` makes every client call fail with
NetworkError, which is how tests simulate losing connectivity.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ._scoring.protocol import (
    EntryMap,
    apply_submission,
    check_submission,
    total_holes_for,
)
from ._scoring.standing import (
    MatchCalculation,
    calculate_match,
    net_score,
    strokes_on_hole,
)
from .errors import (
    BusinessRuleError,
    InvalidScoreError,
    MatchDecidedError,
    NetworkError,
    NotMatchPlayerError,
    ScorecardLockedError,
)
from .types import (
    TERMINAL_STATUSES,
    TOTAL_HOLES,
    DecidedResult,
    Hole,
    HoleScores,
    Leaderboard,
    LeaderboardMatch,
    LeaderboardPlayer,
    MarkerAssignment,
    MatchFormat,
    MatchResult,
    MatchStats,
    MatchStatus,
    MatchSummary,
    Player,
    PlayerScore,
    ScoreData,
    ScoringView,
    ValidationStatus,
)

logger = logging.getLogger("matchplay_scoring.demo_backend")

DEFAULT_PARS = [4, 4, 3, 5, 4, 4, 3, 4, 5, 4, 3, 4, 5, 4, 4, 3, 4, 5]
DEFAULT_STROKE_INDEX = [7, 15, 3, 11, 1, 17, 9, 13, 5, 8, 16, 4, 12, 2, 18, 10, 14, 6]

WIN_POINTS = 1.0
HALVE_POINTS = 0.5


def default_holes() -> List[Hole]:
    return [
        Hole(hole_number=n, par=par, stroke_index=si)
        for n, (par, si) in enumerate(zip(DEFAULT_PARS, DEFAULT_STROKE_INDEX), start=1)
    ]


def default_marker_assignments(players: List[Player]) -> List[MarkerAssignment]:
    """
    Pair players across teams in a ring: A1 marks B1, B1 marks A2, ...
    and the last player marks the first.
    """
    team_a = [p for p in players if p.team == "A"]
    team_b = [p for p in players if p.team == "B"]
    ring: List[Player] = []
    for i in range(max(len(team_a), len(team_b))):
        ring.extend(p[i] for p in (team_a, team_b) if i < len(p))
    if len(ring) < 2:
        return []

    assignments = []
    for i, scorer in enumerate(ring):
        marks = ring[(i + 1) % len(ring)]
        marked_by = ring[i - 1]
        assignments.append(MarkerAssignment(
            scorer_user_id=scorer.user_id, scorer_name=scorer.user_name,
            marks_user_id=marks.user_id, marks_name=marks.user_name,
            marked_by_user_id=marked_by.user_id, marked_by_name=marked_by.user_name,
        ))
    return assignments


@dataclass
class _Match:
    match_id: str
    players: List[Player]
    holes: List[Hole]
    marker_assignments: List[MarkerAssignment]
    match_format: MatchFormat = MatchFormat.SINGLES
    status: MatchStatus = MatchStatus.IN_PROGRESS
    competition_id: Optional[str] = None
    match_number: Optional[int] = None
    entries: EntryMap = field(default_factory=dict)
    submitted_by: List[str] = field(default_factory=list)
    concession: Optional[DecidedResult] = None


@dataclass
class _Competition:
    competition_id: str
    name: str = ""
    team_a_name: str = "Team A"
    team_b_name: str = "Team B"


class InMemoryScoringBackend:
    """Holds every match and competition; one instance plays the server."""

    def __init__(self):
        self.available = True
        self.history: List[Tuple[str, str, str, Optional[int]]] = []
        self._matches: Dict[str, _Match] = {}
        self._competitions: Dict[str, _Competition] = {}

    # ── setup ─────────────────────────────────────────────────

    def add_competition(self, competition_id: str, name: str = "",
                        team_a_name: str = "Team A", team_b_name: str = "Team B") -> None:
        self._competitions[competition_id] = _Competition(
            competition_id, name, team_a_name, team_b_name
        )

    def add_match(
        self,
        match_id: str,
        players: List[Player],
        match_format: MatchFormat = MatchFormat.SINGLES,
        holes: Optional[List[Hole]] = None,
        marker_assignments: Optional[List[MarkerAssignment]] = None,
        competition_id: Optional[str] = None,
        match_number: Optional[int] = None,
        status: MatchStatus = MatchStatus.IN_PROGRESS,
    ) -> ScoringView:
        if competition_id and competition_id not in self._competitions:
            self.add_competition(competition_id)
        holes = holes or default_holes()
        players = [self._with_strokes(p, holes) for p in players]
        self._matches[match_id] = _Match(
            match_id=match_id,
            players=players,
            holes=holes,
            marker_assignments=(marker_assignments if marker_assignments is not None
                                else default_marker_assignments(players)),
            match_format=match_format,
            status=status,
            competition_id=competition_id,
            match_number=match_number,
        )
        return self.scoring_view(match_id)

    def client(self, user_id: str) -> "BackendClient":
        """Repository bound to one authenticated user."""
        return BackendClient(self, user_id)

    # ── operations ────────────────────────────────────────────

    def scoring_view(self, match_id: str) -> ScoringView:
        match = self._get(match_id)
        return self._build_view(match, self._calculate(match))

    def submit_hole_score(self, user_id: str, match_id: str, hole_number: int,
                          score_data: ScoreData) -> ScoringView:
        match = self._get(match_id)
        check_submission(self.scoring_view(match_id), user_id, hole_number, score_data)
        apply_submission(match.entries, user_id, hole_number, score_data)
        if match.status == MatchStatus.SCHEDULED:
            match.status = MatchStatus.IN_PROGRESS
        logger.debug("Hole %d of %s scored by %s", hole_number, match_id, user_id)
        return self.scoring_view(match_id)

    def submit_scorecard(self, user_id: str, match_id: str) -> MatchSummary:
        match = self._get(match_id)
        calculation = self._calculate(match)
        view = self._build_view(match, calculation)
        player = view.player(user_id)
        if player is None:
            raise NotMatchPlayerError("Only match players can submit a scorecard",
                                      status_code=403)
        if user_id in match.submitted_by:
            raise ScorecardLockedError("Scorecard already submitted", status_code=400)

        total = total_holes_for(view)
        validated = _validated_holes(view, user_id, total)
        if match.concession is None and validated < total:
            raise BusinessRuleError(
                f"Only {validated} of {total} holes validated", status_code=400,
                context={"match_id": match_id},
            )

        match.submitted_by.append(user_id)
        complete = all(p.user_id in match.submitted_by for p in match.players)
        if complete and match.status not in TERMINAL_STATUSES:
            match.status = MatchStatus.COMPLETED
            logger.info("Match %s completed", match_id)

        return MatchSummary(
            match_id=match_id,
            submitted_by=user_id,
            result=self._match_result(match, calculation),
            stats=self._player_stats(view, player, calculation),
            match_complete=complete,
        )

    def concede_match(self, user_id: str, match_id: str, conceding_team: str,
                      reason: Optional[str] = None) -> ScoringView:
        match = self._get(match_id)
        player = next((p for p in match.players if p.user_id == user_id), None)
        if player is None or player.team != conceding_team:
            raise NotMatchPlayerError(
                f"Only players of team {conceding_team} can concede for it", status_code=403
            )
        if match.status in TERMINAL_STATUSES:
            raise MatchDecidedError(f"Match is {match.status.value}", status_code=400)
        winner = "B" if conceding_team == "A" else "A"
        match.concession = DecidedResult(winner=winner, score="CONCEDED")
        match.status = MatchStatus.CONCEDED
        logger.info("Team %s conceded %s%s", conceding_team, match_id,
                    f" ({reason})" if reason else "")
        return self.scoring_view(match_id)

    def leaderboard(self, competition_id: str) -> Leaderboard:
        competition = self._competitions.get(competition_id)
        if competition is None:
            raise BusinessRuleError(f"Competition {competition_id} not found", status_code=404)

        board = Leaderboard(
            competition_id=competition_id,
            competition_name=competition.name,
            team_a_name=competition.team_a_name,
            team_b_name=competition.team_b_name,
        )
        for match in self._matches.values():
            if match.competition_id != competition_id:
                continue
            calculation = self._calculate(match)
            result = self._match_result(match, calculation)
            if result is not None:
                board.team_a_points += result.team_a_points
                board.team_b_points += result.team_b_points
            standing = calculation.standing
            board.matches.append(LeaderboardMatch(
                match_id=match.match_id,
                match_number=match.match_number,
                match_format=match.match_format,
                status=match.status,
                current_hole=standing.holes_played or None,
                standing=standing.status,
                leading_team=standing.leading_team,
                team_a_players=_roster(match.players, "A"),
                team_b_players=_roster(match.players, "B"),
                result=(DecidedResult(winner=result.winner, score=result.score)
                        if result else None),
            ))
        board.matches.sort(key=lambda m: (m.match_number is None, m.match_number or 0))
        return board

    # ── internals ─────────────────────────────────────────────

    def _get(self, match_id: str) -> _Match:
        match = self._matches.get(match_id)
        if match is None:
            raise BusinessRuleError(f"Match {match_id} not found", status_code=404)
        return match

    @staticmethod
    def _with_strokes(player: Player, holes: List[Hole]) -> Player:
        received = [
            h.hole_number for h in holes
            if strokes_on_hole(player.playing_handicap, h.stroke_index, len(holes)) > 0
        ]
        return player.model_copy(update={"strokes_received": received})

    def _player_scores(self, match: _Match) -> Dict[int, Dict[str, PlayerScore]]:
        stroke_index = {h.hole_number: h.stroke_index for h in match.holes}
        teams = {p.user_id: p for p in match.players}
        scores: Dict[int, Dict[str, PlayerScore]] = {}
        for (hole_number, user_id), entry in sorted(match.entries.items()):
            player = teams.get(user_id)
            strokes = 0
            if player is not None:
                strokes = strokes_on_hole(player.playing_handicap,
                                          stroke_index.get(hole_number, hole_number),
                                          len(match.holes))
            scores.setdefault(hole_number, {})[user_id] = PlayerScore(
                user_id=user_id,
                own_score=entry.own_score,
                marker_score=entry.marker_score,
                validation_status=entry.validation_status,
                net_score=net_score(entry.own_score, strokes) if entry.own_reported else None,
                strokes_received_this_hole=strokes,
            )
        return scores

    def _calculate(self, match: _Match) -> MatchCalculation:
        return calculate_match(match.match_format, match.players, match.holes,
                               self._player_scores(match))

    def _build_view(self, match: _Match, calculation: MatchCalculation) -> ScoringView:
        competition = self._competitions.get(match.competition_id or "")
        scores = self._player_scores(match)
        is_decided = calculation.is_decided or match.concession is not None
        return ScoringView(
            match_id=match.match_id,
            match_number=match.match_number,
            match_format=match.match_format,
            match_status=match.status,
            is_decided=is_decided,
            decided_result=match.concession or calculation.decided_result,
            competition_id=match.competition_id,
            team_a_name=competition.team_a_name if competition else "Team A",
            team_b_name=competition.team_b_name if competition else "Team B",
            marker_assignments=match.marker_assignments,
            players=match.players,
            holes=match.holes,
            scores=[
                HoleScores(
                    hole_number=hole_number,
                    player_scores=list(by_player.values()),
                    hole_result=calculation.hole_results.get(hole_number),
                )
                for hole_number, by_player in sorted(scores.items())
            ],
            match_standing=calculation.standing,
            scorecard_submitted_by=list(match.submitted_by),
        )

    @staticmethod
    def _match_result(match: _Match, calculation: MatchCalculation) -> Optional[MatchResult]:
        decided = match.concession or calculation.decided_result
        if decided is None:
            if calculation.standing.holes_played < len(match.holes):
                return None
            decided = DecidedResult(winner="HALVED", score="AS")
        if decided.winner == "HALVED":
            points = (HALVE_POINTS, HALVE_POINTS)
        elif decided.winner == "A":
            points = (WIN_POINTS, 0.0)
        else:
            points = (0.0, WIN_POINTS)
        return MatchResult(winner=decided.winner, score=decided.score,
                           team_a_points=points[0], team_b_points=points[1])

    @staticmethod
    def _player_stats(view: ScoringView, player: Player,
                      calculation: MatchCalculation) -> MatchStats:
        gross, net = [], []
        for hole in view.scores:
            entry = hole.score_for(player.user_id)
            if entry is not None and entry.own_score is not None:
                gross.append(entry.own_score)
                net.append(entry.net_score)

        stats = MatchStats(
            player_gross_total=sum(gross) if gross else None,
            player_net_total=sum(net) if net else None,
        )
        for result in calculation.hole_results.values():
            if result.winner == "HALVED":
                stats.holes_halved += 1
            elif result.winner == player.team:
                stats.holes_won += 1
            else:
                stats.holes_lost += 1
        return stats


class BackendClient:
    """Async repository view of the backend for one user."""

    def __init__(self, backend: InMemoryScoringBackend, user_id: str):
        self.backend = backend
        self.user_id = user_id

    async def get_scoring_view(self, match_id: str) -> ScoringView:
        await self._roundtrip("get_scoring_view", match_id)
        return self.backend.scoring_view(match_id)

    async def submit_hole_score(self, match_id: str, hole_number: int,
                                score_data: ScoreData) -> ScoringView:
        await self._roundtrip("submit_hole_score", match_id, hole_number)
        if not 1 <= hole_number <= TOTAL_HOLES:
            raise InvalidScoreError(f"Invalid hole number {hole_number}", status_code=400)
        return self.backend.submit_hole_score(self.user_id, match_id, hole_number, score_data)

    async def submit_scorecard(self, match_id: str) -> MatchSummary:
        await self._roundtrip("submit_scorecard", match_id)
        return self.backend.submit_scorecard(self.user_id, match_id)

    async def concede_match(self, match_id: str, conceding_team: str,
                            reason: Optional[str]) -> ScoringView:
        await self._roundtrip("concede_match", match_id)
        return self.backend.concede_match(self.user_id, match_id, conceding_team, reason)

    async def get_leaderboard(self, competition_id: str) -> Leaderboard:
        await self._roundtrip("get_leaderboard", competition_id)
        return self.backend.leaderboard(competition_id)

    async def _roundtrip(self, operation: str, target: str,
                         hole_number: Optional[int] = None) -> None:
        await asyncio.sleep(0)
        if not self.backend.available:
            raise NetworkError(f"{operation} failed: backend unavailable")
        self.backend.history.append((self.user_id, operation, target, hole_number))


def _roster(players: List[Player], team: str) -> List[LeaderboardPlayer]:
    return [LeaderboardPlayer(user_id=p.user_id, user_name=p.user_name)
            for p in players if p.team == team]


def _validated_holes(view: ScoringView, user_id: str, total: int) -> int:
    count = 0
    for hole in view.scores:
        entry = hole.score_for(user_id)
        if (hole.hole_number <= total and entry is not None
                and entry.validation_status == ValidationStatus.MATCH):
            count += 1
    return count
