# Area: Scoring Tests
"""Tests for the marker-validated hole scoring protocol."""

import pytest

from matchplay_scoring._scoring.protocol import (
    HoleEntry,
    apply_submission,
    check_submission,
    marked_player_for,
    total_holes_for,
)
from matchplay_scoring.demo_backend import default_marker_assignments
from matchplay_scoring.errors import (
    InvalidScoreError,
    MatchDecidedError,
    NotMatchPlayerError,
    ScorecardLockedError,
)
from matchplay_scoring.types import (
    DecidedResult,
    MatchStanding,
    MatchStatus,
    Player,
    ScoreData,
    ScoringView,
    ValidationStatus,
)


def _view(**overrides) -> ScoringView:
    players = [Player(user_id="alice", team="A"), Player(user_id="bob", team="B")]
    data = dict(
        match_id="m1",
        match_status=MatchStatus.IN_PROGRESS,
        players=players,
        marker_assignments=default_marker_assignments(players),
    )
    data.update(overrides)
    return ScoringView(**data)


def _data(own=4, marked_player_id="bob", marked=5) -> ScoreData:
    return ScoreData(own_score=own, marked_player_id=marked_player_id, marked_score=marked)


class TestValidationStatus:
    """pending until both sides report, then match or mismatch."""

    def test_new_entry_is_pending(self):
        assert HoleEntry().validation_status == ValidationStatus.PENDING

    def test_one_side_is_pending(self):
        entries = {}
        apply_submission(entries, "alice", 1, _data(own=4, marked=5))

        assert entries[(1, "alice")].validation_status == ValidationStatus.PENDING
        assert entries[(1, "bob")].validation_status == ValidationStatus.PENDING
        assert entries[(1, "bob")].marker_score == 5

    def test_agreeing_sides_match(self):
        entries = {}
        apply_submission(entries, "alice", 1, _data(own=4, marked=5))
        apply_submission(entries, "bob", 1, _data(own=5, marked_player_id="alice", marked=4))

        assert entries[(1, "alice")].validation_status == ValidationStatus.MATCH
        assert entries[(1, "bob")].validation_status == ValidationStatus.MATCH

    def test_disagreeing_sides_mismatch(self):
        entries = {}
        apply_submission(entries, "alice", 1, _data(own=4, marked=5))
        apply_submission(entries, "bob", 1, _data(own=6, marked_player_id="alice", marked=4))

        assert entries[(1, "alice")].validation_status == ValidationStatus.MATCH
        assert entries[(1, "bob")].validation_status == ValidationStatus.MISMATCH

    def test_resubmission_overwrites(self):
        """A corrected own score resolves the mismatch without duplicating."""
        entries = {}
        apply_submission(entries, "alice", 1, _data(own=4, marked=5))
        apply_submission(entries, "bob", 1, _data(own=6, marked_player_id="alice", marked=4))
        apply_submission(entries, "bob", 1, _data(own=5, marked_player_id="alice", marked=4))

        assert len(entries) == 2
        assert entries[(1, "bob")].validation_status == ValidationStatus.MATCH

    def test_both_picked_up_matches(self):
        entries = {}
        apply_submission(entries, "alice", 1, _data(own=None, marked=5))
        apply_submission(entries, "bob", 1, _data(own=5, marked_player_id="alice", marked=None))

        alice = entries[(1, "alice")]
        assert alice.own_score is None and alice.own_reported
        assert alice.validation_status == ValidationStatus.MATCH


class TestCheckSubmission:
    """Business rules enforced before a submission is accepted."""

    def test_valid_submission(self):
        check_submission(_view(), "alice", 1, _data())

    def test_hole_out_of_range(self):
        with pytest.raises(InvalidScoreError):
            check_submission(_view(), "alice", 19, _data())
        with pytest.raises(InvalidScoreError):
            check_submission(_view(), "alice", 0, _data())

    def test_non_player_rejected(self):
        with pytest.raises(NotMatchPlayerError):
            check_submission(_view(), "carol", 1, _data())

    def test_wrong_marked_player_rejected(self):
        with pytest.raises(NotMatchPlayerError):
            check_submission(_view(), "alice", 1, _data(marked_player_id="alice"))

    def test_without_assignments_self_marking_rejected(self):
        view = _view(marker_assignments=[])
        check_submission(view, "alice", 1, _data(marked_player_id="bob"))
        with pytest.raises(NotMatchPlayerError):
            check_submission(view, "alice", 1, _data(marked_player_id="alice"))
        with pytest.raises(NotMatchPlayerError):
            check_submission(view, "alice", 1, _data(marked_player_id="carol"))

    def test_submitted_scorecard_locks(self):
        with pytest.raises(ScorecardLockedError):
            check_submission(_view(scorecard_submitted_by=["alice"]), "alice", 1, _data())

    def test_terminal_match_rejected(self):
        with pytest.raises(MatchDecidedError):
            check_submission(_view(match_status=MatchStatus.CONCEDED), "alice", 1, _data())

    def test_hole_beyond_decided_boundary_rejected(self):
        view = _view(
            is_decided=True,
            decided_result=DecidedResult(winner="A", score="5&4"),
            match_standing=MatchStanding(status="5UP", leading_team="A",
                                         holes_played=14, holes_remaining=4),
        )
        check_submission(view, "alice", 14, _data())
        with pytest.raises(MatchDecidedError):
            check_submission(view, "alice", 15, _data())


class TestHelpers:
    def test_marked_player_for(self):
        view = _view()
        assert marked_player_for(view, "alice") == "bob"
        assert marked_player_for(view, "bob") == "alice"
        assert marked_player_for(view, "carol") is None

    def test_total_holes(self):
        assert total_holes_for(_view()) == 18
        decided = _view(is_decided=True,
                        match_standing=MatchStanding(holes_played=14, holes_remaining=4))
        assert total_holes_for(decided) == 14


class TestScoreData:
    """Score values are integers 1-9 or None."""

    @pytest.mark.parametrize("value", [0, 10, -1, 4.5, True, "4"])
    def test_invalid_scores_rejected(self, value):
        with pytest.raises(ValueError):
            ScoreData(own_score=value, marked_player_id="bob", marked_score=4)

    def test_picked_up_is_valid(self):
        data = ScoreData(own_score=None, marked_player_id="bob", marked_score=9)
        assert data.own_score is None

    def test_marked_player_required(self):
        with pytest.raises(ValueError):
            ScoreData(own_score=4, marked_player_id="", marked_score=4)
