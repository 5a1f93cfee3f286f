# Area: Backend Tests
"""Tests for ApiScoringRepository with a mocked requests session."""

import asyncio
from unittest.mock import MagicMock

import pytest
import requests

from matchplay_scoring.client import ApiScoringRepository
from matchplay_scoring.errors import (
    BusinessRuleError,
    NetworkError,
    NotMatchPlayerError,
)
from matchplay_scoring.types import ScoreData


VIEW_PAYLOAD = {
    "match_id": "m1",
    "match_format": "SINGLES",
    "match_status": "IN_PROGRESS",
    "is_decided": False,
    "players": [
        {"user_id": "alice", "user_name": "Alice", "team": "A", "playing_handicap": 3},
        {"user_id": "bob", "user_name": "Bob", "team": "B"},
    ],
    "scores": [{
        "hole_number": 1,
        "player_scores": [{"user_id": "alice", "own_score": 4, "marker_score": 4,
                           "validation_status": "match"}],
    }],
    "match_standing": {"status": "1UP", "leading_team": "A",
                       "holes_played": 1, "holes_remaining": 17},
    "unknown_field": "ignored",
}


def _response(status_code=200, payload=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.content = b"x" if payload is not None or text else b""
    response.text = text
    if payload is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def http():
    session = MagicMock(spec=requests.Session)
    session.headers = {}
    return session


@pytest.fixture
def repo(http):
    return ApiScoringRepository("https://api.example.com/", token="secret",
                                timeout=5, session=http)


class TestRequests:
    """Endpoints, payloads and headers."""

    def test_auth_header(self, repo, http):
        assert http.headers["Authorization"] == "Bearer secret"

    def test_get_scoring_view(self, repo, http):
        http.request.return_value = _response(payload=VIEW_PAYLOAD)

        view = asyncio.run(repo.get_scoring_view("m1"))

        http.request.assert_called_once_with(
            "GET", "https://api.example.com/api/v1/matches/m1/scoring-view",
            json=None, timeout=5,
        )
        assert view.player("alice").playing_handicap == 3
        assert view.scores[0].score_for("alice").validation_status.value == "match"
        assert view.match_standing.status == "1UP"

    def test_submit_hole_score(self, repo, http):
        http.request.return_value = _response(payload=VIEW_PAYLOAD)
        data = ScoreData(own_score=None, marked_player_id="bob", marked_score=5)

        asyncio.run(repo.submit_hole_score("m1", 7, data))

        method, url = http.request.call_args.args
        assert method == "POST"
        assert url.endswith("/api/v1/matches/m1/scores/holes/7")
        assert http.request.call_args.kwargs["json"] == {
            "own_score": None, "marked_player_id": "bob", "marked_score": 5,
        }

    def test_concede_match(self, repo, http):
        http.request.return_value = _response(payload={"status": "CONCEDED"})

        result = asyncio.run(repo.concede_match("m1", "A", None))

        method, url = http.request.call_args.args
        assert method == "PUT"
        assert url.endswith("/api/v1/matches/m1/status")
        assert http.request.call_args.kwargs["json"] == {"action": "concede",
                                                         "conceding_team": "A"}
        assert result == {"status": "CONCEDED"}

    def test_submit_scorecard(self, repo, http):
        http.request.return_value = _response(payload={
            "match_id": "m1", "submitted_by": "alice", "match_complete": True,
            "result": {"winner": "A", "score": "3&2", "team_a_points": 1},
        })

        summary = asyncio.run(repo.submit_scorecard("m1"))

        assert summary.match_complete is True
        assert summary.result.score == "3&2"

    def test_leaderboard(self, repo, http):
        http.request.return_value = _response(payload={
            "competition_id": "c1", "team_a_points": 2.5, "team_b_points": 1.5,
            "matches": [{"match_id": "m1", "status": "COMPLETED"}],
        })

        board = asyncio.run(repo.get_leaderboard("c1"))

        assert http.request.call_args.args[1].endswith("/api/v1/competitions/c1/leaderboard")
        assert board.team_a_points == 2.5
        assert board.matches[0].match_id == "m1"


class TestErrorMapping:
    """Transport and HTTP failures map onto the error taxonomy."""

    def test_connection_error(self, repo, http):
        http.request.side_effect = requests.exceptions.ConnectionError("refused")
        with pytest.raises(NetworkError):
            asyncio.run(repo.get_scoring_view("m1"))

    def test_timeout(self, repo, http):
        http.request.side_effect = requests.exceptions.Timeout("slow")
        with pytest.raises(NetworkError):
            asyncio.run(repo.get_scoring_view("m1"))

    def test_server_error(self, repo, http):
        http.request.return_value = _response(503, text="unavailable")
        with pytest.raises(NetworkError) as exc_info:
            asyncio.run(repo.get_scoring_view("m1"))
        assert exc_info.value.status_code == 503

    def test_forbidden(self, repo, http):
        http.request.return_value = _response(403, payload={"detail": "Not a match player"})
        with pytest.raises(NotMatchPlayerError) as exc_info:
            asyncio.run(repo.get_scoring_view("m1"))
        assert "Not a match player" in str(exc_info.value)

    def test_client_error(self, repo, http):
        http.request.return_value = _response(400, payload={"message": "Scorecard locked"})
        with pytest.raises(BusinessRuleError) as exc_info:
            asyncio.run(repo.submit_scorecard("m1"))
        assert exc_info.value.status_code == 400
        assert not isinstance(exc_info.value, NotMatchPlayerError)

    def test_invalid_json_body(self, repo, http):
        http.request.return_value = _response(200, text="<html>")
        with pytest.raises(NetworkError):
            asyncio.run(repo.get_scoring_view("m1"))

    def test_malformed_view_body(self, repo, http):
        """A JSON body that is not a scoring view fails like a broken response."""
        http.request.return_value = _response(200, payload=[])
        with pytest.raises(NetworkError) as exc_info:
            asyncio.run(repo.submit_hole_score("m1", 1, ScoreData(
                own_score=4, marked_player_id="bob", marked_score=5)))
        assert "ScoringView" in str(exc_info.value)

    def test_malformed_leaderboard_body(self, repo, http):
        http.request.return_value = _response(200, payload={"competition_name": "Club Cup"})
        with pytest.raises(NetworkError):
            asyncio.run(repo.get_leaderboard("c1"))
