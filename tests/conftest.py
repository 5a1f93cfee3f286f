"""Shared fixtures and builders for the scoring tests."""

import os
import tempfile
from typing import Dict, Iterable, Optional

import pytest

from matchplay_scoring._scoring.standing import net_score
from matchplay_scoring.demo_backend import BackendClient, InMemoryScoringBackend
from matchplay_scoring.errors import NetworkError
from matchplay_scoring.session import open_session
from matchplay_scoring.types import Player, PlayerScore, ScoreData, ValidationStatus


@pytest.fixture
def db_path():
    """Temporary SQLite file shared by every store in one test."""
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    yield path
    for suffix in ("", "-journal", "-wal", "-shm"):
        if os.path.exists(path + suffix):
            os.unlink(path + suffix)


@pytest.fixture
def backend():
    """Singles match m1: alice (A) against bob (B) in competition c1."""
    backend = InMemoryScoringBackend()
    backend.add_competition("c1", name="Club Cup", team_a_name="Reds", team_b_name="Blues")
    backend.add_match(
        "m1",
        players=[Player(user_id="alice", user_name="Alice", team="A"),
                 Player(user_id="bob", user_name="Bob", team="B")],
        competition_id="c1",
        match_number=1,
    )
    return backend


def score(own: Optional[int], marked_player_id: str, marked: Optional[int]) -> Dict:
    return {"own_score": own, "marked_player_id": marked_player_id, "marked_score": marked}


def play_hole(backend: InMemoryScoringBackend, hole_number: int,
              alice: Optional[int], bob: Optional[int], match_id: str = "m1") -> None:
    """Both singles players report agreeing scores, validating the hole."""
    backend.submit_hole_score("alice", match_id, hole_number,
                              ScoreData(**score(alice, "bob", bob)))
    backend.submit_hole_score("bob", match_id, hole_number,
                              ScoreData(**score(bob, "alice", alice)))


def play_holes(backend: InMemoryScoringBackend, results: Iterable[tuple],
               start: int = 1, match_id: str = "m1") -> None:
    for offset, (alice, bob) in enumerate(results):
        play_hole(backend, start + offset, alice, bob, match_id)


def validated(user_id: str, gross: Optional[int], strokes: int = 0) -> PlayerScore:
    """A PlayerScore both sides agreed on."""
    return PlayerScore(
        user_id=user_id, own_score=gross, marker_score=gross,
        validation_status=ValidationStatus.MATCH,
        net_score=net_score(gross, strokes), strokes_received_this_hole=strokes,
    )


class FlakyClient(BackendClient):
    """Backend client whose hole submissions fail for chosen holes."""

    def __init__(self, backend, user_id, failing_holes=()):
        super().__init__(backend, user_id)
        self.failing_holes = set(failing_holes)

    async def submit_hole_score(self, match_id, hole_number, score_data):
        if hole_number in self.failing_holes:
            raise NetworkError(f"hole {hole_number} timed out")
        return await super().submit_hole_score(match_id, hole_number, score_data)


def make_session(backend, db_path, user_id="alice", match_id="m1",
                 repository=None, online=True, **config):
    config.setdefault("db_path", db_path)
    return open_session(
        config, match_id, user_id,
        repository=repository or backend.client(user_id),
        online=online,
    )
