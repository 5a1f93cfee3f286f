"""
matchplay_scoring.cli — Command-line interface
==============================================

Inspect and repair the device-local scoring state, and read the
backend's view of a match or competition.

Usage:
    matchplay-scoring queue list                 # Queued scores
    matchplay-scoring queue clear                # Drop every queued score
    matchplay-scoring lock show                  # Current lock holder(s)
    matchplay-scoring lock release SESSION_ID    # Release a stuck lock
    matchplay-scoring view MATCH_ID              # Scoring view and standing
    matchplay-scoring leaderboard COMPETITION_ID

Configuration comes from --config, a .env file and SCORING_* environment
variables (see _config.ENV_MAPPINGS).
"""

import argparse
import asyncio
import datetime
import logging
import sys
from typing import Any, Dict, List, Optional

from ._config import load_config
from ._scoring.use_cases import GetLeaderboard, GetScoringView
from ._shared.logging_config import setup_logging
from ._sync.event_bus import LockEventBus
from ._sync.offline_queue import OfflineQueue
from ._sync.session_lock import SessionLock
from .errors import ScoringError
from .session import build_repository
from .types import Leaderboard, ScoringView


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="matchplay-scoring",
        description="Match play live scoring - local state and backend views",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  matchplay-scoring queue list
  matchplay-scoring lock release 3f2a9c
  SCORING_API_URL=https://api.example.com matchplay-scoring view match-1
        """,
    )
    parser.add_argument("--config", type=str, help="Path to JSON config file")
    parser.add_argument("--db", type=str, help="Override the local storage path")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    commands = parser.add_subparsers(dest="command", required=True)

    queue = commands.add_parser("queue", help="Offline queue")
    queue.add_argument("action", choices=["list", "clear"])

    lock = commands.add_parser("lock", help="Session lock")
    lock_actions = lock.add_subparsers(dest="action", required=True)
    lock_actions.add_parser("show", help="Show the current lock holder(s)")
    release = lock_actions.add_parser("release", help="Release a session's lock")
    release.add_argument("session_id")

    view = commands.add_parser("view", help="Fetch a match's scoring view")
    view.add_argument("match_id")

    board = commands.add_parser("leaderboard", help="Fetch a competition leaderboard")
    board.add_argument("competition_id")

    return parser.parse_args(argv)


def cmd_queue(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    queue = OfflineQueue(config["db_path"])
    if args.action == "clear":
        count = queue.size()
        queue.clear()
        print(f"Cleared {count} queued score(s)")
        return 0

    entries = queue.get_all()
    if not entries:
        print("Offline queue is empty")
        return 0
    for entry in entries:
        data = entry.score_data
        print(
            f"{_when(entry.timestamp)}  {entry.match_id}  hole {entry.hole_number:>2}  "
            f"own={_score(data.get('own_score'))}  "
            f"{data.get('marked_player_id')}={_score(data.get('marked_score'))}"
        )
    return 0


def cmd_lock(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    lock = SessionLock(
        config["db_path"],
        bus=LockEventBus(config["db_path"]),
        stale_after=config["lock_stale_seconds"],
        scope=config["lock_scope"],
    )
    if args.action == "release":
        lock.release(args.session_id)
        print(f"Released locks held by {args.session_id}")
        return 0

    record = lock.get_session()
    if record is None:
        print("No scoring session holds a lock")
        return 0
    state = "stale" if record.age() > lock.stale_after else "live"
    print(f"{record.match_id}  session {record.session_id}  "
          f"since {_when(record.timestamp)} ({state})")
    return 0


def cmd_view(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    view = asyncio.run(GetScoringView(build_repository(config)).execute(args.match_id))
    print(format_view(view))
    return 0


def cmd_leaderboard(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    board = asyncio.run(GetLeaderboard(build_repository(config)).execute(args.competition_id))
    print(format_leaderboard(board))
    return 0


def format_view(view: ScoringView) -> str:
    standing = view.match_standing
    lines = [
        f"Match {view.match_id} ({view.match_format.value}, {view.match_status.value})",
        f"  {view.team_a_name or 'A'} vs {view.team_b_name or 'B'}",
    ]
    if standing is not None:
        lines.append(f"  Standing: {standing.status} after {standing.holes_played}, "
                     f"{standing.holes_remaining} to play")
    if view.is_decided and view.decided_result is not None:
        lines.append(f"  Decided: {view.decided_result.winner} "
                     f"{view.decided_result.score}")
    for hole in view.scores:
        cells = " ".join(
            f"{s.user_id}={_score(s.own_score)}/{_score(s.marker_score)}"
            f"[{s.validation_status.value}]"
            for s in hole.player_scores
        )
        result = f" -> {hole.hole_result.winner}" if hole.hole_result else ""
        lines.append(f"  {hole.hole_number:>2}: {cells}{result}")
    return "\n".join(lines)


def format_leaderboard(board: Leaderboard) -> str:
    lines = [
        board.competition_name or board.competition_id,
        f"  {board.team_a_name} {board.team_a_points:g} - "
        f"{board.team_b_points:g} {board.team_b_name}",
    ]
    for match in board.matches:
        detail = (f"{match.result.winner} {match.result.score}" if match.result
                  else f"{match.standing or '-'} thru {match.current_hole or 0}")
        lines.append(f"  #{match.match_number or '?'} {match.match_id}  "
                     f"{match.status.value}  {detail}")
    return "\n".join(lines)


def _score(value: Optional[int]) -> str:
    return "-" if value is None else str(value)


def _when(timestamp: float) -> str:
    return datetime.datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M:%S")


COMMANDS = {
    "queue": cmd_queue,
    "lock": cmd_lock,
    "view": cmd_view,
    "leaderboard": cmd_leaderboard,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    args = parse_args(argv)
    try:
        config = load_config(args.config)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    if args.db:
        config["db_path"] = args.db

    setup_logging(config.get("log_file", ""),
                  level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        return COMMANDS[args.command](args, config)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("Set via config file or environment variables.", file=sys.stderr)
        return 1
    except ScoringError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
