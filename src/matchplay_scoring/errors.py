"""
matchplay_scoring.errors — Custom exception classes
===================================================

Defines the exception hierarchy for scoring use cases.
Every error carries a ``kind`` that decides how a scoring session reacts:

- ``network``: transient, submissions are queued and fetches retried
- ``validation``: business-rule violation, surfaced and never queued
- ``session``: another open session holds the scoring lock
- ``storage``: the local state file cannot be read or written
"""

from __future__ import annotations
from typing import Any, Dict, Optional
import json


class ScoringError(Exception):
    """Base exception for all matchplay_scoring errors."""

    kind = "validation"

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.context = context or {}
        super().__init__(message)

    def format_error_log(self) -> str:
        return _format_error_block(
            error_type=self.__class__.__name__,
            kind=self.kind,
            message=str(self),
            context=self.context,
        )


class NetworkError(ScoringError):
    """Raised when the backend cannot be reached or fails transiently."""

    kind = "network"

    def __init__(self, message: str, status_code: Optional[int] = None,
                 context: Optional[Dict[str, Any]] = None):
        self.status_code = status_code
        super().__init__(message, context)


class BusinessRuleError(ScoringError):
    """Raised when a request is rejected by a scoring rule."""

    kind = "validation"

    def __init__(self, message: str, status_code: Optional[int] = None,
                 context: Optional[Dict[str, Any]] = None):
        self.status_code = status_code
        super().__init__(message, context)


class InvalidScoreError(BusinessRuleError):
    """Raised for malformed input: hole out of range, score outside 1-9."""


class NotMatchPlayerError(BusinessRuleError):
    """Raised when a non-participant tries to change a match."""


class ScorecardLockedError(BusinessRuleError):
    """Raised when the caller already submitted their scorecard."""


class MatchDecidedError(BusinessRuleError):
    """Raised for holes beyond the decided boundary or a finished match."""


class SessionConflictError(ScoringError):
    """Raised when another live session holds the scoring lock."""

    kind = "session"

    def __init__(self, match_id: str, holder_session_id: Optional[str] = None):
        self.match_id = match_id
        self.holder_session_id = holder_session_id
        super().__init__(
            f"Match {match_id} is being scored in another session",
            {"match_id": match_id, "holder_session_id": holder_session_id},
        )


class StorageError(ScoringError):
    """Raised when the local SQLite state (queue, lock) is unusable."""

    kind = "storage"

    def __init__(self, message: str, db_path: Optional[str] = None):
        self.db_path = db_path
        super().__init__(message, {"db_path": db_path} if db_path else None)


def _format_error_block(
    error_type: str,
    kind: str,
    message: str,
    context: Dict[str, Any],
) -> str:
    """Format a structured error block for the log file."""
    from datetime import datetime, timezone

    timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"

    lines = [
        "",
        "=" * 64,
        " SCORING ERROR",
        "=" * 64,
        f" Timestamp:    {timestamp}",
        f" Error Type:   {error_type}",
        f" Kind:         {kind}",
        f" Message:      {message}",
    ]

    if context:
        lines.append("")
        lines.append(" ── CONTEXT " + "─" * 52)
        lines.append(_indent_json(context))

    lines.append("")
    lines.append("=" * 64)
    lines.append("")

    return "\n".join(lines)


def _indent_json(data: Dict[str, Any], indent: int = 2) -> str:
    """Format JSON with indentation for error logs."""
    try:
        formatted = json.dumps(data, indent=indent, default=str)
        return "\n".join(" " + line for line in formatted.split("\n"))
    except (TypeError, ValueError):
        return f" {repr(data)}"
