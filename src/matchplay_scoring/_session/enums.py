# Area: Session
"""
matchplay_scoring._session.enums — Scoring session states and events
====================================================================
"""

from enum import Enum


class ScoringPhase(Enum):
    """
    Phases of a scoring session's view of its match.

    State transitions:
    IDLE -> LOADING (on LOAD_STARTED)
    LOADING -> LOADED (on VIEW_RECEIVED)
    LOADED -> SUBMITTING (on SUBMIT_STARTED)
    SUBMITTING -> LOADED (on SUBMIT_FINISHED)
    Any state -> ERROR (on FAILED)
    ERROR -> LOADED (on VIEW_RECEIVED) or SUBMITTING (on SUBMIT_STARTED)
    """
    IDLE = "IDLE"
    LOADING = "LOADING"
    LOADED = "LOADED"
    SUBMITTING = "SUBMITTING"
    ERROR = "ERROR"


class ScoringEvent(Enum):
    """
    Events that move a scoring session between phases.

    - LOAD_STARTED: first fetch of the scoring view
    - VIEW_RECEIVED: a fetch (poll or refetch) returned a view
    - SUBMIT_STARTED: a write (hole, scorecard, concession, replay) began
    - SUBMIT_FINISHED: the write was confirmed by the backend
    - FAILED: a use case failed with a surfaced error
    """
    LOAD_STARTED = "LOAD_STARTED"
    VIEW_RECEIVED = "VIEW_RECEIVED"
    SUBMIT_STARTED = "SUBMIT_STARTED"
    SUBMIT_FINISHED = "SUBMIT_FINISHED"
    FAILED = "FAILED"
