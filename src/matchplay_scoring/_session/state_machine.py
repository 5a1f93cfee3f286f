# Area: Session
"""
matchplay_scoring._session.state_machine — Scoring view state machine
=====================================================================

Holds the mirrored server state of one scoring session as an explicit
state machine. The last received view survives every transition, so a
failure never discards state the backend already confirmed.
"""

from dataclasses import dataclass
from typing import Optional

from ..errors import ScoringError
from ..types import ScoringView
from .enums import ScoringEvent, ScoringPhase


# Valid state transitions: {current_phase: {event: next_phase}}
TRANSITIONS = {
    ScoringPhase.IDLE: {
        ScoringEvent.LOAD_STARTED: ScoringPhase.LOADING,
        ScoringEvent.FAILED: ScoringPhase.ERROR,
    },
    ScoringPhase.LOADING: {
        ScoringEvent.VIEW_RECEIVED: ScoringPhase.LOADED,
        ScoringEvent.FAILED: ScoringPhase.ERROR,
    },
    ScoringPhase.LOADED: {
        ScoringEvent.VIEW_RECEIVED: ScoringPhase.LOADED,
        ScoringEvent.SUBMIT_STARTED: ScoringPhase.SUBMITTING,
        ScoringEvent.FAILED: ScoringPhase.ERROR,
    },
    ScoringPhase.SUBMITTING: {
        ScoringEvent.VIEW_RECEIVED: ScoringPhase.SUBMITTING,
        ScoringEvent.SUBMIT_FINISHED: ScoringPhase.LOADED,
        ScoringEvent.FAILED: ScoringPhase.ERROR,
    },
    ScoringPhase.ERROR: {
        ScoringEvent.LOAD_STARTED: ScoringPhase.LOADING,
        ScoringEvent.VIEW_RECEIVED: ScoringPhase.LOADED,
        ScoringEvent.SUBMIT_STARTED: ScoringPhase.SUBMITTING,
        ScoringEvent.SUBMIT_FINISHED: ScoringPhase.LOADED,
        ScoringEvent.FAILED: ScoringPhase.ERROR,
    },
}


@dataclass
class ScoringState:
    """
    Snapshot of a session's state.

    Attributes:
        phase: Current phase
        view: Most recently received scoring view, if any
        error: Error of the last failed call; cleared by the next success
    """

    phase: ScoringPhase = ScoringPhase.IDLE
    view: Optional[ScoringView] = None
    error: Optional[ScoringError] = None


class ScoringStateMachine:
    """
    Validates and applies scoring session transitions.

    Usage:
        sm = ScoringStateMachine()
        sm.dispatch(ScoringEvent.LOAD_STARTED)
        sm.dispatch(ScoringEvent.VIEW_RECEIVED, view=view)
    """

    def __init__(self):
        self.state = ScoringState()

    @property
    def phase(self) -> ScoringPhase:
        return self.state.phase

    def can_transition(self, event: ScoringEvent) -> bool:
        return event in TRANSITIONS.get(self.state.phase, {})

    def dispatch(self, event: ScoringEvent, view: Optional[ScoringView] = None,
                 error: Optional[ScoringError] = None) -> ScoringState:
        """
        Execute a transition.

        Args:
            event: The event triggering the transition
            view: New view for VIEW_RECEIVED / SUBMIT_FINISHED
            error: The failure for FAILED

        Returns:
            The new state

        Raises:
            ValueError: If the transition is not valid from the current phase
        """
        if not self.can_transition(event):
            raise ValueError(
                f"Invalid transition: {event.value} from {self.state.phase.value}"
            )
        if event == ScoringEvent.FAILED and error is None:
            raise ValueError("FAILED requires an error")

        next_phase = TRANSITIONS[self.state.phase][event]
        if event == ScoringEvent.FAILED:
            self.state = ScoringState(next_phase, self.state.view, error)
        elif event in (ScoringEvent.VIEW_RECEIVED, ScoringEvent.SUBMIT_FINISHED):
            self.state = ScoringState(next_phase, view or self.state.view, None)
        else:
            self.state = ScoringState(next_phase, self.state.view, self.state.error)
        return self.state

    def reset(self) -> None:
        self.state = ScoringState()
