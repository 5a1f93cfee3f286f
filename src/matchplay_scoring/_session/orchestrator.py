# Area: Session
"""
matchplay_scoring._session.orchestrator — Live scoring session
==============================================================

Coordinates the scoring view, hole submissions, the offline queue and
the session lock for one user scoring one match.

Lifecycle:
    async with ScoringSession(...) as session:   # start(): fetch, lock, timers
        await session.submit_score(3, {...})
    # close(): timers cancelled, lock released, late results discarded
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Dict, Optional, Union

from .._config import with_defaults
from .._scoring.protocol import check_submission, total_holes_for
from .._scoring.use_cases import (
    ConcedeMatch,
    GetScoringView,
    ScoringRepository,
    SubmitHoleScore,
    SubmitScorecard,
    parse_score_data,
)
from .._shared.logging_config import log_scoring_error
from .._sync.event_bus import LockEvent, LockEventBus, LockEventType
from .._sync.offline_queue import OfflineQueue
from .._sync.session_lock import SessionLock
from ..errors import (
    BusinessRuleError,
    NetworkError,
    NotMatchPlayerError,
    ScorecardLockedError,
    ScoringError,
    SessionConflictError,
    StorageError,
)
from ..types import TOTAL_HOLES, MatchSummary, ScoreData, ScoringView, ValidationStatus
from .enums import ScoringEvent, ScoringPhase
from .scheduler import TaskScope
from .state_machine import ScoringStateMachine

logger = logging.getLogger("matchplay_scoring.session")


class ScoringSession:
    """
    One open scoring session (tab, device, terminal) for a match.

    Exposes the mirrored scoring view, derived flags and the actions a
    scoring screen needs. Use-case failures land on ``error`` and clear
    on the next successful call.
    """

    def __init__(
        self,
        match_id: str,
        user_id: str,
        repository: ScoringRepository,
        queue: OfflineQueue,
        lock: SessionLock,
        bus: LockEventBus,
        config: Optional[Dict[str, Any]] = None,
        session_id: Optional[str] = None,
        online: bool = True,
    ):
        self.match_id = match_id
        self.user_id = user_id
        self.queue = queue
        self.lock = lock
        self.bus = bus
        self.config = with_defaults(config)
        self.session_id = session_id or uuid.uuid4().hex

        self._get_view = GetScoringView(repository)
        self._submit_hole = SubmitHoleScore(repository)
        self._submit_scorecard = SubmitScorecard(repository)
        self._concede = ConcedeMatch(repository)

        self.state_machine = ScoringStateMachine()
        self.current_hole = 1
        self.match_summary: Optional[MatchSummary] = None
        self.is_offline = not online
        self.is_session_blocked = False
        self.pending_queue_size = len(queue.get_by_match(match_id))

        self._holds_lock = False
        self._lock_attempted = False
        self._decision_acknowledged = False
        self._closed = False
        self._scope = TaskScope()
        self._action_lock = asyncio.Lock()
        self._unsubscribe = None

    # ── lifecycle ─────────────────────────────────────────────

    async def start(self) -> "ScoringSession":
        """Subscribe to lock events, load the view and start the timers."""
        self._unsubscribe = self.bus.subscribe(self._on_lock_event)
        await self.fetch_scoring_view()
        self._scope.every("poll", self.config["poll_interval_seconds"], self._poll)
        self._scope.every("lock-watch", self.config["lock_watch_seconds"], self.bus.poll)
        logger.info("Scoring session %s started for match %s", self.session_id, self.match_id)
        return self

    async def close(self) -> None:
        """Cancel timers, release the lock and ignore any late results."""
        if self._closed:
            return
        self._closed = True
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        await self._scope.close()
        if self._holds_lock:
            # release() never raises; an unreleased lock goes stale
            self.lock.release(self.session_id)
            self._holds_lock = False
        logger.info("Scoring session %s closed", self.session_id)

    async def __aenter__(self) -> "ScoringSession":
        return await self.start()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        await self.close()
        return False

    # ── read state ────────────────────────────────────────────

    @property
    def phase(self) -> ScoringPhase:
        return self.state_machine.phase

    @property
    def scoring_view(self) -> Optional[ScoringView]:
        return self.state_machine.state.view

    @property
    def error(self) -> Optional[ScoringError]:
        return self.state_machine.state.error

    @property
    def is_loading(self) -> bool:
        return self.phase in (ScoringPhase.IDLE, ScoringPhase.LOADING)

    @property
    def is_submitting(self) -> bool:
        return self.phase == ScoringPhase.SUBMITTING

    @property
    def is_match_player(self) -> bool:
        view = self.scoring_view
        return view is not None and view.player(self.user_id) is not None

    @property
    def has_submitted(self) -> bool:
        view = self.scoring_view
        return view is not None and self.user_id in view.scorecard_submitted_by

    @property
    def validated_holes(self) -> int:
        view = self.scoring_view
        if view is None:
            return 0
        count = 0
        for hole in view.scores:
            entry = hole.score_for(self.user_id)
            if entry is not None and entry.validation_status == ValidationStatus.MATCH:
                count += 1
        return count

    @property
    def total_holes(self) -> int:
        view = self.scoring_view
        if view is None:
            return TOTAL_HOLES
        return total_holes_for(view)

    @property
    def can_submit_scorecard(self) -> bool:
        return (
            self.is_match_player
            and not self.has_submitted
            and self.validated_holes >= self.total_holes
        )

    @property
    def show_decided_notice(self) -> bool:
        view = self.scoring_view
        return (
            view is not None and view.is_decided
            and not self._decision_acknowledged
            and self.match_summary is None
        )

    def acknowledge_decision(self) -> None:
        """Dismiss the early-decision notice. Scoring stays closed."""
        self._decision_acknowledged = True

    def set_current_hole(self, hole_number: int) -> None:
        if not 1 <= hole_number <= self.total_holes:
            raise ValueError(f"Hole {hole_number} outside 1-{self.total_holes}")
        self.current_hole = hole_number

    # ── actions ───────────────────────────────────────────────

    async def fetch_scoring_view(self) -> Optional[ScoringView]:
        """Fetch the view. Transient failures after the first load stay silent."""
        if self.phase == ScoringPhase.IDLE:
            self.state_machine.dispatch(ScoringEvent.LOAD_STARTED)
        try:
            view = await self._get_view.execute(self.match_id)
        except ScoringError as e:
            if self._closed:
                return None
            if self.phase == ScoringPhase.LOADING or e.kind != "network":
                self._fail(e)
            else:
                logger.debug("Fetch failed, retrying on next poll: %s", e)
            return None
        except Exception as e:
            self._fail_unexpected("Fetching the scoring view", e)
            raise
        if self._closed:
            logger.debug("Discarding view received after close")
            return None
        self.state_machine.dispatch(ScoringEvent.VIEW_RECEIVED, view=view)
        self._ensure_lock()
        return view

    refetch = fetch_scoring_view

    async def submit_score(self, hole_number: int,
                           score_data: Union[ScoreData, Dict[str, Any]]) -> Optional[ScoringView]:
        """
        Submit one hole. Offline or on a transient failure the score is
        queued; rule violations are surfaced and never queued.
        """
        try:
            data = parse_score_data(score_data)
            self._check_can_score(hole_number, data)
        except ScoringError as e:
            self._fail(e)
            return None

        if self.is_offline:
            self._enqueue(hole_number, data)
            return None

        async with self._action_lock:
            self.state_machine.dispatch(ScoringEvent.SUBMIT_STARTED)
            try:
                view = await self._submit_hole.execute(self.match_id, hole_number, data)
            except NetworkError as e:
                self._fail(e)
                self._enqueue(hole_number, data)
                return None
            except ScoringError as e:
                self._fail(e)
                return None
            except Exception as e:
                self._fail_unexpected(f"Submitting hole {hole_number}", e)
                raise
            if self._closed:
                return None
            self.state_machine.dispatch(ScoringEvent.SUBMIT_FINISHED, view=view)
            return view

    async def submit_scorecard(self) -> Optional[MatchSummary]:
        """Finalize this user's scorecard. Terminal: later edits are rejected."""
        if not self.can_submit_scorecard or self.is_session_blocked:
            self._fail(self._scorecard_rejection())
            return None

        async with self._action_lock:
            self.state_machine.dispatch(ScoringEvent.SUBMIT_STARTED)
            try:
                summary = await self._submit_scorecard.execute(self.match_id)
            except ScoringError as e:
                self._fail(e)
                return None
            except Exception as e:
                self._fail_unexpected("Submitting the scorecard", e)
                raise
            if self._closed:
                return None
            self.match_summary = summary
            self.state_machine.dispatch(ScoringEvent.SUBMIT_FINISHED)
        await self.fetch_scoring_view()
        return summary

    async def concede_match(self, conceding_team: str,
                            reason: Optional[str] = None) -> Optional[ScoringView]:
        """Concede the rest of the match on behalf of the caller's team."""
        player = self.scoring_view.player(self.user_id) if self.scoring_view else None
        if player is None or player.team != conceding_team:
            self._fail(NotMatchPlayerError(
                f"Only players of team {conceding_team} can concede for it",
                context={"match_id": self.match_id, "user_id": self.user_id},
            ))
            return None
        if self.is_session_blocked:
            self._fail(self._conflict())
            return None

        async with self._action_lock:
            self.state_machine.dispatch(ScoringEvent.SUBMIT_STARTED)
            try:
                await self._concede.execute(self.match_id, conceding_team, reason)
            except ScoringError as e:
                self._fail(e)
                return None
            except Exception as e:
                self._fail_unexpected("Conceding the match", e)
                raise
            if self._closed:
                return None
            self.state_machine.dispatch(ScoringEvent.SUBMIT_FINISHED)
        logger.info("Team %s conceded match %s", conceding_team, self.match_id)
        return await self.fetch_scoring_view()

    async def process_queue(self) -> int:
        """
        Replay this match's queued scores in FIFO order.

        Stops at the first failure and leaves the rest queued. Each
        confirmed entry is removed right away; the view is refetched
        afterwards.

        Returns:
            Number of entries replayed
        """
        replayed = 0
        async with self._action_lock:
            if self.is_session_blocked:
                logger.info("Replay skipped: match %s is scored elsewhere", self.match_id)
                entries = []
            else:
                entries = self.queue.get_by_match(self.match_id)
            for entry in entries:
                if self._closed:
                    break
                try:
                    await self._submit_hole.execute(
                        entry.match_id, entry.hole_number, entry.score_data
                    )
                except ScoringError as e:
                    logger.warning("Replay stopped at hole %d: %s", entry.hole_number, e)
                    break
                replayed += 1
                try:
                    self.queue.remove(entry.match_id, entry.hole_number)
                except StorageError as e:
                    # entry stays queued; replaying it again is an idempotent upsert
                    log_scoring_error(e, match_id=self.match_id)
                    break
                logger.info("Replayed hole %d for match %s", entry.hole_number, entry.match_id)
            self._update_pending()
        if not self._closed:
            await self.fetch_scoring_view()
        return replayed

    def set_online(self, online: bool) -> Optional[asyncio.Task]:
        """
        Record a connectivity change. Going back online drains the queue
        in the background and returns that task.
        """
        was_offline = self.is_offline
        self.is_offline = not online
        if online and was_offline and not self._closed:
            logger.info("Back online, replaying %d queued scores", self.pending_queue_size)
            return self._scope.spawn("replay", self.process_queue())
        if not online and not was_offline:
            logger.info("Offline: scores will be queued")
        return None

    def take_over(self) -> bool:
        """Force-acquire the lock from another session."""
        if not self.is_match_player or self._closed:
            return False
        return bool(self._try_acquire(force=True))

    # ── internals ─────────────────────────────────────────────

    async def _poll(self) -> None:
        if not self.is_offline:
            await self.fetch_scoring_view()

    def _fail(self, error: ScoringError) -> None:
        if self._closed:
            return
        log_scoring_error(error, match_id=self.match_id)
        self.state_machine.dispatch(ScoringEvent.FAILED, error=error)

    def _fail_unexpected(self, action: str, error: Exception) -> None:
        self._fail(ScoringError(
            f"{action} failed unexpectedly: {error!r}",
            context={"match_id": self.match_id},
        ))

    def _enqueue(self, hole_number: int, data: ScoreData) -> None:
        try:
            self.queue.enqueue(self.match_id, hole_number, data.model_dump())
        except StorageError as e:
            self._fail(e)
            return
        self._update_pending()

    def _update_pending(self) -> None:
        self.pending_queue_size = len(self.queue.get_by_match(self.match_id))

    def _check_can_score(self, hole_number: int, data: ScoreData) -> None:
        view = self.scoring_view
        if view is None:
            raise BusinessRuleError("Scoring view not loaded yet")
        check_submission(view, self.user_id, hole_number, data)
        if self.is_session_blocked:
            raise self._conflict()

    def _conflict(self) -> SessionConflictError:
        holder = self.lock.get_session(self.match_id)
        return SessionConflictError(self.match_id, holder.session_id if holder else None)

    def _scorecard_rejection(self) -> ScoringError:
        if not self.is_match_player:
            return NotMatchPlayerError("Only match players can submit a scorecard")
        if self.has_submitted:
            return ScorecardLockedError("Scorecard already submitted")
        if self.is_session_blocked:
            return self._conflict()
        return BusinessRuleError(
            f"Only {self.validated_holes} of {self.total_holes} holes validated",
            context={"match_id": self.match_id},
        )

    def _ensure_lock(self) -> None:
        if self._lock_attempted or self._closed or not self.is_match_player:
            return
        self._lock_attempted = True
        self._try_acquire()

    def _try_acquire(self, force: bool = False) -> Optional[bool]:
        """Acquire and apply the lock state. None if storage is unusable."""
        try:
            held = self.lock.acquire(self.match_id, self.session_id, force=force)
        except StorageError as e:
            log_scoring_error(e, match_id=self.match_id)
            return None
        self._set_lock_state(held)
        return held

    def _set_lock_state(self, held: bool) -> None:
        self._holds_lock = held
        self.is_session_blocked = not held
        if self._closed:
            return
        if held:
            self._scope.every("lock-refresh", self.config["lock_refresh_seconds"],
                              self._refresh_lock)
        else:
            self._scope.cancel("lock-refresh")
            logger.warning("Match %s is being scored in another session", self.match_id)

    def _refresh_lock(self) -> None:
        try:
            still_held = self.lock.refresh(self.session_id)
        except StorageError as e:
            logger.warning("Lock heartbeat failed, retrying: %s", e)
            return
        if not still_held:
            logger.warning("Lost scoring lock for match %s", self.match_id)
            self._set_lock_state(False)

    def _concerns_this_match(self, event: LockEvent) -> bool:
        return self.lock.scope == "global" or event.match_id in (None, self.match_id)

    def _on_lock_event(self, event: LockEvent) -> None:
        if event.session_id == self.session_id or not self._lock_attempted or self._closed:
            return

        if event.event_type == LockEventType.LOCK_ACQUIRED:
            if self._concerns_this_match(event):
                self._set_lock_state(False)
            elif self.is_session_blocked:
                # the change does not concern this match: retry instead of staying blocked
                self._try_acquire()
            return

        if event.event_type == LockEventType.LOCK_RELEASED:
            if self.is_session_blocked and self._concerns_this_match(event):
                self._try_acquire()
