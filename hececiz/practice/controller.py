#!/usr/bin/env python3
"""
PracticeSession - the feedback state machine for one practice session.

A turn runs IDLE -> CHECKING -> CORRECT | WRONG -> IDLE. The session owns
the curriculum, the capture surface and a score ledger, and talks to three
collaborators: a verification gateway, an audio player and (optionally) a
profile store. Everything runs on one asyncio event loop. The only
suspension point is the classifier call; delayed transitions are timer
callbacks owned by a TimerScope and revoked by close().
"""

import asyncio
import logging
import random
import sqlite3
from typing import Callable, List, Optional, TYPE_CHECKING

from ..db.profiles import Profile, ProgressBucket
from .state import (
    CheckResult,
    CueKind,
    EventKind,
    FeedbackState,
    ScoreLedger,
    SessionEvent,
    SessionTimings,
    Tool,
)
from .surface import CaptureSurface, Snapshot
from .syllables import Curriculum, Syllable
from .timers import TimerScope
from .verification import FAILURE_REASON

if TYPE_CHECKING:
    from ..audio.player import AudioPlayer
    from ..db.profiles import ProfileStore
    from .verification import VerificationGateway


logger = logging.getLogger(__name__)

SURFACE_WIDTH = 400
SURFACE_HEIGHT = 200
EMPTY_SUBMIT_NOTICE = "Please draw the syllable first."

Listener = Callable[[SessionEvent], None]


class PracticeSession:
    """Drives turns: pronounce, draw, check, celebrate or retry, advance"""

    def __init__(
        self,
        gateway: 'VerificationGateway',
        audio: Optional['AudioPlayer'] = None,
        profile_store: Optional['ProfileStore'] = None,
        profile: Optional[Profile] = None,
        curriculum: Optional[Curriculum] = None,
        surface: Optional[CaptureSurface] = None,
        timings: Optional[SessionTimings] = None,
        rng: Optional[random.Random] = None,
    ):
        # Import here; the audio package depends on practice.state (avoid circular imports)
        from ..audio.player import SilentAudioPlayer

        self.gateway = gateway
        self.audio = audio or SilentAudioPlayer()
        self.profile_store = profile_store
        self.profile = profile
        self.curriculum = curriculum or Curriculum.generate(rng)
        self.surface = surface or CaptureSurface(SURFACE_WIDTH, SURFACE_HEIGHT)
        self.timings = timings or SessionTimings()

        self.ledger = ScoreLedger()
        self.state = FeedbackState.IDLE
        self.has_peeked = False
        self.show_hint = False
        self.last_result: Optional[CheckResult] = None
        self.history: List[FeedbackState] = [FeedbackState.IDLE]

        self._listeners: List[Listener] = []
        self._timers: Optional[TimerScope] = None
        self._pronounce_handle = None
        self._pending: Optional[asyncio.Task] = None
        self._closed = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def current(self) -> Syllable:
        return self.curriculum.current

    @property
    def is_guest(self) -> bool:
        return self.profile is None

    @property
    def started(self) -> bool:
        return self._timers is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: Listener):
        """Register a callback for SessionEvents"""
        self._listeners.append(listener)

    def start(self):
        """Bind to the running event loop and announce the first syllable"""
        if self._closed:
            raise RuntimeError("Session is closed")
        if self._timers is not None:
            return
        self._timers = TimerScope()
        self.surface.clear()
        self.surface.set_disabled(False)
        logger.debug("Session started with %d syllables (guest=%s)", len(self.curriculum), self.is_guest)
        self._emit(EventKind.TURN)
        self._schedule_pronunciation()

    def close(self):
        """Tear down: revoke every pending timer and ignore late verdicts"""
        if self._closed:
            return
        self._closed = True
        if self._timers is not None:
            self._timers.close()
        self._pronounce_handle = None
        logger.debug("Session closed (ledger=%s)", self.ledger)

    def _require_started(self):
        if self._timers is None:
            raise RuntimeError("Session not started; call start() inside the event loop")

    # ------------------------------------------------------------------
    # Learner actions
    # ------------------------------------------------------------------

    def submit(self) -> Optional[asyncio.Task]:
        """
        Send the drawing to the classifier.

        Only acts while IDLE. An empty surface produces a notice and no
        transition. Returns the verification task, or None if nothing was sent.
        """
        self._require_started()
        if self._closed or self.state is not FeedbackState.IDLE:
            logger.debug("Submit ignored in %s", self.state.value)
            return None

        if self.surface.is_empty():
            self._emit(EventKind.NOTICE, EMPTY_SUBMIT_NOTICE)
            return None

        snapshot = self.surface.export_snapshot()
        self.surface.set_disabled(True)
        self._set_state(FeedbackState.CHECKING)

        self._pending = self._timers.loop.create_task(self._verify(snapshot, self.current))
        return self._pending

    def skip(self) -> bool:
        """Move on without a verdict; the ledger is untouched"""
        self._require_started()
        if self._closed or self.state is not FeedbackState.IDLE:
            return False
        logger.debug("Skipped %s", self.current.text)
        self.audio.play_cue(CueKind.SKIP)
        self._advance()
        return True

    def toggle_hint(self) -> bool:
        """Show or hide the written syllable. Returns the hint visibility."""
        if self._closed or self.state is not FeedbackState.IDLE:
            return self.show_hint
        self.show_hint = not self.show_hint
        if self.show_hint:
            self.has_peeked = True
        self._emit(EventKind.STATE)
        return self.show_hint

    def replay_pronunciation(self) -> bool:
        if self._closed or self.state is not FeedbackState.IDLE:
            return False
        self.audio.pronounce(self.current.text)
        return True

    def clear_drawing(self) -> bool:
        if self._closed or self.state is not FeedbackState.IDLE:
            return False
        self.surface.clear()
        return True

    def set_tool(self, tool: Tool) -> bool:
        """Switch pen/eraser for the next stroke"""
        if self._closed or self.state is not FeedbackState.IDLE:
            return False
        self.surface.tool = Tool(tool)
        return True

    # ------------------------------------------------------------------
    # Verdicts
    # ------------------------------------------------------------------

    async def _verify(self, snapshot: Snapshot, syllable: Syllable) -> CheckResult:
        try:
            result = await self.gateway.verify(snapshot, syllable.text)
        except Exception as e:
            # Gateways are supposed to fail closed; treat a leak the same way
            logger.warning("Gateway raised for %s: %s", syllable.text, e)
            result = CheckResult(is_correct=False, reason=FAILURE_REASON)
        self._apply_verdict(result, syllable)
        return result

    def _apply_verdict(self, result: CheckResult, syllable: Syllable):
        if self._closed or self.state is not FeedbackState.CHECKING or syllable is not self.current:
            logger.debug("Late verdict for %s ignored", syllable.text)
            return

        self.last_result = result
        if result.is_correct:
            self._on_correct()
        else:
            self._on_wrong()

    def _on_correct(self):
        bucket = ProgressBucket.HINT if self.has_peeked else ProgressBucket.AUDIO
        self.ledger.record(bucket)
        self._set_state(FeedbackState.CORRECT)
        self._emit(EventKind.VERDICT, result=self.last_result)
        self._persist_progress(bucket)
        self.audio.play_cue(CueKind.CORRECT)
        self._timers.call_later(self.timings.celebration_delay, self._advance)

    def _on_wrong(self):
        self._set_state(FeedbackState.WRONG)
        self._emit(EventKind.VERDICT, self.last_result.reason or '', result=self.last_result)
        self.audio.play_cue(CueKind.WRONG)
        self._timers.call_later(self.timings.retry_delay, self._retry)

    def _persist_progress(self, bucket: ProgressBucket):
        if self.profile is None or self.profile_store is None:
            return
        try:
            updated = self.profile_store.increment_progress(self.profile.id, bucket)
        except sqlite3.Error as e:
            logger.error("Could not save progress for %s: %s", self.profile.id, e)
            return

        if updated is None:
            logger.warning("Profile %s no longer exists; progress not saved", self.profile.id)
            return
        self.profile = updated
        self._emit(EventKind.PROFILE, profile=updated)

    # ------------------------------------------------------------------
    # Delayed transitions
    # ------------------------------------------------------------------

    def _retry(self):
        # Same syllable, same drawing, same assist flag
        self.surface.set_disabled(False)
        self._set_state(FeedbackState.IDLE)

    def _advance(self):
        self.curriculum.advance()
        self.has_peeked = False
        self.show_hint = False
        self.last_result = None
        self.surface.clear()
        self.surface.set_disabled(False)
        self._set_state(FeedbackState.IDLE)
        self._emit(EventKind.TURN)
        self._schedule_pronunciation()

    def _schedule_pronunciation(self):
        self._timers.cancel(self._pronounce_handle)
        self._pronounce_handle = self._timers.call_later(
            self.timings.pronounce_delay, self._pronounce_current
        )

    def _pronounce_current(self):
        self._pronounce_handle = None
        if self.state is FeedbackState.IDLE:
            self.audio.pronounce(self.current.text)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def _set_state(self, state: FeedbackState):
        if state is self.state:
            return
        logger.debug("%s: %s -> %s", self.current.text, self.state.value, state.value)
        self.state = state
        self.history.append(state)
        self._emit(EventKind.STATE)

    def _emit(self, kind: EventKind, message: str = '', result: Optional[CheckResult] = None,
              profile: Optional[Profile] = None):
        event = SessionEvent(
            kind=kind,
            state=self.state,
            syllable=self.current,
            message=message,
            result=result,
            profile=profile,
        )
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error("Session listener failed on %s: %s", kind.value, e)
