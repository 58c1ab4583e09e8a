"""
core/capture.py
---------------
Capture sequencer: the four-phase photo state machine.

  start bracket:  START_WORKSPACE (back) -> START_SELFIE (front) -> NONE
  end bracket:    END_WORKSPACE   (back) -> END_SELFIE   (front) -> NONE

Completing the start bracket schedules the timer start after the capture
sheet has had time to dismiss. Completing the end bracket finalizes the
session. Cancelling falls back to the state before the bracket began.
"""

from __future__ import annotations

import logging
from typing import Optional

from core.finalizer import SessionFinalizer
from core.interfaces import BaseCamera, BaseCaptureUI, CameraFacing, CapturePhase
from core.scheduler import DeferredScheduler, ScheduledTask
from core.session import ProgressStage, SessionState

logger = logging.getLogger(__name__)

DEFAULT_SETTLE_DELAY = 0.35

_NEXT_PHASE = {
    CapturePhase.START_WORKSPACE: CapturePhase.START_SELFIE,
    CapturePhase.START_SELFIE: CapturePhase.NONE,
    CapturePhase.END_WORKSPACE: CapturePhase.END_SELFIE,
    CapturePhase.END_SELFIE: CapturePhase.NONE,
}


class CaptureSequencer:
    def __init__(
        self,
        state: SessionState,
        camera: BaseCamera,
        capture_ui: BaseCaptureUI,
        scheduler: DeferredScheduler,
        finalizer: SessionFinalizer,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
    ) -> None:
        self.state = state
        self.camera = camera
        self.capture_ui = capture_ui
        self.scheduler = scheduler
        self.finalizer = finalizer
        self.settle_delay = settle_delay
        self._deferred_start: Optional[ScheduledTask] = None

    # ------------------------------------------------------------------
    # Bracket requests
    # ------------------------------------------------------------------

    def request_start_bracket(self) -> bool:
        state = self.state
        timer = state.timer
        if (state.phase.active or not state.progress.is_empty
                or not timer.is_idle or timer.accumulated_seconds != 0):
            logger.debug("Start bracket refused: %s", state.summary())
            return False

        self._invalidate_deferred_start()
        state.clear()
        self._enter(CapturePhase.START_WORKSPACE)
        return True

    def request_end_bracket(self) -> bool:
        state = self.state
        if state.phase.active or state.progress.stage is not ProgressStage.START_COMPLETE:
            logger.debug("End bracket refused: %s", state.summary())
            return False

        self._invalidate_deferred_start()
        state.timer.stop_and_freeze()
        self._enter(CapturePhase.END_WORKSPACE)
        return True

    # ------------------------------------------------------------------
    # Photo arrival
    # ------------------------------------------------------------------

    def on_photo_accepted(self, asset: bytes) -> bool:
        state = self.state
        phase = state.phase
        if not phase.active:
            logger.debug("Photo ignored: no capture phase active")
            return False

        state.progress = state.progress.add(asset)
        next_phase = _NEXT_PHASE[phase]
        logger.info("Phase %s complete -> %s", phase.name, next_phase.name)

        if next_phase.active:
            state.phase = next_phase
            self._ensure_facing(next_phase.facing)
            self.capture_ui.show_capture(next_phase)
        elif phase is CapturePhase.START_SELFIE:
            self._close_capture()
            self._schedule_start()
        else:
            self._close_capture()
            self.finalizer.finalize(state)
            self._reset_facing()
        return True

    # ------------------------------------------------------------------
    # Cancel / restart
    # ------------------------------------------------------------------

    def cancel(self) -> bool:
        state = self.state
        phase = state.phase
        if phase.is_end_bracket:
            state.clear(keep_start=True)
            self.capture_ui.hide_capture()
            state.timer.restore_from_freeze()
            logger.info("End capture cancelled, session resumed")
            return True
        if phase.is_start_bracket:
            state.clear()
            self.capture_ui.hide_capture()
            self._reset_facing()
            logger.info("Start capture cancelled, session stays idle")
            return True
        logger.debug("Cancel ignored: no capture phase active")
        return False

    def restart_session(self) -> None:
        state = self.state
        self._invalidate_deferred_start()
        self.scheduler.cancel_all()
        was_visible = state.capture_visible
        state.clear()
        state.timer.reset_to_zero()
        if was_visible:
            self.capture_ui.hide_capture()
        self._reset_facing()
        logger.info("Session restarted (generation %d)", state.generation)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _enter(self, phase: CapturePhase) -> None:
        self.state.phase = phase
        self._ensure_facing(phase.facing)
        self.state.capture_visible = True
        self.capture_ui.show_capture(phase)
        logger.info("Capture flow -> %s", phase.name)

    def _close_capture(self) -> None:
        self.state.phase = CapturePhase.NONE
        self.state.capture_visible = False
        self.capture_ui.hide_capture()

    def _ensure_facing(self, facing: CameraFacing) -> None:
        try:
            if not self.camera.is_current_facing(facing):
                self.camera.prepare(facing)
        except Exception as exc:
            logger.warning("Camera could not switch to %s facing: %s", facing.value, exc)

    def _reset_facing(self) -> None:
        try:
            self.camera.reset_to_default_facing()
        except Exception as exc:
            logger.warning("Camera could not reset to default facing: %s", exc)

    def _schedule_start(self) -> None:
        generation = self.state.next_generation()
        self._deferred_start = self.scheduler.call_later(
            self.settle_delay, self._start_timer, generation,
        )
        logger.debug("Timer start deferred %.2fs (generation %d)", self.settle_delay, generation)

    def _start_timer(self, generation: int) -> None:
        state = self.state
        if generation != state.generation:
            logger.debug("Stale deferred start ignored (generation %d != %d)",
                         generation, state.generation)
            return
        self._deferred_start = None
        if state.phase.active or state.progress.stage is not ProgressStage.START_COMPLETE:
            return
        state.timer.start()

    def _invalidate_deferred_start(self) -> None:
        self.state.next_generation()
        if self._deferred_start:
            self._deferred_start.cancel()
            self._deferred_start = None
