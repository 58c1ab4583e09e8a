"""
core/controller.py
------------------
The session orchestrator. Receives all collaborators via dependency
injection and never imports a concrete implementation. Fully testable with
mocks and a manual clock.

Flow per session:
  1. Start      -> start bracket (workspace, selfie)
  2. Settle     -> timer starts once the capture sheet has dismissed
  3. Pause / Resume any number of times
  4. Stop       -> timer frozen, end bracket (workspace, selfie)
  5. Finalize   -> record handed to the dispatch worker, state reset
"""

from __future__ import annotations

import logging

from core.capture import DEFAULT_SETTLE_DELAY, CaptureSequencer
from core.finalizer import DispatchWorker, SessionFinalizer
from core.interfaces import (
    BaseCamera, BaseCaptureUI, BaseClock,
    BaseSessionStore, BaseSessionSync,
    CapturePhase, CaptureResult, SessionStatus,
)
from core.intake import PhotoIntake
from core.scheduler import DeferredScheduler
from core.session import SessionState
from core.timer import TimerAccumulator

logger = logging.getLogger(__name__)


class SessionController:
    """
    Facade for the presentation layer.

    Every mutating call is expected on the same thread that drives `tick()`.
    Only the dispatch worker runs elsewhere, and it only ever sees
    immutable records.
    """

    def __init__(
        self,
        camera: BaseCamera,
        clock: BaseClock,
        store: BaseSessionStore,
        sync: BaseSessionSync,
        display: BaseCaptureUI,
        config: dict,
    ) -> None:
        self.camera = camera
        self.clock = clock
        self.display = display
        self.config = config

        self.state = SessionState(timer=TimerAccumulator(clock))
        self.scheduler = DeferredScheduler(clock)
        self.worker = DispatchWorker(store, sync)
        self.finalizer = SessionFinalizer(
            self.worker, recent_limit=config.get("recent_limit", 3),
        )
        self.intake = PhotoIntake(
            clock,
            debounce_seconds=config.get("debounce_seconds", 0.25),
            max_dimension=config.get("max_dimension", 900),
            jpeg_quality=config.get("jpeg_quality", 50),
        )
        self.sequencer = CaptureSequencer(
            self.state, camera, display, self.scheduler, self.finalizer,
            settle_delay=config.get("settle_delay_seconds", DEFAULT_SETTLE_DELAY),
        )

        logger.info(
            "SessionController initialised | camera=%s clock=%s store=%s sync=%s display=%s",
            camera.name, clock.name, store.name, sync.name, display.name,
        )

    # ------------------------------------------------------------------
    # UI intents
    # ------------------------------------------------------------------

    def start_or_resume(self) -> bool:
        timer = self.state.timer
        if timer.paused and timer.accumulated_seconds > 0:
            return timer.resume()
        return self.sequencer.request_start_bracket()

    def pause(self) -> bool:
        return self.state.timer.pause()

    def stop(self) -> bool:
        return self.sequencer.request_end_bracket()

    def cancel_capture(self) -> bool:
        return self.sequencer.cancel()

    def restart(self) -> None:
        self.sequencer.restart_session()
        self.intake.reset()

    def shutter(self) -> bool:
        """Take a photo with the camera and feed it through intake."""
        if not self.state.phase.active:
            logger.debug("Shutter ignored: capture sheet not shown")
            return False
        try:
            result = self.camera.capture()
        except Exception as exc:
            logger.warning("Camera capture failed during %s: %s", self.state.phase_label, exc)
            return False
        return self.handle_capture(result)

    def handle_capture(self, result: CaptureResult) -> bool:
        """Entry point for raw shutter callbacks. Returns True on phase advance."""
        asset = self.intake.accept(result, self.state.phase)
        if asset is None:
            return False
        return self.sequencer.on_photo_accepted(asset)

    # ------------------------------------------------------------------
    # Frame loop
    # ------------------------------------------------------------------

    def tick(self) -> None:
        self.scheduler.run_due()

    def elapsed(self) -> float:
        return self.state.elapsed()

    @property
    def status(self) -> SessionStatus:
        return self.state.status

    @property
    def phase(self) -> CapturePhase:
        return self.state.phase

    @property
    def capture_visible(self) -> bool:
        return self.state.capture_visible

    @property
    def recent_durations(self) -> list[float]:
        return self.finalizer.recent_durations
