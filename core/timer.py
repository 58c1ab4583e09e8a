"""
core/timer.py
-------------
Accumulation-based session timer.

Elapsed time is banked into `accumulated_seconds` whenever a run interval
ends, so any number of pause/resume cycles adds up exactly. Every read goes
through the injected clock; nothing here sleeps or spawns threads.
"""

from __future__ import annotations

import logging
from typing import Optional

from core.interfaces import BaseClock

logger = logging.getLogger(__name__)


class TimerAccumulator:
    """
    Timer with pause semantics and a freeze snapshot for end-of-session capture.

    States: idle (neither flag), running, paused. `run_started_at` is set
    only while running. Transitions whose preconditions fail are no-ops
    and return False.
    """

    def __init__(self, clock: BaseClock) -> None:
        self.clock = clock
        self.running = False
        self.paused = False
        self.accumulated_seconds = 0.0
        self.frozen_elapsed_seconds = 0.0
        self.run_started_at: Optional[float] = None

    @property
    def is_idle(self) -> bool:
        return not self.running and not self.paused

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(self) -> bool:
        if not self.is_idle or self.accumulated_seconds != 0:
            logger.debug("start ignored (running=%s paused=%s accumulated=%.3f)",
                         self.running, self.paused, self.accumulated_seconds)
            return False
        self._begin_run()
        logger.info("Timer started")
        return True

    def resume(self) -> bool:
        if not self.paused or self.accumulated_seconds <= 0:
            logger.debug("resume ignored (paused=%s accumulated=%.3f)",
                         self.paused, self.accumulated_seconds)
            return False
        self.paused = False
        self._begin_run()
        logger.info("Timer resumed at %.2fs", self.accumulated_seconds)
        return True

    def pause(self) -> bool:
        if not self.running:
            logger.debug("pause ignored: timer not running")
            return False
        self._bank_run()
        self.paused = True
        logger.info("Timer paused at %.2fs", self.accumulated_seconds)
        return True

    def stop_and_freeze(self) -> float:
        """Fold any running interval in and hold the total for display."""
        if self.running:
            self._bank_run()
        self.paused = False
        self.frozen_elapsed_seconds = self.accumulated_seconds
        logger.info("Timer frozen at %.2fs", self.frozen_elapsed_seconds)
        return self.frozen_elapsed_seconds

    def restore_from_freeze(self) -> None:
        self.accumulated_seconds = self.frozen_elapsed_seconds
        self.paused = False
        self._begin_run()
        logger.info("Timer restored from freeze at %.2fs", self.accumulated_seconds)

    def reset_to_zero(self) -> None:
        self.running = False
        self.paused = False
        self.run_started_at = None
        self.accumulated_seconds = 0.0
        self.frozen_elapsed_seconds = 0.0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def live_elapsed(self, frozen: bool = False) -> float:
        """
        Pure read for the redraw loop.

        `frozen` is True while an end-bracket capture is active; the display
        then shows the snapshot taken at stop time.
        """
        if self.running:
            return self.accumulated_seconds + (self.clock.now() - self.run_started_at)
        if frozen:
            return self.frozen_elapsed_seconds
        return self.accumulated_seconds

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _begin_run(self) -> None:
        self.run_started_at = self.clock.now()
        self.running = True

    def _bank_run(self) -> None:
        self.accumulated_seconds += self.clock.now() - self.run_started_at
        self.running = False
        self.run_started_at = None
