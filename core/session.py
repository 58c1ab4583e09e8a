"""
core/session.py
---------------
The single owned state object for the current session.

Timer, capture phase, captured photos and the "show capture UI" flag all
live here and are passed explicitly to whichever component needs them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

from core.interfaces import CapturePhase, SessionAssets, SessionStatus
from core.timer import TimerAccumulator


class ProgressStage(IntEnum):
    EMPTY = 0
    WORKSPACE_START = 1
    START_COMPLETE = 2
    WORKSPACE_END = 3
    COMPLETE = 4


@dataclass(frozen=True)
class CaptureProgress:
    """
    Photos captured so far, in capture order.

    The stage is the number of photos held, so a selfie_end without the
    three photos before it cannot be built.
    """

    photos: tuple[bytes, ...] = ()

    @property
    def stage(self) -> ProgressStage:
        return ProgressStage(len(self.photos))

    @property
    def is_empty(self) -> bool:
        return not self.photos

    def add(self, asset: bytes) -> "CaptureProgress":
        if self.stage is ProgressStage.COMPLETE:
            raise ValueError("capture progress already complete")
        return CaptureProgress(self.photos + (asset,))

    def without_end(self) -> "CaptureProgress":
        return CaptureProgress(self.photos[:ProgressStage.START_COMPLETE])

    def assets(self) -> SessionAssets:
        padded = list(self.photos) + [None] * (4 - len(self.photos))
        return SessionAssets(*padded)


@dataclass
class SessionState:
    timer: TimerAccumulator
    phase: CapturePhase = CapturePhase.NONE
    progress: CaptureProgress = field(default_factory=CaptureProgress)
    capture_visible: bool = False
    generation: int = 0

    def next_generation(self) -> int:
        self.generation += 1
        return self.generation

    @property
    def phase_label(self) -> str:
        return self.phase.label

    @property
    def status(self) -> SessionStatus:
        if self.phase.is_start_bracket:
            return SessionStatus.CAPTURING_START
        if self.phase.is_end_bracket:
            return SessionStatus.CAPTURING_END
        if self.timer.running:
            return SessionStatus.RUNNING
        if self.timer.paused:
            return SessionStatus.PAUSED
        if self.progress.stage is ProgressStage.START_COMPLETE:
            return SessionStatus.STARTING
        return SessionStatus.IDLE

    def elapsed(self) -> float:
        return self.timer.live_elapsed(frozen=self.phase.is_end_bracket)

    def clear(self, keep_start: bool = False) -> None:
        self.progress = self.progress.without_end() if keep_start else CaptureProgress()
        self.phase = CapturePhase.NONE
        self.capture_visible = False

    def summary(self) -> dict:
        return {
            "generation": self.generation,
            "status": self.status.name,
            "phase": self.phase.name,
            "progress": self.progress.stage.name,
            "elapsed_s": round(self.elapsed(), 2),
            "accumulated_s": round(self.timer.accumulated_seconds, 2),
            "frozen_s": round(self.timer.frozen_elapsed_seconds, 2),
        }
