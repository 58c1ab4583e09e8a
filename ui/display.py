"""
ui/display.py
-------------
Capture-UI implementations and readout formatting.

  LogDisplay — prints capture sheet / timer / recent sessions to the log (headless / CI)
"""

from __future__ import annotations

import logging

from core.interfaces import BaseCaptureUI, CapturePhase, SessionStatus

logger = logging.getLogger(__name__)


def format_time(seconds: float) -> str:
    """MM:SS.cc — centiseconds truncated, minutes not wrapped at the hour."""
    seconds = max(0.0, seconds)
    whole = int(seconds)
    centis = int((seconds - whole) * 100)
    return f"{whole // 60:02d}:{whole % 60:02d}.{centis:02d}"


def status_label(status: SessionStatus) -> str:
    if status is SessionStatus.RUNNING:
        return "Locked in"
    if status is SessionStatus.PAUSED:
        return "Paused"
    return "Lock in"


# ---------------------------------------------------------------------------
# Log display — no GUI, console only
# ---------------------------------------------------------------------------

class LogDisplay(BaseCaptureUI):
    """Outputs all display events to the logger. No window required."""

    def __init__(self) -> None:
        self.capture_shown = False
        self.titles: list[str] = []

    def show_capture(self, phase: CapturePhase) -> None:
        self.capture_shown = True
        self.titles.append(phase.label)
        logger.info("DISPLAY: 📷 %s — take the photo (snap) or cancel", phase.label)

    def hide_capture(self) -> None:
        self.capture_shown = False
        logger.info("DISPLAY: camera closed")

    def show_status(self, elapsed: float, status: SessionStatus) -> None:
        logger.info("DISPLAY: %-9s %s", status_label(status), format_time(elapsed))

    def show_recent(self, durations: list[float]) -> None:
        if durations:
            logger.info("DISPLAY: recent %s", "  ".join(format_time(d) for d in durations))

    def close(self) -> None:
        logger.info("DISPLAY: closed")
