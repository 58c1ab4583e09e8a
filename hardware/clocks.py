"""
hardware/clocks.py
------------------
Clock sources. All extend BaseClock.

  MonotonicClock — time.monotonic(), immune to wall-clock changes
  ManualClock    — advanced by hand (tests / scripted demos)
"""

from __future__ import annotations

import time

from core.interfaces import BaseClock


class MonotonicClock(BaseClock):
    def now(self) -> float:
        return time.monotonic()


class ManualClock(BaseClock):
    """Only moves when told to."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = start

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> float:
        if seconds < 0:
            raise ValueError("a monotonic clock cannot go backwards")
        self._now += seconds
        return self._now

    def set(self, value: float) -> None:
        if value < self._now:
            raise ValueError("a monotonic clock cannot go backwards")
        self._now = value
