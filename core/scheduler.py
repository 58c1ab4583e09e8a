"""
core/scheduler.py
-----------------
Cooperative deferred-call scheduler driven by the frame loop.

Callbacks never run on their own thread: the loop calls `run_due()` once per
frame and due callbacks fire there, in deadline order.
"""

from __future__ import annotations

import heapq
import itertools
import logging
from typing import Any, Callable

from core.interfaces import BaseClock

logger = logging.getLogger(__name__)


class ScheduledTask:
    def __init__(self, deadline: float, callback: Callable[..., Any], args: tuple) -> None:
        self.deadline = deadline
        self.callback = callback
        self.args = args
        self.cancelled = False
        self.done = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.done)


class DeferredScheduler:
    def __init__(self, clock: BaseClock) -> None:
        self.clock = clock
        self._heap: list[tuple[float, int, ScheduledTask]] = []
        self._seq = itertools.count()

    def call_later(self, delay: float, callback: Callable[..., Any], *args) -> ScheduledTask:
        task = ScheduledTask(self.clock.now() + max(0.0, delay), callback, args)
        heapq.heappush(self._heap, (task.deadline, next(self._seq), task))
        return task

    def run_due(self) -> int:
        """Fire every task whose deadline has passed. Returns how many ran."""
        now = self.clock.now()
        fired = 0
        while self._heap and self._heap[0][0] <= now:
            _, _, task = heapq.heappop(self._heap)
            if task.cancelled:
                continue
            task.done = True
            task.callback(*task.args)
            fired += 1
        return fired

    def cancel_all(self) -> None:
        for _, _, task in self._heap:
            task.cancel()
        self._heap.clear()

    @property
    def pending(self) -> int:
        return sum(1 for _, _, task in self._heap if task.pending)
