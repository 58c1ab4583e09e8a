"""
core/finalizer.py
-----------------
Turns a completed end bracket into an immutable SessionRecord and hands it
to a background worker that owns persistence and sync.

The session state is reset synchronously before the worker sees the record,
so the UI is ready for the next session no matter how slow the handoff is.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections import deque
from typing import Optional

from core.interfaces import BaseSessionStore, BaseSessionSync, SessionRecord
from core.session import SessionState

logger = logging.getLogger(__name__)


def round_duration(seconds: float) -> int:
    """Round half up to a whole second."""
    return int(max(0.0, seconds) + 0.5)


# ---------------------------------------------------------------------------
# Background handoff
# ---------------------------------------------------------------------------

class DispatchWorker:
    """
    Fire-and-forget save/sync queue.

    Each record is saved and synced independently; failures are logged and
    never retried here.
    """

    def __init__(self, store: BaseSessionStore, sync: BaseSessionSync) -> None:
        self.store = store
        self.sync = sync
        self.processed = 0
        self._queue: queue.Queue[Optional[SessionRecord]] = queue.Queue()
        self._thread: Optional[threading.Thread] = None

    def __enter__(self) -> "DispatchWorker":
        self.start()
        return self

    def __exit__(self, *_) -> None:
        self.stop()

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._thread = threading.Thread(target=self._run, name="session-dispatch", daemon=True)
        self._thread.start()
        logger.info("DispatchWorker started | store=%s sync=%s", self.store.name, self.sync.name)

    def submit(self, record: SessionRecord) -> None:
        self._queue.put(record)

    def join(self) -> None:
        """Block until every submitted record has been handled."""
        self._queue.join()

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        if not self._thread:
            return
        self._queue.put(None)
        self._thread.join(timeout=timeout)
        if self._thread.is_alive():
            logger.warning("DispatchWorker still busy after %.1fs, %d records in flight",
                           timeout, self._queue.unfinished_tasks)
            return
        self._thread = None
        logger.info("DispatchWorker stopped after %d records", self.processed)

    def _run(self) -> None:
        while True:
            record = self._queue.get()
            try:
                if record is None:
                    return
                self._save(record)
                self._sync(record)
                self.processed += 1
            finally:
                self._queue.task_done()

    def _save(self, record: SessionRecord) -> None:
        try:
            ok = self.store.save(record)
        except Exception as exc:
            logger.exception("[%s] Save failed: %s", record.session_id, exc)
            return
        if ok:
            logger.info("[%s] Saved via %s", record.session_id, self.store.name)
        else:
            logger.warning("[%s] %s reported save failure", record.session_id, self.store.name)

    def _sync(self, record: SessionRecord) -> None:
        try:
            ok = self.sync.upload_and_insert(
                record.created_at, record.duration_seconds, record.assets,
            )
        except Exception as exc:
            logger.exception("[%s] Sync failed: %s", record.session_id, exc)
            return
        if ok:
            logger.info("[%s] Sync insert OK", record.session_id)
        else:
            logger.warning("[%s] %s reported sync failure", record.session_id, self.sync.name)


# ---------------------------------------------------------------------------
# Finalizer
# ---------------------------------------------------------------------------

class SessionFinalizer:
    def __init__(self, worker: DispatchWorker, recent_limit: int = 3) -> None:
        self.worker = worker
        self.recent: deque[float] = deque(maxlen=recent_limit)

    @property
    def recent_durations(self) -> list[float]:
        return list(self.recent)

    def finalize(self, state: SessionState) -> SessionRecord:
        duration = state.timer.frozen_elapsed_seconds
        record = SessionRecord(
            duration_seconds=round_duration(duration),
            assets=state.progress.assets(),
        )
        logger.info("[%s] Finalizing session: %.2fs -> %ds, sizes=%s",
                    record.session_id, duration, record.duration_seconds,
                    record.assets.sizes())

        state.clear()
        state.timer.reset_to_zero()
        self.recent.appendleft(duration)

        self.worker.submit(record)
        return record
