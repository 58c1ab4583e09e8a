"""
storage/stores.py
-----------------
Session persistence implementations. All extend BaseSessionStore.

  MemorySessionStore — keeps records in a list, no disk needed
  FileSessionStore   — one folder per session: four JPEGs + session.yaml
"""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path

import yaml

from core.interfaces import BaseSessionStore, SessionRecord

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Memory store — no disk
# ---------------------------------------------------------------------------

class MemorySessionStore(BaseSessionStore):
    """Keeps saved records in memory. Can simulate delay or failure."""

    def __init__(self, simulated_delay: float = 0.0, fail: bool = False) -> None:
        self.simulated_delay = simulated_delay
        self.fail = fail
        self.records: list[SessionRecord] = []
        self._lock = threading.Lock()

    def save(self, record: SessionRecord) -> bool:
        if self.simulated_delay:
            time.sleep(self.simulated_delay)
        if self.fail:
            raise RuntimeError("simulated store failure")
        with self._lock:
            self.records.append(record)
        logger.info("MemorySessionStore: stored %s (%ds)", record.session_id, record.duration_seconds)
        return True


# ---------------------------------------------------------------------------
# File store — saves to a folder
# ---------------------------------------------------------------------------

class FileSessionStore(BaseSessionStore):
    """
    Writes each session to <output_dir>/<timestamp>_<session_id>/.
    Useful during development to inspect what a finished session contains.
    """

    METADATA_FILE = "session.yaml"

    def __init__(self, output_dir: Path = Path("z_output/sessions")) -> None:
        self.output_dir = Path(output_dir)

    def save(self, record: SessionRecord) -> bool:
        stamp = record.created_at.strftime("%Y%m%d_%H%M%S")
        dest = self.output_dir / f"{stamp}_{record.session_id}"
        dest.mkdir(parents=True, exist_ok=True)

        files = {}
        for slot, data in record.assets.items():
            if not data:
                continue
            path = dest / f"{slot}.jpg"
            path.write_bytes(data)
            files[slot] = path.name

        meta = record.summary()
        meta["files"] = files
        with open(dest / self.METADATA_FILE, "w") as f:
            yaml.safe_dump(meta, f, sort_keys=False)

        logger.info("FileSessionStore: saved %s → %s", record.session_id, dest)
        return True
