"""
storage/sync.py
---------------
Remote sync implementations. All extend BaseSessionSync.

  MemorySessionSync — records every upload call (testing / offline demo)
  HttpSessionSync   — multipart POST of the four images plus session fields

Retry and timeout policy belongs here, not in the session core.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Optional

import requests

from core.interfaces import BaseSessionSync, SessionAssets

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Memory sync — no network
# ---------------------------------------------------------------------------

class MemorySessionSync(BaseSessionSync):
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.uploads: list[tuple[datetime, int, SessionAssets]] = []
        self._lock = threading.Lock()

    def upload_and_insert(
        self,
        created_at: datetime,
        duration_seconds: int,
        assets: SessionAssets,
    ) -> bool:
        if self.fail:
            raise ConnectionError("simulated sync failure")
        with self._lock:
            self.uploads.append((created_at, duration_seconds, assets))
        logger.info("MemorySessionSync: %ds session, sizes=%s", duration_seconds, assets.sizes())
        return True


# ---------------------------------------------------------------------------
# HTTP sync
# ---------------------------------------------------------------------------

class HttpSessionSync(BaseSessionSync):
    """
    Uploads a finished session to an HTTP endpoint.

    The endpoint receives multipart form data: `created_at` (ISO 8601),
    `duration_seconds`, and one JPEG part per captured slot.
    """

    def __init__(self, url: str, api_key: Optional[str] = None, timeout: float = 30.0) -> None:
        if not url:
            raise ValueError("HttpSessionSync requires a url")
        self.url = url
        self.timeout = timeout
        self._session = requests.Session()
        if api_key:
            self._session.headers["Authorization"] = f"Bearer {api_key}"

    def upload_and_insert(
        self,
        created_at: datetime,
        duration_seconds: int,
        assets: SessionAssets,
    ) -> bool:
        files = {
            slot: (f"{slot}.jpg", data, "image/jpeg")
            for slot, data in assets.items() if data
        }
        data = {
            "created_at": created_at.isoformat(),
            "duration_seconds": str(duration_seconds),
        }
        resp = self._session.post(self.url, data=data, files=files, timeout=self.timeout)
        resp.raise_for_status()
        logger.info("HttpSessionSync: inserted %ds session (%d images) → %s",
                    duration_seconds, len(files), resp.status_code)
        return True

    def close(self) -> None:
        self._session.close()
