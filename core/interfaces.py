"""
core/interfaces.py
------------------
Domain types and abstract base classes for every swappable collaborator.
Swap a camera, clock, store, sync backend, or capture UI by subclassing
the relevant ABC and implementing the required methods.
No other code changes needed.
"""

from __future__ import annotations

import abc
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from PIL import Image


# ---------------------------------------------------------------------------
# Domain types
# ---------------------------------------------------------------------------

class CameraFacing(Enum):
    BACK = "back"
    FRONT = "front"


class CapturePhase(Enum):
    NONE = "Camera"
    START_WORKSPACE = "Workspace Start"
    START_SELFIE = "Selfie Start"
    END_WORKSPACE = "Workspace End"
    END_SELFIE = "Selfie End"

    @property
    def label(self) -> str:
        return self.value

    @property
    def active(self) -> bool:
        return self is not CapturePhase.NONE

    @property
    def is_start_bracket(self) -> bool:
        return self in (CapturePhase.START_WORKSPACE, CapturePhase.START_SELFIE)

    @property
    def is_end_bracket(self) -> bool:
        return self in (CapturePhase.END_WORKSPACE, CapturePhase.END_SELFIE)

    @property
    def facing(self) -> CameraFacing:
        if self in (CapturePhase.START_SELFIE, CapturePhase.END_SELFIE):
            return CameraFacing.FRONT
        return CameraFacing.BACK


class SessionStatus(Enum):
    IDLE = "idle"
    CAPTURING_START = "capturing_start"
    STARTING = "starting"
    RUNNING = "running"
    PAUSED = "paused"
    CAPTURING_END = "capturing_end"


@dataclass
class CaptureResult:
    image: Image.Image
    captured_at: Optional[float] = None     # monotonic seconds; None = stamp on arrival
    metadata: dict = field(default_factory=dict)


@dataclass(frozen=True)
class SessionAssets:
    workspace_start: Optional[bytes] = None
    selfie_start: Optional[bytes] = None
    workspace_end: Optional[bytes] = None
    selfie_end: Optional[bytes] = None

    def sizes(self) -> tuple[int, int, int, int]:
        return tuple(len(b) if b else 0 for b in (
            self.workspace_start, self.selfie_start,
            self.workspace_end, self.selfie_end,
        ))

    def items(self) -> list[tuple[str, Optional[bytes]]]:
        return [
            ("workspace_start", self.workspace_start),
            ("selfie_start", self.selfie_start),
            ("workspace_end", self.workspace_end),
            ("selfie_end", self.selfie_end),
        ]


@dataclass(frozen=True)
class SessionRecord:
    duration_seconds: int
    assets: SessionAssets
    created_at: datetime = field(default_factory=datetime.now)
    session_id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])

    def summary(self) -> dict:
        return {
            "session_id": self.session_id,
            "created_at": self.created_at.isoformat(),
            "duration_seconds": self.duration_seconds,
            "asset_sizes": list(self.assets.sizes()),
        }


# ---------------------------------------------------------------------------
# Clock source
# ---------------------------------------------------------------------------

class BaseClock(abc.ABC):
    """Monotonic time source, immune to wall-clock adjustments."""

    @abc.abstractmethod
    def now(self) -> float:
        """Seconds from an arbitrary fixed origin."""

    @property
    def name(self) -> str:
        return self.__class__.__name__


# ---------------------------------------------------------------------------
# Camera
# ---------------------------------------------------------------------------

class BaseCamera(abc.ABC):
    """
    Abstract camera. Implement connect / capture / disconnect plus the
    facing controls. Exposure, focus and hardware lifecycle stay in here.
    """

    def __enter__(self) -> "BaseCamera":
        self.connect()
        return self

    def __exit__(self, *_) -> None:
        self.disconnect()

    @abc.abstractmethod
    def connect(self) -> None: ...

    @abc.abstractmethod
    def disconnect(self) -> None: ...

    @abc.abstractmethod
    def prepare(self, facing: CameraFacing) -> None: ...

    @abc.abstractmethod
    def capture(self) -> CaptureResult: ...

    @abc.abstractmethod
    def is_current_facing(self, facing: CameraFacing) -> bool: ...

    @abc.abstractmethod
    def reset_to_default_facing(self) -> None: ...

    @property
    def name(self) -> str:
        return self.__class__.__name__


# ---------------------------------------------------------------------------
# Capture UI
# ---------------------------------------------------------------------------

class BaseCaptureUI(abc.ABC):
    """Abstract presentation layer for the capture sheet and timer readout."""

    @property
    def name(self) -> str:
        return self.__class__.__name__

    @abc.abstractmethod
    def show_capture(self, phase: CapturePhase) -> None: ...

    @abc.abstractmethod
    def hide_capture(self) -> None: ...

    @abc.abstractmethod
    def show_status(self, elapsed: float, status: SessionStatus) -> None: ...

    @abc.abstractmethod
    def show_recent(self, durations: list[float]) -> None: ...

    @abc.abstractmethod
    def close(self) -> None: ...


# ---------------------------------------------------------------------------
# Persistence / sync collaborators
# ---------------------------------------------------------------------------

class BaseSessionStore(abc.ABC):
    """Local persistence for finished sessions."""

    @abc.abstractmethod
    def save(self, record: SessionRecord) -> bool:
        """Persist the record. Return False (or raise) on failure."""

    @property
    def name(self) -> str:
        return self.__class__.__name__


class BaseSessionSync(abc.ABC):
    """Remote sync for finished sessions. Owns its own timeout/retry policy."""

    @abc.abstractmethod
    def upload_and_insert(
        self,
        created_at: datetime,
        duration_seconds: int,
        assets: SessionAssets,
    ) -> bool:
        """Upload the images and insert the session row. Return False (or raise) on failure."""

    @property
    def name(self) -> str:
        return self.__class__.__name__
