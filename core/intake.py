"""
core/intake.py
--------------
Photo intake: debounce raw shutter callbacks and normalise each photo into
a compact JPEG before it reaches the capture sequencer.
"""

from __future__ import annotations

import io
import logging
from typing import Optional

from PIL import Image

from core.interfaces import BaseClock, CapturePhase, CaptureResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_DIMENSION = 900
DEFAULT_JPEG_QUALITY = 50
DEFAULT_DEBOUNCE_SECONDS = 0.25


def normalize_photo(
    image: Image.Image,
    max_dimension: int = DEFAULT_MAX_DIMENSION,
    quality: int = DEFAULT_JPEG_QUALITY,
) -> bytes:
    """Downscale so the longer side fits `max_dimension` and re-encode as JPEG."""
    img = image.convert("RGB") if image.mode != "RGB" else image.copy()
    if max(img.size) > max_dimension:
        # thumbnail keeps the aspect ratio and never upscales
        img.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)
    buf = io.BytesIO()
    img.save(buf, format="JPEG", quality=quality)
    return buf.getvalue()


class PhotoIntake:
    """
    Gatekeeper between the camera callback and the sequencer.

    A capture closer than `debounce_seconds` to the last accepted one is
    rejected without touching any state.
    """

    def __init__(
        self,
        clock: BaseClock,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        max_dimension: int = DEFAULT_MAX_DIMENSION,
        jpeg_quality: int = DEFAULT_JPEG_QUALITY,
    ) -> None:
        self.clock = clock
        self.debounce_seconds = debounce_seconds
        self.max_dimension = max_dimension
        self.jpeg_quality = jpeg_quality
        self.last_capture_at: Optional[float] = None

    def accept(self, result: CaptureResult, phase: CapturePhase) -> Optional[bytes]:
        """Return the normalised asset, or None if the event was dropped."""
        captured_at = result.captured_at if result.captured_at is not None else self.clock.now()

        if (self.last_capture_at is not None
                and captured_at - self.last_capture_at < self.debounce_seconds):
            logger.debug("Capture debounced (%.3fs after previous)",
                         captured_at - self.last_capture_at)
            return None
        self.last_capture_at = captured_at

        if not phase.active:
            logger.debug("Capture dropped: no capture phase active")
            return None

        try:
            asset = normalize_photo(result.image, self.max_dimension, self.jpeg_quality)
        except (OSError, ValueError) as exc:
            logger.warning("Photo normalisation failed for %s: %s", phase.label, exc)
            return None

        if not asset:
            logger.warning("Photo normalisation produced no data for %s", phase.label)
            return None

        logger.info("Accepted %s photo %dx%d -> %d bytes",
                    phase.label, result.image.width, result.image.height, len(asset))
        return asset

    def reset(self) -> None:
        self.last_capture_at = None
