"""
hardware/cameras.py
-------------------
Camera implementations. All extend BaseCamera.

Available:
  MockCamera       — returns a generated test image per facing (no hardware needed)
  WebcamCamera     — OpenCV webcams, one device index per facing
"""

from __future__ import annotations

import logging
from datetime import datetime

from PIL import Image, ImageDraw
import numpy as np
import cv2

from core.interfaces import BaseCamera, CameraFacing, CaptureResult

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Mock camera — generates a synthetic test image
# ---------------------------------------------------------------------------

class MockCamera(BaseCamera):
    """Generates a synthetic image. No hardware required."""

    def __init__(self, resolution: tuple[int, int] = (1920, 1080)) -> None:
        self.resolution = resolution
        self.facing = CameraFacing.BACK
        self.prepare_calls: list[CameraFacing] = []
        self._frame_count = 0

    def connect(self) -> None:
        logger.info("MockCamera connected (resolution=%dx%d)", *self.resolution)

    def prepare(self, facing: CameraFacing) -> None:
        self.prepare_calls.append(facing)
        self.facing = facing
        logger.debug("MockCamera switched to %s", facing.value)

    def is_current_facing(self, facing: CameraFacing) -> bool:
        return self.facing is facing

    def reset_to_default_facing(self) -> None:
        self.facing = CameraFacing.BACK

    def capture(self) -> CaptureResult:
        self._frame_count += 1
        w, h = self.resolution
        # selfies come out portrait, like a phone front camera
        if self.facing is CameraFacing.FRONT:
            w, h = min(w, h), max(w, h)

        tint = (60, 0, 0) if self.facing is CameraFacing.FRONT else (0, 0, 60)
        ramp = np.linspace(0.0, 1.0, h, dtype=np.float32)[:, None]
        pixels = np.zeros((h, w, 3), dtype=np.uint8)
        pixels[..., 0] = (140 + tint[0] + 40 * ramp).astype(np.uint8)
        pixels[..., 1] = (140 + 60 * ramp).astype(np.uint8)
        pixels[..., 2] = (140 + tint[2] + 50 * ramp).astype(np.uint8)
        img = Image.fromarray(pixels)

        draw = ImageDraw.Draw(img)
        draw.text((w // 2 - 120, h // 2 - 30),
                  f"MOCK {self.facing.value.upper()} #{self._frame_count}",
                  fill=(255, 255, 255))
        draw.text((w // 2 - 120, h // 2 + 20),
                  datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
                  fill=(220, 220, 220))

        logger.debug("MockCamera captured frame #%d (%s)", self._frame_count, self.facing.value)
        return CaptureResult(
            image=img,
            metadata={"frame": self._frame_count, "source": "mock", "facing": self.facing.value},
        )

    def disconnect(self) -> None:
        logger.info("MockCamera disconnected")


# ---------------------------------------------------------------------------
# Webcam camera — OpenCV
# ---------------------------------------------------------------------------

class WebcamCamera(BaseCamera):
    """
    Captures from local webcams via OpenCV.
    back_index / front_index: device indices for each facing. When both are
    the same device, switching facing only changes what the session records.
    """

    def __init__(self, back_index: int = 0, front_index: int = 1, warmup_frames: int = 5) -> None:
        self.indices = {CameraFacing.BACK: back_index, CameraFacing.FRONT: front_index}
        self.warmup_frames = warmup_frames
        self.facing = CameraFacing.BACK
        self._cap = None
        self._open_index = None

    def connect(self) -> None:
        self._open(self.indices[self.facing])

    def prepare(self, facing: CameraFacing) -> None:
        if self.indices[facing] != self._open_index:
            self._open(self.indices[facing])
        self.facing = facing
        logger.info("WebcamCamera facing %s (device=%d)", facing.value, self.indices[facing])

    def is_current_facing(self, facing: CameraFacing) -> bool:
        return self.facing is facing

    def reset_to_default_facing(self) -> None:
        if self.facing is not CameraFacing.BACK:
            self.prepare(CameraFacing.BACK)

    def capture(self) -> CaptureResult:
        if self._cap is None:
            raise RuntimeError("WebcamCamera not connected")
        ret, frame = self._cap.read()
        if not ret:
            raise RuntimeError("Failed to read frame from webcam")
        # OpenCV uses BGR; convert to RGB for PIL
        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        image = Image.fromarray(rgb)
        return CaptureResult(
            image=image,
            metadata={"device_index": self._open_index, "facing": self.facing.value},
        )

    def disconnect(self) -> None:
        self._release()
        logger.info("WebcamCamera disconnected")

    def _open(self, index: int) -> None:
        self._release()
        cap = cv2.VideoCapture(index)
        if not cap.isOpened():
            raise RuntimeError(f"Cannot open webcam at index {index}")
        # Warm up — first frames are often dark/blurry
        for _ in range(self.warmup_frames):
            cap.read()
        self._cap = cap
        self._open_index = index
        logger.info("WebcamCamera connected (device=%d)", index)

    def _release(self) -> None:
        if self._cap is not None:
            self._cap.release()
        self._cap = None
        self._open_index = None
