"""
Webcam capture source polled by the display loop and read by the detection loop.
"""
import logging
from typing import Optional

import cv2

from .config import CameraConfig
from .types import Frame

logger = logging.getLogger(__name__)


class CameraSource:
    """Keeps the most recent webcam frame; not ready while off or before the first frame."""

    def __init__(self, cfg: CameraConfig, capture=None):
        self.cfg = cfg
        self.cap = capture if capture is not None else cv2.VideoCapture(cfg.index)
        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, cfg.width)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, cfg.height)
        self.cap.set(cv2.CAP_PROP_FPS, cfg.fps)

        if not self.cap.isOpened():
            raise RuntimeError(f"Failed to open camera {cfg.index}")

        self.enabled = True
        self._latest: Optional[Frame] = None

    def poll(self) -> Optional[Frame]:
        """Grab the next frame from the camera."""
        if not self.enabled:
            return None
        ret, image = self.cap.read()
        if not ret:
            logger.warning("Failed to read frame from camera")
            self._latest = None
            return None
        height, width = image.shape[:2]
        self._latest = Frame(image=image, width=width, height=height)
        return self._latest

    def is_ready(self) -> bool:
        return self.enabled and self._latest is not None

    def read(self) -> Optional[Frame]:
        """Latest frame, or None when the camera is off or has no frame yet."""
        if not self.is_ready():
            return None
        frame = self._latest
        return Frame(image=frame.image.copy(), width=frame.width, height=frame.height)

    def toggle(self) -> bool:
        """Switch the camera on or off; returns the new state."""
        self.enabled = not self.enabled
        if not self.enabled:
            self._latest = None
        logger.info(f"Camera {'on' if self.enabled else 'off'}")
        return self.enabled

    def release(self) -> None:
        if self.cap.isOpened():
            self.cap.release()
