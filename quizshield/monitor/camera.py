import logging
from typing import Optional

import cv2
import numpy as np

from ..config.settings import CAMERA_INDEX, FRAME_WIDTH, FRAME_HEIGHT

logger = logging.getLogger(__name__)


class CameraError(Exception):
    pass


class CameraPermissionDenied(CameraError):
    """The user or the OS refused access to the device."""


class CameraUnavailable(CameraError):
    """No device, device busy, or any other acquisition failure."""


class Camera:
    """
    A scoped camera resource: open() acquires the device lock,
    release() gives it back. Owned by exactly one monitoring session.
    """

    def permission_state(self) -> Optional[str]:
        """'granted', 'denied', 'prompt', or None when it cannot be queried."""
        return None

    def open(self):
        raise NotImplementedError

    def is_ready(self) -> bool:
        raise NotImplementedError

    def read(self) -> Optional[np.ndarray]:
        """Return the latest BGR frame, or None if no frame is available yet."""
        raise NotImplementedError

    def release(self):
        raise NotImplementedError

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False


class OpenCVCamera(Camera):
    def __init__(self, index: int = CAMERA_INDEX, width: int = FRAME_WIDTH, height: int = FRAME_HEIGHT):
        self.index = index
        self.width = width
        self.height = height
        self._cap = None

    def open(self):
        if self._cap is not None:
            return
        cap = cv2.VideoCapture(self.index)
        if not cap.isOpened():
            cap.release()
            # OpenCV does not tell "denied" apart from "missing" or "busy"
            raise CameraUnavailable(f"Could not open camera {self.index}")
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        self._cap = cap
        logger.info("Camera %s opened (%sx%s)", self.index, self.width, self.height)

    def is_ready(self) -> bool:
        return self._cap is not None and self._cap.isOpened()

    def read(self):
        if not self.is_ready():
            return None
        ok, frame = self._cap.read()
        return frame if ok else None

    def release(self):
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            logger.info("Camera %s released", self.index)
