import asyncio
import logging
from typing import Optional

import numpy as np

from ..config.settings import DETECTION_INTERVAL_MS
from ..core.logger import log_event
from ..detection.base_detector import BaseDetector
from ..detection.head_pose import estimate_head_pose, is_looking
from .attention import AttentionTracker, LOADING, LOOKING, ERROR, PERMISSION_DENIED
from .camera import Camera, CameraPermissionDenied

logger = logging.getLogger(__name__)


class SignalSampler:
    """
    Owns the camera for one monitoring session and feeds one
    looking / not-looking sample per tick into the attention tracker.

    start()  -> acquire camera, begin ticking
    retry()  -> release whatever is held and acquire again
    stop()   -> stop ticking and release the camera
    close()  -> stop() and release the landmark detector
    """

    def __init__(
        self,
        camera: Camera,
        detector: BaseDetector,
        tracker: AttentionTracker,
        interval_ms: int = DETECTION_INTERVAL_MS,
    ):
        self.camera = camera
        self.detector = detector
        self.tracker = tracker
        self.interval = interval_ms / 1000
        self.last_frame: Optional[np.ndarray] = None
        self.last_pose = None

        self._task: Optional[asyncio.Task] = None
        self._stopping: Optional[asyncio.Event] = None

    @property
    def attempt_id(self):
        return self.tracker.attempt_id

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    # ------------------------------------------------------------
    # Camera lifecycle
    # ------------------------------------------------------------
    async def acquire(self) -> bool:
        state = None
        try:
            state = self.camera.permission_state()
        except Exception as e:
            # not every backend can be queried; fall through to open()
            logger.debug("Camera permission query failed: %s", e)

        if state == "denied":
            log_event(self.attempt_id, "camera_denied", {"source": "permission_query"}, level="warning")
            self.tracker.set_status(PERMISSION_DENIED)
            return False

        try:
            await asyncio.to_thread(self.camera.open)
        except CameraPermissionDenied as e:
            log_event(self.attempt_id, "camera_denied", {"error": e}, level="warning")
            self.tracker.set_status(PERMISSION_DENIED)
            return False
        except Exception as e:
            log_event(self.attempt_id, "camera_error", {"error": e}, level="error")
            self.tracker.set_status(ERROR)
            return False

        self.tracker.set_status(LOOKING)
        return True

    async def start(self) -> bool:
        if self.running:
            return True
        if not await self.acquire():
            return False
        self._stopping = asyncio.Event()
        self._task = asyncio.create_task(self._loop())
        return True

    async def retry(self) -> bool:
        await self.stop()
        self.tracker.set_status(LOADING)
        return await self.start()

    async def stop(self):
        if self._stopping is not None:
            self._stopping.set()
        if self._task is not None:
            try:
                await self._task
            finally:
                self._task = None
        self.camera.release()

    async def close(self):
        try:
            await self.stop()
        finally:
            self.detector.close()

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
        return False

    # ------------------------------------------------------------
    # Detection
    # ------------------------------------------------------------
    def _detect(self):
        frame = self.camera.read()
        if frame is None:
            return None, None
        return frame, self.detector.detect_landmarks(frame)

    async def tick(self) -> Optional[bool]:
        """
        Run one detection tick.

        Returns the raw looking classification, or None when the tick was
        skipped (camera not ready, or detection raised).
        """
        if self.tracker.status in (LOADING, ERROR, PERMISSION_DENIED):
            return None

        try:
            frame, landmarks = await asyncio.to_thread(self._detect)
        except Exception as e:
            # one bad frame must not flip the status
            logger.debug("Detection tick skipped: %s", e)
            return None

        if frame is None:
            return None
        self.last_frame = frame

        if landmarks is None:
            self.last_pose = None
            self.tracker.update(False, face_detected=False)
            return False

        yaw, pitch = estimate_head_pose(landmarks)
        self.last_pose = (yaw, pitch)
        looking = is_looking(yaw, pitch)
        self.tracker.update(looking, face_detected=True)
        return looking

    async def _loop(self):
        loop = asyncio.get_running_loop()
        next_at = loop.time() + self.interval
        try:
            while not self._stopping.is_set():
                delay = next_at - loop.time()
                if delay > 0:
                    try:
                        await asyncio.wait_for(self._stopping.wait(), timeout=delay)
                        break
                    except asyncio.TimeoutError:
                        pass

                await self.tick()

                next_at += self.interval
                now = loop.time()
                if next_at <= now:
                    # tick overran the interval: drop the missed slots
                    missed = int((now - next_at) // self.interval) + 1
                    next_at += missed * self.interval
        finally:
            self.camera.release()
