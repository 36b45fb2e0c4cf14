import asyncio
import inspect
import logging
from typing import Any, Callable, Optional, Set

from ..config.settings import DETECTION_INTERVAL_MS
from ..core.logger import log_event
from ..detection.base_detector import BaseDetector
from .attention import AttentionTracker
from .camera import Camera
from .observers import InputEventObserver
from .reporter import ViolationReporter, ReportResult
from .sampler import SignalSampler

logger = logging.getLogger(__name__)


class MonitoringSession:
    """
    Everything that monitors one quiz attempt, wired together and owned by
    the hosting page's lifecycle:

        camera frames  -> SignalSampler -> AttentionTracker --+
        page events    -> InputEventObserver -----------------+-> ViolationReporter

    Created when monitoring is enabled, torn down with stop(); nothing here
    outlives the session.

    Hooks:
        on_auto_submit(attempt_id): finalize the attempt after the away limit
        on_redirect(url): leave the quiz once the server auto-submitted it
    """

    def __init__(
        self,
        attempt_id: str,
        camera: Camera,
        detector: BaseDetector,
        reporter: ViolationReporter,
        on_auto_submit: Optional[Callable[[str], Any]] = None,
        on_redirect: Optional[Callable[[str], Any]] = None,
        interval_ms: int = DETECTION_INTERVAL_MS,
        tracker: Optional[AttentionTracker] = None,
    ):
        self.attempt_id = attempt_id
        self.reporter = reporter
        self.on_auto_submit = on_auto_submit
        self.on_redirect = on_redirect

        self.tracker = tracker or AttentionTracker(attempt_id=attempt_id)
        self.tracker.on_violation = self._on_face_violation
        self.tracker.on_auto_submit = self._on_away_limit

        self.sampler = SignalSampler(camera, detector, self.tracker, interval_ms=interval_ms)
        self.observer = InputEventObserver(report=self._on_input_violation, attempt_id=attempt_id)

        self.active = False
        self.finished = asyncio.Event()
        self._submitting = False
        self._tasks: Set[asyncio.Task] = set()

    # ------------------------------------------------------------
    # Read side for the hosting page
    # ------------------------------------------------------------
    @property
    def status(self) -> str:
        return self.tracker.status

    @property
    def away_seconds(self) -> int:
        return self.tracker.away_seconds

    @property
    def violation_count(self) -> int:
        """Local, advisory tally (camera + input violations)."""
        return self.tracker.violation_count + self.observer.count

    @property
    def preview_frame(self):
        return self.sampler.last_frame

    # ------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------
    async def start(self):
        self.active = True
        log_event(self.attempt_id, "monitoring_started", {})
        await self.sampler.start()

    async def retry_camera(self) -> bool:
        if not self.active:
            return False
        return await self.sampler.retry()

    async def stop(self):
        if not self.active:
            return
        self.active = False
        try:
            await self.sampler.close()
            current = asyncio.current_task()
            pending = [t for t in self._tasks if t is not current]
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
        finally:
            self.reporter.close()
            self.finished.set()
            log_event(self.attempt_id, "monitoring_stopped", {"violations": self.violation_count})

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.stop()
        return False

    def handle_event(self, event) -> Optional[str]:
        """Feed one page interaction; returns the violation type if it should be blocked."""
        if not self.active:
            return None
        return self.observer.observe(event)

    # ------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------
    def _spawn(self, coro):
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _on_face_violation(self, kind: str):
        self._spawn(self._report(
            kind,
            "camera_heuristic",
            duration_seconds=self.tracker.away_seconds,
        ))

    def _on_input_violation(self, violation_type: str):
        self._spawn(self._report(violation_type, "browser_event"))

    def _on_away_limit(self):
        # fires every tick past the limit; submit once
        if self._submitting:
            return
        self._submitting = True
        self._spawn(self._auto_submit())

    async def _report(self, violation_type: str, detection_method: str, **kwargs) -> Optional[ReportResult]:
        result = await self.reporter.report(violation_type, detection_method, **kwargs)
        if result is not None and result.auto_submitted and not self._submitting:
            self._submitting = True
            log_event(self.attempt_id, "server_auto_submit", {"count": result.violation_count}, level="warning")
            await self.stop()
            await self._call(self.on_redirect, f"/quiz/results/{self.attempt_id}")
        return result

    async def _auto_submit(self):
        log_event(self.attempt_id, "auto_submit", {"away_seconds": self.tracker.away_seconds}, level="warning")
        try:
            await self._call(self.on_auto_submit, self.attempt_id)
        finally:
            await self.stop()

    async def _call(self, hook, *args):
        if hook is None:
            return
        try:
            result = hook(*args)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Monitoring hook %r failed", hook)
