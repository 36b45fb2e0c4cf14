"""
Tests for camera acquisition and the detection tick
"""

import asyncio

from fakes import FakeCamera, FakeDetector, TURNED
from quizshield.monitor.attention import AttentionTracker, LOADING, LOOKING, ERROR, PERMISSION_DENIED
from quizshield.monitor.camera import CameraPermissionDenied, CameraUnavailable
from quizshield.monitor.sampler import SignalSampler


def make_sampler(camera=None, detector=None, interval_ms=500):
    tracker = AttentionTracker(attempt_id="attempt-1")
    return SignalSampler(camera or FakeCamera(), detector or FakeDetector(), tracker, interval_ms=interval_ms)


class TestAcquire:
    """Camera acquisition outcomes"""

    def test_denied_permission_skips_open(self):
        """A denied permission query never touches the device"""
        camera = FakeCamera(permission="denied")
        sampler = make_sampler(camera)

        started = asyncio.run(sampler.start())

        assert started is False
        assert sampler.tracker.status == PERMISSION_DENIED
        assert camera.open_calls == 0
        assert not sampler.running

    def test_open_refused(self):
        sampler = make_sampler(FakeCamera(open_error=CameraPermissionDenied("blocked")))

        assert asyncio.run(sampler.acquire()) is False
        assert sampler.tracker.status == PERMISSION_DENIED

    def test_device_unavailable(self):
        sampler = make_sampler(FakeCamera(open_error=CameraUnavailable("busy")))

        assert asyncio.run(sampler.acquire()) is False
        assert sampler.tracker.status == ERROR

    def test_unexpected_error_is_error_status(self):
        sampler = make_sampler(FakeCamera(open_error=RuntimeError("driver crashed")))

        assert asyncio.run(sampler.acquire()) is False
        assert sampler.tracker.status == ERROR

    def test_success_moves_to_looking(self):
        camera = FakeCamera(permission="granted")
        sampler = make_sampler(camera)

        assert asyncio.run(sampler.acquire()) is True
        assert sampler.tracker.status == LOOKING
        assert camera.open_calls == 1

    def test_retry_after_error(self):
        camera = FakeCamera(open_error=CameraUnavailable("busy"))
        sampler = make_sampler(camera)

        async def scenario():
            await sampler.start()
            assert sampler.tracker.status == ERROR
            camera.open_error = None
            ok = await sampler.retry()
            await sampler.stop()
            return ok

        assert asyncio.run(scenario()) is True
        assert camera.open_calls == 2
        assert camera.release_calls >= 2


class TestTick:
    """One detection tick"""

    def test_skipped_until_camera_ready(self):
        detector = FakeDetector()
        sampler = make_sampler(detector=detector)

        assert sampler.tracker.status == LOADING
        assert asyncio.run(sampler.tick()) is None
        assert detector.calls == 0

    def test_frontal_face_is_looking(self):
        sampler = make_sampler()

        async def scenario():
            await sampler.acquire()
            return await sampler.tick()

        assert asyncio.run(scenario()) is True
        assert sampler.last_frame is not None
        assert sampler.last_pose is not None
        assert len(sampler.tracker.buffer) == 1

    def test_turned_face_is_not_looking(self):
        sampler = make_sampler(detector=FakeDetector(landmarks=TURNED))

        async def scenario():
            await sampler.acquire()
            return await sampler.tick()

        assert asyncio.run(scenario()) is False
        assert sampler.tracker.buffer[-1] == (False, True)

    def test_no_face(self):
        sampler = make_sampler(detector=FakeDetector(landmarks=None))

        async def scenario():
            await sampler.acquire()
            return await sampler.tick()

        assert asyncio.run(scenario()) is False
        assert sampler.tracker.buffer[-1] == (False, False)
        assert sampler.last_pose is None

    def test_detector_error_is_swallowed(self):
        """A failing tick leaves the status and the buffer untouched"""
        sampler = make_sampler(detector=FakeDetector(error=RuntimeError("bad frame")))

        async def scenario():
            await sampler.acquire()
            return await sampler.tick()

        assert asyncio.run(scenario()) is None
        assert sampler.tracker.status == LOOKING
        assert len(sampler.tracker.buffer) == 0

    def test_missing_frame_skipped(self):
        detector = FakeDetector()
        sampler = make_sampler(FakeCamera(frames=False), detector)

        async def scenario():
            await sampler.acquire()
            return await sampler.tick()

        assert asyncio.run(scenario()) is None
        assert detector.calls == 0


class TestLoop:
    """The periodic detection loop"""

    def test_ticks_until_stopped_and_releases(self):
        camera = FakeCamera()
        detector = FakeDetector()
        sampler = make_sampler(camera, detector, interval_ms=10)

        async def scenario():
            async with sampler:
                await asyncio.sleep(0.2)
                assert sampler.running

        asyncio.run(scenario())

        assert detector.calls > 0
        assert detector.closed
        assert not sampler.running
        assert camera.release_calls >= 1
        assert not camera.opened

    def test_stop_without_start(self):
        camera = FakeCamera()
        sampler = make_sampler(camera)

        asyncio.run(sampler.stop())

        assert camera.release_calls == 1
