# run_monitor.py
"""
Local monitoring runner: watches the webcam for one quiz attempt and
reports face-away / no-face violations to the proctoring engine.

    python -m quizshield.run_monitor --attempt-id A1 --user-id S1 --preview
"""
import argparse
import asyncio

import cv2

from .config.settings import API_BASE_URL, CAMERA_INDEX, DETECTION_INTERVAL_MS
from .core.logger import setup_logging, logger
from .monitor.camera import OpenCVCamera
from .monitor.reporter import ViolationReporter
from .monitor.session import MonitoringSession

STATUS_COLORS = {
    "loading": (255, 200, 0),
    "looking": (0, 200, 0),
    "away": (0, 200, 255),
    "no_face": (0, 0, 255),
    "error": (0, 0, 255),
    "permission_denied": (0, 0, 255),
}


def draw_status(frame, session: MonitoringSession):
    frame = frame.copy()
    h = frame.shape[0]
    color = STATUS_COLORS.get(session.status, (200, 200, 200))
    cv2.putText(frame, session.status, (10, 24), cv2.FONT_HERSHEY_SIMPLEX, 0.6, color, 2)
    if session.away_seconds:
        cv2.putText(frame, f"Away {session.away_seconds}s", (10, 48),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.6, color, 2)
    cv2.putText(frame, f"Violations: {session.violation_count}", (10, h - 12),
                cv2.FONT_HERSHEY_SIMPLEX, 0.5, (200, 200, 200), 1)
    return frame


async def run(args):
    # mediapipe is heavy; only the runner needs it
    from .detection.mediapipe_detector import MediapipeDetector

    headers = {"X-User-Id": args.user_id} if args.user_id else {}
    session = MonitoringSession(
        attempt_id=args.attempt_id,
        camera=OpenCVCamera(index=args.camera),
        detector=MediapipeDetector(),
        reporter=ViolationReporter(args.attempt_id, base_url=args.base_url, headers=headers),
        on_auto_submit=lambda attempt_id: logger.warning("Attempt %s auto-submitted (away limit)", attempt_id),
        on_redirect=lambda url: logger.warning("Attempt closed by server, results at %s", url),
        interval_ms=args.interval,
    )

    async with session:
        while session.active:
            if session.status in ("error", "permission_denied"):
                logger.error("Camera unavailable (%s); retrying in 5s", session.status)
                await asyncio.sleep(5)
                await session.retry_camera()
                continue

            if args.preview and session.preview_frame is not None:
                cv2.imshow("QuizShield - press q to quit", draw_status(session.preview_frame, session))
                if cv2.waitKey(1) & 0xFF == ord("q"):
                    break
            await asyncio.sleep(0.05)

    if args.preview:
        cv2.destroyAllWindows()


def main():
    parser = argparse.ArgumentParser(description="Monitor one quiz attempt from the local webcam")
    parser.add_argument("--attempt-id", required=True)
    parser.add_argument("--user-id", default=None)
    parser.add_argument("--base-url", default=API_BASE_URL)
    parser.add_argument("--camera", type=int, default=CAMERA_INDEX)
    parser.add_argument("--interval", type=int, default=DETECTION_INTERVAL_MS, help="detection tick in ms")
    parser.add_argument("--preview", action="store_true", help="show the camera preview window")
    args = parser.parse_args()

    setup_logging()
    try:
        asyncio.run(run(args))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
