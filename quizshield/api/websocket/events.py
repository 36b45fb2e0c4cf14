import json

from fastapi import WebSocket, WebSocketDisconnect
from starlette.concurrency import run_in_threadpool

from ...core import ledger
from ...core.database import SessionLocal
from ...core.errors import IntegrityError
from ...core.logger import log_event
from ...monitor.observers import InputEventObserver


class InteractionEventsWebSocket:
    """
    WebSocket handler for page interaction events of one attempt:
    ✔ classify each event (tab change, clipboard, context menu, shortcuts)
    ✔ record classified events straight into the ledger
    ✔ tell the page to block the action, and when the attempt was auto-submitted
    """

    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory

    def _report(self, attempt_id: str, violation_type: str, detail: dict):
        db = self.session_factory()
        try:
            return ledger.report_violation(
                db,
                attempt_id,
                violation_type=violation_type,
                detection_method="browser_event",
                details=detail,
            )
        finally:
            db.close()

    async def handle(self, websocket: WebSocket, attempt_id: str):
        await websocket.accept()
        observer = InputEventObserver(attempt_id=attempt_id)
        log_event(attempt_id, "ws_connected", {})

        try:
            while True:
                raw = await websocket.receive_text()
                try:
                    data = json.loads(raw)
                except (TypeError, ValueError):
                    data = None
                if not isinstance(data, dict):
                    await websocket.send_json({"error": "BAD_EVENT", "message": "Expected a JSON object."})
                    continue

                violation_type = observer.observe(data)
                if violation_type is None:
                    await websocket.send_json({"violationType": None, "block": False})
                    continue

                detail = {
                    "userAgent": websocket.headers.get("user-agent"),
                    "payloadMetaData": {"event": data.get("type"), "key": data.get("key")},
                }
                try:
                    result = await run_in_threadpool(self._report, attempt_id, violation_type, detail)
                except IntegrityError as e:
                    await websocket.send_json({"error": type(e).__name__, "message": e.message})
                    await websocket.close(code=1008)
                    return

                await websocket.send_json({
                    "violationType": violation_type,
                    "block": True,
                    "localCount": observer.count,
                    "violationCount": result["violationCount"],
                    "autoSubmitted": result["autoSubmitted"],
                })

                if result["autoSubmitted"]:
                    await websocket.send_json({"terminate": True, "redirect": f"/quiz/results/{attempt_id}"})
                    await websocket.close()
                    return

        except WebSocketDisconnect:
            log_event(attempt_id, "ws_disconnected", {"local_count": observer.count})
