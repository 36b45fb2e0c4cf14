from fastapi import APIRouter, WebSocket
from .events import InteractionEventsWebSocket

router = APIRouter()

ws_handler = InteractionEventsWebSocket()


@router.websocket("/attempts/{attempt_id}/events")
async def interaction_events(websocket: WebSocket, attempt_id: str):
    await ws_handler.handle(websocket, attempt_id)
