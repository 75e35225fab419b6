"""
Phone Orders — Kitchen display push channel
"""
import logging
from fastapi import APIRouter, WebSocket

logger = logging.getLogger(__name__)
router = APIRouter(tags=["dashboard"])


@router.websocket("/")
@router.websocket("/ws")
async def dashboard_socket(websocket: WebSocket):
    hub = websocket.app.state.hub
    await hub.connect(websocket)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            if message.get("text") is not None:
                await hub.handle_message(websocket, message["text"])
            else:
                logger.debug("Ignoring binary frame from display")
    finally:
        hub.disconnect(websocket)
