"""
Phone Orders — Kitchen display broadcast hub

Owns the set of connected display WebSockets for this process. Delivery is
best-effort. A send that fails or outlives the send timeout drops the client
and closes its socket, so the display reconnects and re-pulls GET /api/orders.

publish_* schedule the fan-out as a background task and return at once;
callers on a live phone call never wait on display sockets.
"""
import asyncio
import contextlib
import json
import logging
import time
from typing import Any

from fastapi import WebSocket
from starlette.status import WS_1011_INTERNAL_ERROR
from starlette.websockets import WebSocketState

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = "Connected!"


class BroadcastHub:
    def __init__(self, send_timeout: float = 2.0):
        self.clients: set[WebSocket] = set()
        self.send_timeout = send_timeout
        self._pending: set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self.clients)

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.clients.add(websocket)
        logger.info("Display connected (%d total)", len(self.clients))
        await self._send_json(websocket, {"type": "welcome", "message": WELCOME_MESSAGE})

    def disconnect(self, websocket: WebSocket) -> None:
        if websocket in self.clients:
            self.clients.discard(websocket)
            logger.info("Display disconnected (%d remaining)", len(self.clients))

    async def _drop(self, websocket: WebSocket) -> None:
        self.disconnect(websocket)
        with contextlib.suppress(Exception):
            await websocket.close(code=WS_1011_INTERNAL_ERROR)

    async def _send_json(self, websocket: WebSocket, message: dict[str, Any]) -> None:
        await websocket.send_text(json.dumps(message))

    async def _send_text(self, websocket: WebSocket, text: str) -> bool:
        if websocket.application_state != WebSocketState.CONNECTED:
            return False
        try:
            await asyncio.wait_for(websocket.send_text(text), timeout=self.send_timeout)
            return True
        except Exception as exc:
            logger.warning("Dropping display after failed send: %r", exc)
            await self._drop(websocket)
            return False

    async def broadcast(self, message_type: str, payload: Any, exclude: WebSocket | None = None) -> int:
        """Send {type, payload} to every open client. Returns successful sends."""
        text = json.dumps({"type": message_type, "payload": payload})
        targets = [ws for ws in list(self.clients) if ws is not exclude]
        if not targets:
            return 0
        results = await asyncio.gather(*(self._send_text(ws, text) for ws in targets))
        return sum(1 for ok in results if ok)

    async def broadcast_new_order(self, payload: dict[str, Any]) -> int:
        sent = await self.broadcast("new_order", payload)
        logger.info("Order %s broadcast to %d client(s)", payload.get("orderNumber"), sent)
        return sent

    async def broadcast_status_update(self, order_number: str, status: str, updated_at: str) -> int:
        return await self.broadcast(
            "status_update",
            {"orderNumber": order_number, "status": status, "updatedAt": updated_at},
        )

    def _schedule(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._finished)
        return task

    def _finished(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning("Background broadcast failed: %r", task.exception())

    def publish_new_order(self, payload: dict[str, Any]) -> asyncio.Task:
        return self._schedule(self.broadcast_new_order(payload))

    def publish_status_update(self, order_number: str, status: str, updated_at: str) -> asyncio.Task:
        return self._schedule(self.broadcast_status_update(order_number, status, updated_at))

    async def drain(self) -> None:
        """Wait for scheduled fan-outs to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def handle_message(self, websocket: WebSocket, raw: str) -> None:
        """Diagnostic message handling for display clients."""
        try:
            data = json.loads(raw)
        except ValueError:
            await websocket.send_text(f"Echo: {raw}")
            return

        message_type = data.get("type") if isinstance(data, dict) else None
        if message_type == "ping":
            await self._send_json(websocket, {"type": "pong", "timestamp": int(time.time() * 1000)})
        elif message_type == "broadcast":
            await self.broadcast("broadcast", data.get("payload"), exclude=websocket)
        else:
            await self._send_json(websocket, {"type": "error", "message": "Unknown message type"})
