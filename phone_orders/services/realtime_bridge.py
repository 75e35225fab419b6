"""
Phone Orders — Realtime dialogue bridge

Relays one phone call between Twilio's media stream and the OpenAI Realtime
API. Audio stays in 8 kHz G.711 mu-law both ways, so frames are forwarded
without transcoding. Tool calls from the model run as background tasks so the
audio relay keeps flowing while an order is saved or the call is ended.
"""
import asyncio
import json
import logging
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect
from websockets.asyncio.client import connect
from websockets.exceptions import ConnectionClosed

from phone_orders.core.config import Settings
from phone_orders.services.call_control import CallSession
from phone_orders.services.tools import TOOL_DEFINITIONS, OrderingTools

logger = logging.getLogger(__name__)

LOGGED_MODEL_EVENTS = {
    "error",
    "response.done",
    "session.created",
    "session.updated",
    "input_audio_buffer.speech_started",
    "input_audio_buffer.committed",
}


def session_update(instructions: str, voice: str, temperature: float) -> dict[str, Any]:
    return {
        "type": "session.update",
        "session": {
            "turn_detection": {"type": "server_vad"},
            "input_audio_format": "g711_ulaw",
            "output_audio_format": "g711_ulaw",
            "voice": voice,
            "instructions": instructions,
            "modalities": ["text", "audio"],
            "temperature": temperature,
            "tools": TOOL_DEFINITIONS,
            "tool_choice": "auto",
        },
    }


def opening_turn() -> list[dict[str, Any]]:
    """Prompt the model to speak first with its greeting."""
    return [
        {
            "type": "conversation.item.create",
            "item": {
                "type": "message",
                "role": "user",
                "content": [{"type": "input_text", "text": "Hello"}],
            },
        },
        {"type": "response.create"},
    ]


def function_output(call_id: str, output: str) -> dict[str, Any]:
    return {
        "type": "conversation.item.create",
        "item": {"type": "function_call_output", "call_id": call_id, "output": output},
    }


class RealtimeBridge:
    def __init__(
        self,
        session: CallSession,
        tools: OrderingTools,
        instructions: str,
        settings: Settings,
    ):
        self.session = session
        self.tools = tools
        self.instructions = instructions
        self.settings = settings
        self._tool_tasks: set[asyncio.Task] = set()

    @property
    def model_url(self) -> str:
        return f"{self.settings.OPENAI_REALTIME_URL}?model={self.settings.OPENAI_REALTIME_MODEL}"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.settings.OPENAI_API_KEY}",
            "OpenAI-Beta": "realtime=v1",
        }

    async def _send(self, model_ws, message: dict[str, Any]) -> None:
        await model_ws.send(json.dumps(message))

    async def initialize(self, model_ws) -> None:
        await self._send(model_ws, session_update(
            self.instructions,
            self.settings.OPENAI_REALTIME_VOICE,
            self.settings.OPENAI_TEMPERATURE,
        ))
        for message in opening_turn():
            await self._send(model_ws, message)

    async def run(self, twilio_ws: WebSocket) -> None:
        """Relay until either side hangs up."""
        async with connect(self.model_url, additional_headers=self._headers()) as model_ws:
            logger.info("Connected to realtime model %s", self.settings.OPENAI_REALTIME_MODEL)
            await self.initialize(model_ws)

            pumps = [
                asyncio.create_task(self._pump_twilio(twilio_ws, model_ws)),
                asyncio.create_task(self._pump_model(model_ws, twilio_ws)),
            ]
            done, pending = await asyncio.wait(pumps, return_when=asyncio.FIRST_COMPLETED)
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            for task in done:
                if not task.cancelled() and task.exception() is not None:
                    logger.error("Relay stopped with error (call %s): %s", self.session.call_sid, task.exception())

        if self._tool_tasks:
            await asyncio.gather(*self._tool_tasks, return_exceptions=True)
        logger.info("Call %s bridge closed", self.session.call_sid)

    async def _pump_twilio(self, twilio_ws: WebSocket, model_ws) -> None:
        try:
            while True:
                raw = await twilio_ws.receive_text()
                if not await self.handle_twilio_message(raw, model_ws):
                    return
        except WebSocketDisconnect:
            logger.info("Twilio stream disconnected (call %s)", self.session.call_sid)

    async def _pump_model(self, model_ws, twilio_ws: WebSocket) -> None:
        try:
            async for raw in model_ws:
                await self.handle_model_message(raw, model_ws, twilio_ws)
        except ConnectionClosed:
            logger.info("Realtime model connection closed (call %s)", self.session.call_sid)

    async def handle_twilio_message(self, raw: str, model_ws) -> bool:
        """Forward one Twilio stream frame. Returns False when the stream stops."""
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring non-JSON frame from Twilio")
            return True

        event = data.get("event")
        if event == "start":
            start = data.get("start") or {}
            params = start.get("customParameters") or {}
            self.session.stream_sid = start.get("streamSid") or data.get("streamSid")
            self.session.call_sid = params.get("callSid") or start.get("callSid")
            logger.info("Stream %s started for call %s", self.session.stream_sid, self.session.call_sid)
        elif event == "media":
            payload = (data.get("media") or {}).get("payload")
            if payload:
                await self._send(model_ws, {"type": "input_audio_buffer.append", "audio": payload})
        elif event == "stop":
            logger.info("Stream %s stopped", self.session.stream_sid)
            return False
        return True

    async def handle_model_message(self, raw, model_ws, twilio_ws: WebSocket) -> None:
        data = json.loads(raw)
        event_type = data.get("type")
        if event_type in LOGGED_MODEL_EVENTS:
            logger.debug("Realtime event %s: %s", event_type, data)
        if event_type == "error":
            logger.error("Realtime model error (call %s): %s", self.session.call_sid, data.get("error"))

        if event_type == "response.audio.delta" and data.get("delta"):
            await twilio_ws.send_text(json.dumps({
                "event": "media",
                "streamSid": self.session.stream_sid,
                "media": {"payload": data["delta"]},
            }))
        elif event_type == "input_audio_buffer.speech_started":
            # caller barged in, drop audio Twilio has buffered
            await twilio_ws.send_text(json.dumps({"event": "clear", "streamSid": self.session.stream_sid}))
        elif event_type == "response.function_call_arguments.done":
            task = asyncio.create_task(self.run_tool(
                data.get("call_id"), data.get("name"), data.get("arguments"), model_ws,
            ))
            self._tool_tasks.add(task)
            task.add_done_callback(self._tool_tasks.discard)

    async def run_tool(self, call_id: str, name: str, arguments, model_ws) -> str:
        output = await self.tools.dispatch(name, arguments)
        try:
            await self._send(model_ws, function_output(call_id, output))
            await self._send(model_ws, {"type": "response.create"})
        except ConnectionClosed:
            logger.warning("Model connection closed before %s result was delivered", name)
        return output
