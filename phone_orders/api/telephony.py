"""
Phone Orders — Twilio voice webhook and media stream
"""
import logging
from functools import partial

from fastapi import APIRouter, Form, Request, WebSocket, WebSocketDisconnect, status
from fastapi.responses import Response
from twilio.twiml.voice_response import Connect, VoiceResponse

from phone_orders.core.config import get_settings
from phone_orders.services.call_control import CallSession, CallTerminationController, make_twilio_client
from phone_orders.services.realtime_bridge import RealtimeBridge
from phone_orders.services.tools import OrderingTools

settings = get_settings()
logger = logging.getLogger(__name__)
router = APIRouter(tags=["telephony"])


def media_stream_url(request: Request) -> str:
    if settings.MEDIA_STREAM_URL:
        return settings.MEDIA_STREAM_URL
    return f"wss://{request.url.netloc}/media-stream"


def connect_twiml(stream_url: str, call_sid: str | None) -> str:
    response = VoiceResponse()
    connect = Connect()
    stream = connect.stream(url=stream_url)
    stream.parameter(name="callSid", value=call_sid or "")
    response.append(connect)
    return str(response)


@router.post("/incoming-call")
async def incoming_call(request: Request, CallSid: str | None = Form(None)):
    """Answer an inbound call by connecting its audio to /media-stream."""
    logger.info("Incoming call %s", CallSid)
    return Response(content=connect_twiml(media_stream_url(request), CallSid), media_type="application/xml")


@router.websocket("/media-stream")
async def media_stream(websocket: WebSocket):
    await websocket.accept()
    if not settings.OPENAI_API_KEY:
        logger.error("OPENAI_API_KEY is not set, dropping media stream")
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
        return

    state = websocket.app.state
    session = CallSession()
    call_control = CallTerminationController(
        session,
        partial(make_twilio_client, settings),
        grace_seconds=settings.HANGUP_GRACE_SECONDS,
    )
    tools = OrderingTools(session, state.pipeline, call_control)
    bridge = RealtimeBridge(session, tools, state.instructions, settings)
    try:
        await bridge.run(websocket)
    except WebSocketDisconnect:
        logger.info("Media stream closed (call %s)", session.call_sid)
    except Exception:
        logger.exception("Media stream failed (call %s)", session.call_sid)
