"""
Phone Orders — Call termination

Ends the phone call through Twilio's REST API once the agent has said
goodbye. The grace delay lets the last audio frames reach the caller.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from twilio.rest import Client as TwilioClient

from phone_orders.core.config import Settings

logger = logging.getLogger(__name__)

CALL_ENDED = "Call ended successfully"
CALL_END_FAILED = "Failed to end call"
NO_CALL_ID = "Could not end call - no call ID"


@dataclass
class CallSession:
    """Per-call state captured from the media stream's start event."""
    call_sid: str | None = None
    stream_sid: str | None = None


def make_twilio_client(settings: Settings) -> TwilioClient:
    if not settings.TWILIO_ACCOUNT_SID or not settings.TWILIO_AUTH_TOKEN:
        raise RuntimeError("TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN must be set to end calls")
    return TwilioClient(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)


class CallTerminationController:
    def __init__(
        self,
        session: CallSession,
        client_factory: Callable[[], TwilioClient],
        grace_seconds: float = 5.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.session = session
        self.client_factory = client_factory
        self.grace_seconds = grace_seconds
        self.sleep = sleep

    def _complete_call(self, call_sid: str) -> None:
        client = self.client_factory()
        client.calls(call_sid).update(status="completed")

    async def hang_up(self) -> str:
        call_sid = self.session.call_sid
        logger.info("Agent requested hang up (call %s)", call_sid)
        if not call_sid:
            logger.error("Cannot hang up: no call SID was captured for this stream")
            return NO_CALL_ID

        await self.sleep(self.grace_seconds)
        try:
            # twilio's client is blocking
            await asyncio.to_thread(self._complete_call, call_sid)
        except Exception as exc:
            logger.error("Failed to hang up call %s: %s", call_sid, exc)
            return CALL_END_FAILED

        logger.info("Call %s ended", call_sid)
        return CALL_ENDED
