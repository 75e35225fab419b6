"""
Realtime bridge event handling, without network connections.
"""
import asyncio
import json

import pytest

from phone_orders.core.config import Settings
from phone_orders.services.call_control import CallSession
from phone_orders.services.realtime_bridge import RealtimeBridge


class FakeModel:
    def __init__(self):
        self.sent = []

    async def send(self, text):
        self.sent.append(json.loads(text))


class FakeTwilioSocket:
    def __init__(self):
        self.sent = []

    async def send_text(self, text):
        self.sent.append(json.loads(text))


class StubTools:
    def __init__(self):
        self.calls = []

    async def dispatch(self, name, arguments):
        self.calls.append((name, arguments))
        return "Order 4 submitted successfully. Total: $9.95"


@pytest.fixture
def bridge():
    settings = Settings(OPENAI_API_KEY="sk-test", OPENAI_REALTIME_VOICE="shimmer")
    return RealtimeBridge(CallSession(), StubTools(), "You take orders.", settings)


def test_model_url(bridge):
    assert bridge.model_url == "wss://api.openai.com/v1/realtime?model=gpt-4o-realtime-preview"


@pytest.mark.asyncio
async def test_initialize_configures_session_then_greets(bridge):
    model = FakeModel()
    await bridge.initialize(model)

    update, greeting, respond = model.sent
    session = update["session"]
    assert update["type"] == "session.update"
    assert session["input_audio_format"] == session["output_audio_format"] == "g711_ulaw"
    assert session["voice"] == "shimmer"
    assert session["instructions"] == "You take orders."
    assert [t["name"] for t in session["tools"]] == ["submit_order", "hang_up_call"]
    assert greeting["item"]["role"] == "user"
    assert respond == {"type": "response.create"}


@pytest.mark.asyncio
async def test_start_event_captures_call_and_stream(bridge):
    keep_going = await bridge.handle_twilio_message(json.dumps({
        "event": "start",
        "start": {"streamSid": "MZ9", "callSid": "CA-start", "customParameters": {"callSid": "CA-param"}},
    }), FakeModel())

    assert keep_going
    assert bridge.session.stream_sid == "MZ9"
    assert bridge.session.call_sid == "CA-param"


@pytest.mark.asyncio
async def test_media_is_forwarded_to_model(bridge):
    model = FakeModel()
    await bridge.handle_twilio_message(json.dumps({"event": "media", "media": {"payload": "AAAA"}}), model)
    assert model.sent == [{"type": "input_audio_buffer.append", "audio": "AAAA"}]


@pytest.mark.asyncio
async def test_stop_ends_relay(bridge):
    assert not await bridge.handle_twilio_message(json.dumps({"event": "stop"}), FakeModel())


@pytest.mark.asyncio
async def test_audio_delta_goes_back_to_caller(bridge):
    bridge.session.stream_sid = "MZ9"
    twilio = FakeTwilioSocket()
    await bridge.handle_model_message(
        json.dumps({"type": "response.audio.delta", "delta": "//79"}), FakeModel(), twilio,
    )
    assert twilio.sent == [{"event": "media", "streamSid": "MZ9", "media": {"payload": "//79"}}]


@pytest.mark.asyncio
async def test_barge_in_clears_playback(bridge):
    bridge.session.stream_sid = "MZ9"
    twilio = FakeTwilioSocket()
    await bridge.handle_model_message(
        json.dumps({"type": "input_audio_buffer.speech_started"}), FakeModel(), twilio,
    )
    assert twilio.sent == [{"event": "clear", "streamSid": "MZ9"}]


@pytest.mark.asyncio
async def test_function_call_runs_tool_and_returns_output(bridge):
    model = FakeModel()
    await bridge.handle_model_message(json.dumps({
        "type": "response.function_call_arguments.done",
        "call_id": "call_1",
        "name": "submit_order",
        "arguments": "{\"phoneNumber\": \"607-555-1234\"}",
    }), model, FakeTwilioSocket())

    await asyncio.gather(*bridge._tool_tasks)

    assert bridge.tools.calls == [("submit_order", "{\"phoneNumber\": \"607-555-1234\"}")]
    output, respond = model.sent
    assert output["item"] == {
        "type": "function_call_output",
        "call_id": "call_1",
        "output": "Order 4 submitted successfully. Total: $9.95",
    }
    assert respond == {"type": "response.create"}
