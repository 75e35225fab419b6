"""
Tool dispatch for the dialogue agent.
"""
import json

import pytest

from phone_orders.services.call_control import CallSession
from phone_orders.services.tools import HANG_UP_CALL, SUBMIT_ORDER, TOOL_DEFINITIONS, OrderingTools


class StubPipeline:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.calls = []

    async def submit_order(self, arguments, call_sid=None):
        if self.error:
            raise self.error
        self.calls.append((arguments, call_sid))
        return "Order 1 submitted successfully. Total: $5.00"


class StubControl:
    def __init__(self):
        self.hung_up = 0

    async def hang_up(self):
        self.hung_up += 1
        return "Call ended successfully"


@pytest.fixture
def session():
    return CallSession(call_sid="CA7", stream_sid="MZ1")


def test_tool_definitions_declare_both_actions():
    names = [t["name"] for t in TOOL_DEFINITIONS]
    assert names == [SUBMIT_ORDER, HANG_UP_CALL]
    submit = TOOL_DEFINITIONS[0]["parameters"]
    assert submit["required"] == ["phoneNumber", "items", "totalPrice"]
    assert submit["properties"]["items"]["items"]["required"] == ["name", "quantity", "price"]


@pytest.mark.asyncio
async def test_submit_order_receives_call_sid(session):
    pipeline = StubPipeline()
    tools = OrderingTools(session, pipeline, StubControl())

    out = await tools.dispatch(SUBMIT_ORDER, json.dumps({"phoneNumber": "607-555-1234"}))

    assert out.startswith("Order 1 submitted")
    assert pipeline.calls == [({"phoneNumber": "607-555-1234"}, "CA7")]


@pytest.mark.asyncio
async def test_hang_up_dispatch(session):
    control = StubControl()
    tools = OrderingTools(session, StubPipeline(), control)

    assert await tools.dispatch(HANG_UP_CALL, "") == "Call ended successfully"
    assert control.hung_up == 1


@pytest.mark.asyncio
async def test_unknown_tool(session):
    tools = OrderingTools(session, StubPipeline(), StubControl())
    assert await tools.dispatch("refund_order", {}) == "Unknown tool: refund_order"


@pytest.mark.asyncio
@pytest.mark.parametrize("arguments", ["{not json", "[1, 2]"])
async def test_bad_arguments_answer_with_a_string(session, arguments):
    pipeline = StubPipeline()
    tools = OrderingTools(session, pipeline, StubControl())

    out = await tools.dispatch(SUBMIT_ORDER, arguments)

    assert isinstance(out, str)
    assert pipeline.calls == []


@pytest.mark.asyncio
async def test_unexpected_error_is_reported_not_raised(session):
    tools = OrderingTools(session, StubPipeline(error=RuntimeError("boom")), StubControl())
    assert await tools.dispatch(SUBMIT_ORDER, {}) == "Error executing submit_order: boom"
