"""
Phone Orders — Tools exposed to the dialogue agent

The agent sees two functions, submit_order and hang_up_call. How it decides
to call them is its business; this module only declares their schemas and
dispatches calls, always answering with a string.
"""
import json
import logging
from typing import Any

from phone_orders.services.call_control import CallSession, CallTerminationController
from phone_orders.services.submission import OrderSubmissionPipeline

logger = logging.getLogger(__name__)

SUBMIT_ORDER = "submit_order"
HANG_UP_CALL = "hang_up_call"

TOOL_DEFINITIONS: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": SUBMIT_ORDER,
        "description": (
            "Submit the customer order after confirming all details with the customer. "
            "Use this after you have confirmed the complete order, total price, and "
            "collected their phone number. Call it only once per order."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "phoneNumber": {"type": "string", "description": "Customer phone number for the order"},
                "items": {
                    "type": "array",
                    "description": "Items in the order",
                    "items": {
                        "type": "object",
                        "properties": {
                            "name": {"type": "string", "description": "Menu item name exactly as on the menu"},
                            "quantity": {"type": "integer", "description": "How many of this item"},
                            "size": {
                                "type": "string",
                                "description": 'Size if applicable: "Pt" (pint), "Qt" (quart), or "Combination"',
                            },
                            "price": {"type": "number", "description": "Unit price for this line item"},
                            "modifications": {
                                "type": "string",
                                "description": "Substitutions or special instructions for this item",
                            },
                        },
                        "required": ["name", "quantity", "price"],
                    },
                },
                "notes": {"type": "string", "description": "Any special instructions for the whole order"},
                "totalPrice": {"type": "number", "description": "Total price of the order including tax"},
            },
            "required": ["phoneNumber", "items", "totalPrice"],
        },
    },
    {
        "type": "function",
        "name": HANG_UP_CALL,
        "description": (
            "End the phone call. Only call this after the order was submitted, the customer "
            "was told the pickup time (10-15 minutes) and you have said goodbye out loud."
        ),
        "parameters": {"type": "object", "properties": {}},
    },
]


class OrderingTools:
    """Tool capability bound to one phone call."""

    def __init__(
        self,
        session: CallSession,
        pipeline: OrderSubmissionPipeline,
        call_control: CallTerminationController,
    ):
        self.session = session
        self.pipeline = pipeline
        self.call_control = call_control

    async def submit_order(self, arguments: dict[str, Any]) -> str:
        return await self.pipeline.submit_order(arguments, call_sid=self.session.call_sid)

    async def hang_up_call(self) -> str:
        return await self.call_control.hang_up()

    async def dispatch(self, name: str, arguments: str | dict | None) -> str:
        """Run a tool call from the model. Never raises."""
        if isinstance(arguments, str):
            try:
                arguments = json.loads(arguments) if arguments.strip() else {}
            except ValueError:
                logger.warning("Tool %s called with unparseable arguments: %r", name, arguments)
                return f"Could not read the arguments for {name}; please try again."
        arguments = arguments or {}
        if not isinstance(arguments, dict):
            return f"Arguments for {name} must be an object."

        logger.info("Executing tool %s (call %s)", name, self.session.call_sid)
        try:
            if name == SUBMIT_ORDER:
                return await self.submit_order(arguments)
            if name == HANG_UP_CALL:
                return await self.hang_up_call()
        except Exception as exc:
            logger.exception("Tool %s failed (call %s)", name, self.session.call_sid)
            return f"Error executing {name}: {exc}"
        return f"Unknown tool: {name}"
