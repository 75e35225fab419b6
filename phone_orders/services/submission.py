"""
Phone Orders — Order submission pipeline

Runs behind the dialogue agent's submit_order tool:

  1. Validate the tool payload
  2. Allocate the day-scoped order number
  3. Write the order row, then one row per line item, in one transaction
  4. Broadcast to kitchen displays (after commit, failures ignored)
  5. Return a sentence the agent can read back

The caller is a live phone call, so every path returns a string. A storage
failure degrades to an unpersisted acknowledgement that still states the
total; the failure is logged for someone to reconcile by hand.
"""
import asyncio
import contextlib
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from phone_orders.db import order_ops
from phone_orders.models.order import OrderStatus
from phone_orders.schemas.order import OrderItemPayload, OrderPayload, SubmitOrderRequest
from phone_orders.services.broadcast import BroadcastHub
from phone_orders.services.numbering import as_utc, next_order_number, utc_now
from phone_orders.services.pricing import PricedLine, PricingResolver, to_money

logger = logging.getLogger(__name__)


def success_message(order_number: str, total: Decimal) -> str:
    return f"Order {order_number} submitted successfully. Total: ${to_money(total):.2f}"


def fallback_message(total: Decimal) -> str:
    return f"Order recorded. Total: ${to_money(total):.2f}"


def describe_validation_error(exc: ValidationError) -> str:
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ())) or "payload"
        problems.append(f"{location}: {err.get('msg')}")
    return "; ".join(problems)


def build_order_payload(order, items) -> dict[str, Any]:
    """Wire payload for a persisted order and its line items."""
    return OrderPayload(
        order_number=order.order_number,
        phone_number=order.phone_number,
        items=[
            OrderItemPayload(
                name=i.item_name,
                quantity=i.quantity,
                size=i.size,
                modifications=i.modifications or "",
            )
            for i in items
        ],
        notes=order.notes or "",
        time=as_utc(order.created_at).isoformat(),
        updated_at=as_utc(order.updated_at).isoformat(),
        total=float(order.total),
        status=OrderStatus(order.status).value,
    ).to_wire()


class OrderSubmissionPipeline:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        pricing: PricingResolver,
        hub: BroadcastHub,
        *,
        day_timezone: str = "UTC",
        serialize_numbering: bool = False,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.session_factory = session_factory
        self.pricing = pricing
        self.hub = hub
        self.day_timezone = day_timezone
        self.clock = clock
        self._numbering_lock = asyncio.Lock() if serialize_numbering else None

    async def submit_order(self, arguments: dict[str, Any], call_sid: str | None = None) -> str:
        try:
            request = SubmitOrderRequest.model_validate(arguments)
        except ValidationError as exc:
            reason = describe_validation_error(exc)
            logger.warning("Rejected order payload (call %s): %s", call_sid, reason)
            return f"Order not submitted: {reason}"

        now = self.clock()
        order_number = None
        try:
            lock = self._numbering_lock or contextlib.nullcontext()
            async with lock:
                async with self.session_factory() as db:
                    order_number = await next_order_number(db, now, self.day_timezone)
                    payload = await self._persist(db, request, order_number, now, call_sid)
        except Exception:
            logger.exception(
                "Failed to save order (attempted number %s, call %s, phone %s, total %s)",
                order_number, call_sid, request.phone_number, request.total_price,
            )
            return fallback_message(request.total_price)

        try:
            self.hub.publish_new_order(payload)
        except Exception as exc:
            logger.warning("Broadcast of order %s failed: %s", order_number, exc)

        return success_message(order_number, request.total_price)

    async def _persist(
        self,
        db: AsyncSession,
        request: SubmitOrderRequest,
        order_number: str,
        now: datetime,
        call_sid: str | None,
    ) -> dict[str, Any]:
        order = await order_ops.insert_order(
            db,
            order_number=order_number,
            phone_number=request.phone_number,
            total=request.total_price,
            notes=request.notes,
            created_at=now,
            call_sid=call_sid,
        )

        lines = []
        pricing = []
        for position, item in enumerate(request.items):
            priced = self.pricing.price_line(item.name, item.size, item.quantity, item.price)
            pricing.append(priced)
            lines.append(await order_ops.insert_line_item(
                db,
                order,
                position=position,
                item_name=item.name,
                quantity=item.quantity,
                size=item.size,
                modifications=item.modifications,
                priced=priced,
            ))

        await db.commit()

        logger.info(
            "Order %s saved: phone %s, %d item(s), lines %s, quoted total %s, call %s",
            order_number, request.phone_number, len(lines),
            order_ops.line_total_sum(lines), to_money(request.total_price), call_sid,
        )
        for line, priced in zip(lines, pricing):
            logger.info("  %s", self.describe_line(line, priced))

        return build_order_payload(order, lines)

    def describe_line(self, line, priced: PricedLine) -> str:
        """Log text for one saved line with its menu match and pricing flags."""
        text = f"{line.item_name} x{line.quantity} @ {line.unit_price}"
        if line.modifications:
            text += f" [{line.modifications}]"
        entry = self.pricing.catalog.get(priced.menu_item_id)
        if entry is not None:
            text += f" -> {entry.item_code or entry.id} {entry.name}"
            if priced.catalog_price is not None:
                text += f" (menu {priced.catalog_price})"
        if priced.flags:
            text += " flags: " + ", ".join(sorted(priced.flags))
        return text
