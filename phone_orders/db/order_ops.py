"""
Phone Orders — Order repository operations

Plain async functions over an AsyncSession. Callers own the transaction:
nothing here commits except update_order_status, which is a single-row write.
"""
import logging
from collections import defaultdict
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from phone_orders.models.order import Order, OrderItem, OrderStatus, OrderType
from phone_orders.services.pricing import PricedLine, to_money

logger = logging.getLogger(__name__)


async def count_orders_between(db: AsyncSession, start: datetime, end: datetime) -> int:
    """Orders whose created_at falls in [start, end)."""
    result = await db.execute(
        select(func.count())
        .select_from(Order)
        .where(Order.created_at >= start, Order.created_at < end)
    )
    return result.scalar_one()


async def insert_order(
    db: AsyncSession,
    *,
    order_number: str,
    phone_number: str,
    total,
    notes: str | None,
    created_at: datetime,
    call_sid: str | None = None,
) -> Order:
    """Stage a pending pickup order and flush it so line items can reference it."""
    order = Order(
        order_number=order_number,
        phone_number=phone_number,
        status=OrderStatus.PENDING,
        order_type=OrderType.PICKUP,
        total=to_money(total),
        notes=notes or "",
        call_sid=call_sid,
        created_at=created_at,
        updated_at=created_at,
    )
    db.add(order)
    await db.flush()
    return order


async def insert_line_item(
    db: AsyncSession,
    order: Order,
    *,
    position: int,
    item_name: str,
    quantity: int,
    size: str | None,
    modifications: str | None,
    priced: PricedLine,
) -> OrderItem:
    # line_total is always the product, whatever the caller computed
    line = OrderItem(
        order_id=order.id,
        position=position,
        menu_item_id=priced.menu_item_id,
        item_name=item_name,
        quantity=quantity,
        size=size,
        unit_price=priced.unit_price,
        line_total=priced.unit_price * quantity,
        modifications=modifications or "",
        created_at=order.created_at,
    )
    db.add(line)
    return line


async def list_orders_with_items(db: AsyncSession) -> list[tuple[Order, list[OrderItem]]]:
    """All orders, newest first, each with its items in submission order."""
    orders = (
        await db.execute(select(Order).order_by(Order.created_at.desc(), Order.id))
    ).scalars().all()
    if not orders:
        return []

    items_result = await db.execute(
        select(OrderItem)
        .where(OrderItem.order_id.in_([o.id for o in orders]))
        .order_by(OrderItem.order_id, OrderItem.position, OrderItem.id)
    )
    by_order: dict[str, list[OrderItem]] = defaultdict(list)
    for item in items_result.scalars().all():
        by_order[item.order_id].append(item)

    return [(order, by_order.get(order.id, [])) for order in orders]


async def find_latest_by_number(db: AsyncSession, order_number: str) -> Order | None:
    """Order numbers repeat every day; the newest order carrying the number wins."""
    result = await db.execute(
        select(Order)
        .where(Order.order_number == order_number)
        .order_by(Order.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def update_order_status(
    db: AsyncSession,
    order: Order,
    status: OrderStatus,
    updated_at: datetime,
) -> Order:
    order.status = status
    order.updated_at = updated_at
    await db.commit()
    logger.info("Order %s status -> %s", order.order_number, status.value)
    return order


def line_total_sum(items: list[OrderItem]) -> Decimal:
    return sum((i.line_total for i in items), Decimal("0.00"))
