"""
Phone Orders — Kitchen display REST routes
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from phone_orders.core.config import get_settings
from phone_orders.db import order_ops
from phone_orders.db.database import get_db
from phone_orders.models.order import OrderStatus
from phone_orders.schemas.order import StatusUpdateRequest, StatusUpdateResponse
from phone_orders.services.numbering import as_utc, utc_now
from phone_orders.services.status_policy import is_transition_allowed, parse_status
from phone_orders.services.submission import build_order_payload

settings = get_settings()
logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.get("")
async def list_orders(db: AsyncSession = Depends(get_db)):
    """All orders, most recent first, in the same shape as new_order pushes."""
    rows = await order_ops.list_orders_with_items(db)
    return [build_order_payload(order, items) for order, items in rows]


@router.put("/{order_number}/status")
async def update_status(
    order_number: str,
    payload: StatusUpdateRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    new_status = parse_status(payload.status)
    if new_status is None:
        allowed = ", ".join(s.value for s in OrderStatus)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid status '{payload.status}'. Expected one of: {allowed}",
        )

    order = await order_ops.find_latest_by_number(db, order_number)
    if order is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")

    current = OrderStatus(order.status)
    if not is_transition_allowed(current, new_status, settings.STATUS_TRANSITION_POLICY):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot move order {order_number} from {current.value} to {new_status.value}",
        )

    await order_ops.update_order_status(db, order, new_status, utc_now())

    hub = request.app.state.hub
    try:
        hub.publish_status_update(
            order.order_number, new_status.value, as_utc(order.updated_at).isoformat(),
        )
    except Exception as exc:
        logger.warning("Status push for order %s failed: %s", order_number, exc)

    return StatusUpdateResponse(order_number=order.order_number, status=new_status.value).to_wire()
