"""
Phone Orders — Order status transitions

"any" lets kitchen staff set any status (mis-taps get corrected by tapping
again). "forward" only allows moving later in the workflow, plus cancelling
an order that is not finished yet.
"""
from phone_orders.models.order import OrderStatus

POLICY_ANY = "any"
POLICY_FORWARD = "forward"

WORKFLOW = [
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.COMPLETED,
]
TERMINAL = {OrderStatus.COMPLETED, OrderStatus.CANCELLED}


def parse_status(value: str) -> OrderStatus | None:
    try:
        return OrderStatus(value.strip().lower())
    except (AttributeError, ValueError):
        return None


def is_transition_allowed(current: OrderStatus, new: OrderStatus, policy: str = POLICY_ANY) -> bool:
    if policy != POLICY_FORWARD:
        return True
    if current in TERMINAL:
        return False
    if new is OrderStatus.CANCELLED:
        return True
    return WORKFLOW.index(new) > WORKFLOW.index(current)
