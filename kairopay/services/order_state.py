"""Forward-only order status transitions."""

from kairopay.constants import OrderStatus
from kairopay.errors import APIError, ErrorCode

ALLOWED_TRANSITIONS = {
    OrderStatus.CREATED: {OrderStatus.PENDING, OrderStatus.COMPLETED, OrderStatus.FAILED},
    # pending -> pending: another transaction submitted for the same order
    OrderStatus.PENDING: {
        OrderStatus.PENDING,
        OrderStatus.COMPLETED,
        OrderStatus.VERIFIED,
        OrderStatus.FAILED,
    },
    OrderStatus.COMPLETED: {OrderStatus.VERIFIED, OrderStatus.FAILED},
    OrderStatus.VERIFIED: set(),
    OrderStatus.FAILED: set(),
}

TERMINAL_STATUSES = {status for status, targets in ALLOWED_TRANSITIONS.items() if not targets}


def can_transition(current: str, target: str) -> bool:
    try:
        return OrderStatus(target) in ALLOWED_TRANSITIONS[OrderStatus(current)]
    except ValueError:
        return False


def ensure_transition(order, target: OrderStatus) -> None:
    if not can_transition(order.status, target):
        raise APIError(
            ErrorCode.INVALID_ORDER_STATUS,
            f"Order cannot move from {order.status} to {target.value}",
        )


def transition(order, target: OrderStatus) -> None:
    """Move ``order`` to ``target`` or raise INVALID_ORDER_STATUS."""
    ensure_transition(order, target)
    order.status = target.value
