"""Order status transitions.

``pending → confirmed → processing → shipped → delivered`` with the side
branches ``cancelled`` and ``refunded``. The generic setter follows
ALLOWED_TRANSITIONS unless an administrator forces the change.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from shared.core import get_logger

from .errors import InvalidRequest, InvalidState
from .pricing import to_money

logger = get_logger(__name__)


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: {OrderStatus.REFUNDED},
    OrderStatus.CANCELLED: set(),
    OrderStatus.REFUNDED: set(),
}

CANCELLABLE = {OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.PROCESSING}

CANCEL_PREFIX = "Cancelled: "
DEFAULT_REFUND_METHOD = "original_payment"


def append_note(existing: Optional[str], note: str) -> str:
    if not existing:
        return note
    return f"{existing}\n{note}"


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return current == target or target in ALLOWED_TRANSITIONS[current]


def set_status(order, new_status, notes: Optional[str] = None, force: bool = False):
    """Move ``order`` to ``new_status`` and apply the transition's stamps.

    Raises InvalidState when the move is not in ALLOWED_TRANSITIONS and
    ``force`` is false. Setting the current status again is allowed and
    re-stamps the matching timestamp.
    """
    current = OrderStatus(order.status)
    target = OrderStatus(new_status)

    if not can_transition(current, target):
        if not force:
            raise InvalidState(
                f"Cannot change order status from '{current.value}' to '{target.value}'"
            )
        logger.warning(
            f"Forced status override on order {order.order_number}",
            extra={'extra_fields': {'from': current.value, 'to': target.value}}
        )

    now = datetime.utcnow()
    order.status = target.value
    order.updated_at = now
    if target == OrderStatus.SHIPPED:
        order.shipped_at = now
    elif target == OrderStatus.DELIVERED:
        order.delivered_at = now

    if notes:
        order.internal_notes = append_note(order.internal_notes, notes)

    logger.info(
        f"Order {order.order_number} moved to {target.value}",
        extra={'extra_fields': {'from': current.value, 'to': target.value}}
    )
    return order


def cancel(order, reason: Optional[str] = None):
    if OrderStatus(order.status) not in CANCELLABLE:
        raise InvalidState(f"Order in status '{order.status}' cannot be cancelled")

    note = f"{CANCEL_PREFIX}{reason}" if reason else None
    return set_status(order, OrderStatus.CANCELLED, notes=note)


def refund(order, reason: str, amount=None, method: Optional[str] = None):
    if OrderStatus(order.status) != OrderStatus.DELIVERED:
        raise InvalidState(f"Only delivered orders can be refunded (status is '{order.status}')")
    if not reason or not reason.strip():
        raise InvalidRequest("Refund reason is required")

    total = to_money(order.total_amount)
    amount = total if amount is None else to_money(amount)
    if amount <= 0 or amount > total:
        raise InvalidRequest(f"Refund amount must be greater than 0 and at most {total}")

    note = (
        f"Refunded {order.currency} {amount} via "
        f"{method or DEFAULT_REFUND_METHOD}: {reason.strip()}"
    )
    return set_status(order, OrderStatus.REFUNDED, notes=note)
