"""
Order and payment status transition rules

Fulfillment status and payment status move on two separate graphs. The
only coupling is that an order needs ``paid`` or ``cod`` before it can be
confirmed. ``derive_fulfillment_stage`` folds both into one read-only view.
"""

from typing import Dict, FrozenSet, Optional

from .models import FulfillmentStage, OrderStatus, PaymentStatus


ORDER_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED, OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

PAYMENT_TRANSITIONS: Dict[PaymentStatus, FrozenSet[PaymentStatus]] = {
    PaymentStatus.WAITING_PAYMENT: frozenset({
        PaymentStatus.WAITING_VERIFICATION,
        PaymentStatus.PAID,
        PaymentStatus.FAILED,
        PaymentStatus.COD,
    }),
    # Resubmitting a proof keeps the order in verification
    PaymentStatus.WAITING_VERIFICATION: frozenset({
        PaymentStatus.WAITING_VERIFICATION,
        PaymentStatus.PAID,
        PaymentStatus.FAILED,
    }),
    PaymentStatus.FAILED: frozenset({
        PaymentStatus.WAITING_VERIFICATION,
        PaymentStatus.PAID,
        PaymentStatus.COD,
    }),
    PaymentStatus.PAID: frozenset(),
    PaymentStatus.COD: frozenset(),
}

TERMINAL_ORDER_STATUSES = frozenset(s for s, targets in ORDER_TRANSITIONS.items() if not targets)
SETTLED_PAYMENT_STATUSES = frozenset({PaymentStatus.PAID, PaymentStatus.COD})
DELETABLE_ORDER_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.CANCELLED})


def can_transition_order(current: OrderStatus, new: OrderStatus, allow_same: bool = True) -> bool:
    if current == new:
        return allow_same and current not in TERMINAL_ORDER_STATUSES
    return new in ORDER_TRANSITIONS.get(current, frozenset())


def can_transition_payment(current: PaymentStatus, new: PaymentStatus) -> bool:
    return new in PAYMENT_TRANSITIONS.get(current, frozenset())


def order_transition_error(
    current: OrderStatus,
    new: OrderStatus,
    payment_status: PaymentStatus,
) -> Optional[str]:
    """Reason the move is not allowed, or None when it is"""
    if not can_transition_order(current, new):
        return f"Cannot change order status from {current.value} to {new.value}"
    if (
        new == OrderStatus.CONFIRMED
        and current != OrderStatus.CONFIRMED
        and payment_status not in SETTLED_PAYMENT_STATUSES
    ):
        return f"Order cannot be confirmed while payment is {payment_status.value}"
    return None


def payment_transition_error(current: PaymentStatus, new: PaymentStatus) -> Optional[str]:
    if not can_transition_payment(current, new):
        return f"Cannot change payment status from {current.value} to {new.value}"
    return None


def derive_fulfillment_stage(status: OrderStatus, payment_status: PaymentStatus) -> FulfillmentStage:
    if status == OrderStatus.CANCELLED:
        return FulfillmentStage.CANCELLED
    if status == OrderStatus.COMPLETED:
        return FulfillmentStage.CLOSED
    if status == OrderStatus.DELIVERED:
        return FulfillmentStage.DELIVERED
    if status == OrderStatus.SHIPPED:
        return FulfillmentStage.IN_TRANSIT
    if status == OrderStatus.CONFIRMED:
        return FulfillmentStage.READY_TO_SHIP

    # pending: the payment side decides what happens next
    if payment_status in SETTLED_PAYMENT_STATUSES:
        return FulfillmentStage.READY_TO_CONFIRM
    if payment_status == PaymentStatus.WAITING_VERIFICATION:
        return FulfillmentStage.AWAITING_VERIFICATION
    if payment_status == PaymentStatus.FAILED:
        return FulfillmentStage.PAYMENT_FAILED
    return FulfillmentStage.AWAITING_PAYMENT
