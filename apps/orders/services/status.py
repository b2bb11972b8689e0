"""
Order status state machine.

    NEW -> IN_PROGRESS -> READY -> COMPLETED
    NEW | IN_PROGRESS | READY | COMPLETED -> VOIDED | REFUNDED

VOIDED and REFUNDED are terminal. Statuses only move forward. Re-sending
the current status is accepted only together with an item status, which
is how the kitchen display reports progress on the items.

Every transition is a compare-and-swap on the status the caller saw, so
two concurrent requests can never both apply.
"""

from functools import partial
from typing import Optional
from uuid import UUID

import structlog
from django.db import transaction
from django.utils import timezone

from apps.accounts.models import FULFILLMENT_ROLES, VOID_REFUND_ROLES, User
from apps.orders.models import (
    AuditAction,
    AuditLog,
    ItemStatus,
    Order,
    OrderItem,
    OrderStatus,
    RefundVoid,
    RefundVoidType,
)
from apps.realtime.bus import EventBus, publish_safely

from .events import order_updated_event
from .exceptions import (
    ConcurrentStatusUpdateError,
    InsufficientRoleError,
    InvalidRefundAmountError,
    InvalidStatusTransitionError,
    OrderAlreadyClosedError,
    OrderNotFoundError,
    StoreAccessDeniedError,
)
from .money import ZERO, quantize_money
from .queries import order_queryset

logger = structlog.get_logger(__name__)

TERMINAL_STATUSES = frozenset({OrderStatus.VOIDED, OrderStatus.REFUNDED})

ALLOWED_TRANSITIONS = {
    OrderStatus.NEW: frozenset({OrderStatus.IN_PROGRESS, *TERMINAL_STATUSES}),
    OrderStatus.IN_PROGRESS: frozenset({OrderStatus.READY, *TERMINAL_STATUSES}),
    OrderStatus.READY: frozenset({OrderStatus.COMPLETED, *TERMINAL_STATUSES}),
    OrderStatus.COMPLETED: TERMINAL_STATUSES,
    OrderStatus.VOIDED: frozenset(),
    OrderStatus.REFUNDED: frozenset(),
}

AUDIT_ACTIONS = {
    OrderStatus.VOIDED: AuditAction.ORDER_VOIDED,
    OrderStatus.REFUNDED: AuditAction.ORDER_REFUNDED,
}


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def required_roles(target_status: str):
    """Roles allowed to move an order into ``target_status``."""
    if target_status in TERMINAL_STATUSES:
        return VOID_REFUND_ROLES
    return FULFILLMENT_ROLES


def compare_and_set_status(*, order_id: UUID, expected_status: str, **fields) -> None:
    """
    Write ``fields`` only if the order still has ``expected_status``.

    Raises:
        ConcurrentStatusUpdateError: Someone else changed the status first
    """
    updated = Order.objects.filter(
        pk=order_id,
        status=expected_status,
    ).update(**fields)

    if updated == 0:
        raise ConcurrentStatusUpdateError(detail={
            'order_id': str(order_id),
            'expected_status': expected_status,
        })


def transition_order_status(
    *,
    order_id: UUID,
    target_status: str,
    actor: User,
    item_status: Optional[str] = None,
    reason: Optional[str] = None,
    amount=None,
    bus: Optional[EventBus] = None
) -> Order:
    """
    Move an order to ``target_status``.

    Args:
        order_id: Order to update
        target_status: One of OrderStatus
        actor: Staff member performing the change
        item_status: Optional ItemStatus applied to every item
        reason: Void/refund reason (defaults to "<STATUS> by <ROLE>")
        amount: Void/refund amount (defaults to the order total)
        bus: Event bus to notify; defaults to the process bus

    Returns:
        Updated Order

    Raises:
        InsufficientRoleError: Role may not set this status
        OrderNotFoundError: Order does not exist
        StoreAccessDeniedError: Order belongs to another store
        OrderAlreadyClosedError: Order is voided or refunded
        InvalidStatusTransitionError: Target not reachable from current status
        InvalidRefundAmountError: Amount negative or above the order total
        ConcurrentStatusUpdateError: Status changed during the update
    """
    if target_status not in OrderStatus.values:
        raise InvalidStatusTransitionError(
            f"Unknown status: {target_status}",
            detail={'target_status': target_status}
        )
    if item_status is not None and item_status not in ItemStatus.values:
        raise InvalidStatusTransitionError(
            f"Unknown item status: {item_status}",
            detail={'item_status': item_status}
        )

    if not actor.has_role(required_roles(target_status)):
        if target_status in TERMINAL_STATUSES:
            raise InsufficientRoleError('Only MANAGER/ADMIN can void or refund orders.')
        raise InsufficientRoleError()

    with transaction.atomic():
        order = Order.objects.select_for_update().filter(pk=order_id).first()
        if order is None:
            raise OrderNotFoundError()

        if not actor.has_store_access(order.store_id):
            raise StoreAccessDeniedError()

        current_status = order.status
        if current_status in TERMINAL_STATUSES:
            raise OrderAlreadyClosedError(
                f"Order is already {current_status.lower()}.",
                detail={'status': current_status}
            )

        if target_status == current_status:
            if item_status is None:
                raise InvalidStatusTransitionError(
                    f"Order is already {current_status}.",
                    detail={'from': current_status, 'to': target_status}
                )
        elif not can_transition(current_status, target_status):
            raise InvalidStatusTransitionError(
                f"Cannot move order from {current_status} to {target_status}.",
                detail={'from': current_status, 'to': target_status}
            )

        refund_amount = None
        if target_status in TERMINAL_STATUSES:
            refund_amount = _refund_amount(order, amount)

        now = timezone.now()
        fields = {'status': target_status, 'updated_at': now}
        if target_status == OrderStatus.READY and order.ready_at is None:
            fields['ready_at'] = now
        if target_status == OrderStatus.COMPLETED and order.completed_at is None:
            fields['completed_at'] = now

        compare_and_set_status(
            order_id=order.pk,
            expected_status=current_status,
            **fields
        )

        if item_status is not None:
            OrderItem.objects.filter(order_id=order.pk).update(item_status=item_status)

        if refund_amount is not None:
            reason = reason or f"{target_status} by {actor.role}"
            RefundVoid.objects.create(
                order=order,
                type=(
                    RefundVoidType.VOID
                    if target_status == OrderStatus.VOIDED
                    else RefundVoidType.REFUND
                ),
                amount=refund_amount,
                reason=reason,
                created_by=actor,
            )

        AuditLog.objects.create(
            store_id=order.store_id,
            user=actor,
            order=order,
            action=AUDIT_ACTIONS.get(target_status, AuditAction.ORDER_STATUS_UPDATED),
            entity='Order',
            entity_id=str(order.pk),
            message=reason or f"Order status updated to {target_status}",
            metadata={
                'from': current_status,
                'to': target_status,
                'item_status': item_status,
                'amount': str(refund_amount) if refund_amount is not None else None,
            },
        )

        order = order_queryset().get(pk=order.pk)
        transaction.on_commit(
            partial(publish_safely, order_updated_event(order), bus=bus)
        )

    logger.info(
        "Order status updated",
        order_id=str(order.pk),
        from_status=current_status,
        to_status=target_status,
        item_status=item_status,
        user_id=str(actor.pk),
    )
    return order


def _refund_amount(order, amount):
    if amount is None:
        return order.total_amount

    amount = quantize_money(amount)
    if amount < ZERO or amount > order.total_amount:
        raise InvalidRefundAmountError(detail={
            'amount': str(amount),
            'total_amount': str(order.total_amount),
        })
    return amount
