"""
Order read side for the kitchen display and receipts.
"""

from typing import Iterable, List, Optional
from uuid import UUID

from django.conf import settings

from apps.accounts.models import FULFILLMENT_ROLES, User
from apps.orders.models import Order

from .exceptions import (
    InsufficientRoleError,
    OrderNotFoundError,
    StoreAccessDeniedError,
    StoreRequiredError,
)


def order_queryset():
    """Orders with everything a receipt or ticket needs, in two queries."""
    return Order.objects.select_related(
        'customer', 'cashier', 'register'
    ).prefetch_related(
        'items__modifiers', 'payments'
    )


def list_orders(
    *,
    actor: User,
    store_id: Optional[UUID] = None,
    statuses: Optional[Iterable[str]] = None,
    limit: Optional[int] = None
) -> List[Order]:
    """
    Orders of a store, oldest first, capped at ``POS_ORDER_LIST_LIMIT``.

    Args:
        actor: Requesting staff member
        store_id: Store to list; defaults to the actor's assigned store
        statuses: Only these statuses (all when empty)
        limit: Override the configured cap

    Raises:
        InsufficientRoleError: Actor has no POS role
        StoreRequiredError: No store given and none assigned
        StoreAccessDeniedError: Actor cannot reach the store
    """
    if not actor.has_role(FULFILLMENT_ROLES):
        raise InsufficientRoleError()

    store_id = store_id or actor.default_store_id
    if not store_id:
        raise StoreRequiredError()
    if not actor.has_store_access(store_id):
        raise StoreAccessDeniedError()

    queryset = order_queryset().filter(store_id=store_id)
    statuses = [s for s in (statuses or []) if s]
    if statuses:
        queryset = queryset.filter(status__in=statuses)

    limit = limit or settings.POS_ORDER_LIST_LIMIT
    return list(queryset.order_by('placed_at')[:limit])


def get_order(*, actor: User, order_id: UUID) -> Order:
    """
    Single order with items and payments.

    Raises:
        OrderNotFoundError: Order does not exist
        StoreAccessDeniedError: Order belongs to another store
    """
    if not actor.has_role(FULFILLMENT_ROLES):
        raise InsufficientRoleError()

    try:
        order = order_queryset().get(pk=order_id)
    except Order.DoesNotExist:
        raise OrderNotFoundError()

    if not actor.has_store_access(order.store_id):
        raise StoreAccessDeniedError()

    return order
