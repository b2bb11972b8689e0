"""
Checkout settlement service.

Turns a finalized cart plus payment splits into a persisted Order, or
rejects it. Validation runs first and fails fast with a distinct error
per rule; all writes then happen in one transaction:

    1. conditional stock decrement per product (sorted by id)
    2. order with its frozen money snapshot
    3. items with modifiers, payment splits
    4. audit entries

``order.created`` is published only after the transaction commits.
"""

from collections import OrderedDict
from functools import partial
from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.conf import settings
from django.db import IntegrityError, OperationalError, transaction
from django.db.models import F

from apps.accounts.models import CHECKOUT_ROLES, DISCOUNT_ROLES, User
from apps.orders.models import (
    AuditAction,
    AuditLog,
    Order,
    OrderItem,
    OrderItemModifier,
    Payment,
    PaymentMethod,
)
from apps.realtime.bus import EventBus, publish_safely
from apps.shifts.models import Shift, ShiftStatus
from apps.stores.models import Customer, Product, Register, Store

from .events import order_created_event
from .exceptions import (
    DiscountNotAllowedError,
    InsufficientRoleError,
    InsufficientStockError,
    InvalidCustomerError,
    InvalidPaymentError,
    InvalidRegisterError,
    InvalidShiftError,
    OrderNumberCollisionError,
    PaymentMismatchError,
    PricingMismatchError,
    PricingInputError,
    StaleReferenceError,
    StoreAccessDeniedError,
    StoreNotFoundError,
    TransientServiceError,
)
from .money import ZERO, amounts_reconcile, quantize_money, to_decimal
from .order_number import build_order_number
from .pricing import CartTotals, build_cart_lines, calculate_line_total, price_cart
from .queries import order_queryset

logger = structlog.get_logger(__name__)


def settle_checkout(
    *,
    actor: User,
    store_id: UUID,
    register_id: UUID,
    items: List[Dict[str, Any]],
    payments: List[Dict[str, Any]],
    subtotal,
    total_amount,
    item_discount=ZERO,
    order_discount=ZERO,
    tax_amount=ZERO,
    service_charge_amount=ZERO,
    tip_amount=ZERO,
    rounding_amount=ZERO,
    shift_id: Optional[UUID] = None,
    customer_id: Optional[UUID] = None,
    notes: str = '',
    bus: Optional[EventBus] = None
) -> Order:
    """
    Validate and persist a checkout.

    Args:
        actor: Staff member ringing up the order
        store_id, register_id: Where the sale happens
        items: Dicts with product_id, product_name, unit_price, quantity,
            discount_amount, note, modifiers (and optionally line_total)
        payments: Dicts with method, amount, reference
        subtotal ... total_amount: Totals as displayed on the register
        shift_id: Open shift of the register, if any
        customer_id: Known customer, if any
        notes: Free-text order note
        bus: Event bus to notify; defaults to the process bus

    Returns:
        The created Order (items, modifiers and payments prefetched)

    Raises:
        PricingInputError, InvalidPaymentError: Malformed line or payment split
        InsufficientRoleError, StoreAccessDeniedError, DiscountNotAllowedError:
            Actor may not do this
        InvalidRegisterError, InvalidShiftError, InvalidCustomerError,
        StaleReferenceError: A reference is wrong or vanished
        PaymentMismatchError, PricingMismatchError: Amounts do not reconcile
        InsufficientStockError: A product cannot cover its quantity
        OrderNumberCollisionError: No unique number after retries (retryable)
        TransientServiceError: Database temporarily unavailable (retryable)
    """
    money = {
        'subtotal': quantize_money(subtotal),
        'item_discount': quantize_money(item_discount),
        'order_discount': quantize_money(order_discount),
        'tax_amount': quantize_money(tax_amount),
        'service_charge_amount': quantize_money(service_charge_amount),
        'tip_amount': quantize_money(tip_amount),
        'rounding_amount': quantize_money(rounding_amount),
        'total_amount': quantize_money(total_amount),
    }

    _validate_checkout(
        actor=actor,
        store_id=store_id,
        register_id=register_id,
        shift_id=shift_id,
        customer_id=customer_id,
        items=items,
        payments=payments,
        money=money,
    )

    stock_usage = _stock_usage(items)
    max_retries = max(1, settings.POS_ORDER_NUMBER_MAX_RETRIES)

    try:
        for attempt in range(max_retries):
            order_number = build_order_number()

            try:
                # Each attempt is a separate transaction
                with transaction.atomic():
                    _reserve_stock(store_id=store_id, stock_usage=stock_usage)
                    if shift_id:
                        _lock_open_shift(shift_id)

                    order = Order.objects.create(
                        order_number=order_number,
                        store_id=store_id,
                        register_id=register_id,
                        shift_id=shift_id,
                        customer_id=customer_id,
                        cashier=actor,
                        notes=notes or '',
                        **money
                    )
                    _create_items(order, items)
                    _create_payments(order, payments, shift_id=shift_id)
                    _write_audit(order, actor, money)

                    order = order_queryset().get(pk=order.pk)
                    transaction.on_commit(
                        partial(publish_safely, order_created_event(order), bus=bus)
                    )
                break

            except IntegrityError as exc:
                if not Order.objects.filter(order_number=order_number).exists():
                    logger.warning(
                        "Checkout rejected: stale reference",
                        store_id=str(store_id),
                        error=str(exc),
                    )
                    raise StaleReferenceError() from exc

                logger.info(
                    "Order number collision, retrying",
                    order_number=order_number,
                    attempt=attempt + 1,
                )
                if attempt == max_retries - 1:
                    raise OrderNumberCollisionError(
                        detail={'attempts': max_retries}
                    ) from exc

    except OperationalError as exc:
        logger.warning("Checkout failed: database unavailable", error=str(exc))
        raise TransientServiceError() from exc

    logger.info(
        "Order created",
        order_id=str(order.id),
        order_number=order.order_number,
        store_id=str(store_id),
        cashier_id=str(actor.id),
        total_amount=str(order.total_amount),
    )
    return order


def _validate_checkout(*, actor, store_id, register_id, shift_id, customer_id,
                       items, payments, money):
    """Business-rule checks, in order. Nothing is written here."""
    _check_cart_shape(items, payments)

    if not actor.has_role(CHECKOUT_ROLES):
        raise InsufficientRoleError(
            'Only cashiers, managers and admins can check out orders.'
        )
    if not actor.has_store_access(store_id):
        raise StoreAccessDeniedError()

    if not Register.objects.filter(
        id=register_id, store_id=store_id, is_active=True
    ).exists():
        raise InvalidRegisterError(detail={'register_id': str(register_id)})

    if shift_id and not Shift.objects.filter(
        id=shift_id,
        store_id=store_id,
        register_id=register_id,
        status=ShiftStatus.OPEN,
    ).exists():
        raise InvalidShiftError(detail={'shift_id': str(shift_id)})

    if customer_id and not Customer.objects.filter(
        id=customer_id, store_id=store_id
    ).exists():
        raise InvalidCustomerError(detail={'customer_id': str(customer_id)})

    has_discount = (
        money['item_discount'] > ZERO
        or money['order_discount'] > ZERO
        or any(to_decimal(item.get('discount_amount')) > ZERO for item in items)
    )
    if has_discount and not actor.has_role(DISCOUNT_ROLES):
        logger.info(
            "Checkout rejected: discount not allowed",
            user_id=str(actor.id),
            role=actor.role,
        )
        raise DiscountNotAllowedError()

    tolerance = settings.POS_PAYMENT_TOLERANCE
    payments_total = sum((to_decimal(p['amount']) for p in payments), ZERO)
    if not amounts_reconcile(payments_total, money['total_amount'], tolerance):
        raise PaymentMismatchError(detail={
            'payments_total': str(payments_total),
            'total_amount': str(money['total_amount']),
            'tolerance': str(tolerance),
        })

    if settings.POS_SERVER_AUTHORITATIVE_PRICING:
        store = Store.objects.get(pk=store_id)
        expected = price_cart(
            build_cart_lines(items),
            order_discount=money['order_discount'],
            tip_amount=money['tip_amount'],
            rates=store.pricing_rates(),
        )
        if not amounts_reconcile(expected.total_amount, money['total_amount'], tolerance):
            raise PricingMismatchError(detail={
                'expected_total': str(expected.total_amount),
                'declared_total': str(money['total_amount']),
            })


def _check_cart_shape(items, payments):
    """Reject malformed lines and payment splits, whoever the caller is."""
    if not items:
        raise PricingInputError('Order has no items.', detail={'field': 'items'})
    if not payments:
        raise InvalidPaymentError('Order has no payments.', detail={'field': 'payments'})

    for position, item in enumerate(items):
        quantity = item.get('quantity')
        if not isinstance(quantity, int) or quantity < 1:
            raise PricingInputError(
                'Quantity must be at least 1.',
                detail={'field': 'quantity', 'item': position, 'value': quantity}
            )
        if to_decimal(item.get('unit_price')) < ZERO:
            raise PricingInputError(
                'unit_price cannot be negative.',
                detail={'field': 'unit_price', 'item': position}
            )

    for position, payment in enumerate(payments):
        if payment.get('method') not in PaymentMethod.values:
            raise InvalidPaymentError(
                f"Unknown payment method {payment.get('method')!r}.",
                detail={'field': 'method', 'payment': position}
            )
        amount = to_decimal(payment.get('amount'))
        if amount <= ZERO:
            raise InvalidPaymentError(
                'Payment amount must be greater than zero.',
                detail={'field': 'amount', 'payment': position, 'value': str(amount)}
            )


def _lock_open_shift(shift_id):
    """
    Lock the shift row for the rest of the transaction.

    close_shift takes the same lock before summing payments, so a shift
    cannot close between this check and the payment insert.
    """
    locked = Shift.objects.select_for_update().filter(
        id=shift_id, status=ShiftStatus.OPEN
    ).first()
    if locked is None:
        raise InvalidShiftError(detail={'shift_id': str(shift_id)})


def _stock_usage(items):
    """Total quantity per product, keyed by id and sorted for a stable lock order."""
    usage = {}
    for item in items:
        product_id = item.get('product_id')
        if not product_id:
            continue
        key = str(product_id)
        if key in usage:
            usage[key]['quantity'] += item['quantity']
        else:
            usage[key] = {'quantity': item['quantity'], 'product_name': item['product_name']}
    return OrderedDict(sorted(usage.items()))


def _reserve_stock(*, store_id, stock_usage):
    """
    Decrement stock with one conditional UPDATE per product.

    The row only matches while it still has enough stock, so two
    concurrent checkouts can never both take the last unit.
    """
    for product_id, usage in stock_usage.items():
        updated = Product.objects.filter(
            id=product_id,
            store_id=store_id,
            is_available=True,
            stock__gte=usage['quantity'],
        ).update(stock=F('stock') - usage['quantity'])

        if updated == 0:
            logger.info(
                "Checkout rejected: insufficient stock",
                product_id=product_id,
                product_name=usage['product_name'],
                requested=usage['quantity'],
            )
            raise InsufficientStockError(
                usage['product_name'],
                product_id=product_id,
                requested=usage['quantity'],
            )


def _create_items(order, items):
    modifiers = []
    for position, item in enumerate(items):
        line_total = item.get('line_total')
        if line_total is None:
            line_total = calculate_line_total(build_cart_lines([item])[0])

        order_item = OrderItem.objects.create(
            order=order,
            product_id=item.get('product_id'),
            product_name=item['product_name'],
            unit_price=quantize_money(item['unit_price']),
            quantity=item['quantity'],
            discount_amount=quantize_money(item.get('discount_amount')),
            line_total=quantize_money(line_total),
            note=item.get('note') or '',
            position=position,
        )
        for modifier_position, modifier in enumerate(item.get('modifiers') or []):
            modifiers.append(OrderItemModifier(
                order_item=order_item,
                group_name=modifier['group_name'],
                option_name=modifier['option_name'],
                price_delta=quantize_money(modifier.get('price_delta')),
                position=modifier_position,
            ))

    if modifiers:
        OrderItemModifier.objects.bulk_create(modifiers)


def _create_payments(order, payments, *, shift_id):
    Payment.objects.bulk_create([
        Payment(
            order=order,
            shift_id=shift_id,
            method=payment['method'],
            amount=quantize_money(payment['amount']),
            reference=payment.get('reference') or '',
        )
        for payment in payments
    ])


def _write_audit(order, actor, money):
    AuditLog.objects.create(
        store_id=order.store_id,
        user=actor,
        order=order,
        action=AuditAction.ORDER_CREATED,
        entity='Order',
        entity_id=str(order.id),
        message=f"Order {order.order_number} created",
        metadata={'total_amount': str(money['total_amount'])},
    )

    if money['item_discount'] > ZERO or money['order_discount'] > ZERO:
        AuditLog.objects.create(
            store_id=order.store_id,
            user=actor,
            order=order,
            action=AuditAction.DISCOUNT_APPLIED,
            entity='Order',
            entity_id=str(order.id),
            message='Discount applied during checkout',
            metadata={
                'item_discount': str(money['item_discount']),
                'order_discount': str(money['order_discount']),
            },
        )
        logger.info(
            "Discount applied",
            order_id=str(order.id),
            item_discount=str(money['item_discount']),
            order_discount=str(money['order_discount']),
        )


def quote_cart(
    *,
    actor: User,
    store_id: UUID,
    items: List[Dict[str, Any]],
    order_discount=ZERO,
    tip_amount=ZERO
) -> CartTotals:
    """
    Price a cart with the store's live rates without persisting anything.

    Gives the register the exact figures settlement will check against.

    Raises:
        StoreAccessDeniedError: Actor cannot reach the store
        StoreNotFoundError: Store does not exist
        PricingInputError: Negative amounts
    """
    if not actor.has_store_access(store_id):
        raise StoreAccessDeniedError()

    store = Store.objects.filter(pk=store_id).first()
    if store is None:
        raise StoreNotFoundError(detail={'store_id': str(store_id)})

    return price_cart(
        build_cart_lines(items),
        order_discount=order_discount,
        tip_amount=tip_amount,
        rates=store.pricing_rates(),
    )
