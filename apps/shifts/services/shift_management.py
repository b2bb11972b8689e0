"""
Shift management service.

Opens and closes register shifts and keeps the cash drawer reconcilable:

    expected cash = opening cash + cash payments + cash in - cash out

Expected and actual cash are frozen when the shift closes.
"""

from decimal import Decimal
from typing import List, Optional
from uuid import UUID

import structlog
from django.db import IntegrityError, transaction
from django.db.models import F, Sum
from django.utils import timezone

from apps.accounts.models import CHECKOUT_ROLES, MANAGEMENT_ROLES, User
from apps.orders.models import AuditAction, AuditLog, PaymentMethod
from apps.orders.services.money import ZERO, quantize_money
from apps.shifts.models import CashDirection, Shift, ShiftStatus
from apps.stores.models import Register

from .exceptions import (
    InsufficientRoleError,
    InvalidCashMovementError,
    InvalidRegisterError,
    ShiftAlreadyClosedError,
    ShiftAlreadyOpenError,
    ShiftNotFoundError,
    StoreAccessDeniedError,
    StoreRequiredError,
)

logger = structlog.get_logger(__name__)


def _require_register_role(actor: User):
    if not actor.has_role(CHECKOUT_ROLES):
        raise InsufficientRoleError(
            'Only cashiers, managers and admins can run register shifts.'
        )


def _audit(shift, actor, action, message, metadata=None):
    AuditLog.objects.create(
        store_id=shift.store_id,
        user=actor,
        action=action,
        entity='Shift',
        entity_id=str(shift.pk),
        message=message,
        metadata=metadata or {},
    )


def open_shift(
    *,
    actor: User,
    store_id: UUID,
    register_id: UUID,
    opening_cash,
    notes: str = ''
) -> Shift:
    """
    Open a shift on a register.

    Raises:
        InsufficientRoleError: Baristas cannot run the register
        StoreAccessDeniedError: Actor cannot reach the store
        InvalidRegisterError: Register missing, inactive or in another store
        ShiftAlreadyOpenError: Register already has an open shift
    """
    _require_register_role(actor)
    if not actor.has_store_access(store_id):
        raise StoreAccessDeniedError()

    if not Register.objects.filter(
        id=register_id, store_id=store_id, is_active=True
    ).exists():
        raise InvalidRegisterError(detail={'register_id': str(register_id)})

    if Shift.objects.filter(register_id=register_id, status=ShiftStatus.OPEN).exists():
        raise ShiftAlreadyOpenError(detail={'register_id': str(register_id)})

    opening_cash = quantize_money(opening_cash)

    try:
        with transaction.atomic():
            shift = Shift.objects.create(
                store_id=store_id,
                register_id=register_id,
                opened_by=actor,
                opening_cash=opening_cash,
                notes=notes or '',
            )
            _audit(
                shift, actor, AuditAction.SHIFT_OPENED,
                f"Shift opened with {opening_cash}",
                {'opening_cash': str(opening_cash)},
            )
    except IntegrityError as exc:
        # Another request opened a shift on this register in between
        raise ShiftAlreadyOpenError(detail={'register_id': str(register_id)}) from exc

    logger.info(
        "Shift opened",
        shift_id=str(shift.pk),
        register_id=str(register_id),
        user_id=str(actor.pk),
        opening_cash=str(opening_cash),
    )
    return shift


def calculate_expected_cash(shift: Shift) -> Decimal:
    """Opening cash plus cash taken and cash in, minus cash out."""
    cash_payments = shift.payments.filter(
        method=PaymentMethod.CASH
    ).aggregate(total=Sum('amount'))['total'] or ZERO

    return quantize_money(
        shift.opening_cash + cash_payments + shift.cash_in - shift.cash_out
    )


def _get_shift(actor, shift_id, *, lock=False):
    queryset = Shift.objects.all()
    if lock:
        queryset = queryset.select_for_update()
    shift = queryset.filter(pk=shift_id).first()
    if shift is None:
        raise ShiftNotFoundError()
    if not actor.has_store_access(shift.store_id):
        raise StoreAccessDeniedError()
    return shift


def record_cash_movement(
    *,
    actor: User,
    shift_id: UUID,
    direction: str,
    amount,
    reason: str = ''
) -> Shift:
    """
    Record cash put into or taken out of the drawer (float top-up, payout).

    Raises:
        InvalidCashMovementError: Unknown direction or non-positive amount
        ShiftNotFoundError: Shift does not exist
        ShiftAlreadyClosedError: Shift is closed
    """
    _require_register_role(actor)

    amount = quantize_money(amount)
    if direction not in CashDirection.values:
        raise InvalidCashMovementError(
            f"Unknown direction: {direction}",
            detail={'direction': direction}
        )
    if amount <= ZERO:
        raise InvalidCashMovementError(detail={'amount': str(amount)})

    field = 'cash_in' if direction == CashDirection.IN else 'cash_out'

    with transaction.atomic():
        shift = _get_shift(actor, shift_id)

        updated = Shift.objects.filter(
            pk=shift.pk,
            status=ShiftStatus.OPEN,
        ).update(**{field: F(field) + amount})

        if updated == 0:
            raise ShiftAlreadyClosedError()

        _audit(
            shift, actor, AuditAction.CASH_MOVEMENT,
            reason or f"Cash {direction.lower()} {amount}",
            {'direction': direction, 'amount': str(amount)},
        )

    logger.info(
        "Cash movement recorded",
        shift_id=str(shift.pk),
        direction=direction,
        amount=str(amount),
        user_id=str(actor.pk),
    )
    shift.refresh_from_db()
    return shift


def close_shift(
    *,
    actor: User,
    shift_id: UUID,
    actual_cash,
    notes: Optional[str] = None
) -> Shift:
    """
    Close a shift, freezing expected and counted cash.

    Raises:
        ShiftNotFoundError: Shift does not exist
        StoreAccessDeniedError: Shift belongs to another store
        ShiftAlreadyClosedError: Shift is already closed
    """
    _require_register_role(actor)
    actual_cash = quantize_money(actual_cash)

    with transaction.atomic():
        shift = _get_shift(actor, shift_id, lock=True)
        if shift.status != ShiftStatus.OPEN:
            raise ShiftAlreadyClosedError()

        shift = _close(shift, actor, actual_cash=actual_cash, notes=notes)

    logger.info(
        "Shift closed",
        shift_id=str(shift.pk),
        expected_cash=str(shift.expected_cash),
        actual_cash=str(shift.actual_cash),
        user_id=str(actor.pk),
    )
    return shift


def _close(shift, actor, *, actual_cash=None, notes=None):
    """Close an open shift; ``actual_cash`` None means counted = expected."""
    expected_cash = calculate_expected_cash(shift)
    if actual_cash is None:
        actual_cash = expected_cash

    fields = {
        'status': ShiftStatus.CLOSED,
        'closed_at': timezone.now(),
        'expected_cash': expected_cash,
        'actual_cash': actual_cash,
    }
    if notes is not None:
        fields['notes'] = notes

    updated = Shift.objects.filter(
        pk=shift.pk,
        status=ShiftStatus.OPEN,
    ).update(**fields)
    if updated == 0:
        raise ShiftAlreadyClosedError()

    _audit(
        shift, actor, AuditAction.SHIFT_CLOSED,
        f"Shift closed, expected {expected_cash}, counted {actual_cash}",
        {
            'expected_cash': str(expected_cash),
            'actual_cash': str(actual_cash),
            'difference': str(actual_cash - expected_cash),
        },
    )
    shift.refresh_from_db()
    return shift


def close_active_shifts(*, actor: User, store_id: Optional[UUID] = None) -> int:
    """
    Close every open shift the actor opened, counting cash as expected.

    Used at logout so no register is left with a dangling shift.

    Returns:
        Number of shifts closed
    """
    _require_register_role(actor)
    store_id = store_id or actor.default_store_id

    queryset = Shift.objects.filter(opened_by=actor, status=ShiftStatus.OPEN)
    if store_id:
        queryset = queryset.filter(store_id=store_id)

    closed = 0
    with transaction.atomic():
        for shift in queryset.select_for_update():
            _close(shift, actor)
            closed += 1

    logger.info("Active shifts closed", user_id=str(actor.pk), count=closed)
    return closed


def get_open_shift(*, actor: User, register_id: UUID) -> Optional[Shift]:
    """Open shift of a register, or None."""
    _require_register_role(actor)

    shift = Shift.objects.filter(
        register_id=register_id,
        status=ShiftStatus.OPEN,
    ).select_related('register', 'opened_by').first()

    if shift is not None and not actor.has_store_access(shift.store_id):
        raise StoreAccessDeniedError()
    return shift


def list_shifts(
    *,
    actor: User,
    store_id: Optional[UUID] = None,
    limit: int = 30
) -> List[Shift]:
    """Most recent shifts of a store (managers and admins)."""
    if not actor.has_role(MANAGEMENT_ROLES):
        raise InsufficientRoleError()

    store_id = store_id or actor.default_store_id
    if not store_id:
        raise StoreRequiredError()
    if not actor.has_store_access(store_id):
        raise StoreAccessDeniedError()

    return list(
        Shift.objects.filter(store_id=store_id)
        .select_related('register', 'opened_by')
        .order_by('-opened_at')[:limit]
    )
