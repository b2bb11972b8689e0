"""
Service layer unit tests for shifts app.

Tests cover:
- Opening (one open shift per register)
- Cash movements
- Expected cash and closing
- Closing at logout
"""

import pytest
from decimal import Decimal
from uuid import uuid4

from apps.orders.models import AuditAction, AuditLog
from apps.shifts.models import CashDirection, Shift, ShiftStatus
from apps.shifts.services import (
    calculate_expected_cash,
    close_active_shifts,
    close_shift,
    get_open_shift,
    list_shifts,
    open_shift,
    record_cash_movement,
)
from apps.shifts.services.exceptions import (
    InsufficientRoleError,
    InvalidCashMovementError,
    InvalidRegisterError,
    ShiftAlreadyClosedError,
    ShiftAlreadyOpenError,
    ShiftNotFoundError,
    StoreAccessDeniedError,
    StoreRequiredError,
)


# =============================================================================
# Opening
# =============================================================================

@pytest.mark.django_db
class TestOpenShift:
    """Tests for open_shift()."""

    def test_open_shift_success(self, cashier, store, register):
        shift = open_shift(
            actor=cashier,
            store_id=store.id,
            register_id=register.id,
            opening_cash=Decimal('150000'),
        )

        assert shift.status == ShiftStatus.OPEN
        assert shift.opened_by == cashier
        assert shift.opening_cash == Decimal('150000.00')
        assert AuditLog.objects.filter(
            entity='Shift', entity_id=str(shift.id), action=AuditAction.SHIFT_OPENED
        ).exists()

    def test_second_open_shift_on_register_rejected(self, manager, store, register, shift):
        with pytest.raises(ShiftAlreadyOpenError):
            open_shift(
                actor=manager,
                store_id=store.id,
                register_id=register.id,
                opening_cash=Decimal('0'),
            )

    def test_reopen_after_close(self, cashier, store, register, shift):
        close_shift(actor=cashier, shift_id=shift.id, actual_cash=Decimal('200000'))

        reopened = open_shift(
            actor=cashier, store_id=store.id, register_id=register.id, opening_cash=Decimal('0')
        )

        assert reopened.id != shift.id
        assert Shift.objects.filter(register=register).count() == 2

    def test_barista_cannot_open(self, barista, store, register):
        with pytest.raises(InsufficientRoleError):
            open_shift(actor=barista, store_id=store.id, register_id=register.id, opening_cash=0)

    def test_register_of_other_store_rejected(self, admin_user, store, other_register):
        with pytest.raises(InvalidRegisterError):
            open_shift(
                actor=admin_user, store_id=store.id, register_id=other_register.id, opening_cash=0
            )

    def test_other_store_denied(self, outsider, store, register):
        with pytest.raises(StoreAccessDeniedError):
            open_shift(actor=outsider, store_id=store.id, register_id=register.id, opening_cash=0)


# =============================================================================
# Cash movements
# =============================================================================

@pytest.mark.django_db
class TestCashMovement:
    """Tests for record_cash_movement()."""

    def test_cash_in_and_out(self, cashier, shift):
        record_cash_movement(
            actor=cashier, shift_id=shift.id, direction=CashDirection.IN, amount=Decimal('50000')
        )
        updated = record_cash_movement(
            actor=cashier,
            shift_id=shift.id,
            direction=CashDirection.OUT,
            amount=Decimal('15000'),
            reason='Bought ice',
        )

        assert updated.cash_in == Decimal('50000')
        assert updated.cash_out == Decimal('15000')
        assert AuditLog.objects.filter(action=AuditAction.CASH_MOVEMENT).count() == 2
        assert AuditLog.objects.filter(message='Bought ice').exists()

    @pytest.mark.parametrize('amount', [Decimal('0'), Decimal('-100')])
    def test_non_positive_amount_rejected(self, cashier, shift, amount):
        with pytest.raises(InvalidCashMovementError):
            record_cash_movement(
                actor=cashier, shift_id=shift.id, direction=CashDirection.IN, amount=amount
            )

    def test_unknown_direction_rejected(self, cashier, shift):
        with pytest.raises(InvalidCashMovementError):
            record_cash_movement(
                actor=cashier, shift_id=shift.id, direction='SIDEWAYS', amount=Decimal('1')
            )

    def test_closed_shift_rejected(self, cashier, shift):
        Shift.objects.filter(pk=shift.pk).update(status=ShiftStatus.CLOSED)

        with pytest.raises(ShiftAlreadyClosedError):
            record_cash_movement(
                actor=cashier, shift_id=shift.id, direction=CashDirection.IN, amount=Decimal('1')
            )

    def test_unknown_shift(self, cashier):
        with pytest.raises(ShiftNotFoundError):
            record_cash_movement(
                actor=cashier, shift_id=uuid4(), direction=CashDirection.IN, amount=Decimal('1')
            )


# =============================================================================
# Closing
# =============================================================================

@pytest.mark.django_db
class TestCloseShift:
    """Tests for calculate_expected_cash() and close_shift()."""

    def test_expected_cash_counts_only_cash(self, shift, cash_and_card_sales):
        Shift.objects.filter(pk=shift.pk).update(cash_in=Decimal('10000'), cash_out=Decimal('5000'))
        shift.refresh_from_db()

        # 200000 + 50000 + 20000 + 10000 - 5000
        assert calculate_expected_cash(shift) == Decimal('275000.00')

    def test_close_freezes_expected_and_actual(self, cashier, shift, cash_and_card_sales):
        closed = close_shift(
            actor=cashier, shift_id=shift.id, actual_cash=Decimal('269000'), notes='Short 1000'
        )

        assert closed.status == ShiftStatus.CLOSED
        assert closed.closed_at is not None
        assert closed.expected_cash == Decimal('270000.00')
        assert closed.actual_cash == Decimal('269000.00')
        assert closed.cash_difference == Decimal('-1000.00')
        assert closed.notes == 'Short 1000'

        entry = AuditLog.objects.get(action=AuditAction.SHIFT_CLOSED)
        assert entry.metadata['difference'] == '-1000.00'

    def test_close_twice_rejected(self, cashier, shift):
        close_shift(actor=cashier, shift_id=shift.id, actual_cash=Decimal('200000'))

        with pytest.raises(ShiftAlreadyClosedError):
            close_shift(actor=cashier, shift_id=shift.id, actual_cash=Decimal('200000'))

    def test_close_shift_of_other_store_denied(self, outsider, shift):
        with pytest.raises(StoreAccessDeniedError):
            close_shift(actor=outsider, shift_id=shift.id, actual_cash=Decimal('0'))

    def test_close_active_shifts_on_logout(self, cashier, shift):
        closed = close_active_shifts(actor=cashier)

        assert closed == 1
        shift.refresh_from_db()
        assert shift.status == ShiftStatus.CLOSED
        assert shift.actual_cash == shift.expected_cash == Decimal('200000.00')

    def test_close_active_shifts_ignores_other_users(self, manager, shift):
        assert close_active_shifts(actor=manager) == 0

        shift.refresh_from_db()
        assert shift.status == ShiftStatus.OPEN


# =============================================================================
# Queries
# =============================================================================

@pytest.mark.django_db
class TestShiftQueries:
    """Tests for get_open_shift() and list_shifts()."""

    def test_get_open_shift(self, cashier, register, shift):
        assert get_open_shift(actor=cashier, register_id=register.id) == shift

    def test_get_open_shift_none(self, cashier, register):
        assert get_open_shift(actor=cashier, register_id=register.id) is None

    def test_get_open_shift_of_other_store_denied(self, outsider, register, shift):
        with pytest.raises(StoreAccessDeniedError):
            get_open_shift(actor=outsider, register_id=register.id)

    def test_manager_lists_store_shifts(self, manager, shift):
        assert list_shifts(actor=manager) == [shift]

    def test_cashier_cannot_list(self, cashier, shift):
        with pytest.raises(InsufficientRoleError):
            list_shifts(actor=cashier)

    def test_admin_must_name_store(self, admin_user, store, shift):
        with pytest.raises(StoreRequiredError):
            list_shifts(actor=admin_user)

        assert list_shifts(actor=admin_user, store_id=store.id) == [shift]
