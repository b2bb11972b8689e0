"""
Service layer tests for the order status state machine.
"""

import pytest
from decimal import Decimal
from unittest.mock import patch
from uuid import uuid4

from apps.orders.models import (
    AuditAction,
    AuditLog,
    ItemStatus,
    Order,
    OrderStatus,
    RefundVoid,
    RefundVoidType,
)
from apps.orders.services import (
    ConcurrentStatusUpdateError,
    InsufficientRoleError,
    InvalidRefundAmountError,
    InvalidStatusTransitionError,
    OrderAlreadyClosedError,
    OrderNotFoundError,
    StoreAccessDeniedError,
    can_transition,
    transition_order_status,
)
from apps.orders.services.status import compare_and_set_status
from apps.realtime.bus import ORDER_UPDATED


class TestCanTransition:
    """Tests for the transition table."""

    @pytest.mark.parametrize('current,target', [
        (OrderStatus.NEW, OrderStatus.IN_PROGRESS),
        (OrderStatus.IN_PROGRESS, OrderStatus.READY),
        (OrderStatus.READY, OrderStatus.COMPLETED),
        (OrderStatus.NEW, OrderStatus.VOIDED),
        (OrderStatus.COMPLETED, OrderStatus.REFUNDED),
    ])
    def test_allowed(self, current, target):
        assert can_transition(current, target)

    @pytest.mark.parametrize('current,target', [
        (OrderStatus.COMPLETED, OrderStatus.IN_PROGRESS),
        (OrderStatus.READY, OrderStatus.NEW),
        (OrderStatus.NEW, OrderStatus.COMPLETED),
        (OrderStatus.VOIDED, OrderStatus.REFUNDED),
        (OrderStatus.REFUNDED, OrderStatus.NEW),
    ])
    def test_rejected(self, current, target):
        assert not can_transition(current, target)


# =============================================================================
# Fulfillment transitions
# =============================================================================

@pytest.mark.django_db
class TestFulfillmentTransitions:
    """Kitchen progress: NEW -> IN_PROGRESS -> READY -> COMPLETED."""

    def test_barista_moves_order_forward(self, barista, order, bus):
        updated = transition_order_status(
            order_id=order.id, target_status=OrderStatus.IN_PROGRESS, actor=barista, bus=bus
        )
        assert updated.status == OrderStatus.IN_PROGRESS

    def test_ready_sets_ready_at_once(self, barista, make_order, bus):
        order = make_order(status=OrderStatus.IN_PROGRESS)

        updated = transition_order_status(
            order_id=order.id, target_status=OrderStatus.READY, actor=barista, bus=bus
        )
        first_ready_at = updated.ready_at
        assert first_ready_at is not None

        # Re-sending READY with an item status does not move ready_at
        again = transition_order_status(
            order_id=order.id,
            target_status=OrderStatus.READY,
            item_status=ItemStatus.READY,
            actor=barista,
            bus=bus,
        )
        assert again.ready_at == first_ready_at

    def test_completed_sets_completed_at(self, barista, make_order, bus):
        order = make_order(status=OrderStatus.READY)

        updated = transition_order_status(
            order_id=order.id, target_status=OrderStatus.COMPLETED, actor=barista, bus=bus
        )
        assert updated.completed_at is not None

    def test_item_status_applies_to_all_items(self, barista, order, bus):
        updated = transition_order_status(
            order_id=order.id,
            target_status=OrderStatus.IN_PROGRESS,
            item_status=ItemStatus.IN_PROGRESS,
            actor=barista,
            bus=bus,
        )
        assert {item.item_status for item in updated.items.all()} == {ItemStatus.IN_PROGRESS}

    def test_same_status_without_item_status_rejected(self, barista, order, bus):
        with pytest.raises(InvalidStatusTransitionError):
            transition_order_status(
                order_id=order.id, target_status=OrderStatus.NEW, actor=barista, bus=bus
            )

    def test_backwards_move_rejected(self, barista, make_order, bus):
        """COMPLETED -> IN_PROGRESS is refused; statuses only move forward."""
        order = make_order(status=OrderStatus.COMPLETED)

        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            transition_order_status(
                order_id=order.id, target_status=OrderStatus.IN_PROGRESS, actor=barista, bus=bus
            )

        assert exc_info.value.detail == {'from': 'COMPLETED', 'to': 'IN_PROGRESS'}
        order.refresh_from_db()
        assert order.status == OrderStatus.COMPLETED

    def test_skipping_a_step_rejected(self, barista, order, bus):
        with pytest.raises(InvalidStatusTransitionError):
            transition_order_status(
                order_id=order.id, target_status=OrderStatus.COMPLETED, actor=barista, bus=bus
            )

    def test_unknown_status_rejected(self, barista, order, bus):
        with pytest.raises(InvalidStatusTransitionError):
            transition_order_status(
                order_id=order.id, target_status='SERVED', actor=barista, bus=bus
            )

    def test_status_change_is_audited(self, barista, order, bus):
        transition_order_status(
            order_id=order.id, target_status=OrderStatus.IN_PROGRESS, actor=barista, bus=bus
        )

        entry = AuditLog.objects.get(order=order)
        assert entry.action == AuditAction.ORDER_STATUS_UPDATED
        assert entry.metadata['from'] == 'NEW'
        assert entry.metadata['to'] == 'IN_PROGRESS'

    def test_unknown_order(self, barista, bus):
        with pytest.raises(OrderNotFoundError):
            transition_order_status(
                order_id=uuid4(), target_status=OrderStatus.IN_PROGRESS, actor=barista, bus=bus
            )

    def test_order_of_other_store(self, outsider, order, bus):
        with pytest.raises(StoreAccessDeniedError):
            transition_order_status(
                order_id=order.id, target_status=OrderStatus.IN_PROGRESS, actor=outsider, bus=bus
            )


# =============================================================================
# Void and refund
# =============================================================================

@pytest.mark.django_db
class TestVoidAndRefund:
    """VOIDED and REFUNDED need MANAGER or ADMIN and are terminal."""

    @pytest.mark.parametrize('actor_fixture', ['cashier', 'barista'])
    def test_staff_cannot_void(self, request, actor_fixture, order, bus):
        actor = request.getfixturevalue(actor_fixture)

        with pytest.raises(InsufficientRoleError) as exc_info:
            transition_order_status(
                order_id=order.id, target_status=OrderStatus.VOIDED, actor=actor, bus=bus
            )

        assert exc_info.value.message == 'Only MANAGER/ADMIN can void or refund orders.'
        order.refresh_from_db()
        assert order.status == OrderStatus.NEW
        assert not RefundVoid.objects.exists()

    def test_manager_voids_with_default_reason_and_amount(self, manager, order, bus):
        transition_order_status(
            order_id=order.id, target_status=OrderStatus.VOIDED, actor=manager, bus=bus
        )

        record = RefundVoid.objects.get(order=order)
        assert record.type == RefundVoidType.VOID
        assert record.amount == Decimal('50000')
        assert record.reason == 'VOIDED by MANAGER'
        assert record.created_by == manager
        assert AuditLog.objects.get(order=order).action == AuditAction.ORDER_VOIDED

    def test_partial_refund_of_completed_order(self, admin_user, make_order, bus):
        order = make_order(status=OrderStatus.COMPLETED)

        transition_order_status(
            order_id=order.id,
            target_status=OrderStatus.REFUNDED,
            actor=admin_user,
            reason='Cold coffee',
            amount=Decimal('20000'),
            bus=bus,
        )

        record = RefundVoid.objects.get(order=order)
        assert record.type == RefundVoidType.REFUND
        assert record.amount == Decimal('20000')
        assert record.reason == 'Cold coffee'

    def test_refund_above_total_rejected(self, manager, order, bus):
        with pytest.raises(InvalidRefundAmountError):
            transition_order_status(
                order_id=order.id,
                target_status=OrderStatus.REFUNDED,
                actor=manager,
                amount=Decimal('50000.01'),
                bus=bus,
            )

        order.refresh_from_db()
        assert order.status == OrderStatus.NEW

    @pytest.mark.parametrize('closed_status', [OrderStatus.VOIDED, OrderStatus.REFUNDED])
    def test_closed_order_accepts_nothing(self, manager, make_order, closed_status, bus):
        order = make_order(status=closed_status)

        with pytest.raises(OrderAlreadyClosedError):
            transition_order_status(
                order_id=order.id, target_status=OrderStatus.REFUNDED, actor=manager, bus=bus
            )


# =============================================================================
# Concurrency and notification
# =============================================================================

@pytest.mark.django_db
class TestStatusConcurrency:
    """Compare-and-swap and post-commit notification."""

    def test_compare_and_set_with_stale_status(self, order):
        Order.objects.filter(pk=order.pk).update(status=OrderStatus.IN_PROGRESS)

        with pytest.raises(ConcurrentStatusUpdateError) as exc_info:
            compare_and_set_status(
                order_id=order.pk,
                expected_status=OrderStatus.NEW,
                status=OrderStatus.VOIDED,
            )

        assert exc_info.value.kind.value == 'conflict'
        order.refresh_from_db()
        assert order.status == OrderStatus.IN_PROGRESS

    def test_lost_race_leaves_order_untouched(self, barista, order, bus):
        with patch(
            'apps.orders.services.status.compare_and_set_status',
            side_effect=ConcurrentStatusUpdateError(),
        ):
            with pytest.raises(ConcurrentStatusUpdateError):
                transition_order_status(
                    order_id=order.id,
                    target_status=OrderStatus.IN_PROGRESS,
                    item_status=ItemStatus.IN_PROGRESS,
                    actor=barista,
                    bus=bus,
                )

        assert order.items.get().item_status == ItemStatus.QUEUED
        assert not AuditLog.objects.filter(order=order).exists()

    def test_update_published_after_commit(self, barista, make_order, bus, django_capture_on_commit_callbacks):
        order = make_order(status=OrderStatus.IN_PROGRESS)

        with django_capture_on_commit_callbacks(execute=True):
            transition_order_status(
                order_id=order.id, target_status=OrderStatus.READY, actor=barista, bus=bus
            )

        assert len(bus.events) == 1
        event = bus.events[0]
        assert event.type == ORDER_UPDATED
        assert event.data['status'] == OrderStatus.READY
        assert event.data['ready_at'] is not None
        assert event.data['completed_at'] is None
