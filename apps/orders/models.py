from django.db import models
from django.core.validators import MinValueValidator
from decimal import Decimal
import uuid


class OrderStatus(models.TextChoices):
    NEW = 'NEW', 'New'
    IN_PROGRESS = 'IN_PROGRESS', 'In progress'
    READY = 'READY', 'Ready'
    COMPLETED = 'COMPLETED', 'Completed'
    VOIDED = 'VOIDED', 'Voided'
    REFUNDED = 'REFUNDED', 'Refunded'


class ItemStatus(models.TextChoices):
    QUEUED = 'QUEUED', 'Queued'
    IN_PROGRESS = 'IN_PROGRESS', 'In progress'
    READY = 'READY', 'Ready'
    SERVED = 'SERVED', 'Served'


class PaymentMethod(models.TextChoices):
    CASH = 'CASH', 'Cash'
    CARD = 'CARD', 'Card'
    QRIS = 'QRIS', 'QRIS'
    EWALLET = 'EWALLET', 'E-wallet'


class RefundVoidType(models.TextChoices):
    VOID = 'VOID', 'Void'
    REFUND = 'REFUND', 'Refund'


class AuditAction(models.TextChoices):
    ORDER_CREATED = 'ORDER_CREATED', 'Order created'
    DISCOUNT_APPLIED = 'DISCOUNT_APPLIED', 'Discount applied'
    ORDER_STATUS_UPDATED = 'ORDER_STATUS_UPDATED', 'Order status updated'
    ORDER_VOIDED = 'ORDER_VOIDED', 'Order voided'
    ORDER_REFUNDED = 'ORDER_REFUNDED', 'Order refunded'
    SHIFT_OPENED = 'SHIFT_OPENED', 'Shift opened'
    SHIFT_CLOSED = 'SHIFT_CLOSED', 'Shift closed'
    CASH_MOVEMENT = 'CASH_MOVEMENT', 'Cash movement'


def _money_field(**kwargs):
    kwargs.setdefault('default', Decimal('0.00'))
    return models.DecimalField(max_digits=14, decimal_places=2, **kwargs)


class Order(models.Model):
    """
    A settled sale.

    The money fields are a snapshot taken at checkout and are never
    recomputed from live store rates. After creation only ``status``,
    ``ready_at``/``completed_at`` and item statuses change, and only
    through ``apps.orders.services.status``.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_number = models.CharField(max_length=32, unique=True, editable=False)

    store = models.ForeignKey(
        'stores.Store',
        on_delete=models.PROTECT,
        related_name='orders'
    )
    register = models.ForeignKey(
        'stores.Register',
        on_delete=models.PROTECT,
        related_name='orders'
    )
    shift = models.ForeignKey(
        'shifts.Shift',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='orders'
    )
    cashier = models.ForeignKey(
        'accounts.User',
        on_delete=models.PROTECT,
        related_name='orders_rung'
    )
    customer = models.ForeignKey(
        'stores.Customer',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='orders'
    )

    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.NEW
    )
    notes = models.CharField(max_length=250, blank=True)

    # Money snapshot
    subtotal = _money_field()
    item_discount = _money_field()
    order_discount = _money_field()
    tax_amount = _money_field()
    service_charge_amount = _money_field()
    tip_amount = _money_field()
    rounding_amount = _money_field()
    total_amount = _money_field()

    # Timestamps
    placed_at = models.DateTimeField(auto_now_add=True)
    ready_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'orders'
        indexes = [
            models.Index(fields=['store', 'status', 'placed_at'], name='orders_store_status_idx'),
            models.Index(fields=['shift'], name='orders_shift_idx'),
        ]
        ordering = ['placed_at']

    def __str__(self):
        return f"{self.order_number} ({self.status})"

    @property
    def is_closed(self):
        return self.status in (OrderStatus.VOIDED, OrderStatus.REFUNDED)

    @property
    def payments_total(self):
        return sum((p.amount for p in self.payments.all()), Decimal('0.00'))


class OrderItem(models.Model):
    """A line of an order with its product snapshot."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name='items'
    )
    # Kept nullable so that deleting a product never rewrites history
    product = models.ForeignKey(
        'stores.Product',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='order_items'
    )
    product_name = models.CharField(max_length=80)
    unit_price = _money_field(validators=[MinValueValidator(Decimal('0'))])
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    discount_amount = _money_field()
    line_total = _money_field()
    note = models.CharField(max_length=250, blank=True)
    item_status = models.CharField(
        max_length=20,
        choices=ItemStatus.choices,
        default=ItemStatus.QUEUED
    )
    position = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = 'order_items'
        ordering = ['position']

    def __str__(self):
        return f"{self.quantity} x {self.product_name}"


class OrderItemModifier(models.Model):
    """Modifier option chosen for an order item (e.g. 'Milk: Oat')."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_item = models.ForeignKey(
        OrderItem,
        on_delete=models.CASCADE,
        related_name='modifiers'
    )
    group_name = models.CharField(max_length=80)
    option_name = models.CharField(max_length=80)
    price_delta = _money_field()
    position = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = 'order_item_modifiers'
        ordering = ['position']

    def __str__(self):
        return f"{self.group_name}: {self.option_name}"


class Payment(models.Model):
    """One payment split of an order."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name='payments'
    )
    shift = models.ForeignKey(
        'shifts.Shift',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='payments'
    )
    method = models.CharField(max_length=10, choices=PaymentMethod.choices)
    amount = _money_field(validators=[MinValueValidator(Decimal('0.01'))])
    reference = models.CharField(max_length=120, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'payments'
        indexes = [
            models.Index(fields=['shift', 'method'], name='payments_shift_method_idx'),
        ]
        ordering = ['created_at']

    def __str__(self):
        return f"{self.method} {self.amount}"


class RefundVoid(models.Model):
    """Append-only record written exactly when an order is voided or refunded."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(
        Order,
        on_delete=models.PROTECT,
        related_name='refund_voids'
    )
    type = models.CharField(max_length=10, choices=RefundVoidType.choices)
    amount = _money_field()
    reason = models.CharField(max_length=200)
    created_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.PROTECT,
        related_name='refund_voids'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'refund_voids'
        ordering = ['created_at']

    def __str__(self):
        return f"{self.type} {self.amount} on {self.order_id}"


class AuditLog(models.Model):
    """Append-only trail of money and status changes."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    store = models.ForeignKey(
        'stores.Store',
        on_delete=models.PROTECT,
        related_name='audit_logs'
    )
    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='audit_logs'
    )
    order = models.ForeignKey(
        Order,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='audit_logs'
    )
    action = models.CharField(max_length=30, choices=AuditAction.choices)
    entity = models.CharField(max_length=30)
    entity_id = models.CharField(max_length=64)
    message = models.CharField(max_length=255)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        indexes = [
            models.Index(fields=['store', 'created_at'], name='audit_store_created_idx'),
            models.Index(fields=['order', 'action'], name='audit_order_action_idx'),
        ]
        ordering = ['created_at']

    def __str__(self):
        return f"{self.action}: {self.message}"
