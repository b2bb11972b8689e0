# Generated manually for the orders app

import uuid
from decimal import Decimal
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import migrations, models
import django.db.models.deletion


STATUS_CHOICES = [
    ('NEW', 'New'),
    ('IN_PROGRESS', 'In progress'),
    ('READY', 'Ready'),
    ('COMPLETED', 'Completed'),
    ('VOIDED', 'Voided'),
    ('REFUNDED', 'Refunded'),
]

ITEM_STATUS_CHOICES = [
    ('QUEUED', 'Queued'),
    ('IN_PROGRESS', 'In progress'),
    ('READY', 'Ready'),
    ('SERVED', 'Served'),
]

AUDIT_ACTION_CHOICES = [
    ('ORDER_CREATED', 'Order created'),
    ('DISCOUNT_APPLIED', 'Discount applied'),
    ('ORDER_STATUS_UPDATED', 'Order status updated'),
    ('ORDER_VOIDED', 'Order voided'),
    ('ORDER_REFUNDED', 'Order refunded'),
    ('SHIFT_OPENED', 'Shift opened'),
    ('SHIFT_CLOSED', 'Shift closed'),
    ('CASH_MOVEMENT', 'Cash movement'),
]


def money(**kwargs):
    kwargs.setdefault('default', Decimal('0.00'))
    return models.DecimalField(decimal_places=2, max_digits=14, **kwargs)


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('stores', '0001_initial'),
        ('shifts', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Order',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('order_number', models.CharField(editable=False, max_length=32, unique=True)),
                ('status', models.CharField(choices=STATUS_CHOICES, default='NEW', max_length=20)),
                ('notes', models.CharField(blank=True, max_length=250)),
                ('subtotal', money()),
                ('item_discount', money()),
                ('order_discount', money()),
                ('tax_amount', money()),
                ('service_charge_amount', money()),
                ('tip_amount', money()),
                ('rounding_amount', money()),
                ('total_amount', money()),
                ('placed_at', models.DateTimeField(auto_now_add=True)),
                ('ready_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('cashier', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='orders_rung', to=settings.AUTH_USER_MODEL)),
                ('customer', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='orders', to='stores.customer')),
                ('register', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='orders', to='stores.register')),
                ('shift', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='orders', to='shifts.shift')),
                ('store', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='orders', to='stores.store')),
            ],
            options={
                'db_table': 'orders',
                'ordering': ['placed_at'],
                'indexes': [
                    models.Index(fields=['store', 'status', 'placed_at'], name='orders_store_status_idx'),
                    models.Index(fields=['shift'], name='orders_shift_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='OrderItem',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('product_name', models.CharField(max_length=80)),
                ('unit_price', money(validators=[MinValueValidator(Decimal('0'))])),
                ('quantity', models.PositiveIntegerField(validators=[MinValueValidator(1)])),
                ('discount_amount', money()),
                ('line_total', money()),
                ('note', models.CharField(blank=True, max_length=250)),
                ('item_status', models.CharField(choices=ITEM_STATUS_CHOICES, default='QUEUED', max_length=20)),
                ('position', models.PositiveIntegerField(default=0)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='orders.order')),
                ('product', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='order_items', to='stores.product')),
            ],
            options={
                'db_table': 'order_items',
                'ordering': ['position'],
            },
        ),
        migrations.CreateModel(
            name='OrderItemModifier',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('group_name', models.CharField(max_length=80)),
                ('option_name', models.CharField(max_length=80)),
                ('price_delta', money()),
                ('position', models.PositiveIntegerField(default=0)),
                ('order_item', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='modifiers', to='orders.orderitem')),
            ],
            options={
                'db_table': 'order_item_modifiers',
                'ordering': ['position'],
            },
        ),
        migrations.CreateModel(
            name='Payment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('method', models.CharField(choices=[('CASH', 'Cash'), ('CARD', 'Card'), ('QRIS', 'QRIS'), ('EWALLET', 'E-wallet')], max_length=10)),
                ('amount', money(validators=[MinValueValidator(Decimal('0.01'))])),
                ('reference', models.CharField(blank=True, max_length=120)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='payments', to='orders.order')),
                ('shift', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='payments', to='shifts.shift')),
            ],
            options={
                'db_table': 'payments',
                'ordering': ['created_at'],
                'indexes': [models.Index(fields=['shift', 'method'], name='payments_shift_method_idx')],
            },
        ),
        migrations.CreateModel(
            name='RefundVoid',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('type', models.CharField(choices=[('VOID', 'Void'), ('REFUND', 'Refund')], max_length=10)),
                ('amount', money()),
                ('reason', models.CharField(max_length=200)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('created_by', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='refund_voids', to=settings.AUTH_USER_MODEL)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='refund_voids', to='orders.order')),
            ],
            options={
                'db_table': 'refund_voids',
                'ordering': ['created_at'],
            },
        ),
        migrations.CreateModel(
            name='AuditLog',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('action', models.CharField(choices=AUDIT_ACTION_CHOICES, max_length=30)),
                ('entity', models.CharField(max_length=30)),
                ('entity_id', models.CharField(max_length=64)),
                ('message', models.CharField(max_length=255)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('order', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='audit_logs', to='orders.order')),
                ('store', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='audit_logs', to='stores.store')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='audit_logs', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'audit_logs',
                'ordering': ['created_at'],
                'indexes': [
                    models.Index(fields=['store', 'created_at'], name='audit_store_created_idx'),
                    models.Index(fields=['order', 'action'], name='audit_order_action_idx'),
                ],
            },
        ),
    ]
