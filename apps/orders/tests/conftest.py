import pytest
import secrets
from decimal import Decimal

from apps.orders.models import Order, OrderItem, OrderStatus, Payment, PaymentMethod
from apps.shifts.models import Shift
from apps.stores.models import Product


def generate_order_number():
    """Generate a random order number for test fixtures."""
    return f"TEST-000000-{secrets.token_hex(3).upper()}"


@pytest.fixture
def latte(store):
    """Latte at 30000 with 10 in stock."""
    return Product.objects.create(
        store=store,
        name='Latte',
        base_price=Decimal('30000'),
        stock=10,
    )


@pytest.fixture
def croissant(store):
    """Croissant at 12000 with only 2 in stock."""
    return Product.objects.create(
        store=store,
        name='Croissant',
        base_price=Decimal('12000'),
        stock=2,
    )


@pytest.fixture
def open_shift(store, register, cashier):
    return Shift.objects.create(
        store=store,
        register=register,
        opened_by=cashier,
        opening_cash=Decimal('200000'),
    )


@pytest.fixture
def checkout_payload(store, register, latte):
    """
    Build a checkout payload: two lattes paid 40000 cash + 32000 QRIS.

    Totals: subtotal 60000 (no discount), tax 6600, service 3000 and
    tip 2400, total 72000.
    """
    def _build(**overrides):
        payload = {
            'store_id': str(store.id),
            'register_id': str(register.id),
            'notes': '',
            'subtotal': Decimal('60000'),
            'item_discount': Decimal('0'),
            'order_discount': Decimal('0'),
            'tax_amount': Decimal('6600'),
            'service_charge_amount': Decimal('3000'),
            'tip_amount': Decimal('2400'),
            'rounding_amount': Decimal('0'),
            'total_amount': Decimal('72000'),
            'items': [
                {
                    'product_id': str(latte.id),
                    'product_name': 'Latte',
                    'unit_price': Decimal('30000'),
                    'quantity': 2,
                    'discount_amount': Decimal('0'),
                    'line_total': Decimal('60000'),
                    'note': 'less sugar',
                    'modifiers': [
                        {'group_name': 'Milk', 'option_name': 'Whole', 'price_delta': Decimal('0')},
                    ],
                },
            ],
            'payments': [
                {'method': PaymentMethod.CASH, 'amount': Decimal('40000'), 'reference': ''},
                {'method': PaymentMethod.QRIS, 'amount': Decimal('32000'), 'reference': 'QR-991'},
            ],
        }
        payload.update(overrides)
        return payload

    return _build


@pytest.fixture
def make_order(store, register, cashier):
    """Create an order directly, bypassing checkout."""
    def _make(status=OrderStatus.NEW, total=Decimal('50000'), **kwargs):
        order = Order.objects.create(
            order_number=generate_order_number(),
            store=kwargs.pop('store', store),
            register=kwargs.pop('register', register),
            cashier=kwargs.pop('cashier', cashier),
            status=status,
            subtotal=total,
            total_amount=total,
            **kwargs
        )
        OrderItem.objects.create(
            order=order,
            product_name='Americano',
            unit_price=total,
            quantity=1,
            line_total=total,
        )
        Payment.objects.create(order=order, method=PaymentMethod.CASH, amount=total)
        return order

    return _make


@pytest.fixture
def order(make_order):
    return make_order()
