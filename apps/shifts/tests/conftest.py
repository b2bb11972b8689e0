import pytest
from decimal import Decimal

from apps.orders.models import Order, Payment, PaymentMethod
from apps.shifts.models import Shift


@pytest.fixture
def shift(store, register, cashier):
    """Open shift with 200000 in the drawer."""
    return Shift.objects.create(
        store=store,
        register=register,
        opened_by=cashier,
        opening_cash=Decimal('200000'),
    )


@pytest.fixture
def record_sale(shift):
    """Attach a paid order to ``shift``."""
    counter = {'n': 0}

    def _record(*payments):
        counter['n'] += 1
        total = sum((amount for _, amount in payments), Decimal('0'))
        order = Order.objects.create(
            order_number=f"TEST-000000-{counter['n']:06d}",
            store_id=shift.store_id,
            register_id=shift.register_id,
            shift=shift,
            cashier=shift.opened_by,
            subtotal=total,
            total_amount=total,
        )
        for method, amount in payments:
            Payment.objects.create(order=order, shift=shift, method=method, amount=amount)
        return order

    return _record


@pytest.fixture
def cash_and_card_sales(record_sale):
    """50000 cash, 30000 card, and a 20000/10000 cash/QRIS split."""
    record_sale((PaymentMethod.CASH, Decimal('50000')))
    record_sale((PaymentMethod.CARD, Decimal('30000')))
    record_sale((PaymentMethod.CASH, Decimal('20000')), (PaymentMethod.QRIS, Decimal('10000')))
