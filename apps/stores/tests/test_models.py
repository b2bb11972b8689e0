import pytest
from decimal import Decimal
from django.db import IntegrityError, transaction

from apps.orders.services.pricing import PricingRates, calculate_totals
from apps.stores.models import Register, Store


@pytest.mark.django_db
class TestStore:
    """Tests for Store model methods."""

    def test_pricing_rates(self, store):
        rates = store.pricing_rates()

        assert isinstance(rates, PricingRates)
        assert rates.tax_rate == Decimal('11')
        assert rates.service_charge_rate == Decimal('5')
        assert rates.rounding_unit == 100

    def test_default_store_charges_nothing_extra(self, db):
        store = Store.objects.create(name='Pop-up', slug='pop-up')

        totals = calculate_totals(subtotal=Decimal('12345.67'), rates=store.pricing_rates())

        assert totals.total_amount == Decimal('12345.67')
        assert totals.rounding_amount == Decimal('0')

    def test_register_code_unique_per_store(self, store, register, other_store):
        Register.objects.create(store=other_store, name='Front counter', code='R1')

        with pytest.raises(IntegrityError), transaction.atomic():
            Register.objects.create(store=store, name='Duplicate', code='R1')

    def test_str(self, store, register):
        assert str(store) == 'Kopi Senja'
        assert str(register) == 'Front counter (R1)'
