from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator
from decimal import Decimal
import uuid


class Store(models.Model):
    """A cafe outlet with its own pricing rates, registers and stock."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=120)
    slug = models.SlugField(max_length=120, unique=True)
    address = models.CharField(max_length=255, blank=True)
    phone = models.CharField(max_length=30, blank=True)

    # Rates are percentages (11 means 11%)
    tax_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('100'))]
    )
    service_charge_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('100'))]
    )
    # Currency increment the final total snaps to; 0 or 1 disables rounding
    rounding_unit = models.PositiveIntegerField(default=0)
    allow_tips = models.BooleanField(default=True)
    currency = models.CharField(max_length=3, default='IDR')

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'stores'
        ordering = ['name']

    def __str__(self):
        return self.name

    def pricing_rates(self):
        """Return the rate configuration the cart pricing engine consumes."""
        from apps.orders.services.pricing import PricingRates

        return PricingRates(
            tax_rate=self.tax_rate,
            service_charge_rate=self.service_charge_rate,
            rounding_unit=self.rounding_unit,
        )


class Register(models.Model):
    """A cash register (checkout counter) inside a store."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    store = models.ForeignKey(
        Store,
        on_delete=models.CASCADE,
        related_name='registers'
    )
    name = models.CharField(max_length=80)
    code = models.CharField(max_length=20)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'registers'
        unique_together = [['store', 'code']]
        ordering = ['code']

    def __str__(self):
        return f"{self.name} ({self.code})"


class Customer(models.Model):
    """A known customer of a store."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    store = models.ForeignKey(
        Store,
        on_delete=models.CASCADE,
        related_name='customers'
    )
    name = models.CharField(max_length=80)
    phone = models.CharField(max_length=30, blank=True)
    email = models.EmailField(blank=True)
    notes = models.CharField(max_length=200, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'customers'
        indexes = [
            models.Index(fields=['store', 'name'], name='customers_store_name_idx'),
        ]
        ordering = ['name']

    def __str__(self):
        return self.name


class Product(models.Model):
    """
    A sellable menu item.

    ``stock`` is the one piece of shared mutable state touched by concurrent
    checkouts. It is only ever decremented through a conditional UPDATE
    (see ``apps.orders.services.checkout``), never by read-modify-write.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    store = models.ForeignKey(
        Store,
        on_delete=models.CASCADE,
        related_name='products'
    )
    name = models.CharField(max_length=80)
    sku = models.CharField(max_length=40, blank=True)
    base_price = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0'))]
    )
    stock = models.PositiveIntegerField(default=0)
    is_available = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'products'
        indexes = [
            models.Index(fields=['store', 'is_available'], name='products_store_avail_idx'),
        ]
        ordering = ['name']

    def __str__(self):
        return f"{self.name} (stock: {self.stock})"
