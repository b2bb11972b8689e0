from django.db import models
from django.db.models import Q
from django.core.validators import MinValueValidator
from decimal import Decimal
import uuid


class ShiftStatus(models.TextChoices):
    OPEN = 'OPEN', 'Open'
    CLOSED = 'CLOSED', 'Closed'


class CashDirection(models.TextChoices):
    IN = 'IN', 'Cash in'
    OUT = 'OUT', 'Cash out'


class Shift(models.Model):
    """
    A cashier's session on one register.

    ``expected_cash`` and ``actual_cash`` are written once, when the shift
    closes, and never change afterwards.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    store = models.ForeignKey(
        'stores.Store',
        on_delete=models.PROTECT,
        related_name='shifts'
    )
    register = models.ForeignKey(
        'stores.Register',
        on_delete=models.PROTECT,
        related_name='shifts'
    )
    opened_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.PROTECT,
        related_name='shifts'
    )
    status = models.CharField(
        max_length=10,
        choices=ShiftStatus.choices,
        default=ShiftStatus.OPEN
    )

    # Cash drawer
    opening_cash = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0'))]
    )
    cash_in = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    cash_out = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    expected_cash = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    actual_cash = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)

    notes = models.CharField(max_length=250, blank=True)
    opened_at = models.DateTimeField(auto_now_add=True)
    closed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'shifts'
        constraints = [
            # One open shift per register
            models.UniqueConstraint(
                fields=['register'],
                condition=Q(status='OPEN'),
                name='unique_open_shift_per_register'
            ),
        ]
        indexes = [
            models.Index(fields=['store', 'opened_at'], name='shifts_store_opened_idx'),
            models.Index(fields=['opened_by', 'status'], name='shifts_user_status_idx'),
        ]
        ordering = ['-opened_at']

    def __str__(self):
        return f"{self.register} shift ({self.status})"

    @property
    def is_open(self):
        return self.status == ShiftStatus.OPEN

    @property
    def cash_difference(self):
        """Actual minus expected cash once closed, else None."""
        if self.expected_cash is None or self.actual_cash is None:
            return None
        return self.actual_cash - self.expected_cash
