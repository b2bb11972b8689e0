from decimal import Decimal

from rest_framework import serializers

from apps.accounts.serializers import UserMinimalSerializer
from apps.orders.serializers import MoneyField

from .models import CashDirection, Shift


# =============================================================================
# Input Serializers
# =============================================================================

class OpenShiftInputSerializer(serializers.Serializer):
    store_id = serializers.UUIDField()
    register_id = serializers.UUIDField()
    opening_cash = MoneyField(min_value=Decimal('0'))
    notes = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')


class CloseShiftInputSerializer(serializers.Serializer):
    actual_cash = MoneyField(min_value=Decimal('0'))
    notes = serializers.CharField(max_length=200, required=False, allow_blank=True)


class CashMovementInputSerializer(serializers.Serializer):
    direction = serializers.ChoiceField(choices=CashDirection.choices)
    amount = MoneyField(min_value=Decimal('0.01'))
    reason = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')


class ShiftFilterSerializer(serializers.Serializer):
    """
    Query Parameters:
        store (UUID): Store to list (defaults to the user's store)
        register (UUID): With ``active/``, the register to look up
    """

    store = serializers.UUIDField(required=False)
    register = serializers.UUIDField(required=False)


# =============================================================================
# Output Serializers
# =============================================================================

class ShiftSerializer(serializers.ModelSerializer):
    opened_by = UserMinimalSerializer(read_only=True)
    register_name = serializers.CharField(source='register.name', read_only=True)
    cash_difference = MoneyField(read_only=True)

    class Meta:
        model = Shift
        fields = [
            'id',
            'store',
            'register',
            'register_name',
            'opened_by',
            'status',
            'opening_cash',
            'cash_in',
            'cash_out',
            'expected_cash',
            'actual_cash',
            'cash_difference',
            'notes',
            'opened_at',
            'closed_at',
        ]
        read_only_fields = fields
