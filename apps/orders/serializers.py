from decimal import Decimal

from rest_framework import serializers

from apps.accounts.serializers import UserMinimalSerializer
from apps.stores.models import Customer

from .models import (
    ItemStatus,
    Order,
    OrderItem,
    OrderItemModifier,
    OrderStatus,
    Payment,
    PaymentMethod,
    RefundVoid,
)
from .services.money import quantize_money


class MoneyField(serializers.DecimalField):
    """
    Decimal money with two places.

    Registers price in floating point, so inputs with more decimals are
    rounded to cents (half away from zero) instead of being rejected.
    """

    def __init__(self, **kwargs):
        kwargs.setdefault('max_digits', 14)
        kwargs.setdefault('decimal_places', 2)
        super().__init__(**kwargs)

    def validate_precision(self, value):
        return super().validate_precision(quantize_money(value))


# =============================================================================
# Input Serializers
# =============================================================================

class ModifierInputSerializer(serializers.Serializer):
    """Modifier choice snapshot, e.g. group 'Milk', option 'Oat', +5000."""

    option_id = serializers.CharField(max_length=64, required=False, allow_blank=True)
    group_name = serializers.CharField(max_length=80)
    option_name = serializers.CharField(max_length=80)
    price_delta = MoneyField(min_value=Decimal('0'), default=Decimal('0'))


class OrderItemInputSerializer(serializers.Serializer):
    """Cart line as submitted by the register."""

    product_id = serializers.UUIDField(required=False, allow_null=True)
    product_name = serializers.CharField(max_length=80)
    unit_price = MoneyField(min_value=Decimal('0'))
    quantity = serializers.IntegerField(min_value=1)
    discount_amount = MoneyField(min_value=Decimal('0'), default=Decimal('0'))
    line_total = MoneyField(min_value=Decimal('0'), required=False)
    note = serializers.CharField(max_length=250, required=False, allow_blank=True, default='')
    modifiers = ModifierInputSerializer(many=True, required=False, default=list)


class PaymentInputSerializer(serializers.Serializer):
    """One payment split."""

    method = serializers.ChoiceField(choices=PaymentMethod.choices)
    amount = MoneyField(min_value=Decimal('0.01'))
    reference = serializers.CharField(max_length=120, required=False, allow_blank=True, default='')


class CheckoutInputSerializer(serializers.Serializer):
    """
    Validate a checkout submission.

    Declared money fields are non-negative, except ``rounding_amount``
    which is negative whenever the total was rounded down.
    """

    store_id = serializers.UUIDField()
    register_id = serializers.UUIDField()
    shift_id = serializers.UUIDField(required=False, allow_null=True)
    customer_id = serializers.UUIDField(required=False, allow_null=True)
    notes = serializers.CharField(max_length=250, required=False, allow_blank=True, default='')

    subtotal = MoneyField(min_value=Decimal('0'))
    item_discount = MoneyField(min_value=Decimal('0'), default=Decimal('0'))
    order_discount = MoneyField(min_value=Decimal('0'), default=Decimal('0'))
    tax_amount = MoneyField(min_value=Decimal('0'), default=Decimal('0'))
    service_charge_amount = MoneyField(min_value=Decimal('0'), default=Decimal('0'))
    tip_amount = MoneyField(min_value=Decimal('0'), default=Decimal('0'))
    rounding_amount = MoneyField(default=Decimal('0'))
    total_amount = MoneyField(min_value=Decimal('0'))

    items = OrderItemInputSerializer(many=True, allow_empty=False)
    payments = PaymentInputSerializer(many=True, allow_empty=False)


class QuoteInputSerializer(serializers.Serializer):
    """Cart to price with the store's live rates."""

    store_id = serializers.UUIDField()
    items = OrderItemInputSerializer(many=True, allow_empty=False)
    order_discount = MoneyField(min_value=Decimal('0'), default=Decimal('0'))
    tip_amount = MoneyField(min_value=Decimal('0'), default=Decimal('0'))


class StatusTransitionInputSerializer(serializers.Serializer):
    """
    Validate a status change.

    Fields:
        status (str): Target OrderStatus
        item_status (str): Optional ItemStatus applied to all items
        reason (str): Void/refund reason
        amount (decimal): Void/refund amount, defaults to the order total
    """

    status = serializers.ChoiceField(choices=OrderStatus.choices)
    item_status = serializers.ChoiceField(choices=ItemStatus.choices, required=False)
    reason = serializers.CharField(max_length=200, required=False, allow_blank=True)
    amount = MoneyField(min_value=Decimal('0'), required=False)


class OrderFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for the order list.

    Query Parameters:
        store (UUID): Store to list (defaults to the user's store)
        status (str): Comma-separated statuses, e.g. ``NEW,IN_PROGRESS``
    """

    store = serializers.UUIDField(required=False)
    status = serializers.CharField(required=False, allow_blank=True)

    def validate_status(self, value):
        statuses = [s.strip().upper() for s in value.split(',') if s.strip()]
        unknown = [s for s in statuses if s not in OrderStatus.values]
        if unknown:
            raise serializers.ValidationError(
                f"Unknown status: {', '.join(unknown)}"
            )
        return statuses


# =============================================================================
# Output Serializers
# =============================================================================

class CartTotalsSerializer(serializers.Serializer):
    """Pricing breakdown returned by the quote endpoint."""

    subtotal = MoneyField(read_only=True)
    item_discount = MoneyField(read_only=True)
    order_discount = MoneyField(read_only=True)
    discounted_subtotal = MoneyField(read_only=True)
    tax_amount = MoneyField(read_only=True)
    service_charge_amount = MoneyField(read_only=True)
    tip_amount = MoneyField(read_only=True)
    raw_total = MoneyField(read_only=True)
    total_amount = MoneyField(read_only=True)
    rounding_amount = MoneyField(read_only=True)


class CustomerMinimalSerializer(serializers.ModelSerializer):

    class Meta:
        model = Customer
        fields = ['id', 'name']
        read_only_fields = fields


class OrderItemModifierSerializer(serializers.ModelSerializer):

    class Meta:
        model = OrderItemModifier
        fields = ['id', 'group_name', 'option_name', 'price_delta']
        read_only_fields = fields


class OrderItemSerializer(serializers.ModelSerializer):
    modifiers = OrderItemModifierSerializer(many=True, read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            'id',
            'product',
            'product_name',
            'unit_price',
            'quantity',
            'discount_amount',
            'line_total',
            'note',
            'item_status',
            'modifiers',
        ]
        read_only_fields = fields


class PaymentSerializer(serializers.ModelSerializer):

    class Meta:
        model = Payment
        fields = ['id', 'method', 'amount', 'reference', 'shift', 'created_at']
        read_only_fields = fields


class RefundVoidSerializer(serializers.ModelSerializer):
    created_by = UserMinimalSerializer(read_only=True)

    class Meta:
        model = RefundVoid
        fields = ['id', 'type', 'amount', 'reason', 'created_by', 'created_at']
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Full order with its money snapshot, items and payments."""

    cashier = UserMinimalSerializer(read_only=True)
    customer = CustomerMinimalSerializer(read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    payments = PaymentSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            'id',
            'order_number',
            'store',
            'register',
            'shift',
            'cashier',
            'customer',
            'status',
            'notes',
            'subtotal',
            'item_discount',
            'order_discount',
            'tax_amount',
            'service_charge_amount',
            'tip_amount',
            'rounding_amount',
            'total_amount',
            'placed_at',
            'ready_at',
            'completed_at',
            'items',
            'payments',
        ]
        read_only_fields = fields
