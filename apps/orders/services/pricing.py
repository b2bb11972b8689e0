"""
Cart pricing engine.

Pure functions over immutable value types: the same cart and the same
rates always produce the same totals, on the register and on the server.

Order of operations:
    1. line totals (unit price plus modifier deltas, times quantity,
       minus the line discount, floored at zero)
    2. subtotal and item discount summed over the lines
    3. item and order discounts taken off the subtotal, floored at zero
       (line discounts are subtracted here a second time, as on the register)
    4. tax and service charge as percentages of the discounted subtotal,
       each rounded to cents; raw_total adds the rounded amounts, so it
       can differ from the unrounded products by up to a cent per charge
    5. tip added (never taxed or discounted)
    6. store rounding unit applied last; the difference is kept as
       ``rounding_amount`` and may be negative
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Sequence, Tuple

from .exceptions import PricingInputError
from .money import ZERO, quantize_money, round_to_unit, to_decimal

HUNDRED = Decimal('100')


@dataclass(frozen=True)
class ModifierSelection:
    group_name: str
    option_name: str
    price_delta: Decimal = ZERO


@dataclass(frozen=True)
class CartLine:
    product_id: Optional[str]
    product_name: str
    unit_price: Decimal
    quantity: int
    discount_amount: Decimal = ZERO
    note: str = ''
    modifiers: Tuple[ModifierSelection, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PricingRates:
    """Store rates; tax and service charge are percentages (11 means 11%)."""
    tax_rate: Decimal = ZERO
    service_charge_rate: Decimal = ZERO
    rounding_unit: Decimal = ZERO


@dataclass(frozen=True)
class CartTotals:
    subtotal: Decimal
    item_discount: Decimal
    order_discount: Decimal
    discounted_subtotal: Decimal
    tax_amount: Decimal
    service_charge_amount: Decimal
    tip_amount: Decimal
    raw_total: Decimal
    total_amount: Decimal
    rounding_amount: Decimal

    def as_dict(self):
        return {
            'subtotal': self.subtotal,
            'item_discount': self.item_discount,
            'order_discount': self.order_discount,
            'discounted_subtotal': self.discounted_subtotal,
            'tax_amount': self.tax_amount,
            'service_charge_amount': self.service_charge_amount,
            'tip_amount': self.tip_amount,
            'raw_total': self.raw_total,
            'total_amount': self.total_amount,
            'rounding_amount': self.rounding_amount,
        }


def _non_negative(value, name: str) -> Decimal:
    amount = to_decimal(value)
    if amount < ZERO:
        raise PricingInputError(
            f"{name} cannot be negative.",
            detail={'field': name, 'value': str(amount)}
        )
    return amount


def calculate_line_total(line: CartLine) -> Decimal:
    """
    Total for a single cart line.

    ``(unit_price + sum of modifier deltas) * quantity - discount``,
    never below zero.
    """
    if line.quantity < 0:
        raise PricingInputError(
            'Quantity cannot be negative.',
            detail={'field': 'quantity', 'product_name': line.product_name}
        )
    unit_price = _non_negative(line.unit_price, 'unit_price')
    discount = _non_negative(line.discount_amount, 'discount_amount')

    modifier_total = sum(
        (_non_negative(m.price_delta, 'price_delta') for m in line.modifiers),
        ZERO
    )

    gross = (unit_price + modifier_total) * line.quantity
    return max(ZERO, gross - discount)


def calculate_totals(
    *,
    subtotal,
    item_discount=ZERO,
    order_discount=ZERO,
    tip_amount=ZERO,
    rates: PricingRates
) -> CartTotals:
    """
    Derive the full breakdown from an already summed subtotal.

    Args:
        subtotal: Sum of line totals
        item_discount: Sum of line discounts
        order_discount: Discount on the whole order
        tip_amount: Tip, added after tax and service charge
        rates: Store tax/service percentages and rounding unit

    Returns:
        CartTotals

    Raises:
        PricingInputError: If any amount is negative
    """
    subtotal = _non_negative(subtotal, 'subtotal')
    item_discount = _non_negative(item_discount, 'item_discount')
    order_discount = _non_negative(order_discount, 'order_discount')
    tip_amount = _non_negative(tip_amount, 'tip_amount')

    discounted_subtotal = max(ZERO, subtotal - item_discount - order_discount)

    tax_amount = quantize_money(
        discounted_subtotal * to_decimal(rates.tax_rate) / HUNDRED
    )
    service_charge_amount = quantize_money(
        discounted_subtotal * to_decimal(rates.service_charge_rate) / HUNDRED
    )

    raw_total = discounted_subtotal + tax_amount + service_charge_amount + tip_amount
    total_amount = round_to_unit(raw_total, rates.rounding_unit)

    return CartTotals(
        subtotal=subtotal,
        item_discount=item_discount,
        order_discount=order_discount,
        discounted_subtotal=discounted_subtotal,
        tax_amount=tax_amount,
        service_charge_amount=service_charge_amount,
        tip_amount=tip_amount,
        raw_total=raw_total,
        total_amount=total_amount,
        rounding_amount=total_amount - raw_total,
    )


def price_cart(
    lines: Sequence[CartLine],
    *,
    order_discount=ZERO,
    tip_amount=ZERO,
    rates: PricingRates
) -> CartTotals:
    """Price a whole cart: sum the lines, then apply the store rates."""
    subtotal = sum((calculate_line_total(line) for line in lines), ZERO)
    item_discount = sum(
        (to_decimal(line.discount_amount) for line in lines),
        ZERO
    )

    return calculate_totals(
        subtotal=subtotal,
        item_discount=item_discount,
        order_discount=order_discount,
        tip_amount=tip_amount,
        rates=rates,
    )


def build_cart_lines(items) -> list:
    """Build CartLines from validated checkout/quote item dicts."""
    return [
        CartLine(
            product_id=str(item['product_id']) if item.get('product_id') else None,
            product_name=item['product_name'],
            unit_price=to_decimal(item['unit_price']),
            quantity=item['quantity'],
            discount_amount=to_decimal(item.get('discount_amount')),
            note=item.get('note') or '',
            modifiers=tuple(
                ModifierSelection(
                    group_name=m['group_name'],
                    option_name=m['option_name'],
                    price_delta=to_decimal(m.get('price_delta')),
                )
                for m in item.get('modifiers') or []
            ),
        )
        for item in items
    ]
