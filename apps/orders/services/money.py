"""
Deterministic currency arithmetic.

All money is handled as ``Decimal``. Floats coming from clients are
converted through ``str`` so that ``0.1`` stays ``0.1`` instead of its
binary approximation. Rounding is half away from zero everywhere.
"""

from decimal import Decimal, ROUND_HALF_UP

ZERO = Decimal('0')
CENT = Decimal('0.01')
ONE = Decimal('1')


def to_decimal(value) -> Decimal:
    """Convert int/str/float/Decimal (or None) to an exact Decimal."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def quantize_money(value) -> Decimal:
    """Round to cents, half away from zero."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def round_to_unit(amount, unit) -> Decimal:
    """
    Round ``amount`` to the nearest multiple of ``unit``.

    A unit of 0 or 1 (or None) disables rounding and returns the amount
    unchanged. Ties round away from zero, so with a unit of 100 both 150
    and -150 move outward (to 200 and -200).

    Example:
        >>> round_to_unit(Decimal('106449.99'), 100)
        Decimal('106400')
        >>> round_to_unit(Decimal('106450'), 100)
        Decimal('106500')
    """
    amount = to_decimal(amount)
    unit = to_decimal(unit)
    if unit <= ONE:
        return amount
    steps = (amount / unit).quantize(ONE, rounding=ROUND_HALF_UP)
    return steps * unit


def amounts_reconcile(first, second, tolerance) -> bool:
    """True when the two amounts differ by at most ``tolerance``."""
    return abs(to_decimal(first) - to_decimal(second)) <= to_decimal(tolerance)
