"""
Orders app services layer.

Services hold the business rules of checkout and the order lifecycle.
All state-changing operations use transactions and concurrency protection,
and notify the realtime bus only after commit.
"""

from .exceptions import (
    OrdersServiceError,
    TransientServiceError,
    PricingInputError,
    InvalidPaymentError,
    StoreRequiredError,
    InvalidRefundAmountError,
    InvalidRegisterError,
    InvalidShiftError,
    InvalidCustomerError,
    StaleReferenceError,
    InsufficientRoleError,
    DiscountNotAllowedError,
    StoreAccessDeniedError,
    StoreNotFoundError,
    OrderNotFoundError,
    PaymentMismatchError,
    PricingMismatchError,
    InsufficientStockError,
    OrderNumberCollisionError,
    OrderAlreadyClosedError,
    InvalidStatusTransitionError,
    ConcurrentStatusUpdateError,
)

from .pricing import (
    ModifierSelection,
    CartLine,
    PricingRates,
    CartTotals,
    calculate_line_total,
    calculate_totals,
    price_cart,
    build_cart_lines,
)

from .checkout import (
    settle_checkout,
    quote_cart,
)

from .status import (
    transition_order_status,
    can_transition,
)

from .queries import (
    list_orders,
    get_order,
)


__all__ = [
    # Exceptions
    'OrdersServiceError',
    'TransientServiceError',
    'PricingInputError',
    'InvalidPaymentError',
    'StoreRequiredError',
    'InvalidRefundAmountError',
    'InvalidRegisterError',
    'InvalidShiftError',
    'InvalidCustomerError',
    'StaleReferenceError',
    'InsufficientRoleError',
    'DiscountNotAllowedError',
    'StoreAccessDeniedError',
    'StoreNotFoundError',
    'OrderNotFoundError',
    'PaymentMismatchError',
    'PricingMismatchError',
    'InsufficientStockError',
    'OrderNumberCollisionError',
    'OrderAlreadyClosedError',
    'InvalidStatusTransitionError',
    'ConcurrentStatusUpdateError',

    # Pricing
    'ModifierSelection',
    'CartLine',
    'PricingRates',
    'CartTotals',
    'calculate_line_total',
    'calculate_totals',
    'price_cart',
    'build_cart_lines',

    # Checkout
    'settle_checkout',
    'quote_cart',

    # Status
    'transition_order_status',
    'can_transition',

    # Queries
    'list_orders',
    'get_order',
]
