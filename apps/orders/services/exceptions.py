"""
Domain-specific exceptions for the orders app.

Each exception has a stable ``code`` and an ``ErrorKind`` so that views
render it with the right status and offline queues know whether to retry.
"""

from config.exceptions import ErrorKind, ServiceError, TransientServiceError


class OrdersServiceError(ServiceError):
    """Base exception for all orders service errors."""
    pass


# -----------------------------------------------------------------------------
# Validation
# -----------------------------------------------------------------------------

class PricingInputError(OrdersServiceError):
    """Raised when a cart line or amount is outside its allowed range."""
    kind = ErrorKind.VALIDATION
    code = 'invalid_pricing_input'
    default_message = 'Cart contains an invalid amount.'


class InvalidPaymentError(OrdersServiceError):
    """Raised when a payment split has an unknown method or a non-positive amount."""
    kind = ErrorKind.VALIDATION
    code = 'invalid_payment'
    default_message = 'Payment split is not valid.'


class StoreRequiredError(OrdersServiceError):
    """Raised when no store was given and the actor has none assigned."""
    kind = ErrorKind.VALIDATION
    code = 'store_required'
    default_message = 'A store is required.'


class InvalidRefundAmountError(OrdersServiceError):
    """Raised when a void/refund amount exceeds what was charged."""
    kind = ErrorKind.VALIDATION
    code = 'invalid_refund_amount'
    default_message = 'Refund amount cannot exceed the order total.'


# -----------------------------------------------------------------------------
# Reference integrity
# -----------------------------------------------------------------------------

class InvalidRegisterError(OrdersServiceError):
    """Raised when the register is missing, inactive or in another store."""
    kind = ErrorKind.REFERENCE
    code = 'invalid_register'
    default_message = 'Register is not valid for this store. Rebuild the order from the POS.'


class InvalidShiftError(OrdersServiceError):
    """Raised when the shift is missing, closed or bound to another register."""
    kind = ErrorKind.REFERENCE
    code = 'invalid_shift'
    default_message = 'Shift is not valid or has changed. Open a shift and rebuild the order.'


class InvalidCustomerError(OrdersServiceError):
    """Raised when the customer does not belong to the store."""
    kind = ErrorKind.REFERENCE
    code = 'invalid_customer'
    default_message = 'Customer is not valid for this store. Select the customer again.'


class StaleReferenceError(OrdersServiceError):
    """Raised when a referenced row vanished between validation and commit."""
    kind = ErrorKind.REFERENCE
    code = 'stale_reference'
    default_message = 'Order references are no longer valid. Please enter the order again.'


# -----------------------------------------------------------------------------
# Authorization
# -----------------------------------------------------------------------------

class InsufficientRoleError(OrdersServiceError):
    """Raised when the actor's role may not perform the action."""
    kind = ErrorKind.AUTHORIZATION
    code = 'insufficient_role'
    default_message = 'Your role is not allowed to perform this action.'


class DiscountNotAllowedError(InsufficientRoleError):
    """Raised when a cashier or barista submits a discounted order."""
    code = 'discount_not_allowed'
    default_message = 'Only MANAGER/ADMIN can apply discounts.'


class StoreAccessDeniedError(OrdersServiceError):
    """Raised when the actor is not assigned to the order's store."""
    kind = ErrorKind.AUTHORIZATION
    code = 'store_access_denied'
    default_message = 'Store access denied.'


# -----------------------------------------------------------------------------
# Not found
# -----------------------------------------------------------------------------

class StoreNotFoundError(OrdersServiceError):
    """Raised when a store does not exist."""
    kind = ErrorKind.NOT_FOUND
    code = 'store_not_found'
    default_message = 'Store not found.'


class OrderNotFoundError(OrdersServiceError):
    """Raised when an order does not exist."""
    kind = ErrorKind.NOT_FOUND
    code = 'order_not_found'
    default_message = 'Order not found.'


# -----------------------------------------------------------------------------
# Business-rule conflicts
# -----------------------------------------------------------------------------

class PaymentMismatchError(OrdersServiceError):
    """Raised when the payment splits do not add up to the order total."""
    kind = ErrorKind.CONFLICT
    code = 'payment_total_mismatch'
    default_message = 'Payment total must match order total.'


class PricingMismatchError(OrdersServiceError):
    """Raised when declared totals disagree with the store's live rates."""
    kind = ErrorKind.CONFLICT
    code = 'pricing_mismatch'
    default_message = 'Order total does not match current store pricing. Refresh the cart.'


class InsufficientStockError(OrdersServiceError):
    """Raised when a product cannot cover the requested quantity."""
    kind = ErrorKind.CONFLICT
    code = 'insufficient_stock'

    def __init__(self, product_name, *, product_id=None, requested=None):
        self.product_name = product_name
        super().__init__(
            f"Stock not enough for {product_name}",
            detail={
                'product_id': str(product_id) if product_id else None,
                'product_name': product_name,
                'requested': requested,
            }
        )


class OrderNumberCollisionError(OrdersServiceError):
    """Raised when no unique order number could be generated; resubmit."""
    kind = ErrorKind.CONFLICT
    code = 'order_number_collision'
    default_message = 'Order number collided. Please submit again.'
    retryable = True


class OrderAlreadyClosedError(OrdersServiceError):
    """Raised when a voided or refunded order receives another transition."""
    kind = ErrorKind.CONFLICT
    code = 'order_closed'
    default_message = 'Order is already closed.'


class InvalidStatusTransitionError(OrdersServiceError):
    """Raised when the target status is not reachable from the current one."""
    kind = ErrorKind.CONFLICT
    code = 'invalid_status_transition'
    default_message = 'Invalid status transition.'


class ConcurrentStatusUpdateError(OrdersServiceError):
    """Raised when another request changed the status first."""
    kind = ErrorKind.CONFLICT
    code = 'concurrent_status_update'
    default_message = 'Order status changed while updating. Refresh and try again.'


__all__ = [
    'TransientServiceError',
    'OrdersServiceError',
    'PricingInputError',
    'InvalidPaymentError',
    'InvalidRefundAmountError',
    'StoreRequiredError',
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
]
