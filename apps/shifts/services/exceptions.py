"""
Domain-specific exceptions for the shifts app.

Role, store and register errors are shared with the orders app so that
clients see one code per problem.
"""

from config.exceptions import ErrorKind, ServiceError
from apps.orders.services.exceptions import (
    InsufficientRoleError,
    InvalidRegisterError,
    StoreAccessDeniedError,
    StoreRequiredError,
)


class ShiftsServiceError(ServiceError):
    """Base exception for all shifts service errors."""
    pass


class ShiftNotFoundError(ShiftsServiceError):
    """Raised when a shift does not exist."""
    kind = ErrorKind.NOT_FOUND
    code = 'shift_not_found'
    default_message = 'Shift not found.'


class ShiftAlreadyOpenError(ShiftsServiceError):
    """Raised when the register already has an open shift."""
    kind = ErrorKind.CONFLICT
    code = 'shift_already_open'
    default_message = 'Register already has an open shift.'


class ShiftAlreadyClosedError(ShiftsServiceError):
    """Raised when closing or moving cash on a closed shift."""
    kind = ErrorKind.CONFLICT
    code = 'shift_already_closed'
    default_message = 'Shift is already closed.'


class InvalidCashMovementError(ShiftsServiceError):
    """Raised for a cash movement with a bad direction or amount."""
    kind = ErrorKind.VALIDATION
    code = 'invalid_cash_movement'
    default_message = 'Cash movement amount must be greater than zero.'


__all__ = [
    'ShiftsServiceError',
    'ShiftNotFoundError',
    'ShiftAlreadyOpenError',
    'ShiftAlreadyClosedError',
    'InvalidCashMovementError',
    'InsufficientRoleError',
    'InvalidRegisterError',
    'StoreAccessDeniedError',
    'StoreRequiredError',
]
