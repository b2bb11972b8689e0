"""
Shifts app services layer.
"""

from .exceptions import (
    ShiftsServiceError,
    ShiftNotFoundError,
    ShiftAlreadyOpenError,
    ShiftAlreadyClosedError,
    InvalidCashMovementError,
)

from .shift_management import (
    open_shift,
    record_cash_movement,
    calculate_expected_cash,
    close_shift,
    close_active_shifts,
    get_open_shift,
    list_shifts,
)


__all__ = [
    # Exceptions
    'ShiftsServiceError',
    'ShiftNotFoundError',
    'ShiftAlreadyOpenError',
    'ShiftAlreadyClosedError',
    'InvalidCashMovementError',

    # Shift Management
    'open_shift',
    'record_cash_movement',
    'calculate_expected_cash',
    'close_shift',
    'close_active_shifts',
    'get_open_shift',
    'list_shifts',
]
