"""
Shared error taxonomy for the POS services.

Every service layer raises subclasses of ``ServiceError``. Each error has a
kind (what went wrong, which decides the HTTP status), a stable code for
machines, a human-readable message and a ``retryable`` flag that tells an
offline order queue whether to keep a payload or discard it.
"""
from enum import Enum

from rest_framework import status
from rest_framework.exceptions import ValidationError, Throttled
from rest_framework.response import Response
from rest_framework.views import exception_handler


class ErrorKind(str, Enum):
    VALIDATION = 'validation'
    REFERENCE = 'reference'
    AUTHORIZATION = 'authorization'
    NOT_FOUND = 'not_found'
    CONFLICT = 'conflict'
    TRANSIENT = 'transient'


STATUS_BY_KIND = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.REFERENCE: status.HTTP_409_CONFLICT,
    ErrorKind.AUTHORIZATION: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.TRANSIENT: status.HTTP_503_SERVICE_UNAVAILABLE,
}


class ServiceError(Exception):
    """Base exception for all POS service errors."""

    kind = ErrorKind.VALIDATION
    code = 'service_error'
    default_message = 'The request could not be processed.'
    retryable = False

    def __init__(self, message=None, *, detail=None):
        self.message = message or self.default_message
        self.detail = detail or {}
        super().__init__(self.message)

    @property
    def status_code(self):
        return STATUS_BY_KIND[self.kind]

    def to_dict(self):
        return {
            'error': self.message,
            'code': self.code,
            'kind': self.kind.value,
            'retryable': self.retryable,
            'detail': self.detail,
        }


class TransientServiceError(ServiceError):
    """Raised when infrastructure failed and the same request may succeed later."""

    kind = ErrorKind.TRANSIENT
    code = 'temporarily_unavailable'
    default_message = 'Service temporarily unavailable. Please retry.'
    retryable = True


def api_exception_handler(exc, context):
    """
    Render service and DRF errors with one envelope.

    Shape: ``{error, code, kind, retryable, detail}``. Clients key their
    retry decision on ``retryable`` rather than on the status code.
    """
    if isinstance(exc, ServiceError):
        return Response(exc.to_dict(), status=exc.status_code)

    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, ValidationError):
        response.data = {
            'error': 'Invalid payload.',
            'code': 'invalid_payload',
            'kind': ErrorKind.VALIDATION.value,
            'retryable': False,
            'detail': response.data,
        }
        return response

    original = response.data if isinstance(response.data, dict) else {'detail': response.data}
    message = original.get('detail', 'Request failed.')
    response.data = {
        'error': str(message),
        'code': getattr(message, 'code', None) or getattr(exc, 'default_code', 'error'),
        'kind': _kind_for_status(response.status_code).value,
        'retryable': isinstance(exc, Throttled) or response.status_code >= 500,
        'detail': {},
    }
    return response


def _kind_for_status(status_code):
    if status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN):
        return ErrorKind.AUTHORIZATION
    if status_code == status.HTTP_404_NOT_FOUND:
        return ErrorKind.NOT_FOUND
    if status_code == status.HTTP_429_TOO_MANY_REQUESTS or status_code >= 500:
        return ErrorKind.TRANSIENT
    return ErrorKind.VALIDATION
