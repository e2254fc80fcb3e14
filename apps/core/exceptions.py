import logging

from django.core.exceptions import PermissionDenied
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from apps.finance.exceptions import FeesError

logger = logging.getLogger(__name__)


def _error(code, message, details=None, status_code=status.HTTP_400_BAD_REQUEST, headers=None):
    return Response(
        {'code': code, 'message': message, 'details': details},
        status=status_code,
        headers=headers,
    )


def _first_message(detail):
    """Pull a readable message out of a DRF error detail structure."""
    if isinstance(detail, dict):
        for field, value in detail.items():
            message = _first_message(value)
            if field in ('non_field_errors', 'detail'):
                return message
            return f"{field}: {message}"
    if isinstance(detail, (list, tuple)):
        return _first_message(detail[0]) if detail else 'Invalid input'
    return str(detail)


def api_exception_handler(exc, context):
    """
    Render every API error as {"code", "message", "details"}.

    Ledger errors carry their own code and status; DRF errors are mapped onto
    the same shape. Anything else is left for Django to turn into a 500.
    """
    if isinstance(exc, FeesError):
        return _error(exc.code, exc.message, exc.details, exc.status_code)

    if isinstance(exc, exceptions.ValidationError):
        return _error('invalid_argument', _first_message(exc.detail), exc.detail)

    if isinstance(exc, Http404):
        exc = exceptions.NotFound()
    elif isinstance(exc, PermissionDenied):
        exc = exceptions.PermissionDenied()

    response = exception_handler(exc, context)
    if response is None:
        view = context.get('view')
        logger.exception(f"Unhandled error in {view.__class__.__name__ if view else 'API view'}")
        return None

    if isinstance(exc, (exceptions.NotAuthenticated, exceptions.AuthenticationFailed)):
        code = 'unauthenticated'
    elif isinstance(exc, exceptions.PermissionDenied):
        code = 'permission_denied'
    elif isinstance(exc, exceptions.NotFound):
        code = 'not_found'
    else:
        code = exc.default_code if isinstance(exc, exceptions.APIException) else 'error'

    headers = {
        key: response.headers[key]
        for key in ('WWW-Authenticate', 'Retry-After', 'Allow')
        if key in response.headers
    }
    return _error(code, _first_message(exc.detail), None, response.status_code, headers)
