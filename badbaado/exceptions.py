# badbaado/exceptions.py
"""
Typed errors raised by the request/donation workflow, plus the DRF
exception handler that renders every API error as {"error": ..., "code": ...}.
"""
import logging

from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ValidationError(exceptions.APIException):
    """Missing or malformed input (e.g. a rejection without a reason)."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid input.'
    default_code = 'validation_error'


class NotFoundError(exceptions.NotFound):
    default_detail = 'Not found.'
    default_code = 'not_found'


class ConflictError(exceptions.APIException):
    """Duplicate response, re-approval, or a unique field already in use."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Conflict.'
    default_code = 'conflict'


class AuthError(exceptions.AuthenticationFailed):
    default_detail = 'Invalid credentials.'
    default_code = 'auth_error'


class InvalidStateTransition(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = 'invalid_state_transition'

    def __init__(self, current_status, requested_status, detail=None):
        self.current_status = current_status
        self.requested_status = requested_status
        if detail is None:
            detail = f"Cannot move from {current_status} to {requested_status}"
        super().__init__(detail)


def _flatten(detail):
    if isinstance(detail, list):
        return ' '.join(str(item) for item in detail)
    return str(detail)


def api_exception_handler(exc, context):
    """
    Wrap DRF's default handler so clients always get:

        {"error": "<message>", "code": "<code>"}

    Serializer errors additionally carry a "fields" mapping.
    """
    if isinstance(exc, Http404):
        exc = NotFoundError()

    response = exception_handler(exc, context)
    if response is None:
        return None

    detail = getattr(exc, 'detail', response.data)
    body = {'code': getattr(exc, 'default_code', 'error')}

    if isinstance(detail, dict):
        body['error'] = 'Invalid input.'
        body['fields'] = response.data
    else:
        body['error'] = _flatten(detail)

    if isinstance(exc, InvalidStateTransition):
        body['current_status'] = exc.current_status
        body['requested_status'] = exc.requested_status

    if response.status_code >= 500:
        logger.error(f"API error in {context.get('view')}: {body['error']}")

    response.data = body
    return response
