"""
API error taxonomy and the DRF exception handler.

Status mapping:
- 400 invalid input / invalid status transition
- 401 unauthenticated
- 403 forbidden (role lacks the action, foreign practitioner record, clinic owner removal)
- 404 no clinic membership ("no_clinic") or entity not found in scope
- 409 conflict (duplicate email, duplicate membership, double-booked slot)
- 500 anything unexpected (details only when DEBUG is on)
"""
import logging

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError
from django.db.models import ProtectedError
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from apps.core.observability.correlation import get_request_id
from apps.core.observability.metrics import metrics

logger = logging.getLogger(__name__)


class Unauthenticated(exceptions.NotAuthenticated):
    default_detail = 'Unauthorized'
    default_code = 'unauthenticated'


class NoClinic(exceptions.APIException):
    """Authenticated account without any clinic membership."""
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'No clinic found'
    default_code = 'no_clinic'


class Forbidden(exceptions.PermissionDenied):
    default_detail = "You don't have permission to perform this action"
    default_code = 'forbidden'


class Conflict(exceptions.APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Conflict with existing data'
    default_code = 'conflict'


class SlotConflict(Conflict):
    default_detail = 'Time slot is already booked'
    default_code = 'slot_conflict'


class DuplicateEmail(Conflict):
    default_detail = 'A record with this email already exists'
    default_code = 'duplicate_email'


class DuplicateMembership(Conflict):
    default_detail = 'This user is already a member of this clinic'
    default_code = 'duplicate_membership'


class InvalidTransition(exceptions.ValidationError):
    default_detail = 'Invalid status transition'
    default_code = 'invalid_transition'


def _with_code(response, exc):
    """Attach the machine-readable error code next to DRF's detail."""
    if isinstance(response.data, dict) and 'code' not in response.data:
        code = getattr(exc, 'default_code', None)
        if isinstance(exc, exceptions.APIException):
            codes = exc.get_codes()
            if isinstance(codes, str):
                code = codes
        if code:
            response.data['code'] = code
    return response


def api_exception_handler(exc, context):
    """
    DRF exception handler.

    Django-level errors are translated into API errors first so that models
    and services can raise the natural exception for their layer.
    """
    if isinstance(exc, DjangoValidationError):
        detail = exc.message_dict if hasattr(exc, 'error_dict') else exc.messages
        exc = exceptions.ValidationError(detail=detail)
    elif isinstance(exc, ProtectedError):
        exc = Conflict('Record is still referenced by other records')
    elif isinstance(exc, IntegrityError):
        exc = Conflict()

    response = exception_handler(exc, context)
    if response is not None:
        return _with_code(response, exc)

    request = context.get('request')
    metrics.exceptions_total.labels(
        exception_type=exc.__class__.__name__,
        location=context['view'].__class__.__name__ if context.get('view') else 'unknown',
    ).inc()
    logger.error(
        f'Unhandled API error: {exc.__class__.__name__}',
        exc_info=exc,
        extra={
            'event': 'api_unhandled_exception',
            'path': getattr(request, 'path', None),
            'method': getattr(request, 'method', None),
        }
    )

    body = {
        'detail': 'Server error',
        'code': 'server_error',
        'request_id': get_request_id(),
    }
    if settings.DEBUG:
        body['exception'] = exc.__class__.__name__
        body['message'] = str(exc)
    return Response(body, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
