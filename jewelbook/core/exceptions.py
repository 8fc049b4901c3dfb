"""
Domain errors and the REST exception handler.

Every error leaving the API has the shape ``{"error": "<message>"}``;
serializer validation failures also carry the per-field messages under
``details``.
"""
import logging

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.db import IntegrityError
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class NotFound(exceptions.NotFound):
    default_detail = 'Not found'


class Forbidden(exceptions.PermissionDenied):
    default_detail = 'Forbidden'


class ValidationError(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid request'
    default_code = 'invalid'


class Conflict(exceptions.APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Conflict'
    default_code = 'conflict'


class InvalidState(Conflict):
    default_detail = 'Entity is not in a state that allows this action'
    default_code = 'invalid_state'


def _first_message(detail):
    """Pull the first human readable message out of a DRF error detail"""
    if isinstance(detail, dict):
        for key, value in detail.items():
            message = _first_message(value)
            if message:
                if key in ('non_field_errors', 'detail'):
                    return message
                return f"{key}: {message}"
        return ''
    if isinstance(detail, (list, tuple)):
        for value in detail:
            message = _first_message(value)
            if message:
                return message
        return ''
    return str(detail)


def api_exception_handler(exc, context):
    """
    Flatten every error response into ``{"error": ...}``.

    Known API errors keep their status code; database integrity errors map to
    409 and anything else is logged and reported as a bare 500.
    """
    if isinstance(exc, Http404):
        exc = NotFound(str(exc) or None)
    elif isinstance(exc, DjangoPermissionDenied):
        exc = Forbidden(str(exc) or None)
    elif isinstance(exc, IntegrityError):
        logger.warning(f"Integrity error in {context.get('view').__class__.__name__ if context.get('view') else 'view'}: {exc}")
        exc = Conflict('Conflicting record already exists')

    response = exception_handler(exc, context)
    if response is None:
        logger.exception(f"Unhandled error while processing request: {exc}", exc_info=exc)
        return Response({'error': 'Internal server error'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    detail = response.data
    body = {'error': _first_message(detail) or 'Request failed'}
    if isinstance(exc, exceptions.ValidationError) and isinstance(detail, dict):
        body['details'] = detail
    response.data = body
    return response
