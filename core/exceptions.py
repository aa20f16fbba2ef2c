# core/exceptions.py
import logging
from contextlib import contextmanager

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError
from django.db.models import ProtectedError
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class PolicyViolation(APIException):
    """A business rule refused the operation (card status, insufficient balance...)"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Operation not allowed.'
    default_code = 'policy_violation'


class DuplicateKey(APIException):
    """A generated receipt or card number collided with an existing row"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Duplicate identifier, please retry.'
    default_code = 'duplicate_key'


class ConcurrentUpdate(APIException):
    """A conditional write lost to a concurrent change; safe to retry"""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'The record was changed by another request, please retry.'
    default_code = 'conflict'


@contextmanager
def duplicate_key_guard():
    """Turn a unique-constraint failure on a generated number into DuplicateKey"""
    try:
        yield
    except IntegrityError as exc:
        logger.warning(f"Duplicate key: {str(exc)}")
        raise DuplicateKey() from exc


def flatten_messages(detail):
    """Collapse DRF error detail (dict/list/str) into a flat list of messages"""
    if isinstance(detail, dict):
        messages = []
        for field, value in detail.items():
            for message in flatten_messages(value):
                if field in ('non_field_errors', 'detail'):
                    messages.append(message)
                else:
                    messages.append(f'{field}: {message}')
        return messages
    if isinstance(detail, (list, tuple)):
        messages = []
        for item in detail:
            messages.extend(flatten_messages(item))
        return messages
    return [str(detail)]


def _error_response(message, status_code):
    return Response({'success': False, 'message': message}, status=status_code)


def envelope_exception_handler(exc, context):
    """
    Render every API error as {success: false, message: "..."}.

    DRF exceptions keep their status code. Django validation errors and
    integrity/protected errors from the ORM become 400, anything else is
    logged and reported as a 500.
    """
    if isinstance(exc, DjangoValidationError):
        exc = ValidationError(exc.message_dict if hasattr(exc, 'error_dict') else exc.messages)

    response = exception_handler(exc, context)
    if response is not None:
        message = ', '.join(flatten_messages(response.data)) or 'Request failed.'
        response.data = {'success': False, 'message': message}
        return response

    view = context.get('view')
    view_name = view.__class__.__name__ if view else 'unknown view'

    if isinstance(exc, ProtectedError):
        return _error_response(
            'Record is still referenced by ledger entries and cannot be deleted.',
            status.HTTP_400_BAD_REQUEST
        )

    if isinstance(exc, IntegrityError):
        logger.warning(f"Integrity error in {view_name}: {str(exc)}")
        return _error_response(DuplicateKey.default_detail, status.HTTP_400_BAD_REQUEST)

    logger.exception(f"Unhandled error in {view_name}: {str(exc)}")
    message = str(exc) if settings.DEBUG else 'Internal server error.'
    return _error_response(message, status.HTTP_500_INTERNAL_SERVER_ERROR)
