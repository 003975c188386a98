import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from care.services.tasks import TaskCompletionError

logger = logging.getLogger(__name__)


def _validation_message(exc: DjangoValidationError):
    if hasattr(exc, 'error_dict'):
        return exc.message_dict
    return exc.messages


def api_exception_handler(exc, context):
    if isinstance(exc, DjangoValidationError):
        return Response({'ok': False, 'error': {'code': 'invalid', 'message': _validation_message(exc)}},
                        status=status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, TaskCompletionError):
        return Response({'ok': False, 'error': {'code': exc.code, 'message': str(exc)}}, status=exc.status_code)
    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.exception("unhandled error in %s", context.get('view'))
        return Response({'ok': False, 'error': {'code': 'server_error', 'message': str(exc)}}, status=500)
    # normalize response
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = resp.data
    code = getattr(exc, 'default_code', 'api_error')
    out = Response({'ok': False, 'error': {'code': code, 'message': detail}}, status=resp.status_code)
    for header in ('WWW-Authenticate', 'Retry-After'):
        if header in resp:
            out[header] = resp[header]
    return out
