"""
Unified exception handler.

Installed as REST_FRAMEWORK['EXCEPTION_HANDLER']. Every failed response has
the same shape, so clients only check for the `type` field:

{
    "type":    "validation_error" | "not_found" | "forbidden" | "invalid_state" | ...,
    "code":    "INVALID_TRANSITION",
    "message": "Cannot dispatch order with status PENDING",
    "detail":  { ... }  // optional
}

Successful responses never carry `type`.
"""

import logging

from rest_framework import exceptions as drf_exceptions
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_default_handler

from .exceptions import BaseAppException

logger = logging.getLogger(__name__)

# DRF's own exceptions -> our type names
_DRF_TYPES = {
    drf_exceptions.NotAuthenticated: ('unauthenticated', 'NOT_AUTHENTICATED'),
    drf_exceptions.AuthenticationFailed: ('unauthenticated', 'AUTHENTICATION_FAILED'),
    drf_exceptions.PermissionDenied: ('forbidden', 'FORBIDDEN'),
    drf_exceptions.NotFound: ('not_found', 'NOT_FOUND'),
    drf_exceptions.MethodNotAllowed: ('error', 'METHOD_NOT_ALLOWED'),
    drf_exceptions.ParseError: ('validation_error', 'MALFORMED_REQUEST'),
}


def unified_exception_handler(exc, context):
    """
    DRF exception handler entry point.

    Priority:
    1. BaseAppException and subclasses -> unified shape
    2. DRF ValidationError (serializer.is_valid(raise_exception=True)) -> unified shape, 400
    3. Other DRF APIExceptions -> unified shape with their status code
    4. Anything else -> DRF default (re-raised as a 500 by Django)
    """

    # --- 1. our own hierarchy ---
    if isinstance(exc, BaseAppException):
        body = {
            'type': exc.type,
            'code': exc.code,
            'message': exc.message,
        }
        if exc.detail is not None:
            body['detail'] = exc.detail
        if exc.http_status >= 500:
            logger.error("Unhandled application error %s: %s", exc.code, exc.message)
        return Response(body, status=exc.http_status)

    # --- 2. DRF ValidationError ---
    if isinstance(exc, drf_exceptions.ValidationError):
        body = {
            'type': 'validation_error',
            'code': 'VALIDATION_ERROR',
            'message': 'Request validation failed',
            'detail': exc.detail,
        }
        return Response(body, status=400)

    # --- 3. remaining DRF exceptions ---
    if isinstance(exc, drf_exceptions.APIException):
        response = drf_default_handler(exc, context)
        error_type, code = 'error', 'API_ERROR'
        for exc_cls, mapped in _DRF_TYPES.items():
            if isinstance(exc, exc_cls):
                error_type, code = mapped
                break
        response.data = {
            'type': error_type,
            'code': code,
            'message': str(exc.detail),
        }
        return response

    # --- 4. everything else ---
    return drf_default_handler(exc, context)
