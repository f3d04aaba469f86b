"""
Domain errors and their translation into JSON API responses.

Every failure leaves the API as ``{"message": ...}`` (plus ``errors`` for
validation failures). Upstream and unexpected errors are logged with detail
and answered with a generic message.
"""
import logging

from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ProjectFlowError(Exception):
    """Base class for errors raised by storage, services and handlers."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = 'Internal server error'

    def __init__(self, message=None, errors=None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class ValidationError(ProjectFlowError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Validation failed'


class AuthenticationRequired(ProjectFlowError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = 'Authentication required'


class GoogleAuthRequired(AuthenticationRequired):
    default_message = 'Google authentication required'


class AccessDenied(ProjectFlowError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = 'Access denied'


class EntityNotFound(ProjectFlowError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = 'Not found'


class Conflict(ProjectFlowError):
    status_code = status.HTTP_409_CONFLICT
    default_message = 'Conflict'


class UpstreamServiceError(ProjectFlowError):
    """A Google, Gemini or payment provider call failed. ``detail`` is never sent to clients."""
    default_message = 'An external service request failed'

    def __init__(self, message=None, detail=None):
        super().__init__(message)
        self.detail = detail


def api_exception_handler(exc, context):
    """REST framework exception handler producing ``{"message": ...}`` bodies."""
    view = context.get('view')
    view_name = view.__class__.__name__ if view else 'unknown'

    if isinstance(exc, UpstreamServiceError):
        logger.error(f"{view_name}: upstream failure: {exc.message} ({exc.detail})")
        return Response({'message': exc.message}, status=exc.status_code)

    if isinstance(exc, ProjectFlowError):
        body = {'message': exc.message}
        if exc.errors:
            body['errors'] = exc.errors
        return Response(body, status=exc.status_code)

    response = exception_handler(exc, context)
    if response is None:
        logger.exception(f"{view_name}: unhandled error", exc_info=exc)
        return Response({'message': 'Internal server error'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if isinstance(exc, exceptions.ValidationError):
        response.data = {'message': 'Validation failed', 'errors': response.data}
    elif isinstance(response.data, dict) and 'detail' in response.data:
        response.data = {'message': str(response.data['detail'])}
    return response
