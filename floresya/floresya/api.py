"""
DRF glue: maps domain errors to JSON responses.
"""
import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from .errors import (
    ConflictError,
    NotFoundError,
    PhotoSetError,
    StorageError,
    ValidationError,
)

logger = logging.getLogger(__name__)

ERROR_STATUS = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (ConflictError, status.HTTP_409_CONFLICT),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (StorageError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def status_for_error(exc: PhotoSetError) -> int:
    for error_class, http_status in ERROR_STATUS:
        if isinstance(exc, error_class):
            return http_status
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def photo_set_exception_handler(exc, context):
    """
    Exception handler for REST_FRAMEWORK['EXCEPTION_HANDLER'].

    Domain errors become ``{"error": code, "detail": message, ...context}``;
    everything else falls through to DRF's default handler.
    """
    if isinstance(exc, PhotoSetError):
        http_status = status_for_error(exc)
        if http_status >= 500:
            logger.error("Photo set request failed: %s", exc, exc_info=exc)
        else:
            logger.info("Photo set request rejected (%s): %s", exc.code, exc)
        return Response(exc.to_dict(), status=http_status)
    return exception_handler(exc, context)
