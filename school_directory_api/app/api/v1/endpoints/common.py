"""Helpers shared by the endpoint modules."""

import logging
from typing import Any, Dict

from fastapi import HTTPException, Request, status

from school_directory_api.app.core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
)
from school_directory_api.app.services.query_compiler import flatten_query_params


logger = logging.getLogger(__name__)


def to_http_exception(exc: Exception) -> HTTPException:
    """Pick the status code for an exception raised by a service.

    ``ValueError`` subclasses are client errors; anything else is
    logged and reported as a generic server error.
    """
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, PermissionDeniedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
    if isinstance(exc, (ConflictError, ValueError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    logger.error("Unhandled error: %s", exc, exc_info=exc)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server Error")


def query_params(request: Request) -> Dict[str, Any]:
    """The request's query string as a flat mapping (repeated keys become lists)."""
    return flatten_query_params(request.query_params.multi_items())
