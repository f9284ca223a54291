"""Translation of engine exceptions into HTTP responses."""

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

from engagement_engine.core.errors import (
    BatchCancelledError,
    BatchNotClosedError,
    EngineError,
    IllegalTransitionError,
    InsufficientPrivilegeError,
    InvalidKindError,
    InvalidPeriodError,
    InvariantViolationError,
    TransientError,
    UnknownBatchError,
    UnknownContentError,
    UnknownSignalTypeError,
    UnknownUserError,
)

logger = logging.getLogger(__name__)

# Checked in order; the first matching class wins.
ERROR_STATUS: tuple[tuple[type[EngineError], int], ...] = (
    (UnknownContentError, status.HTTP_404_NOT_FOUND),
    (UnknownUserError, status.HTTP_404_NOT_FOUND),
    (UnknownBatchError, status.HTTP_404_NOT_FOUND),
    (InvalidKindError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (InvalidPeriodError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (UnknownSignalTypeError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (IllegalTransitionError, status.HTTP_409_CONFLICT),
    (BatchNotClosedError, status.HTTP_409_CONFLICT),
    (BatchCancelledError, status.HTTP_409_CONFLICT),
    (InsufficientPrivilegeError, status.HTTP_403_FORBIDDEN),
    (TransientError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (InvariantViolationError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def status_for(exc: EngineError) -> int:
    """Return the HTTP status code for an engine exception."""
    for error_type, code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def engine_error_handler(request: Request, exc: EngineError) -> JSONResponse:
    """Render an engine exception with the type name so clients can tell reasons apart."""
    code = status_for(exc)
    if code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=code,
        content={"detail": str(exc), "error": type(exc).__name__},
    )
