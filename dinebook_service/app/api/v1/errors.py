"""
Mapping of domain exceptions to HTTP errors
"""
import logging

from fastapi import HTTPException, status

from dinebook_service.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_STATUS_CODES = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (AuthorizationError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
)


def http_error(error: Exception, action: str) -> HTTPException:
    """Translate an exception raised while handling a request.

    Domain errors keep their message. Anything unexpected is logged with its
    traceback and reported to the client as a generic 500.
    """
    if isinstance(error, HTTPException):
        return error

    for exc_type, status_code in _STATUS_CODES:
        if isinstance(error, exc_type):
            headers = {"WWW-Authenticate": "Bearer"} if status_code == status.HTTP_401_UNAUTHORIZED else None
            return HTTPException(status_code=status_code, detail=str(error), headers=headers)

    logger.error(f"❌ {action} failed: {error}", exc_info=error)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"{action} failed"
    )


def format_validation_errors(errors) -> str:
    """Render pydantic errors as "field: message" pairs"""
    messages = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(location)
        message = error.get("msg", "Invalid value")
        messages.append(f"{field}: {message}" if field else message)
    return "; ".join(messages) or "Invalid request"
