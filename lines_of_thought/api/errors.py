"""Translate pipeline errors into HTTP responses."""

import logging
from typing import Dict, Type

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from lines_of_thought.services.embeddings import EmbeddingError
from lines_of_thought.services.errors import (
    BranchConflictError,
    ModerationRejectedError,
    ModerationUnavailableError,
    NotFoundError,
    OriginalityError,
    StoreError,
    ThoughtError,
    ValidationFailedError,
)

logger = logging.getLogger(__name__)

# Checked in order, so subclasses must precede their bases
STATUS_BY_ERROR: Dict[Type[ThoughtError], int] = {
    ValidationFailedError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    OriginalityError: status.HTTP_409_CONFLICT,
    BranchConflictError: status.HTTP_409_CONFLICT,
    ModerationRejectedError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ModerationUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
}

GENERIC_DETAIL = {"code": "internal-error", "message": "Internal server error"}
UNAVAILABLE_DETAIL = {"code": "service-unavailable", "message": "A backing service is unavailable"}


def http_error(error: Exception, operation: str) -> HTTPException:
    """
    Build the HTTPException for ``error``.

    Expected rejections carry their code and message. Infrastructure and
    unexpected failures get a generic detail and are logged with traceback.
    """
    if isinstance(error, ThoughtError):
        for error_type, status_code in STATUS_BY_ERROR.items():
            if isinstance(error, error_type):
                return HTTPException(status_code=status_code, detail=error.to_detail())
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.to_detail())

    if isinstance(error, (StoreError, EmbeddingError)):
        logger.error(f"{operation} failed: {error}", exc_info=error)
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=UNAVAILABLE_DETAIL)

    logger.error(f"{operation} error: {error}", exc_info=error)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=GENERIC_DETAIL)


def describe_request_error(error: RequestValidationError) -> str:
    """One-line message for the first problem FastAPI found in the request."""
    problems = error.errors()
    if not problems:
        return "Request is invalid"
    first = problems[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "is invalid")
    return f"{field}: {message}" if field else message


async def request_validation_handler(request: Request, error: RequestValidationError) -> JSONResponse:
    detail = ValidationFailedError(describe_request_error(error)).to_detail()
    logger.info(f"Rejected malformed request to {request.url.path}: {detail['message']}")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": detail})


def register_error_handlers(app: FastAPI) -> None:
    """Render malformed bodies and parameters as ``validation-failed`` (400)."""
    app.add_exception_handler(RequestValidationError, request_validation_handler)
