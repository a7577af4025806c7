"""Exception handlers mapping the voting engine's errors to HTTP responses.

Business errors render as ``{"message": ...}``; storage failures render as a
generic 503 without leaking driver detail.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError

from ballot_api.lib.ballot.errors import (
    ActionNotPermittedError,
    BallotError,
    BallotValidationError,
    ElectionNotFoundError,
    ElectionStateError,
    VoteConflictError,
)

SERVICE_UNAVAILABLE_MESSAGE = "Service temporarily unavailable. Please retry later."

STATUS_BY_ERROR: dict[type[BallotError], int] = {
    BallotValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ElectionStateError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    VoteConflictError: status.HTTP_409_CONFLICT,
    ElectionNotFoundError: status.HTTP_404_NOT_FOUND,
    ActionNotPermittedError: status.HTTP_403_FORBIDDEN,
}


def status_for(exc: BallotError) -> int:
    """Resolve the HTTP status of a business error, honoring subclasses."""
    for error_type in type(exc).__mro__:
        if error_type in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[error_type]
    return status.HTTP_400_BAD_REQUEST


def register_exception_handlers(app: FastAPI) -> None:
    """Register the business and storage error handlers on ``app``."""

    @app.exception_handler(BallotError)
    async def ballot_error_handler(request: Request, exc: BallotError) -> JSONResponse:
        return JSONResponse(status_code=status_for(exc), content={"message": exc.message})

    @app.exception_handler(DBAPIError)
    async def storage_error_handler(request: Request, exc: DBAPIError) -> JSONResponse:
        if isinstance(exc, IntegrityError):
            logger.warning("Unhandled integrity error on {} {}", request.method, request.url.path)
            return JSONResponse(
                status_code=status.HTTP_409_CONFLICT,
                content={"message": "The request conflicts with existing data."},
            )
        kind = "operational" if isinstance(exc, OperationalError | InterfaceError) else "driver"
        logger.opt(exception=exc).error("Database {} error on {} {}", kind, request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"message": SERVICE_UNAVAILABLE_MESSAGE},
        )
