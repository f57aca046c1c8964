"""Error taxonomy and Litestar exception handlers."""

import logging

from litestar import Request, Response
from litestar.exceptions import HTTPException
from litestar.status_codes import (
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from quire.lib import observability

logger = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE = "Operation failed, please retry"


class QuireError(Exception):
    """Base class for errors raised by the ordering services."""

    status_code: int = HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = GENERIC_FAILURE_MESSAGE

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(QuireError):
    """Scope cap exceeded, malformed target or malformed index."""

    status_code = HTTP_400_BAD_REQUEST
    default_detail = "Validation error"


class NotFoundError(QuireError):
    """A referenced team, user, document, collection or entity does not exist."""

    status_code = HTTP_404_NOT_FOUND
    default_detail = "Resource not found"


class PersistenceError(QuireError):
    """The transaction failed and was rolled back. Safe to retry."""


class BackfillError(PersistenceError):
    """Writing backfilled indices failed; no index in the batch was persisted."""


def _json_error(status_code: int, detail: str) -> Response:
    return Response(
        content={"status_code": status_code, "detail": detail},
        status_code=status_code,
        media_type="application/json",
    )


def quire_exception_handler(request: Request, exc: QuireError) -> Response:
    """Map domain errors to JSON responses.

    Validation and not-found errors carry an actionable message; persistence
    failures only expose the generic retry message.
    """
    if isinstance(exc, PersistenceError):
        if not observability.exception(
            "Persistence failure on {method} {path}",
            method=request.method,
            path=request.url.path,
        ):
            logger.exception(
                "Persistence failure on %s %s", request.method, request.url.path,
            )
        return _json_error(exc.status_code, GENERIC_FAILURE_MESSAGE)

    return _json_error(exc.status_code, exc.detail)


def http_exception_handler(request: Request, exc: HTTPException) -> Response:
    """Handle HTTP exceptions raised by Litestar or the controllers."""
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _json_error(exc.status_code, detail)


def internal_server_error_handler(request: Request, exc: Exception) -> Response:
    """Handle unexpected exceptions, logging them once."""
    if not observability.exception(
        "Unhandled exception on {method} {path}",
        method=request.method,
        path=request.url.path,
    ):
        logger.exception(
            "Unhandled exception on %s %s", request.method, request.url.path,
        )
    return _json_error(HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")
