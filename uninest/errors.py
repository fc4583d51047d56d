# Error taxonomy for the API layer and the handlers that render it as JSON.
# Every error response has the shape {"success": false, "message": "..."}.
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

logger = logging.getLogger("uninest.errors")


class UniNestError(Exception):
    """Base class for errors that map onto an HTTP status and a client-safe message."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(
        self,
        message: str | None = None,
        status_code: int | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.headers = headers
        super().__init__(self.message)


class ValidationError(UniNestError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class AuthError(UniNestError):
    """Bad credentials (401) or an ownership mismatch (403)."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"

    @classmethod
    def forbidden(cls, message: str = "Unauthorized") -> "AuthError":
        return cls(message, status_code=status.HTTP_403_FORBIDDEN)


class NotFoundError(UniNestError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ConflictError(UniNestError):
    # Kept at 400 to match the established client contract for duplicates
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Conflict"


class InvalidTransitionError(ConflictError):
    default_message = "Invalid status transition"


class BusyError(UniNestError):
    """Another request holds the lock for this resource; the client should retry shortly."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Request in progress, please retry"


class RateLimitedError(UniNestError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Too many requests, please retry later"


class InternalError(UniNestError):
    pass


def error_body(message: str) -> dict:
    return {"success": False, "message": message}


@contextmanager
def handler_boundary(failure_message: str, db: Optional[Session] = None) -> Iterator[None]:
    """
    Wrap a request handler body.

    - UniNestError: roll back (when a session is given) and re-raise unchanged.
    - Anything else: roll back, log the original error with traceback, and raise
      an InternalError carrying only the generic `failure_message`.
    """
    try:
        yield
    except UniNestError:
        if db is not None:
            db.rollback()
        raise
    except Exception as exc:
        if db is not None:
            db.rollback()
        logger.exception("%s", failure_message)
        raise InternalError(failure_message) from exc


async def _uninest_error_handler(request: Request, exc: UniNestError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message), headers=exc.headers)


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Report the first offending field; malformed input is a 400 like any other validation failure
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query")]
        field = ".".join(loc)
        message = f"{field}: {first.get('msg', 'invalid value')}" if field else first.get("msg", message)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=error_body(message))


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    # Last resort for failures outside any handler_boundary; details stay in the server log
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(InternalError.default_message),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(UniNestError, _uninest_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
