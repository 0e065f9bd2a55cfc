"""
Ember Ascent - API Errors
Application error hierarchy and FastAPI exception handlers.

Every error response uses the same envelope::

    {"success": false, "error": "<user facing message>", "code": "...", "details": ...}

Internal details only ever go to the server log.
"""
import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again."


class AppError(Exception):
    """Base error carrying a safe user message and an HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        status_code: int | None = None,
        details: Any = None,
        metadata: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.details = details
        self.metadata = metadata or {}


class ValidationError(AppError):
    """Request failed validation."""
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"


class ForbiddenError(AppError):
    """Caller is authenticated but not allowed."""
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"


class NotFoundError(AppError):
    """Requested resource does not exist."""
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class ConflictError(AppError):
    """The request duplicates existing state."""
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"


class RateLimitError(AppError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    code = "RATE_LIMITED"


class ServiceError(AppError):
    """A downstream service (database, LLM) failed."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "SERVICE_ERROR"


def error_body(message: str, code: str, details: Any = None, **extra: Any) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "error": message, "code": code}
    if details is not None:
        body["details"] = details
    body.update(extra)
    return body


def _format_validation_errors(exc: RequestValidationError) -> list[dict[str, str]]:
    issues = []
    for err in exc.errors():
        # Drop the "body"/"query" prefix so fields read like the payload keys
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        issues.append({
            "field": ".".join(loc) or "request",
            "message": err.get("msg", "Invalid value"),
        })
    return issues


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            f"[{exc.code}] {request.method} {request.url.path}: {exc.message} {exc.metadata}"
        )
    else:
        logger.info(f"[{exc.code}] {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message, exc.code, exc.details),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    issues = _format_validation_errors(exc)
    logger.info(f"Validation failed for {request.method} {request.url.path}: {issues}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Invalid request", "VALIDATION_ERROR", issues),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail), f"HTTP_{exc.status_code}"),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(GENERIC_ERROR_MESSAGE, "INTERNAL_ERROR"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the error envelope handlers to the application."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
