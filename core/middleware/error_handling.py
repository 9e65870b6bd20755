"""
Error handling for the simulated API.

Maps the domain error taxonomy onto HTTP statuses and a single JSON envelope:

    {"error": {"code": ..., "message": ..., "path": ..., "method": ...}}

Messages are sanitized before they leave the process or reach the logs.
"""

import logging
import traceback
from typing import Any, Callable, Optional
import re

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import SQLAlchemyError, IntegrityError

from core.errors import TalentFlowError

logger = logging.getLogger(__name__)

# Patterns for sensitive data that should never be logged
SENSITIVE_PATTERNS = [
    re.compile(r'password["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'token["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'api[_-]?key["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'secret["\s:=]+[^"\s,}]+', re.IGNORECASE),
]


def sanitize_error_message(message: str) -> str:
    """
    Remove sensitive information from error messages.

    Args:
        message: Original error message

    Returns:
        Sanitized error message
    """
    sanitized = message
    for pattern in SENSITIVE_PATTERNS:
        sanitized = pattern.sub('[REDACTED]', sanitized)
    return sanitized


def error_envelope(
    code: str,
    message: str,
    path: str,
    method: str,
    details: Any = None,
) -> dict[str, Any]:
    """Build the JSON error body shared by every error response."""
    error = {
        "code": code,
        "message": sanitize_error_message(message),
        "path": path,
        "method": method,
    }
    if details is not None:
        error["details"] = details
    return {"error": error}


def format_validation_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    """
    Format validation errors into a user-friendly structure.

    Args:
        exc: The validation exception

    Returns:
        List of formatted validation errors
    """
    errors = []
    for error in exc.errors():
        # Drop the "body"/"query" prefix; callers know where they sent it
        loc = [str(part) for part in error["loc"][1:]] or [str(part) for part in error["loc"]]
        errors.append({
            "field": ".".join(loc),
            "message": sanitize_error_message(error["msg"]),
            "type": error["type"],
        })
    return errors


def _validation_message(errors: list[dict[str, Any]]) -> str:
    if not errors:
        return "Request validation failed"
    first = errors[0]
    if first["field"]:
        return f"{first['field']}: {first['message']}"
    return first["message"]


class ErrorHandlingMiddleware:
    """
    Last line of defence: turns any exception that escaped the route
    handlers into a JSON 500 (or 409 for integrity violations) instead of
    letting it propagate out of the application.
    """

    def __init__(self, app: Callable, debug: bool = False):
        """
        Initialize error handling middleware.

        Args:
            app: The ASGI application
            debug: Whether to include the traceback in responses
        """
        self.app = app
        self.debug = debug

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        try:
            await self.app(scope, receive, send)
        except Exception as exc:
            response = self._handle_exception(exc, scope)
            await response(scope, receive, send)

    def _handle_exception(self, exc: Exception, scope: dict) -> Response:
        request_path = scope.get("path", "unknown")
        request_method = scope.get("method", "unknown")
        details: Optional[dict[str, Any]] = None

        if isinstance(exc, IntegrityError):
            status_code = status.HTTP_409_CONFLICT
            code = "INTEGRITY_ERROR"
            message = "Store integrity constraint violated"
            logger.warning(f"Integrity error: {request_method} {request_path}")
        elif isinstance(exc, SQLAlchemyError):
            status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
            code = "STORE_ERROR"
            message = "A store error occurred"
            logger.error(f"Store error: {request_method} {request_path}", exc_info=True)
        else:
            status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
            code = "INTERNAL_SERVER_ERROR"
            message = "An unexpected error occurred"
            logger.error(
                f"Unhandled exception: {request_method} {request_path} - "
                f"{type(exc).__name__}: {sanitize_error_message(str(exc))}",
                exc_info=True,
            )

        if self.debug:
            details = {
                "type": type(exc).__name__,
                "message": sanitize_error_message(str(exc)),
                "traceback": sanitize_error_message(traceback.format_exc()),
            }

        return JSONResponse(
            status_code=status_code,
            content=error_envelope(code, message, request_path, request_method, details),
        )


def setup_error_handlers(app):
    """
    Set up exception handlers for the FastAPI application.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(TalentFlowError)
    async def domain_exception_handler(request: Request, exc: TalentFlowError):
        """Handle domain errors raised by services and the store."""
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            f"{type(exc).__name__}: {request.method} {request.url.path} - "
            f"{sanitize_error_message(exc.message)}"
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=error_envelope(
                exc.code, exc.message, request.url.path, request.method, exc.details
            ),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Malformed bodies and parameters are a 400, like any missing field."""
        errors = format_validation_errors(exc)
        logger.warning(
            f"Validation error: {request.method} {request.url.path} - Errors: {errors}"
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_envelope(
                "VALIDATION_ERROR",
                _validation_message(errors),
                request.url.path,
                request.method,
                errors,
            ),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions (unknown routes, wrong methods)."""
        code = "NOT_FOUND" if exc.status_code == 404 else "HTTP_EXCEPTION"
        return JSONResponse(
            status_code=exc.status_code,
            content=error_envelope(
                code, str(exc.detail), request.url.path, request.method
            ),
        )
