from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
import logging
from typing import Iterable, Optional, Sequence, Any

from trackly.schemas.errors import ErrorCode, ErrorResponse
from trackly.core.exception import (
    CustomException,
    DatabaseException,
    InternalServerException,
)

logger = logging.getLogger(__name__)

CORS_ALLOW_METHODS = "GET,POST,PATCH,DELETE,OPTIONS"
CORS_ALLOW_HEADERS = "authorization, x-client-info, apikey, content-type"
CORS_MAX_AGE = "86400"


def error_response(
    code: ErrorCode, message: str, status_code: int, headers: Optional[dict] = None
) -> JSONResponse:
    """Create standardized JSON error response"""
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse.of(code, message, status_code).model_dump(mode="json"),
        headers=headers,
    )


class ExceptionHandlingMiddleware(BaseHTTPMiddleware):
    """
    Centralized exception handling middleware for consistent API responses.
    Turns application, store and unexpected exceptions into error bodies.
    """

    def __init__(self, app, log_internal_errors: bool = True):
        super().__init__(app)
        self.log_internal_errors = log_internal_errors
        self._register_handlers()

    def _register_handlers(self):
        """Register exception type to handler method mappings"""
        self.EXCEPTION_HANDLERS = {
            CustomException: self._handle_custom_exception,
            SQLAlchemyError: self._handle_database_error,
        }

    async def dispatch(self, request: Request, call_next):
        try:
            response = await call_next(request)
            return response
        except Exception as ex:
            return await self._handle_exception(ex, request)

    async def _handle_exception(self, ex: Exception, request: Request) -> JSONResponse:
        """
        Route exception to the appropriate handler.

        All registered handlers are expected to be asynchronous (async def).
        """
        for exc_type, handler in self.EXCEPTION_HANDLERS.items():
            if isinstance(ex, exc_type):
                return await handler(ex, request)

        return await self._handle_unhandled_exception(ex, request)

    async def _handle_custom_exception(
        self, ex: CustomException, request: Request
    ) -> JSONResponse:
        """Handle custom application exceptions"""
        return error_response(ex.code, ex.message, ex.status_code, ex.headers)

    async def _handle_database_error(
        self, ex: SQLAlchemyError, request: Request
    ) -> JSONResponse:
        """Store errors may name tables and columns; log the type only."""
        logger.error(
            "Database error on %s %s: %s",
            request.method, request.url.path, type(ex).__name__,
        )
        return await self._handle_custom_exception(DatabaseException(), request)

    async def _handle_unhandled_exception(
        self, ex: Exception, request: Request
    ) -> JSONResponse:
        """Handle unexpected exceptions"""
        if self.log_internal_errors:
            logger.error(
                f"Unhandled exception on {request.method} {request.url.path}",
                exc_info=ex,
                extra={
                    "path": request.url.path,
                    "method": request.method,
                },
            )
        else:
            logger.error(
                "Unhandled exception on %s %s: %s",
                request.method, request.url.path, type(ex).__name__,
            )

        # Don't expose internal error details
        return await self._handle_custom_exception(
            InternalServerException("An unexpected error occurred. Please try again later."),
            request,
        )


class OriginGuardMiddleware(BaseHTTPMiddleware):
    """
    Rejects requests whose Origin is not on the allow-list.

    Only a validated origin is ever echoed back in Access-Control-Allow-Origin;
    rejected requests get a 403 without any CORS headers.
    """

    def __init__(self, app, allowed_origins: Iterable[str], exempt_paths: Iterable[str] = ()):
        super().__init__(app)
        self.allowed_origins = frozenset(allowed_origins)
        self.exempt_paths = frozenset(exempt_paths)

    def cors_headers(self, origin: str) -> dict:
        return {
            "Vary": "Origin",
            "Access-Control-Allow-Origin": origin,
            "Access-Control-Allow-Credentials": "true",
            "Access-Control-Allow-Methods": CORS_ALLOW_METHODS,
            "Access-Control-Allow-Headers": CORS_ALLOW_HEADERS,
            "Access-Control-Max-Age": CORS_MAX_AGE,
        }

    def is_allowed(self, origin: Optional[str]) -> bool:
        return bool(origin) and origin in self.allowed_origins

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.exempt_paths:
            return await call_next(request)

        origin = request.headers.get("origin")
        if not self.is_allowed(origin):
            logger.debug("Rejected origin %r on %s", origin, request.url.path)
            return error_response(ErrorCode.FORBIDDEN, "Origin not allowed", 403)

        headers = self.cors_headers(origin)
        if request.method == "OPTIONS":
            return Response(status_code=204, headers=headers)

        response = await call_next(request)
        response.headers.update(headers)
        return response


def _format_validation_error(errors: Sequence[Any]) -> str:
    """Format validation errors into human-readable message"""
    messages = []
    for error in errors:
        loc = " -> ".join(str(loc) for loc in error.get("loc", []))
        msg = error.get("msg", "Unknown error")
        messages.append(f"Error in {loc}: {msg}")

    return "; ".join(messages) if messages else "Validation failed"


async def request_validation_handler(request: Request, ex: RequestValidationError) -> JSONResponse:
    """
    Map request validation failures onto the fixed error codes.

    A named field that is absent is MISSING_FIELD; anything else (bad JSON,
    wrong types, unknown fields, no body at all) is INVALID_REQUEST.
    """
    errors = ex.errors()
    for error in errors:
        loc = tuple(error.get("loc", ()))
        if error.get("type") == "json_invalid" or loc == ("body",):
            return error_response(ErrorCode.INVALID_REQUEST, "Invalid JSON body", 400)

    for error in errors:
        loc = tuple(error.get("loc", ()))
        if error.get("type") == "missing" and len(loc) > 1:
            return error_response(ErrorCode.MISSING_FIELD, f"Missing {loc[-1]}", 400)

    return error_response(ErrorCode.INVALID_REQUEST, _format_validation_error(errors), 400)


async def http_exception_handler(request: Request, ex: StarletteHTTPException) -> JSONResponse:
    """Framework-raised HTTP errors such as unknown routes or wrong methods."""
    if ex.status_code == 404:
        code = ErrorCode.NOT_FOUND
    elif ex.status_code == 401:
        code = ErrorCode.UNAUTHORIZED
    elif ex.status_code == 403:
        code = ErrorCode.FORBIDDEN
    elif ex.status_code >= 500:
        code = ErrorCode.INTERNAL_ERROR
    else:
        code = ErrorCode.INVALID_REQUEST

    message = ex.detail if isinstance(ex.detail, str) else str(ex.detail)
    return error_response(code, message, ex.status_code, getattr(ex, "headers", None))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
