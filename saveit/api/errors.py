"""
Exception handlers for the SaveIt.AI API.

Every failure leaves the server as {success: false, error, details?}:

    APIError (and subclasses)    -> its own status
    RequestValidationError       -> 400 "Validation error" + offending fields
    pydantic.ValidationError     -> 400, same shape (records built in handlers)
    jwt.ExpiredSignatureError    -> 401 "Authentication token expired"
    jwt.InvalidTokenError        -> 401 "Invalid authentication token"
    sqlite3.IntegrityError       -> 409 "Duplicate entry" (UNIQUE) / 400
    sqlite3.OperationalError     -> 503 "Database error"
    HTTPException (incl. 404s)   -> its status
    anything else                -> 500 "Internal server error"

Messages go through sanitize_error_message so SQL, paths and tokens never
reach the client. In development with SAVEIT_DEBUG_ERRORS on, 500s carry the
traceback in details.
"""

from __future__ import annotations

import sqlite3
import traceback

import jwt
import pydantic
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from saveit.api.responses import error_body
from saveit.errors import (  # noqa: F401  re-exported for route modules
    APIError,
    ConflictError,
    NotFoundError,
    ValidationFailed,
)
from saveit.infrastructure.settings import get_bool_env, is_development
from saveit.observability.logging import get_logger
from saveit.observability.telemetry import counter
from saveit.utils.error_sanitizer import sanitize_error_message
from saveit.utils.redaction import redact

logger = get_logger(__name__)


def _respond(status_code: int, message: str, details=None, headers=None, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_body(message, details, **extra),
        headers=headers,
    )


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    counter(f"api.errors.{exc.status_code}")
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return _respond(
        exc.status_code,
        sanitize_error_message(exc.message, exc.status_code),
        exc.details,
        headers=headers,
        **exc.extra,
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("Validation error on %s: %s", redact(request.url.path), exc.errors())
    counter("api.validation_errors")
    fields = sorted({str(err["loc"][-1]) for err in exc.errors() if err.get("loc")})
    return _respond(status.HTTP_400_BAD_REQUEST, "Validation error", fields)


async def model_error_handler(request: Request, exc: pydantic.ValidationError) -> JSONResponse:
    counter("api.validation_errors")
    fields = sorted({str(err["loc"][-1]) for err in exc.errors() if err.get("loc")})
    return _respond(status.HTTP_400_BAD_REQUEST, "Validation error", fields)


async def expired_token_handler(request: Request, exc: jwt.ExpiredSignatureError) -> JSONResponse:
    counter("api.auth.token_expired")
    return _respond(
        status.HTTP_401_UNAUTHORIZED,
        "Authentication token expired",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def invalid_token_handler(request: Request, exc: jwt.InvalidTokenError) -> JSONResponse:
    counter("api.auth.token_invalid")
    return _respond(
        status.HTTP_401_UNAUTHORIZED,
        "Invalid authentication token",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def integrity_error_handler(request: Request, exc: sqlite3.IntegrityError) -> JSONResponse:
    logger.warning("Integrity error on %s: %s", request.url.path, exc)
    if "UNIQUE" in str(exc).upper():
        return _respond(status.HTTP_409_CONFLICT, "Duplicate entry")
    return _respond(status.HTTP_400_BAD_REQUEST, "Invalid reference")


async def database_error_handler(request: Request, exc: sqlite3.OperationalError) -> JSONResponse:
    logger.error("Database error on %s: %s", request.url.path, exc)
    counter("api.errors.database")
    return _respond(status.HTTP_503_SERVICE_UNAVAILABLE, "Database error")


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        message = f"Route {request.method} {request.url.path} not found"
    else:
        message = sanitize_error_message(str(exc.detail), exc.status_code)
    return _respond(exc.status_code, message, headers=getattr(exc, "headers", None))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    counter("api.errors.500")
    details = None
    if is_development() and get_bool_env("SAVEIT_DEBUG_ERRORS", False):
        details = traceback.format_exception(type(exc), exc, exc.__traceback__)
    return _respond(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", details)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(pydantic.ValidationError, model_error_handler)
    app.add_exception_handler(jwt.ExpiredSignatureError, expired_token_handler)
    app.add_exception_handler(jwt.InvalidTokenError, invalid_token_handler)
    app.add_exception_handler(sqlite3.IntegrityError, integrity_error_handler)
    app.add_exception_handler(sqlite3.OperationalError, database_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
