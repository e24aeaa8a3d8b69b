"""Exceptions shared by services and routes.

Every error a client can see is an APIError carrying its HTTP status; the
handlers in saveit.api.errors turn them into {success: false, error} bodies.
"""

from __future__ import annotations

from typing import Any


class APIError(Exception):
    """An error with a client-safe message and an HTTP status."""

    status_code: int = 400

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: Any = None,
        extra: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details
        # Additional top-level keys for the error body, e.g. {"expired": True}
        self.extra = extra or {}


class BadRequestError(APIError):
    status_code = 400


class AuthenticationError(APIError):
    status_code = 401


class ForbiddenError(APIError):
    status_code = 403


class NotFoundError(APIError):
    status_code = 404


class ConflictError(APIError):
    status_code = 409


class GoneError(APIError):
    """The resource existed but has expired (e.g. a login confirmation)."""

    status_code = 410


class ValidationFailed(BadRequestError):
    """Well-formed input that breaks a business rule (unknown parent, bad enum)."""
