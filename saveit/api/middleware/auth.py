"""
Authentication dependencies for the SaveIt.AI API.

- get_current_user: verifies the HS256 session JWT from the Authorization
  header and returns the caller's identity from its claims.
- require_admin: checks admin credentials sent in the JSON body, the query
  string, or email/password headers against SAVEIT_ADMIN_EMAIL /
  SAVEIT_ADMIN_PASSWORD.
"""

from __future__ import annotations

import json
import secrets
from dataclasses import dataclass

from fastapi import Request

from saveit.errors import AuthenticationError, ForbiddenError
from saveit.infrastructure.security import decode_token
from saveit.infrastructure.settings import get_admin_credentials
from saveit.observability.logging import get_logger
from saveit.observability.telemetry import counter
from saveit.utils.redaction import redact

logger = get_logger(__name__)


@dataclass
class AuthenticatedUser:
    """Caller identity taken from a verified session token."""

    id: str
    email: str
    name: str | None = None

    def __str__(self) -> str:
        return f"User({self.id})"


def extract_bearer_token(authorization: str | None) -> str:
    """
    Pull the token out of an "Authorization: Bearer <token>" header.

    Raises:
        AuthenticationError: Header missing or not a Bearer credential
    """
    if not authorization:
        raise AuthenticationError("No token, authorization denied")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AuthenticationError("Invalid authorization header format. Expected: Bearer <token>")
    return parts[1]


async def get_current_user(request: Request) -> AuthenticatedUser:
    """
    FastAPI dependency for endpoints that need a signed-in user.

    jwt.ExpiredSignatureError / jwt.InvalidTokenError propagate to the app's
    exception handlers, which answer 401.

    Usage:
        @router.get("/api/notes")
        async def list_notes(user: AuthenticatedUser = Depends(get_current_user)):
            ...
    """
    token = extract_bearer_token(request.headers.get("Authorization"))
    claims = decode_token(token)
    return AuthenticatedUser(
        id=claims["userId"],
        email=claims.get("email", ""),
        name=claims.get("name"),
    )


async def _body_credentials(request: Request) -> dict:
    if request.method in ("GET", "HEAD"):
        return {}
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return {}
    return body if isinstance(body, dict) else {}


async def require_admin(request: Request) -> str:
    """
    FastAPI dependency for admin endpoints. Returns the admin email.

    Credentials are looked up in body, then query, then headers (header names
    are case-insensitive in Starlette).

    Raises:
        ForbiddenError: Admin credentials are not configured on the server
        AuthenticationError: Missing or wrong credentials
    """
    admin_email, admin_password = get_admin_credentials()
    if not admin_email or not admin_password:
        raise ForbiddenError("Admin access is not configured")

    body = await _body_credentials(request)
    email = body.get("email") or request.query_params.get("email") or request.headers.get("email")
    password = (
        body.get("password")
        or request.query_params.get("password")
        or request.headers.get("password")
    )

    if not email or not password:
        raise AuthenticationError("Authentication required")

    email_ok = secrets.compare_digest(str(email).strip().lower().encode(), admin_email.encode())
    password_ok = secrets.compare_digest(str(password).encode(), admin_password.encode())
    if not (email_ok and password_ok):
        counter("admin.auth_failed")
        logger.warning("Rejected admin credentials for %s", redact(str(email)))
        raise AuthenticationError("Invalid credentials")

    return admin_email
