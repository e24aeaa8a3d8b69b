"""
Credential primitives: password hashing, one-time codes and signed tokens.

- Passwords are hashed with bcrypt.
- Session and login-confirmation tokens are HS256 JWTs signed with
  SAVEIT_JWT_SECRET. Session tokens carry userId/email/name; temp tokens
  carry a "purpose" claim so one can never be used as the other.
"""

from __future__ import annotations

import secrets
from datetime import timedelta
from typing import Any

import bcrypt
import jwt

from saveit.config import LOGIN_CONFIRMATION_TTL_MINUTES
from saveit.infrastructure.settings import JWT_ALGORITHM, JWT_EXPIRES_DAYS, get_jwt_secret
from saveit.storage.models import utc_now

SESSION_PURPOSE = "session"
LOGIN_CONFIRMATION_PURPOSE = "login-confirmation"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    """Constant-time bcrypt check; malformed hashes count as a mismatch."""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def generate_otp() -> str:
    """Six-digit one-time code in 100000..999999."""
    return str(100000 + secrets.randbelow(900000))


def generate_confirm_token() -> str:
    return secrets.token_urlsafe(32)


def _encode(claims: dict[str, Any], ttl: timedelta) -> str:
    now = utc_now()
    payload = {**claims, "jti": secrets.token_hex(8), "iat": now, "exp": now + ttl}
    return jwt.encode(payload, get_jwt_secret(), algorithm=JWT_ALGORITHM)


def create_session_token(user_id: str, email: str, name: str) -> str:
    """Long-lived bearer token returned after a successful login."""
    return _encode(
        {"userId": user_id, "email": email, "name": name, "purpose": SESSION_PURPOSE},
        timedelta(days=JWT_EXPIRES_DAYS),
    )


def create_temp_token(user_id: str, email: str) -> str:
    """Short-lived token handed out while a login waits for email approval."""
    return _encode(
        {"userId": user_id, "email": email, "purpose": LOGIN_CONFIRMATION_PURPOSE},
        timedelta(minutes=LOGIN_CONFIRMATION_TTL_MINUTES),
    )


def decode_token(token: str, purpose: str = SESSION_PURPOSE) -> dict[str, Any]:
    """
    Verify signature, expiry and purpose of a token.

    Raises:
        jwt.ExpiredSignatureError: Token is past its exp claim
        jwt.InvalidTokenError: Bad signature, malformed, or wrong purpose
    """
    claims = jwt.decode(token, get_jwt_secret(), algorithms=[JWT_ALGORITHM])
    if claims.get("purpose", SESSION_PURPOSE) != purpose:
        raise jwt.InvalidTokenError(f"Token purpose mismatch: expected {purpose}")
    if not claims.get("userId"):
        raise jwt.InvalidTokenError("Token missing userId")
    return claims
