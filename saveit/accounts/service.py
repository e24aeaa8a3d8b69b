"""
Account service: signup, OTP verification, login and password reset.

Route handlers call these functions and wrap the returned dicts in the
response envelope. Failures are raised as APIError subclasses.
"""

from __future__ import annotations

import sqlite3

from saveit.accounts.models import OTPPurpose, User
from saveit.accounts.repository import UserRepository
from saveit.config import NAME_MAX_LENGTH, NAME_MIN_LENGTH, PASSWORD_MIN_LENGTH
from saveit.errors import (
    AuthenticationError,
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
)
from saveit.infrastructure.security import (
    create_session_token,
    generate_otp,
    hash_password,
    verify_password,
)
from saveit.notifications.email import get_email_service
from saveit.observability.logging import get_logger
from saveit.observability.telemetry import counter, log_event
from saveit.storage.models import utc_now
from saveit.utils.redaction import redact
from saveit.utils.validators import ValidationError, sanitize_string, validate_email

logger = get_logger(__name__)


def _check_password(password: str | None) -> str:
    if not password or len(password) < PASSWORD_MIN_LENGTH:
        raise BadRequestError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    return password


def _normalize_email(email: str | None) -> str:
    try:
        return validate_email(email)
    except ValidationError as e:
        raise BadRequestError(str(e)) from None


def _issue_otp(user: User, purpose: OTPPurpose) -> bool:
    """Store a new code for user and email it. Returns whether the email went out."""
    code = generate_otp()
    UserRepository.set_otp(user.id, code, purpose)
    counter(f"auth.otp_issued.{purpose.value}")
    return get_email_service().send_otp(user.email, code, purpose.value, user.name)


def session_payload(user: User) -> dict:
    """Token plus public user fields, as returned by every successful sign-in."""
    return {
        "token": create_session_token(user.id, user.email, user.name),
        "user": user.public(),
    }


def signup(name: str | None, email: str | None, password: str | None) -> dict:
    """
    Register an unverified account and email a signup code.

    Re-signing up with an unverified email replaces its name/password and
    sends a new code.
    """
    name = sanitize_string(name)
    if not NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH:
        raise BadRequestError(
            f"Name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters"
        )
    email = _normalize_email(email)
    _check_password(password)

    existing = UserRepository.get_by_email(email)
    if existing and existing.is_verified:
        raise ConflictError("An account with this email already exists")

    if existing:
        user = UserRepository.update(
            existing.id, name=name, password_hash=hash_password(password)
        )
    else:
        try:
            user = UserRepository.create(
                User(name=name, email=email, password_hash=hash_password(password))
            )
        except sqlite3.IntegrityError:
            raise ConflictError("An account with this email already exists") from None

    email_sent = _issue_otp(user, OTPPurpose.SIGNUP)
    log_event("auth.signup", user=redact(user.email), email_sent=email_sent)
    return {"email": user.email, "emailSent": email_sent, "requiresVerification": True}


def resend_otp(email: str | None, purpose: str | None) -> dict:
    email = _normalize_email(email)
    otp_purpose = _parse_purpose(purpose)

    user = UserRepository.get_by_email(email)
    if not user:
        raise NotFoundError("User not found")
    if otp_purpose == OTPPurpose.SIGNUP and user.is_verified:
        raise BadRequestError("Email is already verified")

    return {"email": user.email, "emailSent": _issue_otp(user, otp_purpose)}


def _parse_purpose(purpose: str | None) -> OTPPurpose:
    try:
        return OTPPurpose(purpose or OTPPurpose.SIGNUP.value)
    except ValueError:
        raise BadRequestError("Invalid OTP purpose") from None


def verify_otp(email: str | None, otp: str | None, purpose: str | None) -> dict:
    """
    Check a code for its purpose.

    - signup: marks the account verified and signs the user in
    - login: signs the user in
    - forgot-password: confirms the code is valid; the code stays usable
      for reset_password()
    """
    email = _normalize_email(email)
    otp_purpose = _parse_purpose(purpose)
    if not otp:
        raise BadRequestError("OTP is required")

    user = UserRepository.get_by_email(email)
    if not user:
        raise NotFoundError("User not found")

    if not user.verify_otp(otp, otp_purpose):
        counter("auth.otp_rejected")
        raise BadRequestError("Invalid or expired OTP")

    if otp_purpose == OTPPurpose.FORGOT_PASSWORD:
        return {"verified": True, "email": user.email}

    changes = {"otp_code": None, "otp_expires_at": None, "otp_purpose": None, "last_login": utc_now()}
    if otp_purpose == OTPPurpose.SIGNUP:
        changes["is_verified"] = True
    user = UserRepository.update(user.id, **changes)

    log_event("auth.otp_verified", user=redact(user.email), purpose=otp_purpose.value)
    return {"verified": True, **session_payload(user)}


def authenticate(email: str | None, password: str | None) -> User:
    """
    Check credentials for login.

    Raises:
        BadRequestError: Missing fields
        AuthenticationError: Unknown email or wrong password
        ForbiddenError: Email not verified yet
    """
    if not email or not password:
        raise BadRequestError("Email and password are required")
    email = _normalize_email(email)

    user = UserRepository.get_by_email(email)
    if not user or not verify_password(password, user.password_hash):
        counter("auth.login_failed")
        logger.warning("Failed login for %s", redact(email))
        raise AuthenticationError("Invalid email or password")

    if not user.is_verified:
        raise ForbiddenError("Please verify your email before logging in")

    return user


def complete_login(user: User) -> dict:
    """Stamp last_login and return a session."""
    user = UserRepository.update(user.id, last_login=utc_now()) or user
    log_event("auth.login", user=redact(user.email))
    return session_payload(user)


def forgot_password(email: str | None) -> dict:
    email = _normalize_email(email)
    user = UserRepository.get_by_email(email)
    if not user:
        raise NotFoundError("No account found with this email")
    return {"email": user.email, "emailSent": _issue_otp(user, OTPPurpose.FORGOT_PASSWORD)}


def reset_password(email: str | None, otp: str | None, new_password: str | None) -> dict:
    email = _normalize_email(email)
    _check_password(new_password)

    user = UserRepository.get_by_email(email)
    if not user:
        raise NotFoundError("User not found")
    if not otp or not user.verify_otp(otp, OTPPurpose.FORGOT_PASSWORD):
        raise BadRequestError("Invalid or expired OTP")

    UserRepository.update(
        user.id,
        password_hash=hash_password(new_password),
        otp_code=None,
        otp_expires_at=None,
        otp_purpose=None,
    )
    log_event("auth.password_reset", user=redact(user.email))
    return {"email": user.email, "passwordReset": True}


def get_user_for_session(user_id: str) -> User:
    user = UserRepository.get_by_id(user_id)
    if not user:
        raise AuthenticationError("User not found")
    return user
