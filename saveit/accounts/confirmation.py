"""
Login confirmation handshake.

    login ──► temp token + LoginConfirmation row + email to the approver
                 │
    approver clicks /auth/confirm-login/{confirm_token} ──► confirmed = 1
                 │
    client polls /auth/check-confirmation {tempToken}
        not confirmed ─► {confirmed: false}
        confirmed     ─► session token, row deleted (exchanged once)
        expired       ─► 410 {expired: true}

Temp tokens live LOGIN_CONFIRMATION_TTL_MINUTES and carry the
"login-confirmation" purpose, so they are rejected as session tokens.
"""

from __future__ import annotations

from typing import Any

import jwt

from saveit.accounts.models import LoginConfirmation, User
from saveit.accounts.repository import LoginConfirmationRepository, UserRepository
from saveit.accounts.service import complete_login
from saveit.errors import AuthenticationError, GoneError, NotFoundError
from saveit.infrastructure.security import (
    LOGIN_CONFIRMATION_PURPOSE,
    create_temp_token,
    decode_token,
    generate_confirm_token,
)
from saveit.infrastructure.settings import get_confirmation_email, get_public_api_url
from saveit.notifications.email import get_email_service
from saveit.observability.logging import get_logger
from saveit.observability.telemetry import counter, log_event
from saveit.utils.redaction import redact

logger = get_logger(__name__)


def confirm_url_for(confirm_token: str) -> str:
    return f"{get_public_api_url()}/api/auth/confirm-login/{confirm_token}"


def start_login_confirmation(
    user: User,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> dict[str, Any]:
    """
    Park a successful credential check until someone approves it by email.

    Returns:
        {awaitingConfirmation, tempToken, expiresAt, emailSent}
    """
    LoginConfirmationRepository.purge_expired()

    temp_token = create_temp_token(user.id, user.email)
    confirmation = LoginConfirmationRepository.create(
        LoginConfirmation(
            user_id=user.id,
            username=user.name,
            email=user.email,
            confirm_token=generate_confirm_token(),
            ip_address=ip_address,
            user_agent=(user_agent or "")[:300] or None,
            temp_token=temp_token,
        )
    )

    recipient = get_confirmation_email() or user.email
    email_sent = get_email_service().send_login_confirmation(
        to_email=recipient,
        username=user.name,
        user_email=user.email,
        confirm_url=confirm_url_for(confirmation.confirm_token),
        ip_address=ip_address,
        user_agent=user_agent,
        location=confirmation.location,
    )
    if not email_sent:
        logger.warning("Login confirmation %s created but email was not sent", confirmation.id)

    counter("auth.login_confirmation.started")
    log_event("auth.login_confirmation.started", user=redact(user.email), email_sent=email_sent)

    return {
        "awaitingConfirmation": True,
        "tempToken": temp_token,
        "expiresAt": confirmation.to_api()["expiresAt"],
        "emailSent": email_sent,
    }


def confirm_login(confirm_token: str) -> LoginConfirmation:
    """
    Approve a pending login.

    Raises:
        NotFoundError: Unknown (or already exchanged) token
        GoneError: The confirmation expired
    """
    confirmation = LoginConfirmationRepository.get_by_confirm_token(confirm_token)
    if not confirmation:
        raise NotFoundError("Confirmation link is invalid or has already been used")
    if confirmation.is_expired():
        raise GoneError("Confirmation link has expired", extra={"expired": True})

    if not confirmation.confirmed:
        LoginConfirmationRepository.mark_confirmed(confirmation.id)
        confirmation.confirmed = True
        counter("auth.login_confirmation.confirmed")
        log_event("auth.login_confirmation.confirmed", user=redact(confirmation.email))

    return confirmation


def check_confirmation(temp_token: str | None) -> dict[str, Any]:
    """
    Poll a pending login.

    Returns:
        {confirmed: False} while waiting, or
        {confirmed: True, data: {token, user}} exactly once after approval

    Raises:
        AuthenticationError: Temp token is missing, forged, or not a temp token
        GoneError: Temp token or confirmation expired, or already exchanged
    """
    if not temp_token:
        raise AuthenticationError("Temp token is required", extra={"expired": True})

    try:
        decode_token(temp_token, purpose=LOGIN_CONFIRMATION_PURPOSE)
    except jwt.ExpiredSignatureError:
        raise GoneError("Login confirmation expired", extra={"expired": True}) from None
    except jwt.InvalidTokenError:
        raise AuthenticationError("Invalid confirmation token", extra={"expired": True}) from None

    confirmation = LoginConfirmationRepository.get_by_temp_token(temp_token)
    if not confirmation or confirmation.is_expired():
        raise GoneError("Login confirmation expired", extra={"expired": True})

    if not confirmation.confirmed:
        return {"confirmed": False}

    if not LoginConfirmationRepository.consume(confirmation.id):
        raise GoneError("Login confirmation already used", extra={"expired": True})

    user = UserRepository.get_by_id(confirmation.user_id)
    if not user:
        raise AuthenticationError("User not found")

    counter("auth.login_confirmation.exchanged")
    return {"confirmed": True, "data": complete_login(user)}
