"""
Account domain models: users, their one-time codes, and pending login
confirmations.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum
from typing import ClassVar

from pydantic import Field, field_validator

from saveit.config import LOGIN_CONFIRMATION_TTL_MINUTES, NAME_MAX_LENGTH, NAME_MIN_LENGTH
from saveit.storage.models import StoredModel, new_id, parse_dt, utc_now


class OTPPurpose(str, Enum):
    """What a one-time code was issued for."""

    SIGNUP = "signup"
    LOGIN = "login"
    FORGOT_PASSWORD = "forgot-password"


class User(StoredModel):
    """A registered account. Credentials and OTP state never leave the API."""

    PRIVATE_FIELDS: ClassVar[frozenset[str]] = frozenset(
        {"password_hash", "otp_code", "otp_expires_at", "otp_purpose"}
    )

    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=NAME_MIN_LENGTH, max_length=NAME_MAX_LENGTH)
    email: str
    password_hash: str
    is_verified: bool = False
    otp_code: str | None = None
    otp_expires_at: datetime | None = None
    otp_purpose: OTPPurpose | None = None
    last_login: datetime | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if len(v) < NAME_MIN_LENGTH:
            raise ValueError(f"Name must be at least {NAME_MIN_LENGTH} characters")
        return v

    @field_validator("email")
    @classmethod
    def email_lowercase(cls, v: str) -> str:
        return v.strip().lower()

    def verify_otp(self, code: str, purpose: OTPPurpose | str, now: datetime | None = None) -> bool:
        """
        Check a submitted code: it must exist, be unexpired, and match both
        the purpose it was issued for and the digits.
        """
        if not self.otp_code or not self.otp_expires_at:
            return False
        expires_at = parse_dt(self.otp_expires_at)
        if expires_at is None or (now or utc_now()) > expires_at:
            return False
        purpose_value = purpose.value if isinstance(purpose, OTPPurpose) else purpose
        if self.otp_purpose != purpose_value:
            return False
        return self.otp_code == str(code).strip()

    def public(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "isVerified": self.is_verified,
        }


class LoginConfirmation(StoredModel):
    """A login waiting for the owner to click the emailed approval link."""

    id: str = Field(default_factory=new_id)
    user_id: str
    username: str
    email: str
    confirm_token: str
    ip_address: str | None = None
    user_agent: str | None = None
    location: str = "Unknown"
    confirmed: bool = False
    temp_token: str
    expires_at: datetime = Field(
        default_factory=lambda: utc_now() + timedelta(minutes=LOGIN_CONFIRMATION_TTL_MINUTES)
    )
    created_at: datetime = Field(default_factory=utc_now)

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or utc_now()) > parse_dt(self.expires_at)
