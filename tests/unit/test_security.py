"""Tests for password hashing, OTPs and signed tokens"""

from __future__ import annotations

from datetime import timedelta

import jwt
import pytest

from saveit.infrastructure import security
from saveit.infrastructure.security import (
    LOGIN_CONFIRMATION_PURPOSE,
    create_session_token,
    create_temp_token,
    decode_token,
    generate_confirm_token,
    generate_otp,
    hash_password,
    verify_password,
)


def test_password_hash_roundtrip():
    hashed = hash_password("hunter22")

    assert hashed != "hunter22"
    assert verify_password("hunter22", hashed)
    assert not verify_password("hunter23", hashed)


def test_verify_password_tolerates_bad_hashes():
    assert not verify_password("x", None)
    assert not verify_password("x", "not-a-bcrypt-hash")
    assert not verify_password("", hash_password("x"))


def test_generate_otp_is_six_digits():
    for _ in range(50):
        otp = generate_otp()
        assert len(otp) == 6
        assert 100000 <= int(otp) <= 999999


def test_confirm_tokens_are_unique_and_url_safe():
    tokens = {generate_confirm_token() for _ in range(20)}
    assert len(tokens) == 20
    assert all("/" not in t and "+" not in t for t in tokens)


def test_session_token_claims():
    claims = decode_token(create_session_token("u1", "a@example.com", "Alice"))

    assert claims["userId"] == "u1"
    assert claims["email"] == "a@example.com"
    assert claims["name"] == "Alice"


def test_temp_token_is_not_a_session_token():
    temp = create_temp_token("u1", "a@example.com")

    with pytest.raises(jwt.InvalidTokenError):
        decode_token(temp)
    assert decode_token(temp, purpose=LOGIN_CONFIRMATION_PURPOSE)["userId"] == "u1"


def test_session_token_is_not_a_temp_token():
    with pytest.raises(jwt.InvalidTokenError):
        decode_token(create_session_token("u1", "a@example.com", "A"), LOGIN_CONFIRMATION_PURPOSE)


def test_expired_token_rejected():
    token = security._encode({"userId": "u1"}, timedelta(seconds=-5))
    with pytest.raises(jwt.ExpiredSignatureError):
        decode_token(token)


def test_forged_token_rejected():
    token = jwt.encode({"userId": "u1"}, "someone-elses-secret", algorithm="HS256")
    with pytest.raises(jwt.InvalidTokenError):
        decode_token(token)


def test_production_requires_jwt_secret(monkeypatch):
    from saveit.infrastructure.settings import get_jwt_secret

    monkeypatch.setenv("SAVEIT_ENV", "production")
    monkeypatch.delenv("SAVEIT_JWT_SECRET", raising=False)
    with pytest.raises(RuntimeError):
        get_jwt_secret()

    monkeypatch.setenv("SAVEIT_JWT_SECRET", "configured")
    assert get_jwt_secret() == "configured"
