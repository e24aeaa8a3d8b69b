"""Unit tests for authentication dependencies

Tests cover:
- Missing and malformed Authorization headers
- Session tokens vs temp tokens
- Admin credentials from body, query and headers
- Admin API disabled when credentials are unset
"""

from __future__ import annotations

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from saveit.api.errors import register_exception_handlers
from saveit.api.middleware.auth import (
    AuthenticatedUser,
    extract_bearer_token,
    get_current_user,
    require_admin,
)
from saveit.errors import AuthenticationError
from saveit.infrastructure.security import create_session_token, create_temp_token


def create_test_app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/me")
    async def me(user: AuthenticatedUser = Depends(get_current_user)):
        return {"id": user.id, "email": user.email}

    @app.api_route("/admin", methods=["GET", "POST"])
    async def admin(admin_email: str = Depends(require_admin)):
        return {"admin": admin_email}

    return app


@pytest.fixture
def client():
    return TestClient(create_test_app())


@pytest.fixture
def admin_env(monkeypatch):
    monkeypatch.setenv("SAVEIT_ADMIN_EMAIL", "Root@Example.com")
    monkeypatch.setenv("SAVEIT_ADMIN_PASSWORD", "s3cret!")


def test_extract_bearer_token():
    assert extract_bearer_token("Bearer abc.def") == "abc.def"
    assert extract_bearer_token("bearer abc") == "abc"

    with pytest.raises(AuthenticationError, match="No token"):
        extract_bearer_token(None)
    for header in ("Basic abc", "Bearer", "Bearer a b"):
        with pytest.raises(AuthenticationError, match="Invalid authorization header format"):
            extract_bearer_token(header)


def test_missing_token_rejected(client):
    response = client.get("/me")

    assert response.status_code == 401
    assert response.json()["success"] is False
    assert response.json()["error"] == "No token, authorization denied"


def test_garbage_token_rejected(client):
    response = client.get("/me", headers={"Authorization": "Bearer not.a.jwt"})
    assert response.status_code == 401


def test_session_token_accepted(client):
    token = create_session_token("u-1", "a@example.com", "Alice")

    response = client.get("/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert response.json() == {"id": "u-1", "email": "a@example.com"}


def test_temp_token_cannot_authenticate(client):
    token = create_temp_token("u-1", "a@example.com")

    response = client.get("/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_admin_disabled_without_configuration(client):
    response = client.get("/admin", params={"email": "x@example.com", "password": "x"})

    assert response.status_code == 403
    assert response.json()["error"] == "Admin access is not configured"


def test_admin_requires_credentials(client, admin_env):
    response = client.get("/admin")

    assert response.status_code == 401
    assert response.json()["error"] == "Authentication required"


def test_admin_credentials_from_body(client, admin_env):
    response = client.post("/admin", json={"email": "root@example.com", "password": "s3cret!"})

    assert response.status_code == 200
    assert response.json() == {"admin": "root@example.com"}


def test_admin_credentials_from_query(client, admin_env):
    response = client.get("/admin", params={"email": "ROOT@example.com", "password": "s3cret!"})
    assert response.status_code == 200


def test_admin_credentials_from_headers(client, admin_env):
    response = client.get("/admin", headers={"email": "root@example.com", "password": "s3cret!"})
    assert response.status_code == 200


def test_admin_wrong_password(client, admin_env):
    response = client.post("/admin", json={"email": "root@example.com", "password": "nope"})

    assert response.status_code == 401
    assert response.json()["error"] == "Invalid credentials"
