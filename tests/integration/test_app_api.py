"""
Integration tests for app-wide behavior: root and health endpoints, the
error envelope, security headers, auth on protected routes and body limits.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient

from saveit.api.middleware.request_logging import RequestLoggingMiddleware
from saveit.observability.telemetry import snapshot_counters

PROTECTED = [
    ("GET", "/api/items"),
    ("GET", "/api/stats"),
    ("GET", "/api/notes"),
    ("GET", "/api/diary-notes"),
    ("GET", "/api/organizations"),
    ("GET", "/api/projects"),
    ("GET", "/api/industries"),
    ("GET", "/api/files"),
    ("GET", "/api/courses"),
    ("GET", "/api/board"),
]


def test_root(client):
    for path in ("/", "/api"):
        body = client.get(path).json()
        assert body["success"] is True
        assert body["status"] == "running"
        assert body["version"] == "1.0.0"
        assert body["endpoints"]["items"] == "/api/items"
        assert body["totalItems"] == 0


def test_health(client):
    response = client.get("/health")

    body = response.json()
    assert response.status_code == 200
    assert body["status"] == "healthy"
    assert body["database"]["ready"] is True
    assert body["environment"] == "test"
    assert isinstance(body["gemini"]["ready"], bool)


def test_unknown_route_envelope(client):
    response = client.get("/api/nothing-here")

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Route GET /api/nothing-here not found"}


def test_security_headers(client):
    response = client.get("/health")

    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert "Content-Security-Policy" in response.headers
    assert "Strict-Transport-Security" not in response.headers


def test_protected_routes_need_a_token(client):
    for method, path in PROTECTED:
        response = client.request(method, path)
        assert response.status_code == 401, path
        assert response.json()["success"] is False


def test_malformed_json_is_a_validation_error(client, auth_headers):
    response = client.post(
        "/api/notes",
        content=b"{not json",
        headers={**auth_headers, "Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Validation error"


def test_cors_allows_local_frontend(client):
    response = client.options(
        "/api/items",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "GET",
            "Access-Control-Request-Headers": "Authorization",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"


def test_api_counters_exposed_in_health(client):
    client.get("/api/items")

    counters = client.get("/health").json()["counters"]

    assert counters == snapshot_counters("api.")
    assert counters.get("api.errors.401", 0) >= 1


def test_oversized_body_rejected():
    app = FastAPI()
    app.add_middleware(RequestLoggingMiddleware, max_body_bytes=16)

    @app.post("/echo")
    async def echo():
        return {"ok": True}

    client = TestClient(app)

    assert client.post("/echo", content=b"x" * 8).status_code == 200
    response = client.post("/echo", content=b"x" * 64)
    assert response.status_code == 413
    assert response.json() == {"success": False, "error": "Request entity too large"}
