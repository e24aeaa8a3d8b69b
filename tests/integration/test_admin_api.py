"""Integration tests for the admin dashboard and generic delete."""

from __future__ import annotations

import pytest

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin-pass"
CREDS = {"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}


@pytest.fixture(autouse=True)
def admin_env(monkeypatch):
    monkeypatch.setenv("SAVEIT_ADMIN_EMAIL", ADMIN_EMAIL)
    monkeypatch.setenv("SAVEIT_ADMIN_PASSWORD", ADMIN_PASSWORD)


@pytest.fixture
def populated(client, make_user):
    _, alice = make_user()
    _, admin = make_user(email=ADMIN_EMAIL, name="Admin")
    client.post("/api/save", json={"type": "note", "content": "alice note"}, headers=alice)
    client.post("/api/save", json={"type": "note", "content": "admin note"}, headers=admin)
    client.post("/api/notes", json={"text": "sticky"}, headers=alice)
    client.post("/api/organizations", json={"name": "Org"}, headers=alice)
    client.post(
        "/api/files/upload",
        json={"files": [{"name": "a.txt", "type": "text/plain", "content": "c2VjcmV0"}]},
        headers=alice,
    )
    return alice


def test_dashboard_requires_credentials(client):
    assert client.get("/api/admin/dashboard").status_code == 401
    bad = client.post("/api/admin/dashboard", json={**CREDS, "password": "nope"})
    assert bad.status_code == 401


def test_dashboard_disabled_without_configuration(client, monkeypatch):
    monkeypatch.delenv("SAVEIT_ADMIN_PASSWORD")

    assert client.post("/api/admin/dashboard", json=CREDS).status_code == 403


def test_dashboard_contents(client, populated):
    response = client.post("/api/admin/dashboard", json=CREDS)

    assert response.status_code == 200
    body = response.json()
    data = body["data"]
    assert len(data["users"]) == 2
    assert all("passwordHash" not in u and "otpCode" not in u for u in data["users"])
    assert len(data["items"]) == 2
    assert data["files"][0]["owner"]["email"] == "alice@example.com"
    assert "content" not in data["files"][0]
    assert data["notes"][0]["owner"]["name"] == "Alice"

    assert [i["content"] for i in body["adminData"]["items"]] == ["admin note"]
    assert body["stats"]["totalUsers"] == 2
    assert body["stats"]["totalItems"] == 2
    assert body["stats"]["adminItems"] == 1
    assert body["stats"]["totalOrganizations"] == 1
    assert body["stats"]["adminOrganizations"] == 0
    assert body["stats"]["totalDiaryNotes"] == 0


def test_dashboard_via_headers_and_query(client, populated):
    assert client.get("/api/admin/dashboard", headers=CREDS).status_code == 200
    assert client.get("/api/admin/dashboard", params=CREDS).status_code == 200


def test_admin_data_absent_without_admin_account(client, make_user):
    make_user()

    body = client.get("/api/admin/dashboard", params=CREDS).json()

    assert body["adminData"] is None
    assert body["stats"]["adminItems"] == 0


def test_delete_record(client, populated):
    note_id = client.get("/api/notes", headers=populated).json()["data"][0]["id"]

    response = client.request("DELETE", f"/api/admin/notes/{note_id}", json=CREDS)

    assert response.status_code == 200
    assert response.json()["message"] == "notes item deleted successfully"
    assert client.get("/api/notes", headers=populated).json()["data"] == []

    again = client.request("DELETE", f"/api/admin/notes/{note_id}", json=CREDS)
    assert again.status_code == 404


def test_delete_unknown_collection(client):
    response = client.request("DELETE", "/api/admin/widgets/abc", json=CREDS)

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid collection: widgets"


def test_delete_user_cascades(client, populated):
    users = client.get("/api/admin/dashboard", params=CREDS).json()["data"]["users"]
    alice_id = next(u["id"] for u in users if u["email"] == "alice@example.com")

    assert client.request("DELETE", f"/api/admin/users/{alice_id}", json=CREDS).status_code == 200

    stats = client.get("/api/admin/dashboard", params=CREDS).json()["stats"]
    assert stats["totalUsers"] == 1
    assert stats["totalItems"] == 1
    assert stats["totalNotes"] == 0
    assert stats["totalFiles"] == 0
    assert client.get("/api/auth/verify", headers=populated).status_code == 401


def test_delete_project_keeps_counts_right(client, populated):
    org = client.get("/api/organizations", headers=populated).json()["data"][0]
    project = client.post(
        "/api/projects", json={"name": "P", "organization": org["id"]}, headers=populated
    ).json()["data"]

    client.request("DELETE", f"/api/admin/projects/{project['id']}", json=CREDS)

    refreshed = client.get(f"/api/organizations/{org['id']}", headers=populated).json()["data"]
    assert refreshed["projectCount"] == 0
