"""
Integration tests for industries and uploaded files: categorization,
content only on single fetch, derived file counts and moves.
"""

from __future__ import annotations

PNG = {"name": "logo.png", "size": 2048, "type": "image/png", "content": "iVBORw0KGgo="}
PDF = {"name": "brief.pdf", "size": 4096, "type": "application/pdf", "content": "JVBERi0x"}


def create_industry(client, headers, name="Fintech"):
    response = client.post("/api/industries", json={"name": name}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def upload(client, headers, files, industry=None):
    payload = {"files": files}
    if industry is not None:
        payload["industry"] = industry
    response = client.post("/api/files/upload", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def file_count(client, headers, industry_id):
    return client.get(f"/api/industries/{industry_id}", headers=headers).json()["data"]["fileCount"]


class TestUpload:
    def test_upload_categorizes_and_hides_content(self, client, auth_headers):
        png, pdf = upload(client, auth_headers, [PNG, PDF])

        assert png["category"] == "image"
        assert pdf["category"] == "pdf"
        assert png["path"].startswith("/uploads/")
        assert png["path"].endswith("-logo.png")
        assert "content" not in png
        assert png["industry"] is None

        listed = client.get("/api/files", headers=auth_headers).json()
        assert listed["count"] == 2
        assert all("content" not in f for f in listed["data"])

        single = client.get(f"/api/files/{png['id']}", headers=auth_headers).json()["data"]
        assert single["content"] == "iVBORw0KGgo="

    def test_explicit_path_kept(self, client, auth_headers):
        (f,) = upload(client, auth_headers, [{**PNG, "path": "/brand/logo.png"}])
        assert f["path"] == "/brand/logo.png"

    def test_no_files(self, client, auth_headers):
        response = client.post("/api/files/upload", json={"files": []}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "No files provided"

    def test_invalid_industry(self, client, auth_headers, other_headers):
        foreign = create_industry(client, other_headers)

        response = client.post(
            "/api/files/upload",
            json={"files": [PNG], "industryId": foreign["id"]},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid industry ID"

    def test_upload_into_industry_counts(self, client, auth_headers):
        industry = create_industry(client, auth_headers)

        files = upload(client, auth_headers, [PNG, PDF], industry=industry["id"])

        assert files[0]["industry"]["name"] == "Fintech"
        assert file_count(client, auth_headers, industry["id"]) == 2


class TestFiles:
    def test_filter_by_industry(self, client, auth_headers):
        industry = create_industry(client, auth_headers)
        upload(client, auth_headers, [PNG], industry=industry["id"])
        upload(client, auth_headers, [PDF])

        filed = client.get(
            "/api/files", params={"industry": industry["id"]}, headers=auth_headers
        ).json()["data"]
        loose = client.get("/api/files", params={"industry": "null"}, headers=auth_headers).json()[
            "data"
        ]

        assert [f["name"] for f in filed] == ["logo.png"]
        assert [f["name"] for f in loose] == ["brief.pdf"]

    def test_move_between_industries(self, client, auth_headers):
        first = create_industry(client, auth_headers, name="First")
        second = create_industry(client, auth_headers, name="Second")
        (f,) = upload(client, auth_headers, [PNG], industry=first["id"])

        response = client.post(
            f"/api/files/{f['id']}/move", json={"industryId": second["id"]}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["data"]["industry"]["name"] == "Second"
        assert file_count(client, auth_headers, first["id"]) == 0
        assert file_count(client, auth_headers, second["id"]) == 1

        response = client.post(
            f"/api/files/{f['id']}/move", json={"industryId": "nope"}, headers=auth_headers
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Target industry not found"

    def test_delete_updates_count(self, client, auth_headers, other_headers):
        industry = create_industry(client, auth_headers)
        (f,) = upload(client, auth_headers, [PNG], industry=industry["id"])

        assert client.delete(f"/api/files/{f['id']}", headers=other_headers).status_code == 404
        response = client.delete(f"/api/files/{f['id']}", headers=auth_headers)

        assert response.json()["message"] == "File deleted successfully"
        assert file_count(client, auth_headers, industry["id"]) == 0
        assert client.get(f"/api/files/{f['id']}", headers=auth_headers).status_code == 404


class TestIndustries:
    def test_delete_blocked_while_files_remain(self, client, auth_headers):
        industry = create_industry(client, auth_headers)
        (f,) = upload(client, auth_headers, [PNG], industry=industry["id"])

        response = client.delete(f"/api/industries/{industry['id']}", headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["error"] == (
            "Cannot delete industry with 1 file(s). Please move or delete files first."
        )

        client.post(f"/api/files/{f['id']}/move", json={"industry": "null"}, headers=auth_headers)
        response = client.delete(f"/api/industries/{industry['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["message"] == "Industry deleted successfully"

    def test_crud(self, client, auth_headers, other_headers):
        industry = create_industry(client, auth_headers)
        assert industry["fileCount"] == 0

        updated = client.put(
            f"/api/industries/{industry['id']}", json={"description": "Payments"}, headers=auth_headers
        ).json()["data"]
        assert updated["description"] == "Payments"
        assert updated["name"] == "Fintech"

        listed = client.get("/api/industries", headers=auth_headers).json()
        assert listed["count"] == 1
        assert client.get("/api/industries", headers=other_headers).json()["count"] == 0
        assert client.get(
            f"/api/industries/{industry['id']}", headers=other_headers
        ).status_code == 404

    def test_name_required(self, client, auth_headers):
        assert client.post("/api/industries", json={"name": ""}, headers=auth_headers).status_code == 400
