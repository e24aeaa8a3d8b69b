"""
Integration tests for saved items: save with enrichment, search, pagination,
edits, deletes, stats and per-user isolation.
"""

from __future__ import annotations

import pytest

from saveit.items.scraper import ScrapedPage, ScrapeError


@pytest.fixture
def scraped(monkeypatch):
    """Serve a canned page instead of fetching over the network."""
    page = ScrapedPage(
        title="Python Tutorial For Beginners",
        description="Learn Python step by step",
        image="https://img.example.com/cover.png",
        favicon="https://www.example.com/favicon.ico",
    )
    monkeypatch.setattr("saveit.items.enrichment.scrape_page", lambda url: page)
    return page


@pytest.fixture
def offline(monkeypatch):
    def fail(url):
        raise ScrapeError("connection refused")

    monkeypatch.setattr("saveit.items.enrichment.scrape_page", fail)


def save(client, headers, **payload):
    response = client.post("/api/save", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestSave:
    def test_save_link_is_enriched(self, client, auth_headers, scraped):
        item = save(
            client, auth_headers, type="link", content="https://www.youtube.com/watch?v=abc"
        )

        assert item["type"] == "link"
        assert item["title"] == "Python Tutorial For Beginners"
        assert item["domain"] == "youtube.com"
        assert item["platform"] == "youtube"
        assert item["category"] == "education"
        assert item["thumbnail"] == "https://img.example.com/cover.png"
        assert "saved-link" in item["tags"]
        assert "userId" in item and "createdAt" in item

    def test_custom_title_wins(self, client, auth_headers, scraped):
        item = save(
            client, auth_headers, type="link", content="https://example.com/a", title="Mine"
        )
        assert item["title"] == "Mine"

    def test_scrape_failure_still_saves(self, client, auth_headers, offline):
        item = save(client, auth_headers, type="link", content="https://github.com/org/repo")

        assert item["title"] == "https://github.com/org/repo"
        assert item["notes"] == "Failed to scrape webpage"
        assert item["confidence"] == 0.2
        assert item["platform"] == "github"

    def test_save_note_gets_summary_and_tags(self, client, auth_headers):
        item = save(client, auth_headers, type="note", content="Remember the milk\nand eggs")

        assert item["title"] == "Remember the milk\nand eggs"
        assert item["summary"] == "Remember the milk"
        assert item["tags"] == ["remember", "milk", "eggs"]

    @pytest.mark.parametrize("content", ["not a url", "ftp://example.com/x", "http://[::1"])
    def test_invalid_link_rejected(self, client, auth_headers, content):
        response = client.post(
            "/api/save", json={"type": "link", "content": content}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "A valid http(s) URL is required",
        }

    def test_unknown_type_rejected(self, client, auth_headers):
        response = client.post(
            "/api/save", json={"type": "video", "content": "x"}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Validation error"
        assert "type" in response.json()["details"]

    def test_empty_content_rejected(self, client, auth_headers):
        response = client.post(
            "/api/save", json={"type": "note", "content": ""}, headers=auth_headers
        )
        assert response.status_code == 400

    def test_requires_auth(self, client):
        response = client.post("/api/save", json={"type": "note", "content": "x"})
        assert response.status_code == 401


class TestList:
    def test_pagination(self, client, auth_headers):
        for i in range(5):
            save(client, auth_headers, type="note", content=f"note number {i}")

        response = client.get("/api/items", params={"page": 2, "limit": 2}, headers=auth_headers)

        body = response.json()
        assert response.status_code == 200
        assert len(body["data"]) == 2
        assert body["pagination"] == {"page": 2, "limit": 2, "total": 5, "pages": 3}

    def test_empty_list(self, client, auth_headers):
        body = client.get("/api/items", headers=auth_headers).json()

        assert body["data"] == []
        assert body["pagination"]["total"] == 0
        assert body["pagination"]["pages"] == 0

    def test_filter_by_type_and_search(self, client, auth_headers, scraped):
        save(client, auth_headers, type="link", content="https://example.com/py")
        save(client, auth_headers, type="code", content="print('hello world')")
        save(client, auth_headers, type="note", content="groceries for the week")

        codes = client.get("/api/items", params={"type": "code"}, headers=auth_headers).json()
        assert [i["type"] for i in codes["data"]] == ["code"]

        found = client.get("/api/items", params={"search": "GROCERIES"}, headers=auth_headers).json()
        assert len(found["data"]) == 1
        assert found["data"][0]["type"] == "note"

    def test_search_treats_wildcards_literally(self, client, auth_headers):
        save(client, auth_headers, type="note", content="plain text")

        found = client.get("/api/items", params={"search": "%"}, headers=auth_headers).json()

        assert found["data"] == []

    def test_filter_by_tags(self, client, auth_headers):
        first = save(client, auth_headers, type="note", content="alpha words here")
        save(client, auth_headers, type="note", content="other stuff entirely")

        found = client.get("/api/items", params={"tags": "alpha, zzz"}, headers=auth_headers).json()

        assert [i["id"] for i in found["data"]] == [first["id"]]

    def test_limit_bounds(self, client, auth_headers):
        assert client.get("/api/items", params={"limit": 0}, headers=auth_headers).status_code == 400
        assert client.get("/api/items", params={"limit": 101}, headers=auth_headers).status_code == 400
        assert client.get("/api/items", params={"page": 0}, headers=auth_headers).status_code == 400


class TestEditDelete:
    def test_update_fields(self, client, auth_headers):
        item = save(client, auth_headers, type="note", content="draft idea")

        response = client.put(
            f"/api/item/{item['id']}",
            json={"title": "  Final  ", "tags": ["Idea", "idea", " work "], "notes": "todo"},
            headers=auth_headers,
        )

        updated = response.json()["data"]
        assert response.status_code == 200
        assert updated["title"] == "Final"
        assert updated["tags"] == ["Idea", "work"]
        assert updated["notes"] == "todo"
        assert updated["content"] == "draft idea"

        fetched = client.get(f"/api/item/{item['id']}", headers=auth_headers).json()["data"]
        assert fetched["title"] == "Final"

    def test_delete(self, client, auth_headers):
        item = save(client, auth_headers, type="note", content="bye")

        response = client.delete(f"/api/item/{item['id']}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Item deleted successfully"
        assert client.get(f"/api/item/{item['id']}", headers=auth_headers).status_code == 404
        assert client.delete(f"/api/item/{item['id']}", headers=auth_headers).status_code == 404

    def test_other_users_items_are_invisible(self, client, auth_headers, other_headers):
        item = save(client, auth_headers, type="note", content="private thoughts")

        assert client.get(f"/api/item/{item['id']}", headers=other_headers).status_code == 404
        assert client.put(
            f"/api/item/{item['id']}", json={"title": "mine now"}, headers=other_headers
        ).status_code == 404
        assert client.delete(f"/api/item/{item['id']}", headers=other_headers).status_code == 404
        assert client.get("/api/items", headers=other_headers).json()["data"] == []


def test_stats(client, auth_headers):
    save(client, auth_headers, type="note", content="alpha beta")
    save(client, auth_headers, type="note", content="alpha gamma")
    save(client, auth_headers, type="code", content="x = 1")

    stats = client.get("/api/stats", headers=auth_headers).json()["data"]

    assert stats["totalItems"] == 3
    assert stats["itemsByType"][0] == {"type": "note", "count": 2}
    assert stats["topTags"][0] == {"tag": "alpha", "count": 2}
