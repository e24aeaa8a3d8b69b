"""Integration tests for the sticky-notes board and diary notes."""

from __future__ import annotations


def create_note(client, headers, **payload):
    response = client.post("/api/notes", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestNotes:
    def test_create_with_defaults(self, client, auth_headers):
        note = create_note(client, auth_headers, text="hello")

        assert note["text"] == "hello"
        assert note["color"] == "#fef08a"
        assert note["position"] == {"x": 100, "y": 100}
        assert note["size"] == {"width": 250, "height": 250}
        assert note["attachedLinks"] == []
        assert note["zIndex"] == 1
        assert note["isPinned"] is False

    def test_new_notes_stack_on_top(self, client, auth_headers):
        first = create_note(client, auth_headers, text="one")
        second = create_note(client, auth_headers, text="two", zIndex=99)

        assert first["zIndex"] == 1
        assert second["zIndex"] == 2

    def test_bring_to_front(self, client, auth_headers):
        first = create_note(client, auth_headers, text="one")
        create_note(client, auth_headers, text="two")

        response = client.put(f"/api/notes/{first['id']}/bring-to-front", headers=auth_headers)

        assert response.json()["data"]["zIndex"] == 3
        listed = client.get("/api/notes", headers=auth_headers).json()["data"]
        assert [n["text"] for n in listed] == ["two", "one"]

    def test_move(self, client, auth_headers):
        note = create_note(client, auth_headers, text="drag me")

        response = client.put(
            f"/api/notes/{note['id']}/position", json={"x": 420.5, "y": 12}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["data"]["position"] == {"x": 420.5, "y": 12}

    def test_update(self, client, auth_headers):
        note = create_note(client, auth_headers, text="draft")

        response = client.put(
            f"/api/notes/{note['id']}",
            json={
                "text": "final",
                "color": "#bfdbfe",
                "size": {"width": 300, "height": 120},
                "attachedLinks": ["https://example.com"],
                "isPinned": True,
            },
            headers=auth_headers,
        )

        updated = response.json()["data"]
        assert updated["text"] == "final"
        assert updated["color"] == "#bfdbfe"
        assert updated["size"] == {"width": 300, "height": 120}
        assert updated["attachedLinks"] == ["https://example.com"]
        assert updated["isPinned"] is True

    def test_color_outside_palette_rejected(self, client, auth_headers):
        response = client.post("/api/notes", json={"color": "#123456"}, headers=auth_headers)
        assert response.status_code == 400

        note = create_note(client, auth_headers, text="x")
        response = client.put(
            f"/api/notes/{note['id']}", json={"color": "red"}, headers=auth_headers
        )
        assert response.status_code == 400
        assert client.get(f"/api/notes/{note['id']}", headers=auth_headers).json()["data"][
            "color"
        ] == "#fef08a"

    def test_text_too_long_rejected(self, client, auth_headers):
        response = client.post("/api/notes", json={"text": "x" * 2001}, headers=auth_headers)
        assert response.status_code == 400

    def test_delete_and_delete_all(self, client, auth_headers, other_headers):
        one = create_note(client, auth_headers, text="one")
        create_note(client, auth_headers, text="two")
        create_note(client, other_headers, text="bob's")

        assert client.delete(f"/api/notes/{one['id']}", headers=auth_headers).json()["message"] == (
            "Note deleted"
        )
        assert client.get(f"/api/notes/{one['id']}", headers=auth_headers).status_code == 404

        response = client.delete("/api/notes", headers=auth_headers)
        assert response.json()["data"] == {"deleted": 1}
        assert client.get("/api/notes", headers=auth_headers).json()["data"] == []
        assert len(client.get("/api/notes", headers=other_headers).json()["data"]) == 1

    def test_missing_note(self, client, auth_headers):
        for method, path in (
            ("get", "/api/notes/nope"),
            ("delete", "/api/notes/nope"),
            ("put", "/api/notes/nope/bring-to-front"),
        ):
            response = client.request(method.upper(), path, headers=auth_headers)
            assert response.status_code == 404
            assert response.json()["error"] == "Note not found"

    def test_cross_user_isolation(self, client, auth_headers, other_headers):
        note = create_note(client, auth_headers, text="mine")

        assert client.get(f"/api/notes/{note['id']}", headers=other_headers).status_code == 404
        assert client.put(
            f"/api/notes/{note['id']}/position", json={"x": 1, "y": 1}, headers=other_headers
        ).status_code == 404


class TestDiaryNotes:
    def test_create_defaults(self, client, auth_headers):
        response = client.post("/api/diary-notes", json={"title": "Day 1"}, headers=auth_headers)

        note = response.json()["data"]
        assert response.status_code == 201
        assert note["title"] == "Day 1"
        assert note["content"] == ""
        assert note["color"] == "#FFF9E6"
        assert note["isPinned"] is False

    def test_pinned_first(self, client, auth_headers):
        pinned = client.post(
            "/api/diary-notes", json={"title": "pinned", "isPinned": True}, headers=auth_headers
        ).json()["data"]
        client.post("/api/diary-notes", json={"title": "later"}, headers=auth_headers)

        listed = client.get("/api/diary-notes", headers=auth_headers).json()["data"]

        assert listed[0]["id"] == pinned["id"]

    def test_update_and_delete(self, client, auth_headers, other_headers):
        note = client.post(
            "/api/diary-notes", json={"title": "t"}, headers=auth_headers
        ).json()["data"]

        assert client.put(
            f"/api/diary-notes/{note['id']}", json={"content": "x"}, headers=other_headers
        ).status_code == 404

        updated = client.put(
            f"/api/diary-notes/{note['id']}", json={"content": "body"}, headers=auth_headers
        ).json()["data"]
        assert updated["content"] == "body"
        assert updated["title"] == "t"

        assert client.delete(f"/api/diary-notes/{note['id']}", headers=auth_headers).status_code == 200
        response = client.delete(f"/api/diary-notes/{note['id']}", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["error"] == "Diary note not found"
