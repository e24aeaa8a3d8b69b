"""Integration tests for the whiteboard with undo/redo."""

from __future__ import annotations

from saveit.board.service import reset_histories

RECT = {"id": "s1", "type": "rect", "x": 10, "y": 20, "width": 100, "height": 50}
CIRCLE = {"id": "s2", "type": "circle", "x": 200, "y": 80, "radius": 30}


def put(client, headers, shapes):
    response = client.put("/api/board", json={"shapes": shapes}, headers=headers)
    assert response.status_code == 200
    return response.json()["data"]


def test_empty_board(client, auth_headers):
    data = client.get("/api/board", headers=auth_headers).json()["data"]

    assert data == {"shapes": [], "canUndo": False, "canRedo": False}


def test_undo_redo(client, auth_headers):
    put(client, auth_headers, [RECT])
    state = put(client, auth_headers, [RECT, CIRCLE])
    assert state["canUndo"] is True

    undone = client.post("/api/board/undo", headers=auth_headers).json()["data"]
    assert undone["shapes"] == [RECT]
    assert undone["changed"] is True
    assert undone["canRedo"] is True

    assert client.get("/api/board", headers=auth_headers).json()["data"]["shapes"] == [RECT]

    redone = client.post("/api/board/redo", headers=auth_headers).json()["data"]
    assert redone["shapes"] == [RECT, CIRCLE]
    assert redone["canRedo"] is False


def test_undo_at_start_is_a_no_op(client, auth_headers):
    data = client.post("/api/board/undo", headers=auth_headers).json()["data"]

    assert data["changed"] is False
    assert data["shapes"] == []


def test_edit_after_undo_drops_redo(client, auth_headers):
    put(client, auth_headers, [RECT])
    put(client, auth_headers, [CIRCLE])
    client.post("/api/board/undo", headers=auth_headers)

    state = put(client, auth_headers, [RECT, CIRCLE])

    assert state["canRedo"] is False
    assert client.post("/api/board/redo", headers=auth_headers).json()["data"]["changed"] is False


def test_clear_is_undoable(client, auth_headers):
    put(client, auth_headers, [RECT])

    cleared = client.delete("/api/board", headers=auth_headers).json()
    assert cleared["message"] == "Board cleared"
    assert cleared["data"]["shapes"] == []

    restored = client.post("/api/board/undo", headers=auth_headers).json()["data"]
    assert restored["shapes"] == [RECT]


def test_saved_shapes_survive_history_loss(client, auth_headers):
    put(client, auth_headers, [RECT, CIRCLE])
    reset_histories()

    data = client.get("/api/board", headers=auth_headers).json()["data"]

    assert data["shapes"] == [RECT, CIRCLE]
    assert data["canUndo"] is False


def test_boards_are_per_user(client, auth_headers, other_headers):
    put(client, auth_headers, [RECT])

    assert client.get("/api/board", headers=other_headers).json()["data"]["shapes"] == []
