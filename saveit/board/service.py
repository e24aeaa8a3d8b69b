"""
Whiteboard service: persisted shapes plus an in-memory history per user.

Histories live in a TTLCache, so they are lost on restart or after
BOARD_HISTORY_TTL_SECONDS of inactivity; the saved shapes are not. A fresh
history is seeded with whatever is saved.
"""

from __future__ import annotations

from threading import Lock
from typing import Any

from cachetools import TTLCache

from saveit.board.history import BoardHistory
from saveit.board.repository import BoardStateRepository
from saveit.config import (
    BOARD_HISTORY_MAX_ENTRIES,
    BOARD_HISTORY_MAX_USERS,
    BOARD_HISTORY_TTL_SECONDS,
)
from saveit.observability.telemetry import counter

_histories: TTLCache[str, BoardHistory] = TTLCache(
    maxsize=BOARD_HISTORY_MAX_USERS, ttl=BOARD_HISTORY_TTL_SECONDS
)
_lock = Lock()


def _history_for(user_id: str) -> BoardHistory:
    history = _histories.get(user_id)
    if history is None:
        history = BoardHistory(
            BoardStateRepository.get_shapes(user_id), max_entries=BOARD_HISTORY_MAX_ENTRIES
        )
    # Re-set on every access so an active board doesn't expire
    _histories[user_id] = history
    return history


def _state(history: BoardHistory, shapes: list[dict[str, Any]]) -> dict[str, Any]:
    return {"shapes": shapes, "canUndo": history.can_undo, "canRedo": history.can_redo}


def get_board(user_id: str) -> dict[str, Any]:
    with _lock:
        history = _history_for(user_id)
        return _state(history, BoardStateRepository.get_shapes(user_id))


def replace_shapes(user_id: str, shapes: list[dict[str, Any]]) -> dict[str, Any]:
    with _lock:
        history = _history_for(user_id)
        history.add(shapes)
        BoardStateRepository.save_shapes(user_id, shapes)
        counter("board.edit")
        return _state(history, shapes)


def _step(user_id: str, direction: str) -> dict[str, Any]:
    with _lock:
        history = _history_for(user_id)
        shapes = history.undo() if direction == "undo" else history.redo()
        if shapes is None:
            return {**_state(history, history.current), "changed": False}
        BoardStateRepository.save_shapes(user_id, shapes)
        counter(f"board.{direction}")
        return {**_state(history, shapes), "changed": True}


def undo(user_id: str) -> dict[str, Any]:
    return _step(user_id, "undo")


def redo(user_id: str) -> dict[str, Any]:
    return _step(user_id, "redo")


def clear_board(user_id: str) -> dict[str, Any]:
    """Empty the board. Clearing is an edit, so it can be undone."""
    return replace_shapes(user_id, [])


def reset_histories() -> None:
    """Forget all in-memory histories (tests)."""
    with _lock:
        _histories.clear()
