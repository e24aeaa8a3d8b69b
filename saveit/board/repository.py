"""BoardState repository - one row of shapes per user."""

from __future__ import annotations

import json
from typing import Any

from saveit.infrastructure.database import db_transaction, get_db_connection, retry_on_db_lock
from saveit.storage.models import to_iso, utc_now


class BoardStateRepository:
    @staticmethod
    def get_shapes(user_id: str) -> list[dict[str, Any]]:
        """The user's saved shapes, or [] if they never drew anything."""
        with get_db_connection() as conn:
            row = conn.execute(
                "SELECT shapes FROM board_states WHERE user_id = ?", (user_id,)
            ).fetchone()
        return json.loads(row["shapes"]) if row and row["shapes"] else []

    @staticmethod
    @retry_on_db_lock()
    def save_shapes(user_id: str, shapes: list[dict[str, Any]]) -> None:
        with db_transaction() as conn:
            conn.execute(
                """
                INSERT INTO board_states (user_id, shapes, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    shapes = excluded.shapes,
                    updated_at = excluded.updated_at
                """,
                (user_id, json.dumps(shapes), to_iso(utc_now())),
            )

