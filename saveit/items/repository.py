"""
Item repository - CRUD, search and stats over the items table.

Tags are a JSON array column; tag filters and stats unnest it with
json_each().
"""

from __future__ import annotations

from typing import Any

from saveit.config import API_TOP_TAGS
from saveit.infrastructure.database import db_transaction, get_db_connection, retry_on_db_lock
from saveit.items.models import Item
from saveit.observability.logging import get_logger
from saveit.storage.models import encode_changes, update_sql, utc_now

logger = get_logger(__name__)


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class ItemRepository:
    @staticmethod
    @retry_on_db_lock()
    def create(item: Item) -> Item:
        with db_transaction() as conn:
            conn.execute(Item.insert_sql("items"), item.to_db_dict())
        logger.info("Saved %s item %s for user %s", item.type, item.id, item.user_id)
        return item

    @staticmethod
    def get(item_id: str, user_id: str) -> Item | None:
        with get_db_connection() as conn:
            row = conn.execute(
                "SELECT * FROM items WHERE id = ? AND user_id = ?", (item_id, user_id)
            ).fetchone()
        return Item.from_db_row(row) if row else None

    @staticmethod
    def search(
        user_id: str,
        item_type: str | None = None,
        search: str | None = None,
        tags: list[str] | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Item], int]:
        """
        Page through a user's items, newest first.

        Args:
            search: Case-insensitive substring of title, description, summary or content
            tags: Items carrying any of these tags

        Returns:
            (items on this page, total matching)
        """
        where = ["user_id = ?"]
        params: list[Any] = [user_id]

        if item_type:
            where.append("type = ?")
            params.append(item_type)
        if search:
            like = f"%{_escape_like(search)}%"
            where.append(
                "(title LIKE ? ESCAPE '\\' OR description LIKE ? ESCAPE '\\' "
                "OR summary LIKE ? ESCAPE '\\' OR content LIKE ? ESCAPE '\\')"
            )
            params.extend([like] * 4)
        if tags:
            placeholders = ", ".join("?" for _ in tags)
            where.append(
                f"EXISTS (SELECT 1 FROM json_each(items.tags) WHERE value IN ({placeholders}))"
            )
            params.extend(tags)

        clause = " AND ".join(where)
        with get_db_connection() as conn:
            total = conn.execute(f"SELECT COUNT(*) FROM items WHERE {clause}", params).fetchone()[0]
            rows = conn.execute(
                f"SELECT * FROM items WHERE {clause} ORDER BY created_at DESC LIMIT ? OFFSET ?",
                [*params, limit, (page - 1) * limit],
            ).fetchall()
        return [Item.from_db_row(r) for r in rows], total

    @staticmethod
    @retry_on_db_lock()
    def update(item_id: str, user_id: str, **changes) -> Item | None:
        changes["updated_at"] = utc_now()
        encoded = encode_changes(Item, changes)
        with db_transaction() as conn:
            cursor = conn.execute(
                update_sql("items", list(encoded)),
                {**encoded, "id": item_id, "user_id": user_id},
            )
            if cursor.rowcount == 0:
                return None
        return ItemRepository.get(item_id, user_id)

    @staticmethod
    @retry_on_db_lock()
    def delete(item_id: str, user_id: str) -> bool:
        with db_transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM items WHERE id = ? AND user_id = ?", (item_id, user_id)
            )
        return cursor.rowcount > 0

    @staticmethod
    def count_all() -> int:
        with get_db_connection() as conn:
            return conn.execute("SELECT COUNT(*) FROM items").fetchone()[0]

    @staticmethod
    def stats(user_id: str, top_tags: int = API_TOP_TAGS) -> dict[str, Any]:
        """Totals, counts by type and the most used tags for one user."""
        with get_db_connection() as conn:
            total = conn.execute(
                "SELECT COUNT(*) FROM items WHERE user_id = ?", (user_id,)
            ).fetchone()[0]
            by_type = conn.execute(
                "SELECT type, COUNT(*) AS count FROM items WHERE user_id = ? "
                "GROUP BY type ORDER BY count DESC",
                (user_id,),
            ).fetchall()
            tags = conn.execute(
                """
                SELECT t.value AS tag, COUNT(*) AS count
                FROM items, json_each(items.tags) AS t
                WHERE items.user_id = ?
                GROUP BY t.value
                ORDER BY count DESC, tag ASC
                LIMIT ?
                """,
                (user_id, top_tags),
            ).fetchall()

        return {
            "totalItems": total,
            "itemsByType": [{"type": r["type"], "count": r["count"]} for r in by_type],
            "topTags": [{"tag": r["tag"], "count": r["count"]} for r in tags],
        }
