"""
Industry and FileItem repositories.

Industry.file_count is recomputed from file_items inside the same
transaction as each upload, move or delete.
"""

from __future__ import annotations

import sqlite3

from saveit.files.models import FileItem, Industry
from saveit.infrastructure.database import db_transaction, get_db_connection, retry_on_db_lock
from saveit.observability.logging import get_logger
from saveit.storage.models import encode_changes, to_iso, update_sql, utc_now

logger = get_logger(__name__)

# Everything except the base64 body
_FILE_LIST_COLUMNS = ", ".join(c for c in FileItem.columns() if c != "content")


def _recount_files(conn: sqlite3.Connection, *industry_ids: str | None) -> None:
    now = to_iso(utc_now())
    for industry_id in {i for i in industry_ids if i}:
        conn.execute(
            """
            UPDATE industries
            SET file_count = (SELECT COUNT(*) FROM file_items WHERE industry_id = :id),
                updated_at = :now
            WHERE id = :id
            """,
            {"id": industry_id, "now": now},
        )


class IndustryRepository:
    @staticmethod
    @retry_on_db_lock()
    def create(industry: Industry) -> Industry:
        with db_transaction() as conn:
            conn.execute(Industry.insert_sql("industries"), industry.to_db_dict())
        logger.info("Created industry %s for user %s", industry.id, industry.user_id)
        return industry

    @staticmethod
    def get(industry_id: str, user_id: str) -> Industry | None:
        with get_db_connection() as conn:
            row = conn.execute(
                "SELECT * FROM industries WHERE id = ? AND user_id = ?", (industry_id, user_id)
            ).fetchone()
        return Industry.from_db_row(row) if row else None

    @staticmethod
    def list_for_user(user_id: str) -> list[Industry]:
        with get_db_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM industries WHERE user_id = ? ORDER BY position ASC, name ASC",
                (user_id,),
            ).fetchall()
        return [Industry.from_db_row(r) for r in rows]

    @staticmethod
    def summaries(industry_ids: set[str]) -> dict[str, dict]:
        """{id: {id, name, icon, color}} for embedding in file payloads."""
        if not industry_ids:
            return {}
        placeholders = ", ".join("?" for _ in industry_ids)
        with get_db_connection() as conn:
            rows = conn.execute(
                f"SELECT id, name, icon, color FROM industries WHERE id IN ({placeholders})",
                tuple(industry_ids),
            ).fetchall()
        return {r["id"]: dict(r) for r in rows}

    @staticmethod
    @retry_on_db_lock()
    def update(industry_id: str, user_id: str, **changes) -> Industry | None:
        changes["updated_at"] = utc_now()
        encoded = encode_changes(Industry, changes)
        with db_transaction() as conn:
            cursor = conn.execute(
                update_sql("industries", list(encoded)),
                {**encoded, "id": industry_id, "user_id": user_id},
            )
            if cursor.rowcount == 0:
                return None
        return IndustryRepository.get(industry_id, user_id)

    @staticmethod
    def count_files(industry_id: str) -> int:
        with get_db_connection() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM file_items WHERE industry_id = ?", (industry_id,)
            ).fetchone()
        return row[0]

    @staticmethod
    @retry_on_db_lock()
    def delete(industry_id: str, user_id: str) -> bool:
        with db_transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM industries WHERE id = ? AND user_id = ?", (industry_id, user_id)
            )
        return cursor.rowcount > 0


class FileItemRepository:
    @staticmethod
    @retry_on_db_lock()
    def create_many(files: list[FileItem]) -> list[FileItem]:
        """Insert a batch of uploads atomically and recount their industries."""
        with db_transaction() as conn:
            conn.executemany(FileItem.insert_sql("file_items"), [f.to_db_dict() for f in files])
            _recount_files(conn, *(f.industry_id for f in files))
        logger.info("Stored %d uploaded files", len(files))
        return files

    @staticmethod
    def get(file_id: str, user_id: str) -> FileItem | None:
        with get_db_connection() as conn:
            row = conn.execute(
                "SELECT * FROM file_items WHERE id = ? AND user_id = ?", (file_id, user_id)
            ).fetchone()
        return FileItem.from_db_row(row) if row else None

    @staticmethod
    def list_for_user(
        user_id: str, industry_id: str | None = None, unassigned: bool = False
    ) -> list[FileItem]:
        """List a user's files without their content, newest first."""
        query = f"SELECT {_FILE_LIST_COLUMNS} FROM file_items WHERE user_id = ?"
        params: list = [user_id]
        if unassigned:
            query += " AND industry_id IS NULL"
        elif industry_id:
            query += " AND industry_id = ?"
            params.append(industry_id)
        query += " ORDER BY created_at DESC"

        with get_db_connection() as conn:
            rows = conn.execute(query, params).fetchall()
        return [FileItem.from_db_row(r) for r in rows]

    @staticmethod
    @retry_on_db_lock()
    def move(file_id: str, user_id: str, industry_id: str | None) -> FileItem | None:
        current = FileItemRepository.get(file_id, user_id)
        if not current:
            return None
        with db_transaction() as conn:
            conn.execute(
                "UPDATE file_items SET industry_id = ?, updated_at = ? WHERE id = ? AND user_id = ?",
                (industry_id, to_iso(utc_now()), file_id, user_id),
            )
            _recount_files(conn, current.industry_id, industry_id)
        return FileItemRepository.get(file_id, user_id)

    @staticmethod
    @retry_on_db_lock()
    def delete(file_id: str, user_id: str) -> bool:
        current = FileItemRepository.get(file_id, user_id)
        if not current:
            return False
        with db_transaction() as conn:
            conn.execute("DELETE FROM file_items WHERE id = ? AND user_id = ?", (file_id, user_id))
            _recount_files(conn, current.industry_id)
        return True
