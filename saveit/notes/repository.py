"""
Note repositories - CRUD over the notes and diary_notes tables.

Every query is scoped by user_id; a row owned by someone else behaves as if
it doesn't exist.
"""

from __future__ import annotations

from saveit.infrastructure.database import db_transaction, get_db_connection, retry_on_db_lock
from saveit.notes.models import DiaryNote, Note
from saveit.observability.logging import get_logger
from saveit.storage.models import encode_changes, to_iso, update_sql, utc_now

logger = get_logger(__name__)


class NoteRepository:
    """
    Repository for sticky notes.

    Notes are listed bottom-to-top (z_index ascending) so the client can
    render them in order.
    """

    @staticmethod
    def _next_z_index(conn, user_id: str) -> int:
        row = conn.execute(
            "SELECT MAX(z_index) FROM notes WHERE user_id = ?", (user_id,)
        ).fetchone()
        return (row[0] or 0) + 1

    @staticmethod
    @retry_on_db_lock()
    def create(note: Note) -> Note:
        """Insert a note on top of the user's existing notes."""
        with db_transaction() as conn:
            note.z_index = NoteRepository._next_z_index(conn, note.user_id)
            conn.execute(Note.insert_sql("notes"), note.to_db_dict())

        logger.info("Created note %s for user %s (z=%d)", note.id, note.user_id, note.z_index)
        return note

    @staticmethod
    def get(note_id: str, user_id: str) -> Note | None:
        with get_db_connection() as conn:
            row = conn.execute(
                "SELECT * FROM notes WHERE id = ? AND user_id = ?", (note_id, user_id)
            ).fetchone()
        return Note.from_db_row(row) if row else None

    @staticmethod
    def list_for_user(user_id: str) -> list[Note]:
        with get_db_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM notes WHERE user_id = ? ORDER BY z_index ASC, created_at ASC",
                (user_id,),
            ).fetchall()
        return [Note.from_db_row(r) for r in rows]

    @staticmethod
    @retry_on_db_lock()
    def update(note_id: str, user_id: str, **changes) -> Note | None:
        """
        Update selected fields of a note.

        Returns:
            The updated Note, or None if the user has no such note
        """
        changes["updated_at"] = utc_now()
        encoded = encode_changes(Note, changes)
        with db_transaction() as conn:
            cursor = conn.execute(
                update_sql("notes", list(encoded)),
                {**encoded, "id": note_id, "user_id": user_id},
            )
            if cursor.rowcount == 0:
                return None
        return NoteRepository.get(note_id, user_id)

    @staticmethod
    @retry_on_db_lock()
    def bring_to_front(note_id: str, user_id: str) -> Note | None:
        """Give a note the highest z_index among the user's notes."""
        with db_transaction() as conn:
            z_index = NoteRepository._next_z_index(conn, user_id)
            cursor = conn.execute(
                "UPDATE notes SET z_index = ?, updated_at = ? WHERE id = ? AND user_id = ?",
                (z_index, to_iso(utc_now()), note_id, user_id),
            )
            if cursor.rowcount == 0:
                return None
        return NoteRepository.get(note_id, user_id)

    @staticmethod
    @retry_on_db_lock()
    def delete(note_id: str, user_id: str) -> bool:
        with db_transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM notes WHERE id = ? AND user_id = ?", (note_id, user_id)
            )
        return cursor.rowcount > 0

    @staticmethod
    @retry_on_db_lock()
    def delete_all(user_id: str) -> int:
        with db_transaction() as conn:
            cursor = conn.execute("DELETE FROM notes WHERE user_id = ?", (user_id,))
        logger.info("Deleted %d notes for user %s", cursor.rowcount, user_id)
        return cursor.rowcount


class DiaryNoteRepository:
    """Repository for diary notes. Pinned entries list first, then newest."""

    @staticmethod
    @retry_on_db_lock()
    def create(note: DiaryNote) -> DiaryNote:
        with db_transaction() as conn:
            conn.execute(DiaryNote.insert_sql("diary_notes"), note.to_db_dict())
        return note

    @staticmethod
    def get(note_id: str, user_id: str) -> DiaryNote | None:
        with get_db_connection() as conn:
            row = conn.execute(
                "SELECT * FROM diary_notes WHERE id = ? AND user_id = ?", (note_id, user_id)
            ).fetchone()
        return DiaryNote.from_db_row(row) if row else None

    @staticmethod
    def list_for_user(user_id: str) -> list[DiaryNote]:
        with get_db_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM diary_notes WHERE user_id = ? "
                "ORDER BY is_pinned DESC, updated_at DESC",
                (user_id,),
            ).fetchall()
        return [DiaryNote.from_db_row(r) for r in rows]

    @staticmethod
    @retry_on_db_lock()
    def update(note_id: str, user_id: str, **changes) -> DiaryNote | None:
        changes["updated_at"] = utc_now()
        encoded = encode_changes(DiaryNote, changes)
        with db_transaction() as conn:
            cursor = conn.execute(
                update_sql("diary_notes", list(encoded)),
                {**encoded, "id": note_id, "user_id": user_id},
            )
            if cursor.rowcount == 0:
                return None
        return DiaryNoteRepository.get(note_id, user_id)

    @staticmethod
    @retry_on_db_lock()
    def delete(note_id: str, user_id: str) -> bool:
        with db_transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM diary_notes WHERE id = ? AND user_id = ?", (note_id, user_id)
            )
        return cursor.rowcount > 0
