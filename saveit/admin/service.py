"""
Admin dashboard and generic delete.

The admin sees every user's records. Password hashes, OTP state and file
bodies are never included. Each record carries an "owner" block with the
owning user's name and email.
"""

from __future__ import annotations

from typing import Any

from saveit.accounts.models import User
from saveit.errors import BadRequestError, NotFoundError
from saveit.files.models import FileItem, Industry
from saveit.files.repository import FileItemRepository
from saveit.infrastructure.database import db_transaction, get_db_connection, retry_on_db_lock
from saveit.items.models import Item
from saveit.learning.models import Course
from saveit.notes.models import DiaryNote, Note
from saveit.observability.logging import get_logger
from saveit.observability.telemetry import log_event
from saveit.storage.models import StoredModel
from saveit.utils.redaction import redact
from saveit.workspace.models import Organization, Project
from saveit.workspace.repository import ProjectRepository

logger = get_logger(__name__)

# API collection name -> (table, model, dashboard key)
COLLECTIONS: dict[str, tuple[str, type[StoredModel], str]] = {
    "users": ("users", User, "users"),
    "items": ("items", Item, "items"),
    "notes": ("notes", Note, "notes"),
    "diary-notes": ("diary_notes", DiaryNote, "diaryNotes"),
    "projects": ("projects", Project, "projects"),
    "files": ("file_items", FileItem, "files"),
    "organizations": ("organizations", Organization, "organizations"),
    "industries": ("industries", Industry, "industries"),
    "courses": ("courses", Course, "courses"),
}

# Tables holding rows owned by a user, cleared when the user is deleted
_USER_OWNED_TABLES = (
    "items",
    "notes",
    "diary_notes",
    "projects",
    "organizations",
    "file_items",
    "industries",
    "subcourses",
    "courses",
    "board_states",
)


def _load(table: str, model: type[StoredModel]) -> list[StoredModel]:
    # Optional private columns (file bodies) are skipped at the query; required
    # ones (password_hash) are loaded and dropped by to_api()
    skipped = {c for c in model.PRIVATE_FIELDS if not model.model_fields[c].is_required()}
    columns = ", ".join(c for c in model.columns() if c not in skipped)
    with get_db_connection() as conn:
        rows = conn.execute(f"SELECT {columns} FROM {table} ORDER BY created_at DESC").fetchall()
    return [model.from_db_row(r) for r in rows]


def build_dashboard(admin_email: str | None) -> dict[str, Any]:
    """
    Every collection, the admin's own records, and per-collection totals.

    Returns:
        {data: {collection: [...]}, adminData: {...} | None, stats: {...}}
    """
    users = _load("users", User)
    owners = {u.id: {"id": u.id, "name": u.name, "email": u.email} for u in users}
    admin_user = next((u for u in users if admin_email and u.email == admin_email), None)

    data: dict[str, list[dict[str, Any]]] = {"users": [u.to_api() for u in users]}
    admin_data: dict[str, list[dict[str, Any]]] | None = {} if admin_user else None

    for name, (table, model, key) in COLLECTIONS.items():
        if name == "users":
            continue
        records = []
        for record in _load(table, model):
            payload = record.to_api()
            payload["owner"] = owners.get(record.user_id)
            records.append(payload)
        data[key] = records
        if admin_data is not None:
            admin_data[key] = [r for r in records if r["userId"] == admin_user.id]

    stats: dict[str, int] = {}
    for key, records in data.items():
        suffix = key[0].upper() + key[1:]
        stats[f"total{suffix}"] = len(records)
        if key != "users":
            stats[f"admin{suffix}"] = len(admin_data[key]) if admin_data is not None else 0

    logger.info("Built admin dashboard: %s", stats)
    return {"data": data, "adminData": admin_data, "stats": stats}


@retry_on_db_lock()
def _delete_user(user_id: str) -> bool:
    with db_transaction() as conn:
        if not conn.execute("SELECT 1 FROM users WHERE id = ?", (user_id,)).fetchone():
            return False
        for table in _USER_OWNED_TABLES:
            conn.execute(f"DELETE FROM {table} WHERE user_id = ?", (user_id,))
        conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
    return True


def _owner_of(table: str, record_id: str) -> str | None:
    with get_db_connection() as conn:
        row = conn.execute(f"SELECT user_id FROM {table} WHERE id = ?", (record_id,)).fetchone()
    return row["user_id"] if row else None


@retry_on_db_lock()
def _delete_row(table: str, record_id: str) -> bool:
    with db_transaction() as conn:
        cursor = conn.execute(f"DELETE FROM {table} WHERE id = ?", (record_id,))
    return cursor.rowcount > 0


def delete_record(collection: str, record_id: str) -> None:
    """
    Delete one record from any collection.

    Projects and files go through their repositories so parent counts stay
    right; deleting a user removes everything they own.

    Raises:
        BadRequestError: Unknown collection
        NotFoundError: No such record
    """
    if collection not in COLLECTIONS:
        raise BadRequestError(f"Invalid collection: {collection}")
    table = COLLECTIONS[collection][0]

    if collection == "users":
        deleted = _delete_user(record_id)
    elif collection in ("projects", "files"):
        owner = _owner_of(table, record_id)
        repo = ProjectRepository if collection == "projects" else FileItemRepository
        deleted = owner is not None and repo.delete(record_id, owner)
    else:
        deleted = _delete_row(table, record_id)

    if not deleted:
        raise NotFoundError("Item not found")

    log_event("admin.record_deleted", collection=collection, record=redact(record_id))
