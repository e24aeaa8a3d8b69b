"""
Database schema initialization for SaveIt.AI.

One table per entity. List and nested-object fields (tags, position, size,
attached links, board shapes) are stored as JSON text; timestamps are
ISO-8601 UTC strings.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

from saveit.observability.logging import get_logger

logger = get_logger(__name__)


def init_database(db_path: Path) -> None:
    """
    Initialize database with schema (idempotent)

    Safe to run multiple times - uses CREATE TABLE IF NOT EXISTS.

    Args:
        db_path: Path to the database file

    Side Effects:
    - Creates the data directory and database file if needed
    - Creates tables and indexes that don't exist yet
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)

    conn.executescript("""
        CREATE TABLE IF NOT EXISTS users (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            email TEXT NOT NULL UNIQUE,
            password_hash TEXT NOT NULL,
            is_verified INTEGER NOT NULL DEFAULT 0,
            otp_code TEXT,
            otp_expires_at TEXT,
            otp_purpose TEXT,
            last_login TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS items (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            type TEXT NOT NULL,
            content TEXT NOT NULL,
            title TEXT,
            description TEXT,
            summary TEXT,
            domain TEXT,
            thumbnail TEXT,
            favicon TEXT,
            image TEXT,
            platform TEXT NOT NULL DEFAULT 'website',
            category TEXT NOT NULL DEFAULT 'other',
            published_date TEXT,
            author TEXT,
            language TEXT,
            content_type TEXT,
            readability_score REAL,
            tags TEXT NOT NULL DEFAULT '[]',
            confidence REAL,
            notes TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_items_user_created
            ON items(user_id, created_at DESC);
        CREATE INDEX IF NOT EXISTS idx_items_user_type ON items(user_id, type);

        CREATE TABLE IF NOT EXISTS notes (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            text TEXT NOT NULL DEFAULT '',
            color TEXT NOT NULL DEFAULT '#fef08a',
            position TEXT NOT NULL,
            size TEXT NOT NULL,
            attached_links TEXT NOT NULL DEFAULT '[]',
            z_index INTEGER NOT NULL DEFAULT 1,
            is_pinned INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_notes_user_z ON notes(user_id, z_index);

        CREATE TABLE IF NOT EXISTS diary_notes (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            title TEXT NOT NULL DEFAULT '',
            content TEXT NOT NULL DEFAULT '',
            color TEXT NOT NULL DEFAULT '#FFF9E6',
            is_pinned INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_diary_notes_user ON diary_notes(user_id);

        CREATE TABLE IF NOT EXISTS organizations (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            name TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            color TEXT NOT NULL DEFAULT '#6366f1',
            icon TEXT NOT NULL DEFAULT '🏢',
            project_count INTEGER NOT NULL DEFAULT 0,
            position INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_organizations_user ON organizations(user_id);

        CREATE TABLE IF NOT EXISTS projects (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            name TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            type TEXT NOT NULL DEFAULT 'other',
            organization_id TEXT REFERENCES organizations(id) ON DELETE SET NULL,
            url TEXT NOT NULL DEFAULT '',
            repository TEXT NOT NULL DEFAULT '',
            tags TEXT NOT NULL DEFAULT '[]',
            color TEXT NOT NULL DEFAULT '#6366f1',
            icon TEXT NOT NULL DEFAULT '📁',
            status TEXT NOT NULL DEFAULT 'active',
            priority TEXT NOT NULL DEFAULT 'medium',
            position TEXT NOT NULL,
            files TEXT NOT NULL DEFAULT '[]',
            last_accessed TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_projects_user ON projects(user_id);
        CREATE INDEX IF NOT EXISTS idx_projects_org ON projects(organization_id);

        CREATE TABLE IF NOT EXISTS industries (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            name TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            icon TEXT NOT NULL DEFAULT '🏢',
            color TEXT NOT NULL DEFAULT '#6366f1',
            file_count INTEGER NOT NULL DEFAULT 0,
            position INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_industries_user ON industries(user_id);

        CREATE TABLE IF NOT EXISTS file_items (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            name TEXT NOT NULL,
            path TEXT NOT NULL DEFAULT '',
            content TEXT NOT NULL DEFAULT '',
            size INTEGER NOT NULL DEFAULT 0,
            type TEXT NOT NULL DEFAULT '',
            category TEXT NOT NULL DEFAULT 'other',
            industry_id TEXT REFERENCES industries(id) ON DELETE SET NULL,
            uploaded_at TEXT NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_file_items_user ON file_items(user_id);
        CREATE INDEX IF NOT EXISTS idx_file_items_industry ON file_items(industry_id);

        CREATE TABLE IF NOT EXISTS login_confirmations (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            username TEXT NOT NULL,
            email TEXT NOT NULL,
            confirm_token TEXT NOT NULL UNIQUE,
            ip_address TEXT,
            user_agent TEXT,
            location TEXT,
            confirmed INTEGER NOT NULL DEFAULT 0,
            temp_token TEXT NOT NULL,
            expires_at TEXT NOT NULL,
            created_at TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_login_confirmations_expires
            ON login_confirmations(expires_at);

        CREATE TABLE IF NOT EXISTS courses (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            title TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            category TEXT NOT NULL DEFAULT '',
            platform TEXT NOT NULL DEFAULT '',
            url TEXT NOT NULL DEFAULT '',
            icon TEXT NOT NULL DEFAULT '📚',
            status TEXT NOT NULL DEFAULT 'Pending',
            progress INTEGER NOT NULL DEFAULT 0,
            priority TEXT NOT NULL DEFAULT 'medium',
            position INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_courses_user ON courses(user_id);

        CREATE TABLE IF NOT EXISTS subcourses (
            id TEXT PRIMARY KEY,
            course_id TEXT NOT NULL REFERENCES courses(id) ON DELETE CASCADE,
            user_id TEXT NOT NULL,
            title TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            duration TEXT NOT NULL DEFAULT '',
            resources TEXT NOT NULL DEFAULT '[]',
            notes TEXT NOT NULL DEFAULT '',
            status TEXT NOT NULL DEFAULT 'Pending',
            position INTEGER NOT NULL DEFAULT 0,
            completed_at TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_subcourses_course ON subcourses(course_id, position);

        CREATE TABLE IF NOT EXISTS board_states (
            user_id TEXT PRIMARY KEY,
            shapes TEXT NOT NULL DEFAULT '[]',
            updated_at TEXT NOT NULL
        );
    """)

    conn.commit()
    conn.close()

    logger.info("Database initialized: %s", db_path)


REQUIRED_TABLES: dict[str, list[str]] = {
    "users": ["id", "email", "password_hash", "is_verified"],
    "items": ["id", "user_id", "type", "content", "tags"],
    "notes": ["id", "user_id", "text", "z_index"],
    "diary_notes": ["id", "user_id", "title", "content"],
    "organizations": ["id", "user_id", "name", "project_count"],
    "projects": ["id", "user_id", "name", "organization_id"],
    "industries": ["id", "user_id", "name", "file_count"],
    "file_items": ["id", "user_id", "name", "industry_id"],
    "login_confirmations": ["id", "confirm_token", "confirmed", "expires_at"],
    "courses": ["id", "user_id", "title", "progress"],
    "subcourses": ["id", "course_id", "status"],
    "board_states": ["user_id", "shapes"],
}


def validate_schema(conn: sqlite3.Connection) -> bool:
    """
    Validate database has expected schema

    Args:
        conn: Active database connection

    Returns:
        True if valid

    Raises:
        ValueError: If tables or columns are missing
    """
    cursor = conn.cursor()

    cursor.execute("SELECT name FROM sqlite_master WHERE type='table'")
    existing_tables = {row[0] for row in cursor.fetchall()}

    missing_tables = set(REQUIRED_TABLES) - existing_tables
    if missing_tables:
        raise ValueError(f"Database missing tables: {sorted(missing_tables)}")

    for table, required_cols in REQUIRED_TABLES.items():
        # Identifiers can't be parameterized; names come from the dict above
        cursor.execute(f"PRAGMA table_info({table})")
        existing_cols = {row[1] for row in cursor.fetchall()}
        missing_cols = set(required_cols) - existing_cols
        if missing_cols:
            raise ValueError(f"Table {table} missing columns: {sorted(missing_cols)}")

    return True
