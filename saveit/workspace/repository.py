"""
Organization and Project repositories.

project_count on an organization always equals the number of projects
pointing at it. Every write that can change that number runs the recount in
the same transaction as the write itself.
"""

from __future__ import annotations

import sqlite3

from saveit.infrastructure.database import db_transaction, get_db_connection, retry_on_db_lock
from saveit.observability.logging import get_logger
from saveit.storage.models import encode_changes, to_iso, update_sql, utc_now
from saveit.workspace.models import Organization, Project

logger = get_logger(__name__)


def _recount_projects(conn: sqlite3.Connection, *organization_ids: str | None) -> None:
    now = to_iso(utc_now())
    for org_id in {o for o in organization_ids if o}:
        conn.execute(
            """
            UPDATE organizations
            SET project_count = (SELECT COUNT(*) FROM projects WHERE organization_id = :id),
                updated_at = :now
            WHERE id = :id
            """,
            {"id": org_id, "now": now},
        )


class OrganizationRepository:
    """Repository for organizations, listed by position then name."""

    @staticmethod
    @retry_on_db_lock()
    def create(org: Organization) -> Organization:
        with db_transaction() as conn:
            conn.execute(Organization.insert_sql("organizations"), org.to_db_dict())
        logger.info("Created organization %s for user %s", org.id, org.user_id)
        return org

    @staticmethod
    def get(org_id: str, user_id: str) -> Organization | None:
        with get_db_connection() as conn:
            row = conn.execute(
                "SELECT * FROM organizations WHERE id = ? AND user_id = ?", (org_id, user_id)
            ).fetchone()
        return Organization.from_db_row(row) if row else None

    @staticmethod
    def list_for_user(user_id: str) -> list[Organization]:
        with get_db_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM organizations WHERE user_id = ? ORDER BY position ASC, name ASC",
                (user_id,),
            ).fetchall()
        return [Organization.from_db_row(r) for r in rows]

    @staticmethod
    def summaries(org_ids: set[str]) -> dict[str, dict]:
        """{id: {id, name, color, icon}} for embedding in project payloads."""
        if not org_ids:
            return {}
        placeholders = ", ".join("?" for _ in org_ids)
        with get_db_connection() as conn:
            rows = conn.execute(
                f"SELECT id, name, color, icon FROM organizations WHERE id IN ({placeholders})",
                tuple(org_ids),
            ).fetchall()
        return {r["id"]: dict(r) for r in rows}

    @staticmethod
    @retry_on_db_lock()
    def update(org_id: str, user_id: str, **changes) -> Organization | None:
        changes["updated_at"] = utc_now()
        encoded = encode_changes(Organization, changes)
        with db_transaction() as conn:
            cursor = conn.execute(
                update_sql("organizations", list(encoded)),
                {**encoded, "id": org_id, "user_id": user_id},
            )
            if cursor.rowcount == 0:
                return None
        return OrganizationRepository.get(org_id, user_id)

    @staticmethod
    def count_projects(org_id: str) -> int:
        with get_db_connection() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM projects WHERE organization_id = ?", (org_id,)
            ).fetchone()
        return row[0]

    @staticmethod
    @retry_on_db_lock()
    def delete(org_id: str, user_id: str) -> bool:
        with db_transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM organizations WHERE id = ? AND user_id = ?", (org_id, user_id)
            )
        return cursor.rowcount > 0


class ProjectRepository:
    """Repository for projects, newest first."""

    @staticmethod
    @retry_on_db_lock()
    def create(project: Project) -> Project:
        with db_transaction() as conn:
            conn.execute(Project.insert_sql("projects"), project.to_db_dict())
            _recount_projects(conn, project.organization_id)
        logger.info("Created project %s for user %s", project.id, project.user_id)
        return project

    @staticmethod
    def get(project_id: str, user_id: str) -> Project | None:
        with get_db_connection() as conn:
            row = conn.execute(
                "SELECT * FROM projects WHERE id = ? AND user_id = ?", (project_id, user_id)
            ).fetchone()
        return Project.from_db_row(row) if row else None

    @staticmethod
    def list_for_user(
        user_id: str,
        organization_id: str | None = None,
        unassigned: bool = False,
        project_type: str | None = None,
        status: str | None = None,
    ) -> list[Project]:
        """
        List a user's projects.

        Args:
            organization_id: Only projects in this organization
            unassigned: Only projects without an organization (wins over organization_id)
            project_type: Filter by type
            status: Filter by status
        """
        query = "SELECT * FROM projects WHERE user_id = ?"
        params: list = [user_id]
        if unassigned:
            query += " AND organization_id IS NULL"
        elif organization_id:
            query += " AND organization_id = ?"
            params.append(organization_id)
        if project_type:
            query += " AND type = ?"
            params.append(project_type)
        if status:
            query += " AND status = ?"
            params.append(status)
        query += " ORDER BY created_at DESC"

        with get_db_connection() as conn:
            rows = conn.execute(query, params).fetchall()
        return [Project.from_db_row(r) for r in rows]

    @staticmethod
    @retry_on_db_lock()
    def update(project_id: str, user_id: str, **changes) -> Project | None:
        """
        Update a project. Moving it between organizations recounts both.
        """
        current = ProjectRepository.get(project_id, user_id)
        if not current:
            return None

        changes["updated_at"] = utc_now()
        encoded = encode_changes(Project, changes)
        with db_transaction() as conn:
            conn.execute(
                update_sql("projects", list(encoded)),
                {**encoded, "id": project_id, "user_id": user_id},
            )
            if "organization_id" in encoded:
                _recount_projects(conn, current.organization_id, encoded["organization_id"])
        return ProjectRepository.get(project_id, user_id)

    @staticmethod
    def touch(project_id: str, user_id: str) -> None:
        """Stamp last_accessed when a project is opened."""
        with db_transaction() as conn:
            conn.execute(
                "UPDATE projects SET last_accessed = ? WHERE id = ? AND user_id = ?",
                (to_iso(utc_now()), project_id, user_id),
            )

    @staticmethod
    @retry_on_db_lock()
    def delete(project_id: str, user_id: str) -> bool:
        current = ProjectRepository.get(project_id, user_id)
        if not current:
            return False
        with db_transaction() as conn:
            conn.execute(
                "DELETE FROM projects WHERE id = ? AND user_id = ?", (project_id, user_id)
            )
            _recount_projects(conn, current.organization_id)
        return True
