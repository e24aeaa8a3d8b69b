"""
Course and SubCourse repositories.

Every sub-course write refreshes the parent course's progress and status in
the same transaction.
"""

from __future__ import annotations

import sqlite3

from saveit.infrastructure.database import db_transaction, get_db_connection, retry_on_db_lock
from saveit.learning.models import (
    Course,
    CourseStatus,
    SubCourse,
    course_progress,
    status_for_progress,
)
from saveit.observability.logging import get_logger
from saveit.storage.models import encode_changes, to_iso, update_sql, utc_now

logger = get_logger(__name__)

_PRIORITY_ORDER = "CASE priority WHEN 'high' THEN 0 WHEN 'medium' THEN 1 ELSE 2 END"


def _refresh_progress(conn: sqlite3.Connection, course_id: str) -> None:
    row = conn.execute(
        """
        SELECT COUNT(*) AS total,
               SUM(CASE WHEN status = ? THEN 1 ELSE 0 END) AS completed
        FROM subcourses WHERE course_id = ?
        """,
        (CourseStatus.COMPLETED.value, course_id),
    ).fetchone()
    course = conn.execute("SELECT status FROM courses WHERE id = ?", (course_id,)).fetchone()
    if course is None:
        return

    progress = course_progress(row["completed"] or 0, row["total"])
    status = status_for_progress(progress, course["status"])
    conn.execute(
        "UPDATE courses SET progress = ?, status = ?, updated_at = ? WHERE id = ?",
        (progress, status, to_iso(utc_now()), course_id),
    )


class CourseRepository:
    @staticmethod
    @retry_on_db_lock()
    def create(course: Course) -> Course:
        with db_transaction() as conn:
            conn.execute(Course.insert_sql("courses"), course.to_db_dict())
        logger.info("Created course %s for user %s", course.id, course.user_id)
        return course

    @staticmethod
    @retry_on_db_lock()
    def create_with_subcourses(course: Course, subs: list[SubCourse]) -> Course:
        """Insert a course and its sub-courses in one transaction."""
        with db_transaction() as conn:
            conn.execute(Course.insert_sql("courses"), course.to_db_dict())
            for position, sub in enumerate(subs):
                sub.course_id = course.id
                sub.position = position
                conn.execute(SubCourse.insert_sql("subcourses"), sub.to_db_dict())
            _refresh_progress(conn, course.id)
        logger.info(
            "Imported course %s with %d sub-courses for user %s", course.id, len(subs), course.user_id
        )
        return CourseRepository.get(course.id, course.user_id)

    @staticmethod
    def get(course_id: str, user_id: str) -> Course | None:
        with get_db_connection() as conn:
            row = conn.execute(
                "SELECT * FROM courses WHERE id = ? AND user_id = ?", (course_id, user_id)
            ).fetchone()
        return Course.from_db_row(row) if row else None

    @staticmethod
    def list_for_user(
        user_id: str, status: str | None = None, category: str | None = None
    ) -> list[Course]:
        query = "SELECT * FROM courses WHERE user_id = ?"
        params: list = [user_id]
        if status:
            query += " AND status = ?"
            params.append(status)
        if category:
            query += " AND category = ?"
            params.append(category)
        query += " ORDER BY position ASC, created_at DESC"

        with get_db_connection() as conn:
            rows = conn.execute(query, params).fetchall()
        return [Course.from_db_row(r) for r in rows]

    @staticmethod
    def next_for_user(user_id: str) -> Course | None:
        """
        The course to work on next: the first one already in progress, else
        the highest-priority pending one.
        """
        with get_db_connection() as conn:
            row = conn.execute(
                f"""
                SELECT * FROM courses
                WHERE user_id = ? AND status != ?
                ORDER BY CASE status WHEN ? THEN 0 ELSE 1 END,
                         {_PRIORITY_ORDER}, position ASC, created_at ASC
                LIMIT 1
                """,
                (user_id, CourseStatus.COMPLETED.value, CourseStatus.IN_PROGRESS.value),
            ).fetchone()
        return Course.from_db_row(row) if row else None

    @staticmethod
    @retry_on_db_lock()
    def update(course_id: str, user_id: str, **changes) -> Course | None:
        changes["updated_at"] = utc_now()
        encoded = encode_changes(Course, changes)
        with db_transaction() as conn:
            cursor = conn.execute(
                update_sql("courses", list(encoded)),
                {**encoded, "id": course_id, "user_id": user_id},
            )
            if cursor.rowcount == 0:
                return None
        return CourseRepository.get(course_id, user_id)

    @staticmethod
    @retry_on_db_lock()
    def delete(course_id: str, user_id: str) -> bool:
        """Delete a course; its sub-courses go with it (ON DELETE CASCADE)."""
        with db_transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM courses WHERE id = ? AND user_id = ?", (course_id, user_id)
            )
        return cursor.rowcount > 0


class SubCourseRepository:
    @staticmethod
    @retry_on_db_lock()
    def create(sub: SubCourse) -> SubCourse:
        """Append a sub-course at the end of its course."""
        with db_transaction() as conn:
            row = conn.execute(
                "SELECT MAX(position) FROM subcourses WHERE course_id = ?", (sub.course_id,)
            ).fetchone()
            if sub.position == 0 and row[0] is not None:
                sub.position = row[0] + 1
            conn.execute(SubCourse.insert_sql("subcourses"), sub.to_db_dict())
            _refresh_progress(conn, sub.course_id)
        return sub

    @staticmethod
    def get(sub_id: str, user_id: str) -> SubCourse | None:
        with get_db_connection() as conn:
            row = conn.execute(
                "SELECT * FROM subcourses WHERE id = ? AND user_id = ?", (sub_id, user_id)
            ).fetchone()
        return SubCourse.from_db_row(row) if row else None

    @staticmethod
    def list_for_course(course_id: str, user_id: str) -> list[SubCourse]:
        with get_db_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM subcourses WHERE course_id = ? AND user_id = ? "
                "ORDER BY position ASC, created_at ASC",
                (course_id, user_id),
            ).fetchall()
        return [SubCourse.from_db_row(r) for r in rows]

    @staticmethod
    @retry_on_db_lock()
    def update(sub_id: str, user_id: str, **changes) -> SubCourse | None:
        """
        Update a sub-course. Setting status stamps or clears completed_at.
        """
        current = SubCourseRepository.get(sub_id, user_id)
        if not current:
            return None

        if "status" in changes:
            status = getattr(changes["status"], "value", changes["status"])
            completed = status == CourseStatus.COMPLETED.value
            changes["completed_at"] = (current.completed_at or utc_now()) if completed else None
        changes["updated_at"] = utc_now()
        encoded = encode_changes(SubCourse, changes)

        with db_transaction() as conn:
            conn.execute(
                update_sql("subcourses", list(encoded)),
                {**encoded, "id": sub_id, "user_id": user_id},
            )
            _refresh_progress(conn, current.course_id)
        return SubCourseRepository.get(sub_id, user_id)

    @staticmethod
    def complete(sub_id: str, user_id: str) -> SubCourse | None:
        return SubCourseRepository.update(sub_id, user_id, status=CourseStatus.COMPLETED.value)

    @staticmethod
    @retry_on_db_lock()
    def delete(sub_id: str, user_id: str) -> bool:
        current = SubCourseRepository.get(sub_id, user_id)
        if not current:
            return False
        with db_transaction() as conn:
            conn.execute("DELETE FROM subcourses WHERE id = ? AND user_id = ?", (sub_id, user_id))
            _refresh_progress(conn, current.course_id)
        return True
