"""
Learning tracker models.

A Course's progress is derived from its sub-courses:
    progress = 100 * completed / total, halves rounded up
and its status follows (Completed at 100, In Progress above 0).
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import ClassVar

from pydantic import Field, field_validator

from saveit.storage.models import StoredModel, new_id, utc_now

COURSE_TITLE_MAX = 200


class CourseStatus(str, Enum):
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class CoursePriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def _title(v: str) -> str:
    v = (v or "").strip()
    if not v:
        raise ValueError("Title is required")
    return v[:COURSE_TITLE_MAX]


class Course(StoredModel):
    id: str = Field(default_factory=new_id)
    user_id: str
    title: str
    description: str = ""
    category: str = ""
    platform: str = ""
    url: str = ""
    icon: str = "📚"
    status: CourseStatus = CourseStatus.PENDING
    progress: int = Field(default=0, ge=0, le=100)
    priority: CoursePriority = CoursePriority.MEDIUM
    position: int = 0
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str) -> str:
        return _title(v)


class SubCourse(StoredModel):
    JSON_FIELDS: ClassVar[tuple[str, ...]] = ("resources",)

    id: str = Field(default_factory=new_id)
    course_id: str
    user_id: str
    title: str
    description: str = ""
    duration: str = ""
    resources: list[str] = Field(default_factory=list)
    notes: str = ""
    status: CourseStatus = CourseStatus.PENDING
    position: int = 0
    completed_at: datetime | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str) -> str:
        return _title(v)


def course_progress(completed: int, total: int) -> int:
    """Percent complete, halves rounded up (1 of 8 is 13)."""
    if total <= 0:
        return 0
    return (200 * completed + total) // (2 * total)


def status_for_progress(progress: int, current: str) -> str:
    """Status a course should have at this progress.

    At 0 a hand-set status is kept, except that a course can no longer be
    Completed.
    """
    if progress >= 100:
        return CourseStatus.COMPLETED.value
    if progress > 0:
        return CourseStatus.IN_PROGRESS.value
    if current == CourseStatus.COMPLETED.value:
        return CourseStatus.PENDING.value
    return current
