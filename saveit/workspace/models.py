"""
Workspace domain models.

An Organization is a user-defined folder for Projects. Its project_count is
derived data: the repository recomputes it from the projects table after
every change that could move a project in or out.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import ClassVar

from pydantic import BaseModel, Field, field_validator

from saveit.storage.models import StoredModel, new_id, utc_now

ORGANIZATION_NAME_MAX = 100
PROJECT_NAME_MAX = 200


class ProjectType(str, Enum):
    VANILLA = "vanilla"
    REACT = "react"
    NEXTJS = "nextjs"
    VUE = "vue"
    ANGULAR = "angular"
    NODE = "node"
    PYTHON = "python"
    OTHER = "other"


class ProjectStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"
    PLANNING = "planning"


class ProjectPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class CanvasPosition(BaseModel):
    x: float = 0
    y: float = 0


def _required_name(value: str, limit: int, label: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValueError(f"{label} name is required")
    if len(value) > limit:
        raise ValueError(f"{label} name must be less than {limit} characters")
    return value


class Organization(StoredModel):
    id: str = Field(default_factory=new_id)
    user_id: str
    name: str
    description: str = ""
    color: str = "#6366f1"
    icon: str = "🏢"
    project_count: int = 0
    position: int = 0
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        return _required_name(v, ORGANIZATION_NAME_MAX, "Organization")


class Project(StoredModel):
    """A project card, optionally filed under an organization."""

    JSON_FIELDS: ClassVar[tuple[str, ...]] = ("tags", "position", "files")

    id: str = Field(default_factory=new_id)
    user_id: str
    name: str
    description: str = ""
    type: ProjectType = ProjectType.OTHER
    organization_id: str | None = None
    url: str = ""
    repository: str = ""
    tags: list[str] = Field(default_factory=list)
    color: str = "#6366f1"
    icon: str = "📁"
    status: ProjectStatus = ProjectStatus.ACTIVE
    priority: ProjectPriority = ProjectPriority.MEDIUM
    position: CanvasPosition = Field(default_factory=CanvasPosition)
    files: list[str] = Field(default_factory=list)
    last_accessed: datetime = Field(default_factory=utc_now)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        return _required_name(v, PROJECT_NAME_MAX, "Project")
