"""
File library models.

FileItem content is kept inline as base64 text. Industry.file_count is
maintained by the repository the same way Organization.project_count is.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import ClassVar

from pydantic import Field, field_validator

from saveit.storage.models import StoredModel, new_id, utc_now

INDUSTRY_NAME_MAX = 100
FILE_NAME_MAX = 255


class FileCategory(str, Enum):
    CODE = "code"
    PDF = "pdf"
    DOCUMENT = "document"
    SPREADSHEET = "spreadsheet"
    PRESENTATION = "presentation"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    ARCHIVE = "archive"
    TEXT = "text"
    OTHER = "other"


class Industry(StoredModel):
    id: str = Field(default_factory=new_id)
    user_id: str
    name: str
    description: str = ""
    icon: str = "🏢"
    color: str = "#6366f1"
    file_count: int = 0
    position: int = 0
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("Industry name is required")
        if len(v) > INDUSTRY_NAME_MAX:
            raise ValueError(f"Industry name must be less than {INDUSTRY_NAME_MAX} characters")
        return v


class FileItem(StoredModel):
    """An uploaded file. content never appears in list payloads."""

    PRIVATE_FIELDS: ClassVar[frozenset[str]] = frozenset({"content"})

    id: str = Field(default_factory=new_id)
    user_id: str
    name: str = Field(..., min_length=1, max_length=FILE_NAME_MAX)
    path: str = ""
    content: str = ""
    size: int = Field(default=0, ge=0)
    type: str = ""
    category: FileCategory = FileCategory.OTHER
    industry_id: str | None = None
    uploaded_at: datetime = Field(default_factory=utc_now)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
