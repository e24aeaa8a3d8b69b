"""
Saved item domain models.

An Item is a link, note, code snippet or component the user saved, plus the
metadata enrichment produced for it (summary, tags, platform, category).
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import ClassVar

from pydantic import Field, field_validator

from saveit.storage.models import StoredModel, new_id, parse_dt, utc_now

TITLE_MAX = 200
DESCRIPTION_MAX = 1000
SUMMARY_MAX = 600
NOTES_MAX = 200


class ItemType(str, Enum):
    LINK = "link"
    NOTE = "note"
    CODE = "code"
    COMPONENT = "component"


class Platform(str, Enum):
    """Where a saved link lives."""

    YOUTUBE = "youtube"
    INSTAGRAM = "instagram"
    GITHUB = "github"
    TWITTER = "twitter"
    LINKEDIN = "linkedin"
    FACEBOOK = "facebook"
    MEDIUM = "medium"
    REDDIT = "reddit"
    TIKTOK = "tiktok"
    WEBSITE = "website"
    OTHER = "other"


class Category(str, Enum):
    """Topic of a saved link."""

    EDUCATION = "education"
    TECHNOLOGY = "technology"
    ENTERTAINMENT = "entertainment"
    AI = "ai"
    PROGRAMMING = "programming"
    DESIGN = "design"
    BUSINESS = "business"
    MUSIC = "music"
    GAMING = "gaming"
    NEWS = "news"
    LIFESTYLE = "lifestyle"
    OTHER = "other"


def _clip(value: str | None, limit: int) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value[:limit] if value else None


class Item(StoredModel):
    """A saved item owned by one user."""

    JSON_FIELDS: ClassVar[tuple[str, ...]] = ("tags",)

    id: str = Field(default_factory=new_id)
    user_id: str
    type: ItemType
    content: str = Field(..., min_length=1)
    title: str | None = None
    description: str | None = None
    summary: str | None = None
    domain: str | None = None
    thumbnail: str | None = None
    favicon: str | None = None
    image: str | None = None
    platform: Platform = Platform.WEBSITE
    category: Category = Category.OTHER
    published_date: datetime | None = None
    author: str | None = None
    language: str | None = None
    content_type: str | None = None
    readability_score: float | None = None
    tags: list[str] = Field(default_factory=list)
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    notes: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("title")
    @classmethod
    def clip_title(cls, v: str | None) -> str | None:
        return _clip(v, TITLE_MAX)

    @field_validator("description")
    @classmethod
    def clip_description(cls, v: str | None) -> str | None:
        return _clip(v, DESCRIPTION_MAX)

    @field_validator("summary")
    @classmethod
    def clip_summary(cls, v: str | None) -> str | None:
        return _clip(v, SUMMARY_MAX)

    @field_validator("notes")
    @classmethod
    def clip_notes(cls, v: str | None) -> str | None:
        return _clip(v, NOTES_MAX)

    @field_validator("published_date", mode="before")
    @classmethod
    def lenient_date(cls, v):
        # Scraped/LLM dates are free text; keep only ones that parse
        if isinstance(v, str):
            try:
                return parse_dt(v.strip().replace("Z", "+00:00"))
            except ValueError:
                return None
        return v
