"""
Note domain models.

Sticky notes sit on a free-form board: each has a position, a size and a
z-index that decides stacking order. Diary notes are plain titled entries.
"""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar

from pydantic import BaseModel, Field, field_validator

from saveit.storage.models import StoredModel, new_id, utc_now

NOTE_TEXT_MAX = 2000

# Palette offered by the notes board (yellow, red, blue, green, purple,
# orange, pink, gray)
NOTE_COLORS: tuple[str, ...] = (
    "#fef08a",
    "#fecaca",
    "#bfdbfe",
    "#bbf7d0",
    "#ddd6fe",
    "#fed7aa",
    "#fbcfe8",
    "#d1d5db",
)
DEFAULT_NOTE_COLOR = NOTE_COLORS[0]
DEFAULT_DIARY_COLOR = "#FFF9E6"


class Position(BaseModel):
    x: float = 100
    y: float = 100


class Size(BaseModel):
    width: float = Field(default=250, gt=0)
    height: float = Field(default=250, gt=0)


class Note(StoredModel):
    """A sticky note owned by one user."""

    JSON_FIELDS: ClassVar[tuple[str, ...]] = ("position", "size", "attached_links")

    id: str = Field(default_factory=new_id)
    user_id: str
    text: str = Field(default="", max_length=NOTE_TEXT_MAX)
    color: str = DEFAULT_NOTE_COLOR
    position: Position = Field(default_factory=Position)
    size: Size = Field(default_factory=Size)
    attached_links: list[str] = Field(default_factory=list)
    z_index: int = 1
    is_pinned: bool = False
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("color")
    @classmethod
    def color_in_palette(cls, v: str) -> str:
        if v not in NOTE_COLORS:
            raise ValueError(f"Color must be one of {', '.join(NOTE_COLORS)}")
        return v


class DiaryNote(StoredModel):
    """A diary entry."""

    id: str = Field(default_factory=new_id)
    user_id: str
    title: str = ""
    content: str = ""
    color: str = DEFAULT_DIARY_COLOR
    is_pinned: bool = False
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
