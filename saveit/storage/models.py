"""
Base model for rows persisted in the SaveIt.AI database (Pydantic v2).

StoredModel maps a record to/from a sqlite row: JSON-encoded list/object
columns, ISO-8601 timestamps and 0/1 booleans. API payloads use camelCase
aliases (userId, zIndex, isPinned) while Python code uses snake_case.
"""

from __future__ import annotations

import json
import uuid
from datetime import UTC, datetime
from enum import Enum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    """Return current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def new_id() -> str:
    return str(uuid.uuid4())


def parse_dt(value: str | datetime | None) -> datetime | None:
    """Parse an ISO timestamp, treating naive values as UTC."""
    if value is None or value == "":
        return None
    dt = value if isinstance(value, datetime) else datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


class ApiModel(BaseModel):
    """Request/response model that accepts both camelCase and snake_case keys."""

    model_config = ConfigDict(
        use_enum_values=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class StoredModel(ApiModel):
    """A database record. Subclasses list their JSON columns in JSON_FIELDS."""

    JSON_FIELDS: ClassVar[tuple[str, ...]] = ()
    # Columns left out of API payloads unless asked for
    PRIVATE_FIELDS: ClassVar[frozenset[str]] = frozenset()

    def to_db_dict(self) -> dict[str, Any]:
        """Convert to dict for database storage."""
        return encode_changes(type(self), self.model_dump())

    @classmethod
    def from_db_row(cls, row: Any) -> StoredModel:
        """Create a record from a sqlite3.Row or dict."""
        data = dict(row)
        for key in cls.JSON_FIELDS:
            raw = data.get(key)
            if isinstance(raw, str):
                data[key] = json.loads(raw) if raw else None
        return cls.model_validate({k: v for k, v in data.items() if v is not None})

    @classmethod
    def columns(cls) -> list[str]:
        return list(cls.model_fields)

    @classmethod
    def insert_sql(cls, table: str) -> str:
        """Named-parameter INSERT covering every field of the model."""
        cols = cls.columns()
        return (
            f"INSERT INTO {table} ({', '.join(cols)}) "
            f"VALUES ({', '.join(':' + c for c in cols)})"
        )

    def to_api(self, include_private: bool = False) -> dict[str, Any]:
        """JSON-safe camelCase payload for responses."""
        exclude = None if include_private else set(self.PRIVATE_FIELDS) or None
        return self.model_dump(mode="json", by_alias=True, exclude=exclude)

    def validated_changes(self, changes: dict[str, Any]) -> dict[str, Any]:
        """Run field validators over a partial update and return the cleaned values."""
        merged = type(self).model_validate({**self.model_dump(), **changes})
        return {k: getattr(merged, k) for k in changes if k in type(self).model_fields}


def encode_changes(model_cls: type[StoredModel], changes: dict[str, Any]) -> dict[str, Any]:
    """
    Encode a partial update for storage the same way to_db_dict does.

    Only keys that are fields of model_cls survive; the caller picks which
    fields a given endpoint may touch.
    """
    encoded: dict[str, Any] = {}
    for key, value in changes.items():
        if key not in model_cls.model_fields:
            continue
        if isinstance(value, BaseModel):
            value = value.model_dump()
        if key in model_cls.JSON_FIELDS:
            value = json.dumps(value)
        elif isinstance(value, bool):
            value = int(value)
        elif isinstance(value, datetime):
            value = to_iso(value)
        elif isinstance(value, Enum):
            value = value.value
        encoded[key] = value
    return encoded


def to_iso(value: datetime) -> str:
    """Fixed-width UTC timestamp so text ordering matches time ordering.

    Naive values are taken as UTC, never as host local time.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%S.%f+00:00")


def update_sql(table: str, fields: list[str], scope: str = "id = :id AND user_id = :user_id") -> str:
    """UPDATE statement setting the named fields, scoped to one owner's row."""
    assignments = ", ".join(f"{f} = :{f}" for f in fields)
    return f"UPDATE {table} SET {assignments} WHERE {scope}"
