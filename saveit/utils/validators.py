"""
Input validation utilities.

Normalizes user-supplied strings before they reach the database.
"""

from __future__ import annotations

import re
from urllib.parse import urlparse

EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")

# Hex colour like #fef08a or #FFF
COLOR_PATTERN = re.compile(r"^#(?:[0-9a-fA-F]{3}){1,2}$")

ID_PATTERN = re.compile(r"^[0-9a-fA-F-]{1,64}$")

MAX_TAGS = 50
MAX_TAG_LENGTH = 50


class ValidationError(ValueError):
    """Raised when input validation fails."""

    pass


def sanitize_string(value: str | None) -> str:
    """Strip NUL bytes and surrounding whitespace."""
    if value is None:
        return ""
    return value.replace("\x00", "").strip()


def validate_email(email: str | None) -> str:
    """
    Lower-case and validate an email address.

    Raises:
        ValidationError: If email is missing or malformed
    """
    email = sanitize_string(email).lower()
    if not email:
        raise ValidationError("Email is required")
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Please enter a valid email")
    return email


def validate_record_id(record_id: str | None) -> str:
    """
    Validate a UUID-style record id from a path or body.

    Raises:
        ValidationError: If the id has an impossible format
    """
    record_id = sanitize_string(record_id)
    if not record_id or not ID_PATTERN.match(record_id):
        raise ValidationError("Invalid ID format")
    return record_id


def validate_color(color: str) -> str:
    color = sanitize_string(color)
    if not COLOR_PATTERN.match(color):
        raise ValidationError("Invalid color format")
    return color


def normalize_tags(tags: list[str] | str | None) -> list[str]:
    """
    Clean a tag list (or comma-separated string): trim, drop blanks and
    duplicates, keep first-seen order.
    """
    if tags is None:
        return []
    if isinstance(tags, str):
        tags = tags.split(",")

    seen: set[str] = set()
    result: list[str] = []
    for tag in tags:
        clean = sanitize_string(str(tag))[:MAX_TAG_LENGTH]
        if clean and clean.lower() not in seen:
            seen.add(clean.lower())
            result.append(clean)
    return result[:MAX_TAGS]


def validate_url(url: str | None) -> str:
    """
    Require an absolute http(s) URL.

    Raises:
        ValidationError: If url is missing or not http(s)
    """
    url = sanitize_string(url)
    try:
        parsed = urlparse(url)
    except ValueError:
        raise ValidationError("A valid http(s) URL is required") from None
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError("A valid http(s) URL is required")
    return url


def is_unassigned(value: str | None) -> bool:
    """Query-string sentinel for "no parent" filters (?organization=null)."""
    return value is not None and value.strip().lower() in ("null", "none", "")
