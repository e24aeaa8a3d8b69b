"""
Error message sanitization utility.

Keeps stack traces, SQL and secrets out of client responses.
"""

from __future__ import annotations

import re

from saveit.observability.logging import get_logger

logger = get_logger(__name__)

# Patterns that might leak sensitive information
SENSITIVE_PATTERNS = [
    # File paths
    r"/[^\s]+\.py",
    r"[A-Za-z]:\\[^\s]+",
    # Stack trace indicators
    r"Traceback \(most recent call last\)",
    r"File \".*\"",
    r"line \d+",
    # Database errors
    r"sqlite3?\.",
    r"UNIQUE constraint",
    r"FOREIGN KEY constraint",
    r"no such table",
    r"no such column",
    # Secrets
    r"[A-Za-z0-9_-]{32,}",
    r"Bearer [A-Za-z0-9._-]+",
    r"eyJ[A-Za-z0-9_-]+\.",
    # Internal module names
    r"saveit\.[a-z_.]+",
]

_SENSITIVE_REGEX = [re.compile(p, re.IGNORECASE) for p in SENSITIVE_PATTERNS]

GENERIC_MESSAGES = {
    400: "Invalid request. Please check your input and try again.",
    401: "Authentication required.",
    403: "Access denied.",
    404: "Resource not found.",
    409: "Duplicate entry.",
    410: "This link has expired.",
    413: "Request entity too large.",
    422: "Invalid data format.",
    429: "Too many requests. Please try again later.",
    500: "Internal server error",
    503: "Service temporarily unavailable.",
}


def sanitize_error_message(
    message: str,
    status_code: int = 500,
    allow_field_names: bool = True,
) -> str:
    """
    Sanitize an error message to prevent information leakage.

    Client errors (4xx) keep short, plain messages; anything that looks like
    internals, and every 5xx, falls back to a generic message.
    """
    generic = GENERIC_MESSAGES.get(status_code, "An error occurred.")
    if not message:
        return generic

    for pattern in _SENSITIVE_REGEX:
        if pattern.search(message):
            logger.warning("Sanitized sensitive error pattern: %s", pattern.pattern)
            return generic

    if (
        400 <= status_code < 500
        and allow_field_names
        and len(message) < 200
        and not any(c in message for c in ["{", "}", "[", "]", "\n"])
    ):
        return message

    return generic


def get_safe_error_detail(
    error: Exception,
    status_code: int = 500,
    context: str | None = None,
) -> str:
    """
    Get a safe error detail string for HTTP responses.

    Args:
        error: The exception that occurred
        status_code: HTTP status code
        context: Message to use instead of the error text for 5xx responses
    """
    logger.error("Error (status=%d): %s - %s", status_code, type(error).__name__, str(error))

    if context and status_code >= 500:
        return context
    return sanitize_error_message(str(error), status_code)
