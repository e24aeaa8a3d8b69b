"""Tests for client-facing error message sanitization"""

from __future__ import annotations

from saveit.utils.error_sanitizer import sanitize_error_message


def test_plain_client_errors_pass_through():
    assert sanitize_error_message("Note not found", 404) == "Note not found"
    assert sanitize_error_message("Invalid or expired OTP", 400) == "Invalid or expired OTP"


def test_internals_are_replaced():
    assert sanitize_error_message("UNIQUE constraint failed: users.email", 400) == (
        "Invalid request. Please check your input and try again."
    )
    assert sanitize_error_message('File "/app/saveit/api/app.py", line 12', 404) == (
        "Resource not found."
    )
    assert sanitize_error_message("token eyJhbGciOiJIUzI1NiJ9.payload", 401) == (
        "Authentication required."
    )


def test_server_errors_are_always_generic():
    assert sanitize_error_message("division by zero", 500) == "Internal server error"


def test_structured_or_long_messages_are_generic():
    assert sanitize_error_message("bad {payload}", 400).startswith("Invalid request")
    assert sanitize_error_message("x" * 250, 409) == "Duplicate entry."


def test_empty_message_uses_generic():
    assert sanitize_error_message("", 403) == "Access denied."
