"""
Helpers for keeping personal data out of logs and LLM prompts.

- redact(): stable hash so log lines can be correlated without exposure
- mask_email(): j***@example.com style for human-readable logs
- sanitize_for_prompt(): strip prompt-injection markers from scraped text
"""

from __future__ import annotations

import re
from hashlib import sha256

INJECTION_PATTERNS = [
    r"ignore\s+(previous|above|all)\s+instructions?",
    r"disregard\s+(previous|above|all)\s+instructions?",
    r"forget\s+(previous|above|all)\s+instructions?",
    r"new\s+instructions?:",
    r"system\s*:",
    r"assistant\s*:",
    r"\[INST\]",
    r"\[/INST\]",
    r"<\|im_start\|>",
    r"<\|im_end\|>",
]
INJECTION_REGEX = re.compile("|".join(INJECTION_PATTERNS), re.IGNORECASE)


def redact(value: str | None) -> str:
    """
    Return a stable hash representation of a sensitive string.
    """
    if not value:
        return "hash:missing"
    digest = sha256(value.encode("utf-8")).hexdigest()[:12]
    return f"hash:{digest}"


def mask_email(email: str | None) -> str:
    """j***@example.com; anything without an @ is fully hashed."""
    if not email or "@" not in email:
        return redact(email)
    local, _, domain = email.partition("@")
    return f"{local[:1]}***@{domain}"


def sanitize_for_prompt(text: str | None, max_length: int = 2000) -> str:
    """
    Sanitize scraped or user-provided text before including it in LLM prompts.

    Truncates, removes known injection patterns and drops characters that
    could break the prompt's JSON framing.
    """
    if not text:
        return ""

    text = text[:max_length]
    text = INJECTION_REGEX.sub("[REDACTED]", text)
    text = re.sub(r"[<>{}|\\]", "", text)
    return text.strip()
