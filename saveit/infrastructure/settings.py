"""
Application-wide settings and environment configuration
"""

from __future__ import annotations

import os
import secrets
from pathlib import Path

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent.parent
SAVEIT_ROOT = Path(__file__).parent.parent

# Environment
ENV = os.getenv("SAVEIT_ENV", "development")
DEBUG = ENV == "development"

# API Configuration
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))
LOG_LEVEL = os.getenv("SAVEIT_LOG_LEVEL", "INFO")
PUBLIC_API_URL = os.getenv("SAVEIT_PUBLIC_API_URL", "http://localhost:8000")
FRONTEND_URL = os.getenv("SAVEIT_FRONTEND_URL")

# Google Cloud / Gemini
GOOGLE_CLOUD_PROJECT = os.getenv("GOOGLE_CLOUD_PROJECT")
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
GEMINI_LOCATION = os.getenv("GEMINI_LOCATION", "us-central1")
GEMINI_MAX_TOKENS = int(os.getenv("GEMINI_MAX_TOKENS", "1024"))
GEMINI_TEMPERATURE = float(os.getenv("GEMINI_TEMPERATURE", "0.1"))

# Session tokens
JWT_ALGORITHM = "HS256"
JWT_EXPIRES_DAYS = int(os.getenv("SAVEIT_JWT_EXPIRES_DAYS", "30"))

# Only used when SAVEIT_JWT_SECRET is unset outside production; sessions
# do not survive a restart in that case.
_EPHEMERAL_JWT_SECRET = secrets.token_urlsafe(48)


def is_production() -> bool:
    """Check if running in production"""
    return get_env("SAVEIT_ENV", ENV) == "production"


def is_development() -> bool:
    """Check if running in development"""
    return get_env("SAVEIT_ENV", ENV) == "development"


def is_test() -> bool:
    return get_env("SAVEIT_ENV", ENV) == "test"


def get_env(key: str, default: str | None = None) -> str | None:
    """Get environment variable with fallback"""
    return os.getenv(key, default)


def get_bool_env(key: str, default: bool) -> bool:
    """Read a true/false flag from the environment."""
    value = os.getenv(key)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def get_jwt_secret() -> str:
    """
    Return the HS256 signing key for session tokens.

    Raises:
        RuntimeError: If SAVEIT_JWT_SECRET is missing in production
    """
    secret = os.getenv("SAVEIT_JWT_SECRET")
    if secret:
        return secret
    if is_production():
        raise RuntimeError("SAVEIT_JWT_SECRET must be set in production")
    return _EPHEMERAL_JWT_SECRET


def use_llm() -> bool:
    """Whether link/note enrichment should call Gemini."""
    return get_bool_env("SAVEIT_USE_LLM", True)


def login_confirmation_enabled() -> bool:
    """Whether logins wait for an emailed approval before issuing a session."""
    return get_bool_env("SAVEIT_LOGIN_CONFIRMATION", is_production())


def get_admin_credentials() -> tuple[str | None, str | None]:
    """Return the configured (email, password) pair for the admin API."""
    email = os.getenv("SAVEIT_ADMIN_EMAIL")
    return (email.strip().lower() if email else None), os.getenv("SAVEIT_ADMIN_PASSWORD")


def get_confirmation_email() -> str | None:
    """Recipient of login-confirmation links (falls back to the admin address)."""
    return os.getenv("SAVEIT_CONFIRMATION_EMAIL") or get_admin_credentials()[0]


def get_public_api_url() -> str:
    return os.getenv("SAVEIT_PUBLIC_API_URL", PUBLIC_API_URL).rstrip("/")
