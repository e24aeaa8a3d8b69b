"""Centralized configuration for the SaveIt.AI backend.

Re-exports everything from saveit.infrastructure.settings so existing imports
continue to work, then adds typed constants for database, LLM, rate-limiting,
auth, and API settings.  Environment variable overrides use safe defaults so
the app starts without extra env configuration.
"""

from __future__ import annotations

import os

from saveit.infrastructure.settings import *  # noqa: F401, F403

# --- App ---
APP_VERSION: str = "1.0.0"
SERVICE_NAME: str = "SaveIt.AI API"

# --- Database ---
DB_POOL_SIZE: int = int(os.getenv("SAVEIT_DB_POOL_SIZE", "5"))
DB_POOL_TIMEOUT: float = float(os.getenv("SAVEIT_DB_POOL_TIMEOUT", "5.0"))
DB_CONNECT_TIMEOUT: float = float(os.getenv("SAVEIT_DB_CONNECT_TIMEOUT", "30.0"))
DB_TEMP_CONN_MAX: int = int(os.getenv("SAVEIT_DB_TEMP_CONN_MAX", "10"))
DB_RETRY_MAX: int = int(os.getenv("SAVEIT_DB_RETRY_MAX", "5"))
DB_RETRY_BASE_DELAY: float = float(os.getenv("SAVEIT_DB_RETRY_BASE_DELAY", "0.1"))
DB_RETRY_MAX_DELAY: float = float(os.getenv("SAVEIT_DB_RETRY_MAX_DELAY", "2.0"))
DB_RETRY_JITTER: float = float(os.getenv("SAVEIT_DB_RETRY_JITTER", "0.1"))

# --- LLM ---
LLM_TIMEOUT_SECONDS: int = int(os.getenv("SAVEIT_LLM_TIMEOUT", "30"))
LLM_MAX_RETRIES: int = int(os.getenv("SAVEIT_LLM_MAX_RETRIES", "3"))
LLM_USER_DAILY_LIMIT: int = 200
LLM_GLOBAL_DAILY_LIMIT: int = 5000
LLM_CONTENT_TRUNCATION: int = 2000

# --- Scraper ---
SCRAPE_TIMEOUT_SECONDS: float = 10.0
SCRAPE_USER_AGENT: str = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
)

# --- Rate Limiting ---
RATE_LIMIT_RPM: int = 100
RATE_LIMIT_RPH: int = 2000
RATE_LIMIT_MAX_IPS: int = 10000

# --- Request limits ---
MAX_BODY_BYTES: int = 10 * 1024 * 1024

# --- Auth ---
OTP_TTL_MINUTES: int = 10
LOGIN_CONFIRMATION_TTL_MINUTES: int = 10
PASSWORD_MIN_LENGTH: int = 6
NAME_MIN_LENGTH: int = 2
NAME_MAX_LENGTH: int = 50

# --- API ---
API_LIST_LIMIT_DEFAULT: int = 20
API_LIST_LIMIT_MAX: int = 100
API_TOP_TAGS: int = 10

# --- Board ---
BOARD_HISTORY_MAX_ENTRIES: int = int(os.getenv("SAVEIT_BOARD_HISTORY_MAX", "0"))
BOARD_HISTORY_TTL_SECONDS: int = 6 * 3600
BOARD_HISTORY_MAX_USERS: int = 1000

# --- AI tools ---
CODE_MIN_CHARS: int = 10
CODE_MAX_CHARS: int = 20000
GENERATE_SUMMARY_MAX_CHARS: int = 1000
COURSE_IMPORT_MAX_MODULES: int = 50
COURSE_IMPORT_MAX_LESSONS: int = 100
