"""FastAPI server for SaveIt.AI"""

from __future__ import annotations

import sqlite3
from typing import Any

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from saveit.api.errors import register_exception_handlers
from saveit.api.middleware.rate_limit import RateLimitMiddleware
from saveit.api.middleware.request_logging import RequestLoggingMiddleware
from saveit.api.middleware.security_headers import SecurityHeadersMiddleware
from saveit.api.responses import ok
from saveit.api.routes.admin import router as admin_router
from saveit.api.routes.auth import router as auth_router
from saveit.api.routes.board import router as board_router
from saveit.api.routes.code import router as code_router
from saveit.api.routes.diary_notes import router as diary_notes_router
from saveit.api.routes.files import router as files_router
from saveit.api.routes.health import router as health_router
from saveit.api.routes.industries import router as industries_router
from saveit.api.routes.items import router as items_router
from saveit.api.routes.learning import router as learning_router
from saveit.api.routes.notes import router as notes_router
from saveit.api.routes.organizations import router as organizations_router
from saveit.api.routes.projects import router as projects_router
from saveit.config import APP_VERSION, SERVICE_NAME
from saveit.infrastructure.database import init_database
from saveit.infrastructure.settings import FRONTEND_URL, get_jwt_secret, is_production, is_test
from saveit.items.repository import ItemRepository
from saveit.observability.logging import get_logger
from saveit.observability.telemetry import log_event

# Load environment variables from .env file
load_dotenv()

logger = get_logger(__name__)

# Fails fast in production when SAVEIT_JWT_SECRET is missing
get_jwt_secret()

app = FastAPI(title=SERVICE_NAME, version=APP_VERSION)

register_exception_handlers(app)

ALLOWED_ORIGINS = [FRONTEND_URL] if FRONTEND_URL else []

if not is_production():
    ALLOWED_ORIGINS.extend(
        [
            "http://localhost:3000",
            "http://localhost:8000",
            "http://127.0.0.1:3000",
            "http://127.0.0.1:8000",
        ]
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["Content-Type", "Authorization", "X-Request-ID", "email", "password"],
)

# The hosting platform rate-limits production traffic
if not (is_production() or is_test()):
    app.add_middleware(RateLimitMiddleware)

app.add_middleware(SecurityHeadersMiddleware)

# Outermost: times every request and rejects oversized bodies first
app.add_middleware(RequestLoggingMiddleware)

try:
    logger.info("Initializing database schema...")
    init_database()
    logger.info("Database initialization complete")
except sqlite3.OperationalError as e:
    logger.critical("Database schema error: %s", e)
    raise RuntimeError(f"Database initialization failed: {e}") from e

app.include_router(health_router)
app.include_router(auth_router)
app.include_router(items_router)
app.include_router(code_router)
app.include_router(notes_router)
app.include_router(diary_notes_router)
app.include_router(organizations_router)
app.include_router(projects_router)
app.include_router(industries_router)
app.include_router(files_router)
app.include_router(learning_router)
app.include_router(board_router)
app.include_router(admin_router)

log_event("api.startup", service="saveit-api", version=APP_VERSION)

ENDPOINTS = {
    "health": "/health",
    "auth": "/api/auth",
    "save": "/api/save",
    "items": "/api/items",
    "item": "/api/item/:id",
    "stats": "/api/stats",
    "generateSummary": "/api/generate-summary",
    "code": "/api/code/analyze, /api/code/optimize",
    "notes": "/api/notes",
    "diaryNotes": "/api/diary-notes",
    "organizations": "/api/organizations",
    "projects": "/api/projects",
    "industries": "/api/industries",
    "files": "/api/files",
    "courses": "/api/courses",
    "courseImport": "/api/courses/analyze-url, /api/courses/create-from-structure",
    "subcourses": "/api/subcourses/:id",
    "board": "/api/board",
    "admin": "/api/admin/dashboard",
}


@app.get("/")
@app.get("/api")
def root() -> dict[str, Any]:
    return ok(
        service=SERVICE_NAME,
        version=APP_VERSION,
        status="running",
        endpoints=ENDPOINTS,
        totalItems=ItemRepository.count_all(),
    )
