"""Health check endpoint for the SaveIt.AI API.

Liveness plus readiness of the database and Gemini credentials.
"""

from __future__ import annotations

import sqlite3
import time
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter

from saveit.config import APP_VERSION, SERVICE_NAME
from saveit.infrastructure.database import get_pool_stats, validate_schema
from saveit.infrastructure.settings import get_env
from saveit.llm.gemini import is_gemini_configured
from saveit.observability.logging import get_logger
from saveit.observability.telemetry import snapshot_counters

router = APIRouter(tags=["health"])
logger = get_logger(__name__)

_STARTED_AT = time.monotonic()


def _database_status() -> dict[str, Any]:
    try:
        validate_schema()
    except (ValueError, sqlite3.Error) as e:
        logger.error("Health check: database not ready: %s", e)
        return {"ready": False}
    return {"ready": True, "pool": get_pool_stats()}


@router.get("/health")
async def health_check() -> dict[str, Any]:
    """Health check endpoint.

    Does not call Gemini; readiness only reflects credential presence.
    """
    database = _database_status()
    return {
        "success": True,
        "status": "healthy" if database["ready"] else "degraded",
        "service": SERVICE_NAME,
        "version": APP_VERSION,
        "environment": get_env("SAVEIT_ENV", "development"),
        "timestamp": datetime.now(UTC).isoformat(),
        "uptime": round(time.monotonic() - _STARTED_AT, 1),
        "database": database,
        "gemini": {"ready": is_gemini_configured()},
        "counters": snapshot_counters("api."),
    }
