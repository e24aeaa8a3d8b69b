"""SaveIt.AI HTTP API (FastAPI)."""

from __future__ import annotations


def main() -> None:
    """Entry point for the saveit-api console script."""
    import uvicorn

    from saveit.infrastructure.settings import API_HOST, API_PORT, LOG_LEVEL

    uvicorn.run("saveit.api.app:app", host=API_HOST, port=API_PORT, log_level=LOG_LEVEL.lower())
