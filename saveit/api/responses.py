"""Response envelope helpers: {success: true, data, ...} / {success: false, error}."""

from __future__ import annotations

from typing import Any

from fastapi.responses import JSONResponse


def ok(data: Any = None, status_code: int = 200, **extra: Any) -> JSONResponse | dict[str, Any]:
    """
    Success envelope.

    Returns a plain dict for 200 so FastAPI serializes it; other statuses need
    an explicit JSONResponse.
    """
    body: dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    body.update(extra)
    if status_code == 200:
        return body
    return JSONResponse(status_code=status_code, content=body)


def error_body(message: str, details: Any = None, **extra: Any) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "error": message}
    body.update(extra)
    if details is not None:
        body["details"] = details
    return body
