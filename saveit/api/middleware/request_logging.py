"""Request logging and body-size guard.

Logs one line per request: METHOD path status elapsed_ms. Requests whose
Content-Length is over MAX_BODY_BYTES are answered 413 before the body is
read.
"""

from __future__ import annotations

import time
from collections.abc import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from saveit.api.responses import error_body
from saveit.config import MAX_BODY_BYTES
from saveit.observability.logging import get_logger
from saveit.observability.telemetry import counter

logger = get_logger("saveit.api.requests")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, max_body_bytes: int = MAX_BODY_BYTES):
        super().__init__(app)
        self.max_body_bytes = max_body_bytes

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start = time.perf_counter()

        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > self.max_body_bytes:
            counter("api.request_too_large")
            response: Response = JSONResponse(
                status_code=413, content=error_body("Request entity too large")
            )
        else:
            response = await call_next(request)

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s %d %.1fms", request.method, request.url.path, response.status_code, elapsed_ms
        )
        return response
