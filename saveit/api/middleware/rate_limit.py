"""Rate limiting middleware for the SaveIt.AI API

Per-IP sliding windows (per minute and per hour) kept as timestamp lists.
Not installed in production, where the hosting platform limits requests.

Security features:
- IP spoofing protection (X-Forwarded-For only trusted behind a known proxy)
- Memory leak prevention via periodic bucket cleanup
"""

from __future__ import annotations

import ipaddress
import secrets
import time
from collections.abc import Callable
from typing import Any

from cachetools import TTLCache
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from saveit.api.responses import error_body
from saveit.config import RATE_LIMIT_MAX_IPS, RATE_LIMIT_RPH, RATE_LIMIT_RPM
from saveit.infrastructure.settings import is_development
from saveit.observability.telemetry import log_event
from saveit.utils.redaction import redact

# Paths that are never limited
EXEMPT_PATHS = frozenset({"/", "/health", "/api"})


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Rate limiting middleware.

    Limits requests per IP address (default 100 req/min, 2000 req/hour).
    State is in-process, so each worker limits independently.
    """

    def __init__(
        self,
        app: Any,
        requests_per_minute: int = RATE_LIMIT_RPM,
        requests_per_hour: int = RATE_LIMIT_RPH,
    ) -> None:
        super().__init__(app)
        self.requests_per_minute = requests_per_minute
        self.requests_per_hour = requests_per_hour

        # Request tracking: {ip: [timestamp, ...]}; TTLCache bounds memory
        self.minute_buckets: TTLCache[str, list[float]] = TTLCache(
            maxsize=RATE_LIMIT_MAX_IPS, ttl=120
        )
        self.hour_buckets: TTLCache[str, list[float]] = TTLCache(
            maxsize=RATE_LIMIT_MAX_IPS, ttl=7200
        )

        # Only trust X-Forwarded-For when the platform proxy header is present
        self._trusted_proxy_header = "X-Vercel-Id"

    @staticmethod
    def _is_valid_ip(ip_str: str) -> bool:
        try:
            ipaddress.ip_address(ip_str)
            return True
        except ValueError:
            return False

    def _get_client_ip(self, request: Request) -> str:
        """Extract client IP with spoofing protection."""
        trust_forwarded = self._trusted_proxy_header in request.headers or is_development()

        if trust_forwarded:
            forwarded = request.headers.get("X-Forwarded-For")
            if forwarded:
                ip = forwarded.split(",")[0].strip()
                if self._is_valid_ip(ip):
                    return ip

            real_ip = request.headers.get("X-Real-IP")
            if real_ip and self._is_valid_ip(real_ip):
                return real_ip

        return request.client.host if request.client else "unknown"

    @staticmethod
    def _clean_old_requests(bucket: list[float], max_age_seconds: int) -> list[float]:
        """Remove requests older than max_age_seconds"""
        now = time.time()
        return [ts for ts in bucket if now - ts < max_age_seconds]

    def _cleanup_old_buckets(self) -> None:
        """Drop IPs idle for two hours."""
        now = time.time()
        max_idle_time = 7200

        for ip in list(self.hour_buckets.keys()):
            bucket = self.hour_buckets.get(ip, [])
            if not bucket or now - max(bucket) > max_idle_time:
                self.minute_buckets.pop(ip, None)
                self.hour_buckets.pop(ip, None)

    def _limited(self, client_ip: str, window: str, limit: int, count: int) -> JSONResponse:
        retry_after = 60 if window == "minute" else 3600
        log_event(
            "api.rate_limit.request_exceeded",
            ip=redact(client_ip),
            limit=window,
            count=count,
        )
        return JSONResponse(
            status_code=429,
            content=error_body(
                f"Rate limit exceeded. Maximum {limit} requests per {window}.",
                retryAfter=retry_after,
            ),
            headers={"Retry-After": str(retry_after)},
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Check rate limits before processing request."""
        if request.url.path in EXEMPT_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        # 1% of requests sweep idle IPs
        if secrets.randbelow(100) == 0:
            self._cleanup_old_buckets()

        client_ip = self._get_client_ip(request)
        now = time.time()

        minute_bucket = self._clean_old_requests(self.minute_buckets.get(client_ip, []), 60)
        hour_bucket = self._clean_old_requests(self.hour_buckets.get(client_ip, []), 3600)

        if len(minute_bucket) >= self.requests_per_minute:
            self.minute_buckets[client_ip] = minute_bucket
            return self._limited(client_ip, "minute", self.requests_per_minute, len(minute_bucket))

        if len(hour_bucket) >= self.requests_per_hour:
            self.hour_buckets[client_ip] = hour_bucket
            return self._limited(client_ip, "hour", self.requests_per_hour, len(hour_bucket))

        minute_bucket.append(now)
        hour_bucket.append(now)
        self.minute_buckets[client_ip] = minute_bucket
        self.hour_buckets[client_ip] = hour_bucket

        response = await call_next(request)

        response.headers["X-RateLimit-Limit-Minute"] = str(self.requests_per_minute)
        response.headers["X-RateLimit-Remaining-Minute"] = str(
            self.requests_per_minute - len(minute_bucket)
        )
        response.headers["X-RateLimit-Limit-Hour"] = str(self.requests_per_hour)
        response.headers["X-RateLimit-Remaining-Hour"] = str(
            self.requests_per_hour - len(hour_bucket)
        )
        return response
