"""
Per-client request limiting for the API, backed by slowapi.

A fixed window per client IP: at most `RATE_LIMIT_MAX_REQUESTS` requests
within `RATE_LIMIT_WINDOW_SECONDS`, counted across all `/api/*` routes.
Counters live in process memory, so multiple workers each keep their own.
`RATE_LIMIT_MAX_REQUESTS=0` disables the limiter.
"""
from __future__ import annotations

import logging
import math
import time

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from .errors import json_private

logger = logging.getLogger("codeclass.web.rate_limit")

TOO_MANY_REQUESTS_MESSAGE = "Too many requests, please try again later"


def api_client_key(request: Request) -> str:
    """Client IP for `/api/*` requests; an empty key leaves a request uncounted."""
    if not request.url.path.startswith("/api/"):
        return ""
    return get_remote_address(request) or "unknown"


def build_limiter(max_requests: int, window_seconds: int) -> Limiter:
    window_seconds = max(1, int(window_seconds))
    return Limiter(
        key_func=api_client_key,
        application_limits=[f"{max(1, max_requests)}/{window_seconds} seconds"],
        storage_uri="memory://",
        strategy="fixed-window",
        enabled=max_requests > 0,
    )


def _retry_after_seconds(request: Request) -> int:
    limiter: Limiter = request.app.state.limiter
    current = getattr(request.state, "view_rate_limit", None)
    if current is None:
        return 1
    item, args = current
    reset_at, _remaining = limiter.limiter.get_window_stats(item, *args)
    return max(1, math.ceil(reset_at - time.time()))


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 with the wait in both the body and `Retry-After`.

    Plain function: slowapi's middleware calls it without awaiting.
    """
    retry_after = _retry_after_seconds(request)
    logger.warning("Rate limit exceeded path=%s limit=%s", request.url.path, exc.detail)
    return json_private(
        {
            "success": False,
            "error": TOO_MANY_REQUESTS_MESSAGE,
            "retryAfter": retry_after,
        },
        status_code=429,
        headers={"Retry-After": str(retry_after)},
    )
