"""
ShutterDesk Backend - Rate Limiting Middleware
================================================

What:  Per-IP sliding window rate limiter for credential and public-write
       endpoints.
Why:   Password guessing against /api/login and spam through the contact
       form are the cheap attacks on this site. Reads are not limited.
How:   Tracks request timestamps per (IP, path) in memory.

Limited paths (POST only):
    /api/login, /api/register, /api/contact, /api/client/requests

Algorithm: Sliding Window Counter
    1. Each (IP, path) key gets a list of request timestamps
    2. On each request, drop timestamps older than the window
    3. If the remaining count >= limit, reject with 429
    4. Otherwise record the current timestamp and continue

Single-process only: counters live in this worker's memory. Behind several
workers, each enforces its own window.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from shutterdesk.config import settings
from shutterdesk.exceptions import RateLimitExceededError
from shutterdesk.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory sliding window rate limiter.

    Configuration (from settings):
        rate_limit_requests: Max requests per window per IP and path (default: 30)
        rate_limit_window:   Window duration in seconds (default: 900)

    Response on rate limit:
        HTTP 429 with the standard error envelope and a Retry-After header
    """

    LIMITED_PATHS = {"/api/login", "/api/register", "/api/contact", "/api/client/requests"}

    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        self._requests: Dict[Tuple[str, str], List[float]] = defaultdict(list)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if request.method != "POST" or path not in self.LIMITED_PATHS:
            return await call_next(request)

        client_ip = (
            getattr(request.client, "host", "unknown")
            if request.client
            else "unknown"
        )
        key = (client_ip, path)

        now = time.time()
        window_start = now - settings.rate_limit_window

        # ── Sliding Window: Clean old entries ─────────────────────────────
        self._requests[key] = [ts for ts in self._requests[key] if ts > window_start]

        # ── Check rate limit ──────────────────────────────────────────────
        if len(self._requests[key]) >= settings.rate_limit_requests:
            oldest = self._requests[key][0]
            retry_after = int(oldest + settings.rate_limit_window - now) + 1
            exc = RateLimitExceededError(retry_after=retry_after)

            logger.warning(
                "Rate limit exceeded for IP %s on %s: %d requests in %ds window",
                client_ip,
                path,
                len(self._requests[key]),
                settings.rate_limit_window,
            )

            return JSONResponse(
                status_code=exc.status_code,
                content={
                    "success": False,
                    "error": exc.message,
                    "code": exc.code,
                    "details": exc.context,
                    "requestId": request_id_var.get(""),
                },
                headers={"Retry-After": str(retry_after)},
            )

        # ── Record this request ───────────────────────────────────────────
        self._requests[key].append(now)

        # ── Periodic cleanup of inactive keys ─────────────────────────────
        if sum(len(v) for v in self._requests.values()) % 1000 == 0:
            self._cleanup_inactive(window_start)

        return await call_next(request)

    def _cleanup_inactive(self, window_start: float) -> None:
        inactive = [
            key for key, timestamps in self._requests.items()
            if not timestamps or max(timestamps) < window_start
        ]
        for key in inactive:
            del self._requests[key]

        if inactive:
            logger.debug("Cleaned up %d inactive rate-limit entries", len(inactive))
