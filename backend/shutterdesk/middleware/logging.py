"""
ShutterDesk Backend - Request Logging Middleware
==================================================

What:  One access log line per HTTP request: method, path, status,
       duration, request id, client IP and, when a session resolved, the
       user id.
Who:   Applied to every request except GET /health.

What we log vs what we DON'T log (privacy):
    Log:        method, path, status, duration, IP, request id, user id
    Don't log:  request bodies (passwords, client emails, invoice amounts),
                cookies (session tokens), query strings (OAuth codes)
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from shutterdesk.middleware.request_id import request_id_var

logger = logging.getLogger("shutterdesk.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Level by status class: 5xx → ERROR, 4xx → WARNING, otherwise INFO.
    Duration covers everything downstream, including Stripe round trips.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()

        client_ip = getattr(request.client, "host", "unknown") if request.client else "unknown"
        method = request.method
        path = request.url.path

        if path == "/health":
            return await call_next(request)

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        rid = request_id_var.get("") or getattr(request.state, "request_id", "")
        user_id = getattr(request.state, "user_id", None)

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s user=%s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            user_id if user_id is not None else "-",
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
                "user_id": user_id,
            },
        )

        return response
