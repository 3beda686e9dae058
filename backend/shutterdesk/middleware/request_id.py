"""
ShutterDesk Backend - Request ID Middleware
=============================================

What:  Assigns a short correlation id to each request and echoes it back.
How:   Honors an incoming X-Request-ID header, otherwise generates one;
       stores it in a ContextVar for loggers and error envelopes, and in
       request.state for handlers; returns it in the X-Request-ID header.

Every error envelope carries the id as `requestId`, so a failure reported
from a dashboard can be matched to the server log line (including the
per-step log lines of the invoice saga).
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own id
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

MAX_CLIENT_ID_LENGTH = 64


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        incoming = request.headers.get("X-Request-ID", "")[:MAX_CLIENT_ID_LENGTH]
        rid = incoming or uuid.uuid4().hex[:8]

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
