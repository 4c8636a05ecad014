"""
Vitrine Backend — Request ID Middleware
========================================

What:  Assigns an ID to each incoming request and echoes it in the response.
How:   Reuses the client's X-Request-ID header or generates a short UUID,
       stores it in a ContextVar, returns it in the X-Request-ID header.
When:  First middleware in the chain (runs before all other processing).

Every log line and every error body produced while handling a request
carries the same ID, so a client-reported failure maps to its log entries.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Middleware that assigns a correlation ID to each request."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # 8 chars is enough for correlation and stays readable in logs
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
