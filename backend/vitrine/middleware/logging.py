"""
Vitrine Backend — Request Logging Middleware
=============================================

What:  One access log line per HTTP request.
How:   Measures the time from middleware entry to response return and logs
       method, path, status, duration, request ID and client IP.
When:  After RequestIDMiddleware (uses request ID for correlation).

Logged:      method, path, status, duration, client IP, request ID
Not logged:  request bodies (image bytes, descriptions), headers

Level by status class:
    5xx → ERROR, 4xx → WARNING, everything else → INFO
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from vitrine.middleware.request_id import request_id_var

logger = logging.getLogger("vitrine.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs method, path, status and duration of each request.

    GET /health is skipped; probes call it every few seconds.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()

        client_ip = request.client.host if request.client else "unknown"
        method = request.method
        path = request.url.path
        rid = request_id_var.get("")

        if path == "/health":
            return await call_next(request)

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )

        return response
