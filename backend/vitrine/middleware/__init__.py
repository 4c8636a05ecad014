"""
Vitrine Backend — Middleware Package
=====================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID: correlation ID for log lines and error bodies
    2. Logging: method, path, status and duration, tagged with the request ID
    3. GZip / CORS: FastAPI's stock middleware

    Responses travel the chain in reverse, so the request ID header and the
    access log line both see the final status code.
"""
