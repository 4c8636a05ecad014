# Routes package init
"""
Vitrine Backend — API Routes Package
=====================================

What:  HTTP route handlers that accept requests and return responses.

Route Inventory:
    - visits.py:  GET  /visit                 (record a visit)
                  GET  /visits                (read the count)
    - items.py:   POST/GET /items             (create, list)
                  GET/PUT/DELETE /items/{id}  (read, update, delete)
                  GET  /files/{bucket}/{path} (local blob backend)
    - health.py:  GET  /health                (service health check)

Routes are thin: they extract request data, call a service obtained through
a FastAPI dependency, and shape the response. Business rules live in
services.
"""
