"""
Vitrine Backend — Pydantic Request/Response Schemas
====================================================

What:  Pydantic models defining the API contract.
How:   FastAPI validates request bodies and serializes responses with these
       models; they also drive the generated OpenAPI docs.

ItemResponse omits the blob path (`image_path`); clients only see the
public image_url.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class ItemResponse(BaseModel):
    """
    What:  Public representation of an item.
    Who:   Returned by GET /items, GET /items/{id}, PUT /items/{id} and
           embedded in the POST /items response.
    """
    id: int = Field(description="Item identifier assigned by the record store")
    image_url: str = Field(description="Public URL of the item image")
    description: Optional[str] = Field(default=None, description="Item description")
    created_at: datetime = Field(description="When the item was created (UTC ISO 8601)")

    model_config = {"from_attributes": True}


class ItemCreatedResponse(BaseModel):
    """Returned by POST /items."""
    success: bool = Field(default=True)
    item: ItemResponse


class DeleteResponse(BaseModel):
    """Returned by DELETE /items/{id}."""
    success: bool = Field(default=True)


class VisitCountResponse(BaseModel):
    """Returned by GET /visit (after incrementing) and GET /visits."""
    visits: int = Field(ge=0, description="Number of recorded visits")


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class ItemUpdate(BaseModel):
    """
    What:  JSON body of PUT /items/{id}.
    Only the description can change; the image is immutable after creation.
    """
    description: Optional[str] = Field(default=None, description="New description")


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    What:  Error body shared by every failing endpoint.

    Example:
        {
            "error": "storage_error",
            "message": "Failed to upload image to blob store",
            "details": {"status_code": 413, "upstream": {...}},
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health for monitoring and load balancer probes."""
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Record store connectivity: connected, disconnected")
    blob_store: str = Field(description="Blob store status: available, unavailable")
    uptime_seconds: float = Field(description="Seconds since service started")
