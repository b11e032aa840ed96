"""
Grammable — Pydantic Request/Response Schemas
===============================================

What:  Pydantic models defining the JSON returned for each page and form.
How:   Route handlers build these from ORM objects (from_attributes=True);
       FastAPI serializes them and documents them in OpenAPI.

Schemas are separate from the SQLAlchemy models: the API exposes a
`picture_url` rather than the storage path, and never exposes user password
hashes.
"""

import uuid
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

UPLOADS_PREFIX = "/uploads"


def picture_url(picture: Optional[str]) -> Optional[str]:
    """Public URL of a stored picture reference, or None when there is none."""
    if not picture:
        return None
    return f"{UPLOADS_PREFIX}/{picture}"


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class GramResponse(BaseModel):
    """
    What:  Full representation of a gram.
    Who:   Returned by GET /grams/{id}, and as list items by GET /grams.
    """
    id: uuid.UUID = Field(description="Unique gram identifier (UUID)")
    message: str = Field(description="Text of the gram")
    picture_url: Optional[str] = Field(
        default=None,
        description="URL path of the uploaded picture (null when none)"
    )
    user_id: uuid.UUID = Field(description="Identifier of the owner")
    author: str = Field(description="Email of the owner")
    created_at: datetime = Field(description="When the gram was created (UTC ISO 8601)")
    updated_at: datetime = Field(description="When the gram was last changed (UTC ISO 8601)")

    model_config = {"from_attributes": True}

    @classmethod
    def from_gram(cls, gram) -> "GramResponse":
        return cls(
            id=gram.id,
            message=gram.message,
            picture_url=picture_url(gram.picture),
            user_id=gram.user_id,
            author=gram.user.email if gram.user is not None else "",
            created_at=gram.created_at,
            updated_at=gram.updated_at,
        )


class GramListResponse(BaseModel):
    """
    What:  Page of grams, newest first.
    Who:   Returned by GET / and GET /grams.

    Pagination:
        - next_cursor: created_at and id of the last item in this page
        - Client sends it back as ?cursor= to get the next page
    """
    grams: List[GramResponse] = Field(description="Grams on this page")
    total_count: int = Field(description="Total number of grams")
    next_cursor: Optional[str] = Field(
        default=None,
        description="Cursor for next page (created_at and id of the last gram). Null if no more pages."
    )
    has_more: bool = Field(description="Whether more pages are available")


class GramFormValues(BaseModel):
    """Current values of the gram form fields."""
    message: str = Field(default="", description="Message field value")
    picture_url: Optional[str] = Field(default=None, description="Already stored picture, if any")


class GramFormResponse(BaseModel):
    """
    What:  Context for rendering the new/edit gram form.
    Who:   GET /grams/new (empty values) and GET /grams/{id}/edit (prefilled).

    action/method tell the client where the form submits.
    """
    action: str = Field(description="URL the form submits to")
    method: str = Field(description="HTTP method the form submits with")
    gram_id: Optional[uuid.UUID] = Field(default=None, description="Gram being edited, if any")
    values: GramFormValues = Field(default_factory=GramFormValues)
    errors: Dict[str, List[str]] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """
    What:  Standardized error body for every non-redirect error.

    Fields:
        error: Machine-readable error code (e.g., "validation_error", "forbidden")
        message: Human-readable description for display to users
        details: Extra context (validation errors and submitted form values)
        request_id: Correlation ID for tracing this error in server logs
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service and dependency status.
    Who:   Returned by GET /health for monitoring and load balancer probes.
    """
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    storage: str = Field(description="Picture storage: writable, unavailable")
    uptime_seconds: float = Field(description="Seconds since service started")
