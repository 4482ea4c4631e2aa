"""
Pinboard API: Shared Schemas
==============================

What:  Pydantic models reused across resources (user summaries, plain
       messages, error bodies, health).
Why:   Schemas are separate from SQLAlchemy models so the API contract can
       change independently of the table layout and never leaks
       password hashes or soft-delete flags by accident.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class UserSummary(BaseModel):
    """
    Minimal author/actor representation embedded in pins, comments, likes,
    notifications and follow lists.

    `id` is None only for the deleted-user placeholder.
    """
    id: Optional[uuid.UUID] = Field(default=None, description="User ID (null for a deleted author)")
    username: str
    profile_picture: str = ""

    model_config = {"from_attributes": True}


class UserPublic(BaseModel):
    """Profile fields visible to other users."""
    id: uuid.UUID
    username: str
    email: str
    profile_picture: str = ""
    created_at: datetime

    model_config = {"from_attributes": True}


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """
    Standard error body produced by the global exception handlers.

    Example:
        {
            "error": "validation_error",
            "message": "Already liked",
            "details": {},
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[Dict[str, Any]] = Field(default=None)
    request_id: Optional[str] = Field(default=None)


class HealthResponse(BaseModel):
    status: str = Field(description="Overall status: healthy, degraded, or unhealthy")
    version: str
    database: str = Field(description="connected / disconnected")
    tagging: str = Field(description="available / unavailable / circuit_open / disabled")
    uptime_seconds: float


class UploadResponse(BaseModel):
    """A stored file not yet attached to a pin (avatars, board covers)."""
    message: str
    file_url: str
    media_type: str = Field(description="image or video")
    size: int = Field(description="Stored size in bytes")
