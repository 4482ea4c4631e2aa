"""
Pinboard API: Pin Schemas
===========================

What:  Pin responses (list/detail/"full") and the update body.
Note:  Pin creation is multipart/form-data (media file + form fields), so
       it has no JSON request schema; the route reads Form() fields.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from pinboard.schemas.common import UserSummary


class PinResponse(BaseModel):
    id: uuid.UUID
    title: str
    description: str = ""
    category: str = "general"
    media_url: str
    media_type: str = Field(description="image or video")
    tags: List[str] = Field(default_factory=list)
    likes_count: int = 0
    comments_count: int = 0
    board_id: Optional[uuid.UUID] = None
    user: UserSummary
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PinFullResponse(PinResponse):
    """Pin plus the users who liked it and the viewer's like state."""
    likes_users: List[UserSummary] = Field(default_factory=list)
    is_liked: bool = False
    is_saved: bool = False


class PinUpdateRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    tags: Optional[List[str]] = None


class PinLikesResponse(BaseModel):
    likes_count: int
    users: List[UserSummary]
