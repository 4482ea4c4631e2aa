"""
Pinboard API: Board Schemas
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from pinboard.schemas.common import UserSummary
from pinboard.schemas.pin import PinResponse


class BoardCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str = Field(default="", max_length=2000)


class BoardUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=2000)
    cover_image: Optional[str] = Field(default=None, max_length=500)


class BoardResponse(BaseModel):
    """
    `cover_image` is the effective cover: the explicit one if set, else the
    first pin's media URL, else "".
    """
    id: uuid.UUID
    name: str
    description: str = ""
    cover_image: str = ""
    user: UserSummary
    pins: List[PinResponse] = Field(default_factory=list)
    pins_count: int = 0
    created_at: datetime
    updated_at: datetime


class BoardSummary(BaseModel):
    id: uuid.UUID
    name: str
    cover_image: str = ""
    pins_count: int = 0
    owner: UserSummary
