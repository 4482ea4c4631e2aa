"""
Pinboard API: Follow, Notification, Saved-Pin, Profile and Search Schemas
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from pinboard.schemas.board import BoardResponse, BoardSummary
from pinboard.schemas.common import UserPublic, UserSummary
from pinboard.schemas.pin import PinResponse


# ══════════════════════════════════════════════════════════════════════════
# Follow
# ══════════════════════════════════════════════════════════════════════════

class FollowActionResponse(BaseModel):
    message: str
    is_following: bool


class FollowStatusResponse(BaseModel):
    is_following: bool = Field(description="The caller follows the target")
    is_followed_by: bool = Field(description="The target follows the caller")


# ══════════════════════════════════════════════════════════════════════════
# Notifications
# ══════════════════════════════════════════════════════════════════════════

class NotificationPin(BaseModel):
    id: uuid.UUID
    title: str
    media_url: str

    model_config = {"from_attributes": True}


class NotificationResponse(BaseModel):
    id: uuid.UUID
    type: str
    message: str
    is_read: bool
    created_at: datetime
    sender: Optional[UserSummary] = None
    pin: Optional[NotificationPin] = None

    model_config = {"from_attributes": True}


# ══════════════════════════════════════════════════════════════════════════
# Saved pins
# ══════════════════════════════════════════════════════════════════════════

class SavedPinResponse(BaseModel):
    message: str
    pin_id: uuid.UUID
    saved_at: Optional[datetime] = None


# ══════════════════════════════════════════════════════════════════════════
# Profiles
# ══════════════════════════════════════════════════════════════════════════

class UserProfileResponse(BaseModel):
    user: UserPublic
    pins: List[PinResponse]
    followers_count: int
    following_count: int


class PublicProfileResponse(BaseModel):
    """Profile looked up by id: the user with counts, pins and boards."""
    user: UserPublic
    followers_count: int
    following_count: int
    pins: List[PinResponse]
    boards: List[BoardResponse]


class IsFollowingResponse(BaseModel):
    is_following: bool


class MeProfileResponse(UserPublic):
    is_deactivated: bool
    followers: List[UserSummary]
    following: List[UserSummary]


# ══════════════════════════════════════════════════════════════════════════
# Search
# ══════════════════════════════════════════════════════════════════════════

class SearchResponse(BaseModel):
    query: str
    type: str
    pins: List[PinResponse] = Field(default_factory=list)
    profiles: List[UserSummary] = Field(default_factory=list)
    boards: List[BoardSummary] = Field(default_factory=list)


class AutocompleteResponse(BaseModel):
    query: str
    suggestions: List[str]
