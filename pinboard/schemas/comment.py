"""
Pinboard API: Comment Schemas
===============================

CommentNode is recursive: every node carries its direct replies, which in
turn carry theirs, to any depth.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from pinboard.schemas.common import UserSummary


class CommentCreateRequest(BaseModel):
    text: str = Field(min_length=1, max_length=2000)
    parent_comment_id: Optional[uuid.UUID] = Field(
        default=None, description="Comment being replied to (omit for a root comment)"
    )

    @field_validator("text")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Comment text cannot be empty")
        return v


class CommentCreateForPinRequest(CommentCreateRequest):
    pin_id: uuid.UUID


class ReplyCreateRequest(BaseModel):
    text: str = Field(min_length=1, max_length=2000)

    @field_validator("text")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Reply text cannot be empty")
        return v


class CommentNode(BaseModel):
    id: uuid.UUID
    text: str
    user: UserSummary
    likes_count: int = 0
    is_liked: bool = False
    created_at: datetime
    parent_comment_id: Optional[uuid.UUID] = None
    reply_to_username: Optional[str] = None
    replies: List["CommentNode"] = Field(default_factory=list)


CommentNode.model_rebuild()


class CommentListResponse(BaseModel):
    comments: List[CommentNode] = Field(description="Root comments, newest first")
    total_count: int = Field(description="All comments on the pin, replies included")


class CommentDeleteResponse(BaseModel):
    message: str
    deleted_count: int
    comments_count: int = Field(description="Pin comment count after the deletion")


class CommentLikeToggleResponse(BaseModel):
    likes_count: int
    is_liked: bool


class CommentLikesResponse(BaseModel):
    likes_count: int
    users: List[UserSummary]


class CommentCreatedResponse(BaseModel):
    message: str
    comment: CommentNode
    comments_count: int = Field(description="Pin comment count after the insert")
