"""
Pinboard API: Comment Routes
==============================

What:  Comment creation, thread listing, cascade deletion and comment likes.
       /api/pins/{id}/comments is the pin-scoped alias; both call
       CommentService.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pinboard.database import get_db_session
from pinboard.dependencies import get_current_user, get_optional_user
from pinboard.models import User
from pinboard.schemas.comment import (
    CommentCreateForPinRequest,
    CommentCreatedResponse,
    CommentDeleteResponse,
    CommentLikesResponse,
    CommentLikeToggleResponse,
    CommentListResponse,
)
from pinboard.schemas.common import ErrorResponse
from pinboard.services.comment_service import comment_service
from pinboard.services.comment_thread import author_summary

router = APIRouter(prefix="/api/comments", tags=["Comments"])


@router.post("", status_code=201, response_model=CommentCreatedResponse)
async def add_comment(
    body: CommentCreateForPinRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> CommentCreatedResponse:
    comment, count = await comment_service.add_comment(
        db, user, body.pin_id, body.text, body.parent_comment_id
    )
    return CommentCreatedResponse(
        message="Reply added" if body.parent_comment_id else "Comment added",
        comment=comment_service.comment_node(comment),
        comments_count=count,
    )


@router.get("/list/{pin_id}", response_model=CommentListResponse)
async def list_comments(
    pin_id: uuid.UUID,
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> CommentListResponse:
    return await comment_service.list_thread(db, pin_id, viewer)


@router.delete(
    "/{comment_id}",
    response_model=CommentDeleteResponse,
    responses={
        403: {"description": "Neither comment author nor pin owner", "model": ErrorResponse},
        404: {"description": "Comment not found", "model": ErrorResponse},
    },
    summary="Delete a comment and all of its replies",
)
async def delete_comment(
    comment_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> CommentDeleteResponse:
    deleted, count = await comment_service.delete_comment(db, user, comment_id)
    return CommentDeleteResponse(
        message="Comment deleted",
        deleted_count=deleted,
        comments_count=count,
    )


@router.post("/{comment_id}/like", response_model=CommentLikeToggleResponse, summary="Toggle like")
async def toggle_comment_like(
    comment_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> CommentLikeToggleResponse:
    count, is_liked = await comment_service.toggle_comment_like(db, user, comment_id)
    return CommentLikeToggleResponse(likes_count=count, is_liked=is_liked)


@router.delete(
    "/{comment_id}/like",
    response_model=CommentLikeToggleResponse,
    responses={404: {"description": "Like not found", "model": ErrorResponse}},
)
async def unlike_comment(
    comment_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> CommentLikeToggleResponse:
    count = await comment_service.unlike_comment(db, user, comment_id)
    return CommentLikeToggleResponse(likes_count=count, is_liked=False)


@router.get("/{comment_id}/likes", response_model=CommentLikesResponse)
async def list_comment_likes(
    comment_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> CommentLikesResponse:
    count, users = await comment_service.list_comment_likes(db, comment_id)
    return CommentLikesResponse(likes_count=count, users=[author_summary(u) for u in users])
