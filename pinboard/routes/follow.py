"""
Pinboard API: Follow Routes
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pinboard.database import get_db_session
from pinboard.dependencies import get_current_user
from pinboard.models import User
from pinboard.schemas.common import ErrorResponse, UserSummary
from pinboard.schemas.social import FollowActionResponse, FollowStatusResponse
from pinboard.services.comment_thread import author_summary
from pinboard.services.follow_service import follow_service

router = APIRouter(prefix="/api/follow", tags=["Follow"])


@router.get("/check/{user_id}", response_model=FollowStatusResponse)
async def check_follow(
    user_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FollowStatusResponse:
    status = await follow_service.check_status(db, user, user_id)
    return FollowStatusResponse(**status)


@router.post(
    "/{user_id}/follow",
    response_model=FollowActionResponse,
    responses={
        400: {"description": "Self-follow or already following", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
    },
)
async def follow_user(
    user_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FollowActionResponse:
    await follow_service.follow(db, user, user_id)
    return FollowActionResponse(message="Followed successfully", is_following=True)


@router.post("/{user_id}/unfollow", response_model=FollowActionResponse)
async def unfollow_user(
    user_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FollowActionResponse:
    await follow_service.unfollow(db, user, user_id)
    return FollowActionResponse(message="Unfollowed successfully", is_following=False)


@router.get("/{user_id}/followers", response_model=List[UserSummary])
async def list_followers(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> List[UserSummary]:
    await follow_service.get_active_user(db, user_id)
    return [author_summary(u) for u in await follow_service.list_followers(db, user_id)]


@router.get("/{user_id}/following", response_model=List[UserSummary])
async def list_following(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> List[UserSummary]:
    await follow_service.get_active_user(db, user_id)
    return [author_summary(u) for u in await follow_service.list_following(db, user_id)]
