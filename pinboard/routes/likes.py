"""
Pinboard API: Like Routes (/api/likes/{pin_id})

Same behaviour as /api/pins/{pin_id}/likes.
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pinboard.database import get_db_session
from pinboard.dependencies import get_current_user
from pinboard.models import User
from pinboard.schemas.pin import PinLikesResponse
from pinboard.services.comment_thread import author_summary
from pinboard.services.like_service import like_service

router = APIRouter(prefix="/api/likes", tags=["Likes"])


@router.post("/{pin_id}", status_code=201, response_model=PinLikesResponse)
async def like_pin(
    pin_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PinLikesResponse:
    count, likers = await like_service.like_pin(db, user, pin_id)
    return PinLikesResponse(likes_count=count, users=[author_summary(u) for u in likers])


@router.delete("/{pin_id}", response_model=PinLikesResponse)
async def unlike_pin(
    pin_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PinLikesResponse:
    count, likers = await like_service.unlike_pin(db, user, pin_id)
    return PinLikesResponse(likes_count=count, users=[author_summary(u) for u in likers])


@router.get("/{pin_id}", response_model=PinLikesResponse)
async def list_likes(
    pin_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> PinLikesResponse:
    count, likers = await like_service.list_likes(db, pin_id)
    return PinLikesResponse(likes_count=count, users=[author_summary(u) for u in likers])
