"""
Pinboard API: Profile-by-Id Route

GET /api/profile/{user_id} returns everything a profile page shows in one
call: the user, follower and following counts, their pins and their boards.
Deactivated and deleted users are 404.
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pinboard.database import get_db_session
from pinboard.schemas.common import ErrorResponse, UserPublic
from pinboard.schemas.social import PublicProfileResponse
from pinboard.services.board_service import board_service
from pinboard.services.follow_service import follow_service
from pinboard.services.pin_service import pin_response, pin_service

router = APIRouter(prefix="/api/profile", tags=["Users"])


@router.get(
    "/{user_id}",
    response_model=PublicProfileResponse,
    responses={404: {"description": "User not found", "model": ErrorResponse}},
)
async def get_profile_by_id(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> PublicProfileResponse:
    user = await follow_service.get_active_user(db, user_id)
    pins = await pin_service.list_user_pins(db, user.id)
    boards = await board_service.list_user_boards(db, user.id)
    return PublicProfileResponse(
        user=UserPublic.model_validate(user),
        followers_count=await follow_service.count_followers(db, user.id),
        following_count=await follow_service.count_following(db, user.id),
        pins=[pin_response(p) for p in pins],
        boards=[await board_service.to_response(db, b) for b in boards],
    )
