"""
Pinboard API: User Profile Routes
===================================

Profiles are addressed by username for reads and by id for updates.
`/me/profile` is declared before `/{username}` so "me" is never taken for
a username.
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pinboard.database import get_db_session
from pinboard.dependencies import get_current_user
from pinboard.exceptions import NotFoundError
from pinboard.models import User
from pinboard.schemas.auth import AccountStatusResponse, ProfileResponse, UserUpdateRequest
from pinboard.schemas.board import BoardResponse
from pinboard.schemas.common import ErrorResponse, UserPublic, UserSummary
from pinboard.schemas.pin import PinResponse
from pinboard.schemas.social import IsFollowingResponse, MeProfileResponse, UserProfileResponse
from pinboard.services.board_service import board_service
from pinboard.services.comment_thread import author_summary
from pinboard.services.follow_service import follow_service
from pinboard.services.pin_service import pin_response, pin_service
from pinboard.services.saved_service import saved_service
from pinboard.services.user_service import user_service

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("", response_model=List[UserSummary], summary="All active users")
async def list_users(db: AsyncSession = Depends(get_db_session)) -> List[UserSummary]:
    return [author_summary(u) for u in await user_service.list_users(db)]


@router.get("/me/profile", response_model=MeProfileResponse)
async def my_profile(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MeProfileResponse:
    followers = await follow_service.list_followers(db, user.id)
    following = await follow_service.list_following(db, user.id)
    return MeProfileResponse(
        **UserPublic.model_validate(user).model_dump(),
        is_deactivated=user.is_deactivated,
        followers=[author_summary(u) for u in followers],
        following=[author_summary(u) for u in following],
    )


@router.get(
    "/{username}",
    response_model=UserProfileResponse,
    responses={404: {"description": "User not found", "model": ErrorResponse}},
)
async def get_profile(
    username: str,
    db: AsyncSession = Depends(get_db_session),
) -> UserProfileResponse:
    user = await user_service.get_active_by_username(db, username)
    pins = await pin_service.list_user_pins(db, user.id)
    return UserProfileResponse(
        user=UserPublic.model_validate(user),
        pins=[pin_response(p) for p in pins],
        followers_count=await follow_service.count_followers(db, user.id),
        following_count=await follow_service.count_following(db, user.id),
    )


@router.get("/{username}/boards", response_model=List[BoardResponse])
async def get_user_boards(
    username: str,
    db: AsyncSession = Depends(get_db_session),
) -> List[BoardResponse]:
    user = await user_service.get_active_by_username(db, username)
    boards = await board_service.list_user_boards(db, user.id)
    return [await board_service.to_response(db, b) for b in boards]


@router.get("/{username}/saved-pins", response_model=List[PinResponse])
async def get_user_saved_pins(
    username: str,
    db: AsyncSession = Depends(get_db_session),
) -> List[PinResponse]:
    user = await user_service.get_active_by_username(db, username)
    return [pin_response(p) for p in await saved_service.list_saved(db, user.id)]


@router.put(
    "/{user_id}",
    response_model=ProfileResponse,
    responses={403: {"description": "Not your profile", "model": ErrorResponse}},
)
async def update_profile(
    user_id: uuid.UUID,
    body: UserUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    user = await user_service.update_profile(db, user, user_id, body)
    return ProfileResponse(
        message="Profile updated successfully",
        user=UserPublic.model_validate(user),
    )


@router.get("/{user_id}/status", response_model=AccountStatusResponse)
async def get_account_status(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> AccountStatusResponse:
    target = await db.get(User, user_id)
    if target is None:
        raise NotFoundError(resource="user", resource_id=str(user_id))
    return AccountStatusResponse(
        is_deactivated=target.is_deactivated,
        is_deleted=target.is_deleted,
    )


@router.get(
    "/{user_id}/is-following",
    response_model=IsFollowingResponse,
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="Does the caller follow this user",
)
async def is_following(
    user_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> IsFollowingResponse:
    status = await follow_service.check_status(db, user, user_id)
    return IsFollowingResponse(is_following=status["is_following"])
