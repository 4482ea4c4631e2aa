"""
Pinboard API: Saved-Pin Routes
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pinboard.database import get_db_session
from pinboard.dependencies import get_current_user
from pinboard.models import User
from pinboard.schemas.common import ErrorResponse
from pinboard.schemas.pin import PinResponse
from pinboard.schemas.social import SavedPinResponse
from pinboard.services.pin_service import pin_response
from pinboard.services.saved_service import saved_service
from pinboard.services.user_service import user_service

router = APIRouter(prefix="/api/saved", tags=["Saved"])


@router.post(
    "/{pin_id}/save",
    status_code=201,
    response_model=SavedPinResponse,
    responses={400: {"description": "Pin already saved", "model": ErrorResponse}},
)
async def save_pin(
    pin_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> SavedPinResponse:
    saved = await saved_service.save_pin(db, user, pin_id)
    return SavedPinResponse(
        message="Pin saved successfully", pin_id=pin_id, saved_at=saved.saved_at
    )


@router.delete("/{pin_id}/unsave", response_model=SavedPinResponse)
async def unsave_pin(
    pin_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> SavedPinResponse:
    await saved_service.unsave_pin(db, user, pin_id)
    return SavedPinResponse(message="Pin unsaved successfully", pin_id=pin_id)


@router.get("/{username}/saved", response_model=List[PinResponse])
async def list_saved(
    username: str,
    db: AsyncSession = Depends(get_db_session),
) -> List[PinResponse]:
    owner = await user_service.get_active_by_username(db, username)
    return [pin_response(p) for p in await saved_service.list_saved(db, owner.id)]
