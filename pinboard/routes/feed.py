"""
Pinboard API: Home Feed Route
"""

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pinboard.database import get_db_session
from pinboard.dependencies import get_current_user
from pinboard.models import User
from pinboard.schemas.pin import PinResponse
from pinboard.services.pin_service import pin_response, pin_service

router = APIRouter(prefix="/api/feed", tags=["Feed"])


@router.get(
    "",
    response_model=List[PinResponse],
    summary="Pins from followed users and the caller, newest first",
)
async def get_feed(
    limit: int = Query(default=100, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[PinResponse]:
    pins = await pin_service.get_feed(db, user, limit=limit)
    return [pin_response(p) for p in pins]
