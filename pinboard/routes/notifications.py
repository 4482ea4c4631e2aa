"""
Pinboard API: Notification Routes
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pinboard.database import get_db_session
from pinboard.dependencies import get_current_user
from pinboard.models import Notification, User
from pinboard.schemas.common import ErrorResponse, MessageResponse
from pinboard.schemas.social import NotificationPin, NotificationResponse
from pinboard.services.comment_thread import author_summary
from pinboard.services.notification_service import notification_service

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


def _to_response(notification: Notification) -> NotificationResponse:
    return NotificationResponse(
        id=notification.id,
        type=notification.type,
        message=notification.message,
        is_read=notification.is_read,
        created_at=notification.created_at,
        sender=author_summary(notification.sender) if notification.sender_id else None,
        pin=NotificationPin.model_validate(notification.pin) if notification.pin else None,
    )


@router.get("", response_model=List[NotificationResponse], summary="Caller's notifications, newest first")
async def list_notifications(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[NotificationResponse]:
    notifications = await notification_service.list_for_user(db, user)
    return [_to_response(n) for n in notifications]


@router.put(
    "/{notification_id}/read",
    response_model=MessageResponse,
    responses={404: {"description": "Not found or not the recipient", "model": ErrorResponse}},
)
async def mark_read(
    notification_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await notification_service.mark_read(db, user, notification_id)
    return MessageResponse(message="Notification marked as read")


@router.delete("", response_model=MessageResponse)
async def clear_notifications(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await notification_service.clear_all(db, user)
    return MessageResponse(message="All notifications cleared")
