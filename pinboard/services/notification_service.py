"""
Pinboard API: Notification Emitter
====================================

What:  Records like / comment / follow notifications and serves the
       recipient's inbox (list, mark read, clear).
When:  `emit` runs synchronously inside the request that performed the
       action, after the action's own writes.

Failure isolation:
    A notification is a side effect; losing one must not undo the like,
    comment or follow that caused it. Each insert runs in its own SAVEPOINT
    (session.begin_nested). On any error the savepoint is rolled back, a
    warning is logged, and the outer transaction carries on.

Self-actions (liking your own pin, commenting on it) never notify.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from pinboard.exceptions import NotFoundError
from pinboard.models import Notification, User

logger = logging.getLogger(__name__)


def like_message(username: str, pin_title: str) -> str:
    return f'{username} liked your pin "{pin_title}".'


def comment_message(username: str, pin_title: str) -> str:
    return f'{username} commented on your pin "{pin_title}".'


def follow_message(username: str) -> str:
    return f"{username} started following you."


class NotificationService:

    async def emit(
        self,
        db: AsyncSession,
        recipient_id: uuid.UUID,
        sender: User,
        type: str,
        message: str,
        pin_id: Optional[uuid.UUID] = None,
    ) -> Optional[Notification]:
        """
        Best-effort insert of one notification.

        Returns the notification, or None when skipped (self-action) or when
        the write failed.
        """
        if recipient_id == sender.id:
            return None

        notification = Notification(
            recipient_id=recipient_id,
            sender_id=sender.id,
            sender=sender,
            type=type,
            pin_id=pin_id,
            message=message,
        )
        try:
            async with db.begin_nested():
                db.add(notification)
        except Exception as e:
            logger.warning(
                "Failed to record %s notification for user %s: %s",
                type,
                recipient_id,
                str(e),
            )
            return None

        logger.info("Notification %s → %s (%s)", sender.id, recipient_id, type)
        return notification

    async def list_for_user(self, db: AsyncSession, user: User) -> List[Notification]:
        result = await db.execute(
            select(Notification)
            .where(Notification.recipient_id == user.id)
            .order_by(Notification.created_at.desc())
        )
        return list(result.scalars().unique().all())

    async def mark_read(
        self, db: AsyncSession, user: User, notification_id: uuid.UUID
    ) -> Notification:
        notification = await db.scalar(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.recipient_id == user.id,
            )
        )
        if notification is None:
            raise NotFoundError(resource="notification", resource_id=str(notification_id))
        notification.is_read = True
        await db.flush()
        return notification

    async def clear_all(self, db: AsyncSession, user: User) -> int:
        result = await db.execute(
            delete(Notification).where(Notification.recipient_id == user.id)
        )
        logger.info("Cleared %d notifications for user %s", result.rowcount, user.id)
        return result.rowcount


notification_service = NotificationService()
