"""
Pinboard API: Pin Likes
=========================

What:  Like / unlike a pin and list who liked it.
How:   One `likes` row per (user, pin). After every insert or delete the
       pin's likes_count is recounted (services/counters.py), and a new
       like notifies the pin owner.

Both /api/likes/{pin_id} and /api/pins/{pin_id}/likes call into here.
"""

import logging
import uuid
from typing import List, Tuple

from sqlalchemy import delete, exists, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pinboard.exceptions import NotFoundError, ValidationError
from pinboard.models import Like, User
from pinboard.services.counters import counter_maintainer
from pinboard.services.notification_service import like_message, notification_service
from pinboard.services.pin_service import active_owner_clause, pin_service

logger = logging.getLogger(__name__)


class LikeService:

    async def is_liked(self, db: AsyncSession, user_id: uuid.UUID, pin_id: uuid.UUID) -> bool:
        return bool(
            await db.scalar(
                select(exists().where(Like.user_id == user_id, Like.pin_id == pin_id))
            )
        )

    async def list_likers(self, db: AsyncSession, pin_id: uuid.UUID) -> List[User]:
        result = await db.execute(
            select(User)
            .join(Like, Like.user_id == User.id)
            .where(Like.pin_id == pin_id, active_owner_clause())
            .order_by(Like.created_at)
        )
        return list(result.scalars().all())

    async def like_pin(
        self, db: AsyncSession, user: User, pin_id: uuid.UUID
    ) -> Tuple[int, List[User]]:
        """
        Returns (likes_count, likers).

        Raises:
            NotFoundError:   pin missing or hidden
            ValidationError: the user already likes the pin
        """
        pin = await pin_service.get_visible_pin(db, pin_id)

        if await self.is_liked(db, user.id, pin.id):
            raise ValidationError(message="Already liked")

        try:
            async with db.begin_nested():
                db.add(Like(user_id=user.id, pin_id=pin.id))
        except IntegrityError:
            raise ValidationError(message="Already liked")

        count = await counter_maintainer.refresh_pin_likes(db, pin.id)
        await db.refresh(pin)
        logger.info("User %s liked pin %s (likes=%d)", user.id, pin.id, count)

        await notification_service.emit(
            db,
            recipient_id=pin.user_id,
            sender=user,
            type="like",
            message=like_message(user.username, pin.title),
            pin_id=pin.id,
        )
        return count, await self.list_likers(db, pin.id)

    async def unlike_pin(
        self, db: AsyncSession, user: User, pin_id: uuid.UUID
    ) -> Tuple[int, List[User]]:
        """
        Raises:
            NotFoundError: pin missing/hidden, or the user does not like it
        """
        pin = await pin_service.get_visible_pin(db, pin_id)

        result = await db.execute(
            delete(Like).where(Like.user_id == user.id, Like.pin_id == pin.id)
        )
        if result.rowcount == 0:
            raise NotFoundError(resource="like")

        count = await counter_maintainer.refresh_pin_likes(db, pin.id)
        await db.refresh(pin)
        logger.info("User %s unliked pin %s (likes=%d)", user.id, pin.id, count)
        return count, await self.list_likers(db, pin.id)

    async def list_likes(self, db: AsyncSession, pin_id: uuid.UUID) -> Tuple[int, List[User]]:
        pin = await pin_service.get_visible_pin(db, pin_id)
        return pin.likes_count or 0, await self.list_likers(db, pin.id)


like_service = LikeService()
