"""
Pinboard API: Social Graph (Follow / Unfollow)
================================================

What:  Directed follow edges between users, stored one row per edge in
       `follows`, plus the follower/following listings derived from them.

Invariants:
    - at most one edge per (follower, following): checked up front and
      enforced by uq_follows_pair; a concurrent duplicate that slips past
      the check fails inside a SAVEPOINT and is reported as "already
      following" instead of a 500
    - no self-edges
    - followers(B) and following(A) read the same rows, so A ∈ followers(B)
      exactly when B ∈ following(A)

Listings only include active accounts (not deactivated, not deleted).
"""

import logging
import uuid
from typing import Dict, List

from sqlalchemy import delete, exists, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pinboard.exceptions import NotFoundError, ValidationError
from pinboard.models import Follow, User
from pinboard.services.notification_service import follow_message, notification_service

logger = logging.getLogger(__name__)


class FollowService:

    async def get_active_user(self, db: AsyncSession, user_id: uuid.UUID) -> User:
        user = await db.get(User, user_id)
        if user is None or not user.is_active:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        return user

    async def _edge_exists(
        self, db: AsyncSession, follower_id: uuid.UUID, following_id: uuid.UUID
    ) -> bool:
        return bool(
            await db.scalar(
                select(
                    exists().where(
                        Follow.follower_id == follower_id,
                        Follow.following_id == following_id,
                    )
                )
            )
        )

    async def follow(self, db: AsyncSession, actor: User, target_id: uuid.UUID) -> Follow:
        """
        Create the edge actor → target and notify the target.

        Raises:
            ValidationError: self-follow, or the edge already exists
            NotFoundError:   target missing, deactivated or deleted
        """
        if actor.id == target_id:
            raise ValidationError(message="You cannot follow yourself", field="user_id")

        target = await self.get_active_user(db, target_id)

        if await self._edge_exists(db, actor.id, target.id):
            raise ValidationError(message="Already following this user")

        edge = Follow(follower_id=actor.id, following_id=target.id)
        try:
            async with db.begin_nested():
                db.add(edge)
        except IntegrityError:
            raise ValidationError(message="Already following this user")

        logger.info("User %s followed %s", actor.id, target.id)

        await notification_service.emit(
            db,
            recipient_id=target.id,
            sender=actor,
            type="follow",
            message=follow_message(actor.username),
        )
        return edge

    async def unfollow(self, db: AsyncSession, actor: User, target_id: uuid.UUID) -> bool:
        """
        Remove the edge actor → target if present.

        Returns True if an edge was removed. Unfollowing someone you do not
        follow is not an error.
        """
        target = await db.get(User, target_id)
        if target is None or target.is_deleted:
            raise NotFoundError(resource="user", resource_id=str(target_id))

        result = await db.execute(
            delete(Follow).where(
                Follow.follower_id == actor.id,
                Follow.following_id == target.id,
            )
        )
        removed = result.rowcount > 0
        if removed:
            logger.info("User %s unfollowed %s", actor.id, target.id)
        return removed

    async def check_status(
        self, db: AsyncSession, actor: User, target_id: uuid.UUID
    ) -> Dict[str, bool]:
        await self.get_active_user(db, target_id)
        return {
            "is_following": await self._edge_exists(db, actor.id, target_id),
            "is_followed_by": await self._edge_exists(db, target_id, actor.id),
        }

    async def list_followers(self, db: AsyncSession, user_id: uuid.UUID) -> List[User]:
        result = await db.execute(
            select(User)
            .join(Follow, Follow.follower_id == User.id)
            .where(
                Follow.following_id == user_id,
                User.is_deleted.is_(False),
                User.is_deactivated.is_(False),
            )
            .order_by(Follow.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_following(self, db: AsyncSession, user_id: uuid.UUID) -> List[User]:
        result = await db.execute(
            select(User)
            .join(Follow, Follow.following_id == User.id)
            .where(
                Follow.follower_id == user_id,
                User.is_deleted.is_(False),
                User.is_deactivated.is_(False),
            )
            .order_by(Follow.created_at.desc())
        )
        return list(result.scalars().all())

    async def count_followers(self, db: AsyncSession, user_id: uuid.UUID) -> int:
        return len(await self.list_followers(db, user_id))

    async def count_following(self, db: AsyncSession, user_id: uuid.UUID) -> int:
        return len(await self.list_following(db, user_id))

    async def following_ids(self, db: AsyncSession, user_id: uuid.UUID) -> List[uuid.UUID]:
        """Raw ids of everyone `user_id` follows (feed building)."""
        result = await db.execute(
            select(Follow.following_id).where(Follow.follower_id == user_id)
        )
        return list(result.scalars().all())


follow_service = FollowService()
