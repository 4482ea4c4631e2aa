"""
Pinboard API: Account and Profile Service
===========================================

What:  Registration, login, account settings, the account lifecycle
       (deactivate / reactivate / delete) and profile views.
Who:   /api/auth/*, /api/account/* and /api/users/* routes.

Account lifecycle:
    active ──deactivate──▶ deactivated ──reactivate / login──▶ active
       │                        │
       └──────── delete ────────┴──▶ deleted (terminal)

Deletion:
    The row stays (comments written by the account keep a "deleted user"
    author) but username and email are rewritten to unique placeholders so
    the originals can be registered again, and the password hash is
    replaced. Everything else the account owns or did is removed: pins
    (with their dependents), boards, saved pins, likes, comment likes,
    follow edges in both directions and notifications sent or received.
    Pins and comments that lose likes get their counters recounted.
"""

import logging
import time
import uuid
from typing import List, Optional, Tuple

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pinboard.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from pinboard.models import (
    CommentLike,
    Follow,
    Like,
    Notification,
    Pin,
    SavedPin,
    User,
)
from pinboard.schemas.auth import RegisterRequest, UserUpdateRequest
from pinboard.security import (
    create_access_token,
    hash_password,
    random_password_hash,
    verify_password,
)
from pinboard.services.board_service import board_service
from pinboard.services.counters import counter_maintainer
from pinboard.services.media_service import media_service
from pinboard.services.pin_service import pin_service
from pinboard.services.ranking import LIKE_ESCAPE, like_pattern

logger = logging.getLogger(__name__)


class UserService:

    # ── Lookups ───────────────────────────────────────────────────────────

    async def _username_taken(
        self, db: AsyncSession, username: str, exclude_id: Optional[uuid.UUID] = None
    ) -> bool:
        query = select(func.count()).select_from(User).where(User.username == username)
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        return bool(await db.scalar(query))

    async def _email_taken(
        self, db: AsyncSession, email: str, exclude_id: Optional[uuid.UUID] = None
    ) -> bool:
        query = select(func.count()).select_from(User).where(func.lower(User.email) == email.lower())
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        return bool(await db.scalar(query))

    async def get_active_by_username(self, db: AsyncSession, username: str) -> User:
        user = await db.scalar(select(User).where(User.username == username))
        if user is None or not user.is_active:
            raise NotFoundError(resource="user")
        return user

    async def list_users(self, db: AsyncSession) -> List[User]:
        result = await db.execute(
            select(User)
            .where(User.is_deleted.is_(False), User.is_deactivated.is_(False))
            .order_by(User.created_at.desc())
        )
        return list(result.scalars().all())

    async def search_profiles(self, db: AsyncSession, terms: List[str], limit: int = 20) -> List[User]:
        if not terms:
            return []
        result = await db.execute(
            select(User)
            .where(
                User.is_deleted.is_(False),
                User.is_deactivated.is_(False),
                or_(
                    *[User.username.ilike(like_pattern(term), escape=LIKE_ESCAPE) for term in terms]
                ),
            )
            .order_by(User.username)
            .limit(limit)
        )
        return list(result.scalars().all())

    # ── Registration / login ──────────────────────────────────────────────

    async def register(self, db: AsyncSession, data: RegisterRequest) -> Tuple[User, str]:
        """
        Raises:
            ValidationError: email or username already in use
        """
        email = str(data.email).strip().lower()

        if await self._email_taken(db, email):
            raise ValidationError(message="Email already registered", field="email")
        if await self._username_taken(db, data.username):
            raise ValidationError(message="Username already taken", field="username")

        user = User(
            username=data.username,
            email=email,
            password_hash=hash_password(data.password),
        )
        try:
            async with db.begin_nested():
                db.add(user)
        except IntegrityError:
            raise ValidationError(message="Username or email already in use")

        logger.info("User registered: %s (%s)", user.id, user.username)
        return user, create_access_token(user.id)

    async def login(self, db: AsyncSession, identifier: str, password: str) -> Tuple[User, str]:
        """
        `identifier` is an email or a username. Logging in to a deactivated
        account reactivates it.

        Raises:
            NotFoundError:   no such (non-deleted) account
            ValidationError: wrong password
        """
        identifier = identifier.strip()
        user = await db.scalar(
            select(User).where(
                or_(
                    func.lower(User.email) == identifier.lower(),
                    User.username == identifier,
                )
            )
        )
        if user is None or user.is_deleted:
            raise NotFoundError(resource="user")

        if not verify_password(password, user.password_hash):
            logger.info("Failed login for %s", user.id)
            raise ValidationError(message="Invalid credentials")

        if user.is_deactivated:
            user.is_deactivated = False
            await db.flush()
            logger.info("User %s reactivated by login", user.id)

        return user, create_access_token(user.id)

    # ── Settings ──────────────────────────────────────────────────────────

    async def change_username(self, db: AsyncSession, user: User, new_username: str) -> User:
        if await self._username_taken(db, new_username, exclude_id=user.id):
            raise ValidationError(message="Username already taken", field="new_username")
        user.username = new_username
        await db.flush()
        logger.info("User %s changed username", user.id)
        return user

    async def change_password(
        self, db: AsyncSession, user: User, current_password: str, new_password: str
    ) -> None:
        if current_password == new_password:
            raise ValidationError(
                message="New password must be different from current password",
                field="new_password",
            )
        if not verify_password(current_password, user.password_hash):
            raise ValidationError(message="Incorrect current password", field="current_password")

        user.password_hash = hash_password(new_password)
        await db.flush()
        logger.info("User %s changed password", user.id)

    async def update_profile(
        self, db: AsyncSession, user: User, target_id: uuid.UUID, data: UserUpdateRequest
    ) -> User:
        if user.id != target_id:
            raise PermissionDeniedError(message="You can only update your own profile")

        if data.username is not None and data.username.strip():
            username = data.username.strip()
            if await self._username_taken(db, username, exclude_id=user.id):
                raise ValidationError(message="Username already taken", field="username")
            user.username = username
        if data.email is not None:
            email = str(data.email).lower()
            if await self._email_taken(db, email, exclude_id=user.id):
                raise ValidationError(message="Email already registered", field="email")
            user.email = email
        if data.profile_picture is not None:
            user.profile_picture = data.profile_picture.strip()

        await db.flush()
        return user

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def deactivate(self, db: AsyncSession, user: User) -> None:
        if user.is_deactivated:
            raise ValidationError(message="Account already deactivated")
        user.is_deactivated = True
        await db.flush()
        logger.info("User %s deactivated", user.id)

    async def reactivate(self, db: AsyncSession, user: User) -> None:
        if not user.is_deactivated:
            raise ValidationError(message="Account is not deactivated")
        user.is_deactivated = False
        await db.flush()
        logger.info("User %s reactivated", user.id)

    async def delete_account(self, db: AsyncSession, user: User) -> None:
        user_id = user.id

        # Pins and comments whose like counters this account contributes to
        liked_pins = set(
            (await db.execute(select(Like.pin_id).where(Like.user_id == user_id))).scalars().all()
        )
        liked_comments = set(
            (
                await db.execute(
                    select(CommentLike.comment_id).where(CommentLike.user_id == user_id)
                )
            ).scalars().all()
        )

        own_pins = list(
            (await db.execute(select(Pin.id, Pin.media_path).where(Pin.user_id == user_id))).all()
        )
        own_pin_ids = [row.id for row in own_pins]

        await pin_service.purge_pins(db, own_pin_ids)
        await board_service.purge_user_boards(db, user_id)

        for model in (SavedPin, Like, CommentLike):
            await db.execute(
                delete(model)
                .where(model.user_id == user_id)
                .execution_options(synchronize_session=False)
            )
        await db.execute(
            delete(Follow)
            .where(or_(Follow.follower_id == user_id, Follow.following_id == user_id))
            .execution_options(synchronize_session=False)
        )
        await db.execute(
            delete(Notification)
            .where(
                or_(Notification.sender_id == user_id, Notification.recipient_id == user_id)
            )
            .execution_options(synchronize_session=False)
        )

        for pin_id in liked_pins.difference(own_pin_ids):
            await counter_maintainer.refresh_pin_likes(db, pin_id)
        for comment_id in liked_comments:
            await counter_maintainer.refresh_comment_likes(db, comment_id)

        stamp = int(time.time() * 1000)
        user.username = f"deleted_user_{user_id}_{stamp}"
        user.email = f"deleted_{user_id}_{stamp}@deleted.local"
        user.password_hash = random_password_hash()
        user.is_deleted = True
        user.is_deactivated = True
        await db.flush()

        for row in own_pins:
            if row.media_path:
                await media_service.cleanup_file(row.media_path)

        logger.info("User %s deleted (%d pins removed)", user_id, len(own_pin_ids))


user_service = UserService()
