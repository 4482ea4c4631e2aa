"""
Pinboard API: Pin Service (Business Logic Orchestrator)
=========================================================

What:  Pin creation, listing, detail views, updates, deletion, download and
       the personalised feed.
Why:   Keeps upload → store → tag → persist in one place, independent of
       HTTP concerns.
How:   Composes MediaService, the TaggingService and the database session.

Creation Flow (POST /api/pins):
    ┌──────────┐    ┌─────────────┐    ┌──────────────┐    ┌──────────┐
    │  Upload  │───▶│  Validate   │───▶│  Gemini tags │───▶│  Store   │
    │  (Route) │    │  & Store    │    │  (optional)  │    │  (DB)    │
    └──────────┘    │  (Media)    │    │              │    └──────────┘
                    └─────────────┘    └──────────────┘

    Tagging failure → pin is created with manual tags only.
    Any later failure → the stored file is removed again.

Visibility:
    Pins whose owner is deactivated or deleted are hidden: filtered out of
    lists and reported as 404 on direct access.
"""

import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Set, Tuple

from sqlalchemy import delete, desc, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from pinboard.config import settings
from pinboard.exceptions import (
    DatabaseError,
    NotFoundError,
    PermissionDeniedError,
    PinboardError,
    ValidationError,
)
from pinboard.models import (
    Board,
    BoardPin,
    Comment,
    CommentLike,
    Like,
    Notification,
    Pin,
    SavedPin,
    User,
)
from pinboard.schemas.pin import PinFullResponse, PinResponse, PinUpdateRequest
from pinboard.services.comment_thread import author_summary
from pinboard.services.follow_service import follow_service
from pinboard.services.gemini_service import gemini_service
from pinboard.services.media_service import StoredMedia, media_service
from pinboard.services.tagging_base import TaggingService, clean_tags, merge_tags

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Query helpers
# ══════════════════════════════════════════════════════════════════════════

def active_owner_clause():
    return (User.is_deleted.is_(False)) & (User.is_deactivated.is_(False))


def visible_pins() -> Select:
    """SELECT pins whose owner is active."""
    return select(Pin).join(User, Pin.user_id == User.id).where(active_owner_clause())


def parse_tag_field(raw: Optional[str]) -> List[str]:
    """Comma-separated form field → cleaned tags."""
    if not raw:
        return []
    return clean_tags(raw.split(","), settings.max_tags)


def pin_response(pin: Pin) -> PinResponse:
    return PinResponse(
        id=pin.id,
        title=pin.title,
        description=pin.description or "",
        category=pin.category or "general",
        media_url=pin.media_url,
        media_type=pin.media_type,
        tags=list(pin.tags or []),
        likes_count=pin.likes_count or 0,
        comments_count=pin.comments_count or 0,
        board_id=pin.board_id,
        user=author_summary(pin.user),
        created_at=pin.created_at,
        updated_at=pin.updated_at,
    )


class PinService:
    """
    Error Handling Strategy:
        Application errors (PinboardError subclasses) propagate unchanged.
        Unexpected errors during creation are wrapped in DatabaseError after
        the stored file has been cleaned up.
    """

    def __init__(self, tagging_service: Optional[TaggingService] = None):
        self.tagging_service = tagging_service or gemini_service

    async def get_visible_pin(self, db: AsyncSession, pin_id: uuid.UUID) -> Pin:
        pin = await db.scalar(visible_pins().where(Pin.id == pin_id))
        if pin is None:
            raise NotFoundError(resource="pin")
        return pin

    async def get_owned_pin(self, db: AsyncSession, user: User, pin_id: uuid.UUID) -> Pin:
        pin = await self.get_visible_pin(db, pin_id)
        if pin.user_id != user.id:
            raise PermissionDeniedError(message="Not authorized")
        return pin

    # ── Create ────────────────────────────────────────────────────────────

    async def _generate_tags(self, stored: StoredMedia) -> List[str]:
        """AI tags for a freshly stored file; [] when disabled or failing."""
        if not settings.auto_tag_enabled:
            return []
        try:
            return await self.tagging_service.generate_tags(
                stored.absolute_path, stored.media_type
            )
        except PinboardError as e:
            logger.warning("Tag generation skipped for %s: %s", stored.relative_path, e.message)
            return []

    async def create_pin(
        self,
        db: AsyncSession,
        user: User,
        title: str,
        filename: Optional[str],
        content: bytes,
        content_length: Optional[int] = None,
        description: str = "",
        category: Optional[str] = None,
        board_id: Optional[uuid.UUID] = None,
        manual_tags: Optional[List[str]] = None,
    ) -> Pin:
        """
        Complete workflow: validate → store file → tag → save to DB.

        Raises:
            ValidationError: missing/invalid media or blank title
            NotFoundError:   board does not exist or is not the caller's
            DatabaseError:   unexpected persistence failure
        """
        if not filename or not content:
            raise ValidationError(message="Media file is required (image or video)", field="media")

        title = (title or "").strip()
        if not title:
            raise ValidationError(message="Title is required", field="title")

        board: Optional[Board] = None
        if board_id is not None:
            board = await db.get(Board, board_id)
            if board is None or board.user_id != user.id:
                raise NotFoundError(resource="board")

        stored = await media_service.validate_and_store(
            filename=filename,
            content=content,
            content_length=content_length,
        )

        try:
            generated = await self._generate_tags(stored)
            tags = merge_tags(manual_tags or [], generated, settings.max_tags)

            pin = Pin(
                title=title,
                description=(description or "").strip(),
                category=(category or "").strip() or "general",
                media_url=stored.url,
                media_path=stored.relative_path,
                media_type=stored.media_type,
                tags=tags,
                user_id=user.id,
                user=user,
                board_id=board.id if board else None,
            )
            db.add(pin)
            await db.flush()

            if board is not None:
                db.add(BoardPin(board_id=board.id, pin_id=pin.id))
                await db.flush()

        except Exception as e:
            await media_service.cleanup_file(stored.relative_path)
            if isinstance(e, PinboardError):
                raise
            logger.error("Unexpected error creating pin: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="An error occurred while creating your pin. Please try again.",
                context={"original_error": type(e).__name__},
            )

        logger.info(
            "Pin %s created by %s (%s, %d tags, %d generated)",
            pin.id,
            user.id,
            pin.media_type,
            len(tags),
            len(generated),
        )
        return pin

    # ── Read ──────────────────────────────────────────────────────────────

    async def list_pins(
        self,
        db: AsyncSession,
        limit: int = 50,
        cursor: Optional[datetime] = None,
    ) -> List[Pin]:
        """
        Newest first. `cursor` is the created_at of the last pin of the
        previous page.
        """
        query = visible_pins()
        if cursor is not None:
            query = query.where(Pin.created_at < cursor)
        result = await db.execute(query.order_by(desc(Pin.created_at)).limit(limit))
        return list(result.scalars().all())

    async def list_user_pins(self, db: AsyncSession, user_id: uuid.UUID) -> List[Pin]:
        result = await db.execute(
            visible_pins().where(Pin.user_id == user_id).order_by(desc(Pin.created_at))
        )
        return list(result.scalars().all())

    async def get_full_pin(
        self, db: AsyncSession, pin_id: uuid.UUID, viewer: Optional[User] = None
    ) -> PinFullResponse:
        """Pin plus likers and the viewer's like/save state."""
        pin = await self.get_visible_pin(db, pin_id)

        likers_result = await db.execute(
            select(User)
            .join(Like, Like.user_id == User.id)
            .where(Like.pin_id == pin.id, active_owner_clause())
            .order_by(Like.created_at)
        )
        likers = list(likers_result.scalars().all())

        is_liked = False
        is_saved = False
        if viewer is not None:
            is_liked = any(u.id == viewer.id for u in likers)
            is_saved = (
                await db.scalar(
                    select(SavedPin.id).where(
                        SavedPin.user_id == viewer.id, SavedPin.pin_id == pin.id
                    )
                )
            ) is not None

        base = pin_response(pin)
        return PinFullResponse(
            **base.model_dump(),
            likes_users=[author_summary(u) for u in likers],
            is_liked=is_liked,
            is_saved=is_saved,
        )

    async def download_info(self, db: AsyncSession, pin_id: uuid.UUID) -> Tuple[Path, str]:
        """Absolute file path and attachment filename (pin-<id><ext>)."""
        pin = await self.get_visible_pin(db, pin_id)
        path = media_service.resolve(pin.media_path)
        return path, f"pin-{pin.id}{path.suffix}"

    async def get_feed(self, db: AsyncSession, user: User, limit: int = 100) -> List[Pin]:
        """
        Pins by the people `user` follows plus the user's own, newest first.
        Users who follow nobody get the global list instead.
        """
        author_ids: Set[uuid.UUID] = set(await follow_service.following_ids(db, user.id))
        if not author_ids:
            return await self.list_pins(db, limit=limit)

        author_ids.add(user.id)
        result = await db.execute(
            visible_pins()
            .where(Pin.user_id.in_(author_ids))
            .order_by(desc(Pin.created_at))
            .limit(limit)
        )
        return list(result.scalars().all())

    # ── Update / delete ───────────────────────────────────────────────────

    async def update_pin(
        self, db: AsyncSession, user: User, pin_id: uuid.UUID, data: PinUpdateRequest
    ) -> Pin:
        pin = await self.get_owned_pin(db, user, pin_id)

        if data.title is not None:
            pin.title = data.title.strip() or pin.title
        if data.description is not None:
            pin.description = data.description.strip()
        if data.category is not None:
            pin.category = data.category.strip() or "general"
        if data.tags is not None:
            pin.tags = clean_tags(data.tags, settings.max_tags)

        await db.flush()
        await db.refresh(pin)
        logger.info("Pin %s updated by %s", pin.id, user.id)
        return pin

    async def purge_pins(self, db: AsyncSession, pin_ids: List[uuid.UUID]) -> None:
        """
        Delete pins and every row that points at them. Dependents are
        removed explicitly so SQLite (no FK enforcement) ends up in the same
        state as PostgreSQL.
        """
        if not pin_ids:
            return
        comment_ids = select(Comment.id).where(Comment.pin_id.in_(pin_ids))
        await db.execute(
            delete(CommentLike)
            .where(CommentLike.comment_id.in_(comment_ids))
            .execution_options(synchronize_session=False)
        )
        await db.execute(
            delete(Comment)
            .where(Comment.pin_id.in_(pin_ids))
            .execution_options(synchronize_session=False)
        )
        for model in (Like, SavedPin, BoardPin):
            await db.execute(
                delete(model)
                .where(model.pin_id.in_(pin_ids))
                .execution_options(synchronize_session=False)
            )
        await db.execute(
            delete(Notification)
            .where(Notification.pin_id.in_(pin_ids))
            .execution_options(synchronize_session=False)
        )
        await db.execute(
            delete(Pin).where(Pin.id.in_(pin_ids)).execution_options(synchronize_session=False)
        )

    async def delete_pin(self, db: AsyncSession, user: User, pin_id: uuid.UUID) -> None:
        pin = await self.get_owned_pin(db, user, pin_id)
        media_path = pin.media_path

        await self.purge_pins(db, [pin.id])
        db.expunge(pin)

        if media_path:
            await media_service.cleanup_file(media_path)
        logger.info("Pin %s deleted by %s", pin_id, user.id)


pin_service = PinService()
