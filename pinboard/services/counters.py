"""
Pinboard API: Denormalized Counter Maintainer
===============================================

What:  Keeps the cached aggregates in sync with their join tables:
           Pin.comments_count   ← COUNT(comments  WHERE pin_id)
           Pin.likes_count      ← COUNT(likes     WHERE pin_id)
           Comment.likes_count  ← COUNT(comment_likes WHERE comment_id)
Why:   Pin cards and threads display these numbers on every read; counting
       per request would multiply queries.
How:   Recompute on write. After any insert/delete on a source table the
       caller invokes the matching refresh; it flushes pending changes,
       counts the source rows and overwrites the cached field.

Strategy:
    Incrementing in place drifts as soon as one write path forgets to
    decrement, or two requests race on the same row. A recount is
    idempotent and self-healing: the next write on a pin repairs it. The
    cost is one COUNT over an indexed column per write.
"""

import logging
import uuid

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from pinboard.models import Comment, CommentLike, Like, Pin

logger = logging.getLogger(__name__)


class CounterMaintainer:
    """Stateless; every method runs inside the caller's transaction."""

    async def refresh_pin_comments(self, db: AsyncSession, pin_id: uuid.UUID) -> int:
        await db.flush()
        count = await db.scalar(
            select(func.count()).select_from(Comment).where(Comment.pin_id == pin_id)
        )
        await db.execute(
            update(Pin).where(Pin.id == pin_id).values(comments_count=count)
        )
        logger.debug("Pin %s comments_count=%d", pin_id, count)
        return count

    async def refresh_pin_likes(self, db: AsyncSession, pin_id: uuid.UUID) -> int:
        await db.flush()
        count = await db.scalar(
            select(func.count()).select_from(Like).where(Like.pin_id == pin_id)
        )
        await db.execute(
            update(Pin).where(Pin.id == pin_id).values(likes_count=count)
        )
        logger.debug("Pin %s likes_count=%d", pin_id, count)
        return count

    async def refresh_comment_likes(self, db: AsyncSession, comment_id: uuid.UUID) -> int:
        await db.flush()
        count = await db.scalar(
            select(func.count()).select_from(CommentLike).where(CommentLike.comment_id == comment_id)
        )
        await db.execute(
            update(Comment).where(Comment.id == comment_id).values(likes_count=count)
        )
        logger.debug("Comment %s likes_count=%d", comment_id, count)
        return count


counter_maintainer = CounterMaintainer()
