"""
Pinboard API: Comment Service
===============================

What:  Add comments and replies, read a pin's thread, delete a comment with
       its whole reply subtree, and like/unlike comments.
Who:   /api/comments/* and /api/pins/{id}/comments* routes.

Cascade delete:
    Deleting a comment removes every descendant reply, at any depth. The
    subtree is collected breadth first (one query per level), its comment
    likes are deleted, then the comments, then Pin.comments_count is
    recounted. The response reports how many comments went away.

Permissions:
    A comment may be deleted by its author or by the owner of the pin it
    sits on.
"""

import logging
import uuid
from typing import List, Optional, Set, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pinboard.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from pinboard.models import Comment, CommentLike, Pin, User
from pinboard.schemas.comment import CommentListResponse, CommentNode
from pinboard.services.comment_thread import build_comment_tree, to_node
from pinboard.services.counters import counter_maintainer
from pinboard.services.notification_service import comment_message, notification_service
from pinboard.services.pin_service import active_owner_clause, pin_service

logger = logging.getLogger(__name__)


class CommentService:

    async def get_comment(self, db: AsyncSession, comment_id: uuid.UUID) -> Comment:
        comment = await db.get(Comment, comment_id)
        if comment is None:
            raise NotFoundError(resource="comment")
        return comment

    # ── Thread ────────────────────────────────────────────────────────────

    async def list_thread(
        self, db: AsyncSession, pin_id: uuid.UUID, viewer: Optional[User] = None
    ) -> CommentListResponse:
        """
        Two queries whatever the thread depth: the pin's comments in
        creation order, and the subset of them the viewer has liked.
        """
        pin = await pin_service.get_visible_pin(db, pin_id)

        result = await db.execute(
            select(Comment).where(Comment.pin_id == pin.id).order_by(Comment.created_at)
        )
        comments = list(result.scalars().all())

        liked_ids: Set[uuid.UUID] = set()
        if viewer is not None and comments:
            liked = await db.execute(
                select(CommentLike.comment_id)
                .join(Comment, Comment.id == CommentLike.comment_id)
                .where(CommentLike.user_id == viewer.id, Comment.pin_id == pin.id)
            )
            liked_ids = set(liked.scalars().all())

        return CommentListResponse(
            comments=build_comment_tree(comments, liked_ids),
            total_count=len(comments),
        )

    # ── Create ────────────────────────────────────────────────────────────

    async def add_comment(
        self,
        db: AsyncSession,
        user: User,
        pin_id: uuid.UUID,
        text: str,
        parent_comment_id: Optional[uuid.UUID] = None,
    ) -> Tuple[Comment, int]:
        """
        Root comment, or a reply when parent_comment_id is given.

        Returns:
            (comment, pin comments_count after the insert)

        Raises:
            ValidationError: empty text
            NotFoundError:   pin hidden/missing, or parent not on this pin
        """
        text = (text or "").strip()
        if not text:
            raise ValidationError(message="Comment text is required", field="text")

        pin = await pin_service.get_visible_pin(db, pin_id)

        parent: Optional[Comment] = None
        if parent_comment_id is not None:
            parent = await db.get(Comment, parent_comment_id)
            if parent is None or parent.pin_id != pin.id:
                raise NotFoundError(resource="parent comment")

        comment = Comment(
            text=text,
            user_id=user.id,
            user=user,
            pin_id=pin.id,
            parent_comment_id=parent.id if parent else None,
            reply_to_user_id=parent.user_id if parent else None,
            reply_to_user=parent.user if parent else None,
        )
        db.add(comment)

        count = await counter_maintainer.refresh_pin_comments(db, pin.id)
        logger.info(
            "Comment %s on pin %s by %s (reply_to=%s, comments=%d)",
            comment.id,
            pin.id,
            user.id,
            parent.id if parent else None,
            count,
        )

        await notification_service.emit(
            db,
            recipient_id=pin.user_id,
            sender=user,
            type="comment",
            message=comment_message(user.username, pin.title),
            pin_id=pin.id,
        )
        return comment, count

    def comment_node(self, comment: Comment) -> CommentNode:
        """Node for a freshly created comment (no replies, not liked)."""
        return to_node(comment, set())

    # ── Delete ────────────────────────────────────────────────────────────

    async def collect_descendants(
        self, db: AsyncSession, root_id: uuid.UUID
    ) -> List[uuid.UUID]:
        """root_id plus every reply beneath it, breadth first."""
        collected: List[uuid.UUID] = [root_id]
        frontier: List[uuid.UUID] = [root_id]
        while frontier:
            result = await db.execute(
                select(Comment.id).where(Comment.parent_comment_id.in_(frontier))
            )
            frontier = [cid for cid in result.scalars().all() if cid not in collected]
            collected.extend(frontier)
        return collected

    async def delete_comment(
        self, db: AsyncSession, user: User, comment_id: uuid.UUID
    ) -> Tuple[int, int]:
        """
        Returns:
            (number of comments removed, pin comments_count afterwards)

        Raises:
            NotFoundError:         no such comment
            PermissionDeniedError: caller is neither the author nor the pin owner
        """
        comment = await self.get_comment(db, comment_id)
        pin_id = comment.pin_id
        pin_owner_id = await db.scalar(select(Pin.user_id).where(Pin.id == pin_id))

        if user.id not in (comment.user_id, pin_owner_id):
            raise PermissionDeniedError(message="Not authorized")

        doomed = await self.collect_descendants(db, comment.id)

        await db.execute(
            delete(CommentLike)
            .where(CommentLike.comment_id.in_(doomed))
            .execution_options(synchronize_session=False)
        )
        # Children first so a database enforcing the self-reference never
        # sees a reply outlive its parent
        for cid in reversed(doomed):
            await db.execute(
                delete(Comment)
                .where(Comment.id == cid)
                .execution_options(synchronize_session=False)
            )
        db.expunge(comment)

        count = await counter_maintainer.refresh_pin_comments(db, pin_id)
        logger.info(
            "User %s deleted comment %s and %d replies (pin %s comments=%d)",
            user.id,
            comment_id,
            len(doomed) - 1,
            pin_id,
            count,
        )
        return len(doomed), count

    # ── Comment likes ─────────────────────────────────────────────────────

    async def _comment_like_exists(
        self, db: AsyncSession, user_id: uuid.UUID, comment_id: uuid.UUID
    ) -> bool:
        found = await db.scalar(
            select(func.count())
            .select_from(CommentLike)
            .where(CommentLike.user_id == user_id, CommentLike.comment_id == comment_id)
        )
        return bool(found)

    async def toggle_comment_like(
        self, db: AsyncSession, user: User, comment_id: uuid.UUID
    ) -> Tuple[int, bool]:
        """Like if not liked, else unlike. Returns (likes_count, is_liked)."""
        comment = await self.get_comment(db, comment_id)

        if await self._comment_like_exists(db, user.id, comment.id):
            await db.execute(
                delete(CommentLike).where(
                    CommentLike.user_id == user.id, CommentLike.comment_id == comment.id
                )
            )
            is_liked = False
        else:
            try:
                async with db.begin_nested():
                    db.add(CommentLike(user_id=user.id, comment_id=comment.id))
            except IntegrityError:
                logger.debug("Concurrent comment like for %s by %s", comment.id, user.id)
            is_liked = True

        count = await counter_maintainer.refresh_comment_likes(db, comment.id)
        await db.refresh(comment)
        return count, is_liked

    async def unlike_comment(
        self, db: AsyncSession, user: User, comment_id: uuid.UUID
    ) -> int:
        comment = await self.get_comment(db, comment_id)
        result = await db.execute(
            delete(CommentLike).where(
                CommentLike.user_id == user.id, CommentLike.comment_id == comment.id
            )
        )
        if result.rowcount == 0:
            raise NotFoundError(resource="like")
        count = await counter_maintainer.refresh_comment_likes(db, comment.id)
        await db.refresh(comment)
        return count

    async def list_comment_likes(
        self, db: AsyncSession, comment_id: uuid.UUID
    ) -> Tuple[int, List[User]]:
        comment = await self.get_comment(db, comment_id)
        result = await db.execute(
            select(User)
            .join(CommentLike, CommentLike.user_id == User.id)
            .where(CommentLike.comment_id == comment.id, active_owner_clause())
            .order_by(CommentLike.created_at)
        )
        return comment.likes_count or 0, list(result.scalars().all())


comment_service = CommentService()
