"""
Pinboard API: Comment Models
==============================

What:  `comments` (threaded, unbounded nesting through parent_comment_id)
       and `comment_likes` (user × comment join records).

Threading:
    parent_comment_id  NULL for a root comment, else the comment replied to
    reply_to_user_id   author of the parent at reply time; shown as
                       "@username" by clients even if the parent is later
                       edited or its author renamed

Author:
    user_id is nullable. A comment whose author row is gone (or whose author
    account is deleted) is still listed, rendered with a placeholder author.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import ForeignKey, Index, Integer, Text, UniqueConstraint, Uuid
from sqlalchemy import text as sql_text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pinboard.database import Base, UTCDateTime, utcnow
from pinboard.models.user import User


class Comment(Base):
    __tablename__ = "comments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    text: Mapped[str] = mapped_column(Text, nullable=False)

    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    pin_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("pins.id", ondelete="CASCADE"), nullable=False
    )
    parent_comment_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("comments.id", ondelete="CASCADE"), nullable=True, index=True
    )
    reply_to_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    likes_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=sql_text("0")
    )

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    user: Mapped[Optional[User]] = relationship(User, foreign_keys=[user_id], lazy="joined")
    reply_to_user: Mapped[Optional[User]] = relationship(
        User, foreign_keys=[reply_to_user_id], lazy="joined"
    )

    __table_args__ = (
        # Thread fetch: all comments of a pin in creation order
        Index("idx_comments_pin_created", "pin_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Comment(id={self.id}, pin_id={self.pin_id}, parent={self.parent_comment_id})>"


class CommentLike(Base):
    __tablename__ = "comment_likes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    comment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("comments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    user: Mapped[User] = relationship(User, lazy="joined")

    __table_args__ = (
        UniqueConstraint("user_id", "comment_id", name="uq_comment_likes_user_comment"),
    )
