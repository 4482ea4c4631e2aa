"""
Pinboard API: Social Join Records
===================================

What:  `likes` (user × pin), `follows` (follower × following) and
       `saved_pins` (user × pin bookmarks).
Why:   Each relationship is one row guarded by a unique constraint on the
       pair, so "at most one per pair" holds even under concurrent requests.

Follow edges:
    A single directed row replaces the pair of `followers`/`following`
    lists a document store would keep. followers(B) and following(A) are
    both answered from this table, so the two views cannot disagree.
"""

import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pinboard.database import Base, UTCDateTime, utcnow
from pinboard.models.pin import Pin
from pinboard.models.user import User


class Like(Base):
    __tablename__ = "likes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    pin_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("pins.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    user: Mapped[User] = relationship(User, lazy="joined")

    __table_args__ = (
        UniqueConstraint("user_id", "pin_id", name="uq_likes_user_pin"),
    )


class Follow(Base):
    __tablename__ = "follows"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    follower_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    following_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("follower_id", "following_id", name="uq_follows_pair"),
    )


class SavedPin(Base):
    __tablename__ = "saved_pins"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    pin_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("pins.id", ondelete="CASCADE"), nullable=False
    )
    saved_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    pin: Mapped[Pin] = relationship(Pin, lazy="joined")

    __table_args__ = (
        UniqueConstraint("user_id", "pin_id", name="uq_saved_pins_user_pin"),
    )
