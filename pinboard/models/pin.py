"""
Pinboard API: Pin Model
=========================

What:  ORM model for the `pins` table, a single image or video post.
Why:   The central content type; likes, comments, saves and boards all
       point at pins.

Denormalized counters:
    likes_count     == COUNT(likes WHERE pin_id = id)
    comments_count  == COUNT(comments WHERE pin_id = id), replies included
    Both are rewritten from a fresh COUNT after every write that touches the
    source table (services/counters.py). Nothing increments them in place.

Media:
    media_path  storage-relative path, e.g. 2024/01/15/<uuid>.jpg
    media_url   public URL the client loads (media_url_prefix + media_path)
    media_type  "image" | "video", derived from the detected MIME type
"""

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, ForeignKey, Index, Integer, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pinboard.database import Base, UTCDateTime, utcnow
from pinboard.models.user import User

MEDIA_TYPES = ("image", "video")


class Pin(Base):
    __tablename__ = "pins"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    category: Mapped[str] = mapped_column(String(100), nullable=False, default="general")

    media_url: Mapped[str] = mapped_column(String(500), nullable=False)
    media_path: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    media_type: Mapped[str] = mapped_column(String(10), nullable=False, default="image")

    # Lower-case tags: manual ones first, then AI-generated ones
    tags: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    board_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("boards.id", ondelete="SET NULL"), nullable=True
    )

    likes_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    comments_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    user: Mapped[User] = relationship(User, lazy="joined")

    __table_args__ = (
        Index("idx_pins_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<Pin(id={self.id}, title='{self.title}', media_type='{self.media_type}')>"
