"""
Pinboard API: Board Models
============================

What:  `boards` (named, user-owned pin collections) and `board_pins`
       (ordered membership join table).

Cover image:
    `cover_image` is only what the owner set explicitly. The cover shown to
    clients falls back to the media URL of the first pin added, then "".
"""

import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pinboard.database import Base, UTCDateTime, utcnow
from pinboard.models.user import User


class Board(Base):
    __tablename__ = "boards"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    cover_image: Mapped[str] = mapped_column(String(500), nullable=False, default="")

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    user: Mapped[User] = relationship(User, lazy="joined")

    def __repr__(self) -> str:
        return f"<Board(id={self.id}, name='{self.name}')>"


class BoardPin(Base):
    """Pin membership in a board; ordered by added_at."""

    __tablename__ = "board_pins"

    board_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("boards.id", ondelete="CASCADE"), primary_key=True
    )
    pin_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("pins.id", ondelete="CASCADE"), primary_key=True
    )
    added_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
