"""
Pinboard API: User Model
==========================

What:  ORM model for the `users` table.
Why:   Accounts own pins, boards, comments and follow edges.

Account states:
    active       is_deactivated=False, is_deleted=False
    deactivated  hidden from everyone else; may log in again (login reactivates)
    deleted      terminal. username/email are rewritten to free placeholders
                 so the originals can be registered again, and the password
                 hash is replaced with the hash of a random secret.

Followers and following are not stored on this row; they are derived from
the `follows` edge table (see models/social.py).
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, String, Uuid, false
from sqlalchemy.orm import Mapped, mapped_column

from pinboard.database import Base, UTCDateTime, utcnow


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    username: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Empty string means "no picture"; the client renders a default avatar
    profile_picture: Mapped[str] = mapped_column(String(500), nullable=False, default="")

    is_deactivated: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    is_deleted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    @property
    def is_active(self) -> bool:
        """Visible to other users and allowed to act."""
        return not (self.is_deactivated or self.is_deleted)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"
