"""
Pinboard API: Notification Model
==================================

What:  ORM model for the `notifications` table.
When:  Written synchronously by like, comment and follow actions, only when
       the actor is not the recipient.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Index, String, Text, Uuid, false
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pinboard.database import Base, UTCDateTime, utcnow
from pinboard.models.pin import Pin
from pinboard.models.user import User

NOTIFICATION_TYPES = ("like", "comment", "follow")


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    recipient_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    sender_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    pin_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("pins.id", ondelete="SET NULL"), nullable=True
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    sender: Mapped[Optional[User]] = relationship(User, foreign_keys=[sender_id], lazy="joined")
    pin: Mapped[Optional[Pin]] = relationship(Pin, lazy="joined")

    __table_args__ = (
        Index("idx_notifications_recipient_created", "recipient_id", "created_at"),
    )
