"""
Pinboard API: Saved Pins (bookmarks)
"""

import logging
import uuid
from typing import List

from sqlalchemy import delete, exists, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pinboard.exceptions import NotFoundError, ValidationError
from pinboard.models import Pin, SavedPin, User
from pinboard.services.pin_service import pin_service, visible_pins

logger = logging.getLogger(__name__)


class SavedService:

    async def save_pin(self, db: AsyncSession, user: User, pin_id: uuid.UUID) -> SavedPin:
        """
        Raises:
            NotFoundError:   pin missing or hidden
            ValidationError: already saved
        """
        pin = await pin_service.get_visible_pin(db, pin_id)

        already = await db.scalar(
            select(exists().where(SavedPin.user_id == user.id, SavedPin.pin_id == pin.id))
        )
        if already:
            raise ValidationError(message="Pin already saved")

        saved = SavedPin(user_id=user.id, pin_id=pin.id, pin=pin)
        try:
            async with db.begin_nested():
                db.add(saved)
        except IntegrityError:
            raise ValidationError(message="Pin already saved")

        logger.info("User %s saved pin %s", user.id, pin.id)
        return saved

    async def unsave_pin(self, db: AsyncSession, user: User, pin_id: uuid.UUID) -> None:
        result = await db.execute(
            delete(SavedPin).where(SavedPin.user_id == user.id, SavedPin.pin_id == pin_id)
        )
        if result.rowcount == 0:
            raise NotFoundError(resource="saved pin")
        logger.info("User %s unsaved pin %s", user.id, pin_id)

    async def list_saved(self, db: AsyncSession, user_id: uuid.UUID) -> List[Pin]:
        """Saved pins that are still visible, most recently saved first."""
        result = await db.execute(
            visible_pins()
            .join(SavedPin, SavedPin.pin_id == Pin.id)
            .where(SavedPin.user_id == user_id)
            .order_by(SavedPin.saved_at.desc())
        )
        return list(result.scalars().all())


saved_service = SavedService()
