"""
Pinboard API: Board Service
=============================

What:  Board CRUD and pin membership.

Ownership:
    Mutations look the board up by (id, owner); a board that exists but
    belongs to someone else is reported as not found.

Membership order:
    board_pins.added_at ascending. The first pin added provides the
    fallback cover image.

Pin.board_id:
    The board an owner filed their own pin under. Adding an own pin that is
    not filed yet sets it; removing the pin from that board clears it.
    Pins of other users are never re-filed.
"""

import logging
import uuid
from typing import List

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pinboard.exceptions import NotFoundError
from pinboard.models import Board, BoardPin, Pin, User
from pinboard.schemas.board import (
    BoardCreateRequest,
    BoardResponse,
    BoardSummary,
    BoardUpdateRequest,
)
from pinboard.services.comment_thread import author_summary
from pinboard.services.pin_service import active_owner_clause, pin_response, visible_pins
from pinboard.services.ranking import LIKE_ESCAPE, like_pattern

logger = logging.getLogger(__name__)


class BoardService:

    async def board_pins(self, db: AsyncSession, board_id: uuid.UUID) -> List[Pin]:
        result = await db.execute(
            visible_pins()
            .join(BoardPin, BoardPin.pin_id == Pin.id)
            .where(BoardPin.board_id == board_id)
            .order_by(BoardPin.added_at)
        )
        return list(result.scalars().all())

    def effective_cover(self, board: Board, pins: List[Pin]) -> str:
        if board.cover_image:
            return board.cover_image
        if pins:
            return pins[0].media_url or ""
        return ""

    async def to_response(self, db: AsyncSession, board: Board) -> BoardResponse:
        pins = await self.board_pins(db, board.id)
        return BoardResponse(
            id=board.id,
            name=board.name,
            description=board.description or "",
            cover_image=self.effective_cover(board, pins),
            user=author_summary(board.user),
            pins=[pin_response(p) for p in pins],
            pins_count=len(pins),
            created_at=board.created_at,
            updated_at=board.updated_at,
        )

    async def to_summary(self, db: AsyncSession, board: Board) -> BoardSummary:
        pins = await self.board_pins(db, board.id)
        return BoardSummary(
            id=board.id,
            name=board.name,
            cover_image=self.effective_cover(board, pins),
            pins_count=len(pins),
            owner=author_summary(board.user),
        )

    # ── Lookup ────────────────────────────────────────────────────────────

    async def get_visible_board(self, db: AsyncSession, board_id: uuid.UUID) -> Board:
        board = await db.scalar(
            select(Board)
            .join(User, Board.user_id == User.id)
            .where(Board.id == board_id, active_owner_clause())
        )
        if board is None:
            raise NotFoundError(resource="board")
        return board

    async def get_owned_board(self, db: AsyncSession, user: User, board_id: uuid.UUID) -> Board:
        board = await db.scalar(
            select(Board).where(Board.id == board_id, Board.user_id == user.id)
        )
        if board is None:
            raise NotFoundError(resource="board")
        return board

    async def list_user_boards(self, db: AsyncSession, user_id: uuid.UUID) -> List[Board]:
        result = await db.execute(
            select(Board).where(Board.user_id == user_id).order_by(Board.created_at.desc())
        )
        return list(result.scalars().all())

    async def search_boards(self, db: AsyncSession, terms: List[str], limit: int = 20) -> List[Board]:
        if not terms:
            return []
        conditions = []
        for term in terms:
            pattern = like_pattern(term)
            conditions.append(Board.name.ilike(pattern, escape=LIKE_ESCAPE))
            conditions.append(Board.description.ilike(pattern, escape=LIKE_ESCAPE))

        result = await db.execute(
            select(Board)
            .join(User, Board.user_id == User.id)
            .where(active_owner_clause(), or_(*conditions))
            .order_by(Board.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    # ── Mutations ─────────────────────────────────────────────────────────

    async def create_board(self, db: AsyncSession, user: User, data: BoardCreateRequest) -> Board:
        board = Board(
            name=data.name.strip(),
            description=(data.description or "").strip(),
            user_id=user.id,
            user=user,
        )
        db.add(board)
        await db.flush()
        logger.info("Board %s created by %s", board.id, user.id)
        return board

    async def update_board(
        self, db: AsyncSession, user: User, board_id: uuid.UUID, data: BoardUpdateRequest
    ) -> Board:
        board = await self.get_owned_board(db, user, board_id)
        if data.name is not None:
            board.name = data.name.strip() or board.name
        if data.description is not None:
            board.description = data.description.strip()
        if data.cover_image is not None:
            board.cover_image = data.cover_image.strip()
        await db.flush()
        return board

    async def delete_board(self, db: AsyncSession, user: User, board_id: uuid.UUID) -> None:
        board = await self.get_owned_board(db, user, board_id)
        await db.execute(delete(BoardPin).where(BoardPin.board_id == board.id))
        await db.execute(
            update(Pin).where(Pin.board_id == board.id).values(board_id=None)
        )
        await db.delete(board)
        await db.flush()
        logger.info("Board %s deleted by %s", board_id, user.id)

    async def add_pin(
        self, db: AsyncSession, user: User, board_id: uuid.UUID, pin_id: uuid.UUID
    ) -> Board:
        """Adding a pin that is already on the board is a no-op."""
        board = await db.scalar(
            select(Board).where(Board.id == board_id, Board.user_id == user.id)
        )
        pin = await db.scalar(visible_pins().where(Pin.id == pin_id))
        if board is None or pin is None:
            raise NotFoundError(resource="board or pin")

        already = await db.scalar(
            select(func.count())
            .select_from(BoardPin)
            .where(BoardPin.board_id == board.id, BoardPin.pin_id == pin.id)
        )
        if not already:
            try:
                async with db.begin_nested():
                    db.add(BoardPin(board_id=board.id, pin_id=pin.id))
            except IntegrityError:
                logger.debug("Pin %s already on board %s", pin.id, board.id)

        if pin.user_id == user.id and pin.board_id is None:
            pin.board_id = board.id
            await db.flush()
        return board

    async def remove_pin(
        self, db: AsyncSession, user: User, board_id: uuid.UUID, pin_id: uuid.UUID
    ) -> Board:
        board = await self.get_owned_board(db, user, board_id)
        await db.execute(
            delete(BoardPin).where(BoardPin.board_id == board.id, BoardPin.pin_id == pin_id)
        )
        await db.execute(
            update(Pin)
            .where(Pin.id == pin_id, Pin.board_id == board.id)
            .values(board_id=None)
        )
        return board

    async def purge_user_boards(self, db: AsyncSession, user_id: uuid.UUID) -> None:
        """Remove every board of a user together with its memberships."""
        board_ids = select(Board.id).where(Board.user_id == user_id)
        await db.execute(
            update(Pin)
            .where(Pin.board_id.in_(board_ids))
            .values(board_id=None)
            .execution_options(synchronize_session=False)
        )
        await db.execute(
            delete(BoardPin)
            .where(BoardPin.board_id.in_(board_ids))
            .execution_options(synchronize_session=False)
        )
        await db.execute(
            delete(Board)
            .where(Board.user_id == user_id)
            .execution_options(synchronize_session=False)
        )


board_service = BoardService()
