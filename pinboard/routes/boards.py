"""
Pinboard API: Board Routes
============================

Reads are public (boards of active owners only); every mutation is
restricted to the board's owner and answers 404 for anyone else.
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pinboard.database import get_db_session
from pinboard.dependencies import get_current_user
from pinboard.models import User
from pinboard.schemas.board import BoardCreateRequest, BoardResponse, BoardUpdateRequest
from pinboard.schemas.common import ErrorResponse, MessageResponse
from pinboard.services.board_service import board_service

router = APIRouter(prefix="/api/boards", tags=["Boards"])


@router.post("", status_code=201, response_model=BoardResponse)
async def create_board(
    body: BoardCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> BoardResponse:
    board = await board_service.create_board(db, user, body)
    return await board_service.to_response(db, board)


@router.get("", response_model=List[BoardResponse], summary="The caller's boards")
async def list_my_boards(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[BoardResponse]:
    boards = await board_service.list_user_boards(db, user.id)
    return [await board_service.to_response(db, b) for b in boards]


@router.get(
    "/{board_id}",
    response_model=BoardResponse,
    responses={404: {"description": "Board not found", "model": ErrorResponse}},
)
async def get_board(
    board_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> BoardResponse:
    board = await board_service.get_visible_board(db, board_id)
    return await board_service.to_response(db, board)


@router.put("/{board_id}", response_model=BoardResponse)
async def update_board(
    board_id: uuid.UUID,
    body: BoardUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> BoardResponse:
    board = await board_service.update_board(db, user, board_id, body)
    return await board_service.to_response(db, board)


@router.delete("/{board_id}", response_model=MessageResponse)
async def delete_board(
    board_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await board_service.delete_board(db, user, board_id)
    return MessageResponse(message="Board deleted")


@router.post(
    "/{board_id}/pins/{pin_id}",
    response_model=BoardResponse,
    responses={404: {"description": "Board or pin not found", "model": ErrorResponse}},
)
async def add_pin_to_board(
    board_id: uuid.UUID,
    pin_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> BoardResponse:
    board = await board_service.add_pin(db, user, board_id, pin_id)
    return await board_service.to_response(db, board)


@router.delete("/{board_id}/pins/{pin_id}", response_model=BoardResponse)
async def remove_pin_from_board(
    board_id: uuid.UUID,
    pin_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> BoardResponse:
    board = await board_service.remove_pin(db, user, board_id, pin_id)
    return await board_service.to_response(db, board)
