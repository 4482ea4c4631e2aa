"""
Pinboard API: Pin Routes
==========================

What:  Pin upload, listing, detail, update, delete and download, plus the
       pin-scoped likes and comments endpoints.

Upload Request Flow (POST /api/pins):
    1. Client sends multipart/form-data: `media` file + title, description,
       category, board_id, tags (comma-separated) fields
    2. The file is read into memory (bounded by max_file_size validation)
    3. PinService: validate → store → AI tags → persist
    4. 201 Created with the new pin
"""

import logging
import uuid
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from pinboard.database import get_db_session
from pinboard.dependencies import get_current_user, get_optional_user
from pinboard.exceptions import ValidationError
from pinboard.models import User
from pinboard.schemas.comment import (
    CommentCreateRequest,
    CommentCreatedResponse,
    CommentListResponse,
    ReplyCreateRequest,
)
from pinboard.schemas.common import ErrorResponse, MessageResponse
from pinboard.schemas.pin import (
    PinFullResponse,
    PinLikesResponse,
    PinResponse,
    PinUpdateRequest,
)
from pinboard.services.comment_service import comment_service
from pinboard.services.comment_thread import author_summary
from pinboard.services.like_service import like_service
from pinboard.services.media_service import EXTENSION_MIME_TYPES
from pinboard.services.pin_service import parse_tag_field, pin_response, pin_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/pins", tags=["Pins"])


def _optional_uuid(value: Optional[str], field: str) -> Optional[uuid.UUID]:
    if value is None or not value.strip():
        return None
    try:
        return uuid.UUID(value.strip())
    except ValueError:
        raise ValidationError(message=f"Invalid {field}", field=field)


# ══════════════════════════════════════════════════════════════════════════
# Pins
# ══════════════════════════════════════════════════════════════════════════

@router.post(
    "",
    status_code=201,
    response_model=PinResponse,
    responses={
        400: {"description": "Missing or invalid media, blank title", "model": ErrorResponse},
        404: {"description": "Board not found", "model": ErrorResponse},
    },
    summary="Create a pin",
    description=(
        "Upload an image or video (jpg, png, webp, gif, mp4, mov, webm; max 20MB). "
        "Tags are generated from the media when AI tagging is enabled; "
        "comma-separated manual tags are kept in front of them."
    ),
)
async def create_pin(
    title: str = Form(""),
    description: str = Form(""),
    category: Optional[str] = Form(None),
    board_id: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    media: Optional[UploadFile] = File(None, description="Image or video file"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PinResponse:
    if media is None:
        raise ValidationError(message="Media file is required (image or video)", field="media")

    try:
        content = await media.read()
        logger.info(
            "Received pin upload: filename=%s, size=%d bytes",
            media.filename or "unknown",
            len(content),
        )
        pin = await pin_service.create_pin(
            db,
            user,
            title=title,
            filename=media.filename,
            content=content,
            content_length=media.size,
            description=description,
            category=category,
            board_id=_optional_uuid(board_id, "board_id"),
            manual_tags=parse_tag_field(tags),
        )
    finally:
        await media.close()

    return pin_response(pin)


@router.get("", response_model=List[PinResponse], summary="List pins, newest first")
async def list_pins(
    limit: int = Query(default=50, ge=1, le=100),
    cursor: Optional[datetime] = Query(
        default=None, description="created_at of the last pin of the previous page"
    ),
    db: AsyncSession = Depends(get_db_session),
) -> List[PinResponse]:
    pins = await pin_service.list_pins(db, limit=limit, cursor=cursor)
    return [pin_response(p) for p in pins]


@router.get(
    "/{pin_id}",
    response_model=PinResponse,
    responses={404: {"description": "Pin not found", "model": ErrorResponse}},
)
async def get_pin(
    pin_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> PinResponse:
    return pin_response(await pin_service.get_visible_pin(db, pin_id))


@router.get(
    "/{pin_id}/full",
    response_model=PinFullResponse,
    summary="Pin with likers and the caller's like/save state",
)
async def get_pin_full(
    pin_id: uuid.UUID,
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> PinFullResponse:
    return await pin_service.get_full_pin(db, pin_id, viewer)


@router.put(
    "/{pin_id}",
    response_model=PinResponse,
    responses={403: {"description": "Not the owner", "model": ErrorResponse}},
)
async def update_pin(
    pin_id: uuid.UUID,
    body: PinUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PinResponse:
    pin = await pin_service.update_pin(db, user, pin_id, body)
    return pin_response(pin)


@router.delete(
    "/{pin_id}",
    response_model=MessageResponse,
    responses={403: {"description": "Not the owner", "model": ErrorResponse}},
)
async def delete_pin(
    pin_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await pin_service.delete_pin(db, user, pin_id)
    return MessageResponse(message="Pin deleted")


@router.get("/{pin_id}/download", summary="Download the pin's media as an attachment")
async def download_pin(
    pin_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> FileResponse:
    path, filename = await pin_service.download_info(db, pin_id)
    return FileResponse(
        path,
        filename=filename,
        media_type=EXTENSION_MIME_TYPES.get(path.suffix.lower(), "application/octet-stream"),
    )


# ══════════════════════════════════════════════════════════════════════════
# Likes of a pin
# ══════════════════════════════════════════════════════════════════════════

@router.post(
    "/{pin_id}/likes",
    status_code=201,
    response_model=PinLikesResponse,
    responses={400: {"description": "Already liked", "model": ErrorResponse}},
)
async def like_pin(
    pin_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PinLikesResponse:
    count, likers = await like_service.like_pin(db, user, pin_id)
    return PinLikesResponse(likes_count=count, users=[author_summary(u) for u in likers])


@router.delete(
    "/{pin_id}/likes",
    response_model=PinLikesResponse,
    responses={404: {"description": "Like not found", "model": ErrorResponse}},
)
async def unlike_pin(
    pin_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PinLikesResponse:
    count, likers = await like_service.unlike_pin(db, user, pin_id)
    return PinLikesResponse(likes_count=count, users=[author_summary(u) for u in likers])


@router.get("/{pin_id}/likes", response_model=PinLikesResponse)
async def list_pin_likes(
    pin_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> PinLikesResponse:
    count, likers = await like_service.list_likes(db, pin_id)
    return PinLikesResponse(likes_count=count, users=[author_summary(u) for u in likers])


# ══════════════════════════════════════════════════════════════════════════
# Comments of a pin
# ══════════════════════════════════════════════════════════════════════════

@router.get(
    "/{pin_id}/comments",
    response_model=CommentListResponse,
    summary="Comment thread (roots newest first, replies oldest first)",
)
async def list_pin_comments(
    pin_id: uuid.UUID,
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> CommentListResponse:
    return await comment_service.list_thread(db, pin_id, viewer)


@router.post("/{pin_id}/comments", status_code=201, response_model=CommentCreatedResponse)
async def add_pin_comment(
    pin_id: uuid.UUID,
    body: CommentCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> CommentCreatedResponse:
    comment, count = await comment_service.add_comment(
        db, user, pin_id, body.text, body.parent_comment_id
    )
    return CommentCreatedResponse(
        message="Comment added",
        comment=comment_service.comment_node(comment),
        comments_count=count,
    )


@router.post(
    "/{pin_id}/comments/{comment_id}/reply",
    status_code=201,
    response_model=CommentCreatedResponse,
)
async def reply_to_comment(
    pin_id: uuid.UUID,
    comment_id: uuid.UUID,
    body: ReplyCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> CommentCreatedResponse:
    comment, count = await comment_service.add_comment(
        db, user, pin_id, body.text, parent_comment_id=comment_id
    )
    return CommentCreatedResponse(
        message="Reply added",
        comment=comment_service.comment_node(comment),
        comments_count=count,
    )
