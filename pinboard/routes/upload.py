"""
Pinboard API: Standalone Upload Route

POST /api/upload stores an image or video and returns its public URL without
creating a pin. Clients use it for profile pictures and board covers, then
send the URL in a later profile or board update. The file goes through the
same extension, size and MIME checks as a pin upload.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from pinboard.dependencies import get_current_user
from pinboard.exceptions import ValidationError
from pinboard.models import User
from pinboard.schemas.common import ErrorResponse, UploadResponse
from pinboard.services.media_service import media_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/upload", tags=["Upload"])


@router.post(
    "",
    status_code=201,
    response_model=UploadResponse,
    responses={400: {"description": "Missing or invalid file", "model": ErrorResponse}},
    summary="Upload a file",
)
async def upload_file(
    file: Optional[UploadFile] = File(None, description="Image or video file"),
    user: User = Depends(get_current_user),
) -> UploadResponse:
    if file is None:
        raise ValidationError(message="No file uploaded", field="file")

    try:
        content = await file.read()
        stored = await media_service.validate_and_store(
            filename=file.filename or "",
            content=content,
            content_length=file.size,
        )
    finally:
        await file.close()

    logger.info("User %s uploaded %s (%d bytes)", user.id, stored.relative_path, stored.size)
    return UploadResponse(
        message="File uploaded",
        file_url=stored.url,
        media_type=stored.media_type,
        size=stored.size,
    )
