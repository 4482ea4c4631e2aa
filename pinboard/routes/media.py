"""
Pinboard API: Media File Route

Serves stored uploads at the `media_url` recorded on each pin
(/media/YYYY/MM/DD/<uuid>.<ext>). Paths outside storage_root are refused.
"""

from fastapi import APIRouter
from fastapi.responses import FileResponse

from pinboard.config import settings
from pinboard.services.media_service import EXTENSION_MIME_TYPES, media_service

router = APIRouter(prefix=settings.media_url_prefix.rstrip("/"), tags=["Media"])


@router.get("/{file_path:path}", include_in_schema=False)
async def serve_media(file_path: str) -> FileResponse:
    path = media_service.resolve(file_path)
    return FileResponse(
        path,
        media_type=EXTENSION_MIME_TYPES.get(path.suffix.lower(), "application/octet-stream"),
    )
