"""
Pinboard API: Media Storage Service
=====================================

What:  Validates, stores, serves and removes uploaded pin media (images and
       videos).
Why:   Centralizes all file system operations behind one set of checks.
How:   Validates extension, size and detected MIME type, stores in
       date-organized directories under UUID names, returns the relative
       path, the public URL and the media type.
Who:   Called by PinService on pin creation and deletion, and by the media
       and download routes.

Security Model:
    1. Extension check:  fast rejection of obviously wrong files
    2. Size check:       non-empty and below max_file_size
    3. MIME check:       libmagic inspects header bytes, catches renamed files
    4. UUID filename:    no user input reaches the file system path
    5. Path resolution:  served paths must resolve inside storage_root

Media type:
    "video" for any video/* MIME type, otherwise "image".
"""

import logging
import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple

import aiofiles

from pinboard.config import settings
from pinboard.exceptions import FileStorageError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# ── Allowed File Types ────────────────────────────────────────────────────
ALLOWED_MIME_TYPES = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
    "video/mp4": ".mp4",
    "video/quicktime": ".mov",
    "video/webm": ".webm",
}

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".gif", ".mp4", ".mov", ".webm"}

# Extension → MIME, used when libmagic is unavailable and for downloads
EXTENSION_MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".gif": "image/gif",
    ".mp4": "video/mp4",
    ".mov": "video/quicktime",
    ".webm": "video/webm",
}


def media_type_for(mime_type: str) -> str:
    return "video" if mime_type.lower().startswith("video/") else "image"


@dataclass
class StoredMedia:
    """Result of a successful upload."""
    absolute_path: str
    relative_path: str
    url: str
    mime_type: str
    media_type: str
    size: int


class MediaService:
    """
    Manages the lifecycle of uploaded media files.

    Directory Structure:
        storage/
        └── 2024/
            └── 01/
                └── 15/
                    ├── a1b2c3d4-....jpg
                    └── e5f6g7h8-....mp4
    """

    def __init__(self, storage_root: Optional[str] = None):
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("MediaService initialized with storage_root=%s", self.storage_root)

    def validate_extension(self, filename: str) -> str:
        """Returns the normalized extension (lowercase with dot)."""
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="media",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """
        Checks the reported Content-Length first (cheap) and then the real
        byte count (clients can lie). Empty files are rejected.
        """
        max_mb = settings.max_file_size / (1024 * 1024)

        if actual_size == 0:
            raise ValidationError(
                message="Media file is empty. Please upload an image or video.",
                field="media",
            )

        if content_length and content_length > settings.max_file_size:
            raise ValidationError(
                message=f"File is too large. Maximum size is {max_mb:.0f}MB.",
                field="media",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size > settings.max_file_size:
            raise ValidationError(
                message=(
                    f"File is too large ({actual_size / (1024 * 1024):.1f}MB). "
                    f"Maximum size is {max_mb:.0f}MB."
                ),
                field="media",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    def validate_mime_type(self, file_content: bytes, filename: str) -> str:
        """
        Detects the MIME type from the file's magic bytes.

        Returns:
            Detected MIME type (e.g. "video/mp4")

        Raises:
            ValidationError if the type is not an allowed image/video type
        """
        try:
            import magic
            mime_type = magic.from_buffer(file_content[:4096], mime=True)
        except ImportError:
            # python-magic without libmagic (e.g. minimal CI images)
            logger.warning(
                "python-magic not available, falling back to extension-based type detection. "
                "Install libmagic for production security."
            )
            ext = Path(filename).suffix.lower()
            mime_type = EXTENSION_MIME_TYPES.get(ext, "application/octet-stream")
        except Exception as e:
            logger.error("MIME type detection failed: %s", str(e))
            raise FileStorageError(
                message="Could not verify file type. Please try again.",
                context={"error": str(e)},
            )

        if mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message=(
                    f"File content type '{mime_type}' is not supported. "
                    f"The file must be a valid image or video."
                ),
                field="media",
                context={"detected_mime": mime_type, "allowed": list(ALLOWED_MIME_TYPES.keys())},
            )

        return mime_type

    def _generate_storage_path(self, extension: str) -> Tuple[Path, str]:
        """YYYY/MM/DD/<uuid><ext> under storage_root."""
        now = datetime.now(timezone.utc)
        date_dir = now.strftime("%Y/%m/%d")
        unique_name = f"{uuid.uuid4()}{extension}"

        relative_path = f"{date_dir}/{unique_name}"
        absolute_path = self.storage_root / relative_path

        return absolute_path, relative_path

    def public_url(self, relative_path: str) -> str:
        return f"{settings.media_url_prefix.rstrip('/')}/{relative_path}"

    def resolve(self, relative_path: str) -> Path:
        """
        Absolute path of a stored file.

        Raises:
            ValidationError: the path escapes storage_root
            NotFoundError:   no such file
        """
        full_path = (self.storage_root / relative_path).resolve()
        if not full_path.is_relative_to(self.storage_root):
            raise ValidationError(message="Invalid file path")
        if not full_path.is_file():
            raise NotFoundError(resource="file", resource_id=relative_path)
        return full_path

    async def store_file(self, content: bytes, extension: str) -> Tuple[str, str]:
        """
        Write validated content to disk with async I/O.

        Returns:
            (absolute_path, relative_path)

        Raises:
            FileStorageError if directory creation or file write fails.
        """
        absolute_path, relative_path = self._generate_storage_path(extension)

        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)

            logger.info("Media stored: %s (%d bytes)", relative_path, len(content))
            return str(absolute_path), relative_path

        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded media. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

    async def cleanup_file(self, file_path: str) -> None:
        """
        Best-effort removal of a stored file.

        Used after a failed pin creation and when a pin is deleted. Missing
        files are ignored; other errors are logged, never raised.
        """
        try:
            path = Path(file_path)
            if not path.is_absolute():
                path = self.storage_root / file_path
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up file: %s", path.name)
            else:
                logger.debug("Cleanup: file already gone: %s", path.name)
        except Exception as e:
            logger.warning("Failed to clean up file %s: %s", file_path, str(e))

    async def validate_and_store(
        self,
        filename: str,
        content: bytes,
        content_length: Optional[int] = None,
    ) -> StoredMedia:
        """
        Complete validation and storage pipeline, cheapest check first:
        extension → size → MIME → write.
        """
        ext = self.validate_extension(filename)
        self.validate_size(content_length, len(content))
        mime_type = self.validate_mime_type(content, filename)

        # Keep the extension consistent with the detected content
        if EXTENSION_MIME_TYPES.get(ext) != mime_type:
            ext = ALLOWED_MIME_TYPES[mime_type]

        absolute_path, relative_path = await self.store_file(content, ext)

        return StoredMedia(
            absolute_path=absolute_path,
            relative_path=relative_path,
            url=self.public_url(relative_path),
            mime_type=mime_type,
            media_type=media_type_for(mime_type),
            size=len(content),
        )


media_service = MediaService()
