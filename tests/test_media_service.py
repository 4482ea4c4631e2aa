"""
Pinboard API: Media Service Unit Tests
========================================

What:  Tests for MediaService validation (extension, size, MIME type),
       storage layout, path resolution and cleanup.
Why:   Uploaded media is the only user input that reaches the file system.
How:   Each test gets a MediaService rooted in a temporary directory.
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from pinboard.exceptions import NotFoundError, ValidationError
from pinboard.services.media_service import MediaService, media_type_for


class TestMediaValidation:
    """Validation steps of the upload pipeline."""

    @pytest.fixture(autouse=True)
    def _service(self, tmp_path):
        self.service = MediaService(storage_root=str(tmp_path))

    # ── Extension Validation ──────────────────────────────────────────────

    @pytest.mark.parametrize("filename", ["a.jpg", "a.jpeg", "a.png", "a.webp", "a.gif", "a.mp4", "a.mov", "a.webm"])
    def test_validate_extension_allowed(self, filename):
        assert self.service.validate_extension(filename) == Path(filename).suffix

    def test_validate_extension_uppercase(self):
        """Extension check should be case-insensitive."""
        assert self.service.validate_extension("CLIP.MP4") == ".mp4"

    @pytest.mark.parametrize("filename", ["document.pdf", "noextension", "malware.exe"])
    def test_validate_extension_rejected(self, filename):
        with pytest.raises(ValidationError, match="not supported"):
            self.service.validate_extension(filename)

    # ── Size Validation ───────────────────────────────────────────────────

    def test_validate_size_within_limit(self):
        self.service.validate_size(None, 1000)

    def test_validate_size_empty_file(self):
        with pytest.raises(ValidationError, match="empty"):
            self.service.validate_size(0, 0)

    def test_validate_size_reported_length_over_limit(self):
        """A lying Content-Length is caught before the bytes are counted."""
        with patch("pinboard.services.media_service.settings") as mock_settings:
            mock_settings.max_file_size = 100
            with pytest.raises(ValidationError, match="too large"):
                self.service.validate_size(101, 10)

    def test_validate_size_actual_over_limit(self):
        with patch("pinboard.services.media_service.settings") as mock_settings:
            mock_settings.max_file_size = 100
            with pytest.raises(ValidationError, match="too large"):
                self.service.validate_size(None, 101)

    # ── MIME Validation ───────────────────────────────────────────────────

    def test_validate_mime_type_png(self, sample_png_bytes):
        assert self.service.validate_mime_type(sample_png_bytes, "a.png") == "image/png"

    def test_validate_mime_type_rejects_text(self):
        with patch("magic.from_buffer", return_value="text/plain"):
            with pytest.raises(ValidationError, match="not supported"):
                self.service.validate_mime_type(b"hello world", "a.png")

    def test_media_type_for(self):
        assert media_type_for("video/mp4") == "video"
        assert media_type_for("VIDEO/WEBM") == "video"
        assert media_type_for("image/gif") == "image"


class TestMediaStorage:
    """Writing, resolving and removing stored files."""

    @pytest.fixture(autouse=True)
    def _service(self, tmp_path):
        self.root = tmp_path
        self.service = MediaService(storage_root=str(tmp_path))

    @pytest.mark.asyncio
    async def test_validate_and_store_creates_date_directory(self, sample_png_bytes):
        stored = await self.service.validate_and_store("photo.png", sample_png_bytes)

        parts = stored.relative_path.split("/")
        assert len(parts) == 4  # YYYY/MM/DD/<uuid>.png
        assert parts[-1].endswith(".png")
        assert stored.url == f"/media/{stored.relative_path}"
        assert stored.media_type == "image"
        assert Path(stored.absolute_path).read_bytes() == sample_png_bytes

    @pytest.mark.asyncio
    async def test_extension_follows_detected_content(self, sample_png_bytes):
        """A PNG uploaded as .jpg is stored as .png."""
        stored = await self.service.validate_and_store("photo.jpg", sample_png_bytes)
        assert stored.relative_path.endswith(".png")

    @pytest.mark.asyncio
    async def test_video_detected(self, sample_mp4_bytes):
        with patch("magic.from_buffer", return_value="video/mp4"):
            stored = await self.service.validate_and_store("clip.mp4", sample_mp4_bytes)
        assert stored.media_type == "video"
        assert stored.relative_path.endswith(".mp4")

    @pytest.mark.asyncio
    async def test_resolve_stored_file(self, sample_png_bytes):
        stored = await self.service.validate_and_store("photo.png", sample_png_bytes)
        assert self.service.resolve(stored.relative_path) == Path(stored.absolute_path).resolve()

    def test_resolve_rejects_traversal(self):
        with pytest.raises(ValidationError, match="Invalid file path"):
            self.service.resolve("../../etc/passwd")

    def test_resolve_missing_file(self):
        with pytest.raises(NotFoundError):
            self.service.resolve("2024/01/01/missing.png")

    # ── Cleanup ───────────────────────────────────────────────────────────

    @pytest.mark.asyncio
    async def test_cleanup_relative_path(self, sample_png_bytes):
        stored = await self.service.validate_and_store("photo.png", sample_png_bytes)

        await self.service.cleanup_file(stored.relative_path)

        assert not Path(stored.absolute_path).exists()

    @pytest.mark.asyncio
    async def test_cleanup_file_nonexistent(self):
        """cleanup_file should not raise for non-existent files."""
        await self.service.cleanup_file(str(self.root / "nonexistent.jpg"))
