"""
PawSpot API — Photo Upload Service
===================================

What:  Validates, stores and attaches one photo per location.
How:   Checks the upload (present, declared and sniffed image type, size
       limit), writes it as `photo_<location-id><ext>` under FILE_UPLOAD_PATH
       with async file I/O, then records the filename on the location.
Who:   Called by PUT /api/v1/locations/{id}/photo.

Order of checks (cheapest rejection first):
    1. Location exists              → NotFoundError (404)
    2. A file part was sent         → BadUploadError (400)
    3. MIME type starts with image  → BadUploadError (400)
    4. Size ≤ MAX_FILE_UPLOAD       → BadUploadError (400)
    5. Content sniffs as an image   → BadUploadError (400)
    6. Write completes              → FileStorageError (500)

The response is only produced once the awaited write has finished.
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import aiofiles
import magic
from sqlalchemy.ext.asyncio import AsyncSession

from pawspot.config import settings
from pawspot.exceptions import BadUploadError, FileStorageError
from pawspot.services.location_service import LocationService, location_service

logger = logging.getLogger(__name__)


class PhotoService:
    """
    Manages the photo files of location records.

    Directory layout:
        public/uploads/
        ├── photo_5d725a1b-7a0e-4f2c-9a7d-0c5f6f2b9c11.jpg
        └── photo_0b3c9f7e-1d2a-4c5b-8e6f-7a8b9c0d1e2f.png

    One file per location: a new upload with the same extension overwrites
    the previous one.
    """

    def __init__(
        self,
        records: LocationService,
        upload_path: Optional[str] = None,
        max_size: Optional[int] = None,
    ):
        self.records = records
        self.upload_path = Path(upload_path or settings.file_upload_path).resolve()
        self.max_size = max_size if max_size is not None else settings.max_file_upload

    # ── Validation ────────────────────────────────────────────────────────

    def validate_upload(
        self,
        filename: Optional[str],
        content_type: Optional[str],
        content: bytes,
    ) -> str:
        """
        Reject uploads that are missing, not images, or too large.

        The declared Content-Type is client-controlled, so the bytes
        themselves are also sniffed with libmagic (JPEG starts FF D8 FF,
        PNG with 89 50 4E 47).

        Returns:
            The detected MIME type (e.g. "image/jpeg")

        Raises:
            BadUploadError with the message shown to the client
            FileStorageError if libmagic cannot inspect the content
        """
        if not filename:
            raise BadUploadError(message="Please upload a file")

        if not (content_type or "").startswith("image"):
            raise BadUploadError(
                message="Please upload an image file",
                context={"content_type": content_type},
            )

        size = len(content)
        if size > self.max_size:
            raise BadUploadError(
                message=f"Please upload an image less than {self.max_size}",
                context={"size": size, "max_size": self.max_size},
            )

        try:
            detected = magic.from_buffer(content, mime=True)
        except magic.MagicException as e:
            logger.error("MIME type detection failed: %s", str(e))
            raise FileStorageError(
                message="Could not verify file type. Please try again.",
                context={"error": str(e)},
            )

        if not detected.startswith("image/"):
            raise BadUploadError(
                message="Please upload an image file",
                context={"content_type": content_type, "detected_mime": detected},
            )

        return detected

    @staticmethod
    def build_filename(location_id: Any, original_filename: str) -> str:
        """`photo_<id><original extension>`, e.g. photo_5d72...c11.jpg."""
        return f"photo_{location_id}{Path(original_filename).suffix}"

    # ── Storage ───────────────────────────────────────────────────────────

    async def store_file(self, filename: str, content: bytes) -> Path:
        """
        Write the photo to the upload directory.

        Raises:
            FileStorageError if directory creation or the write fails
        """
        destination = self.upload_path / filename
        try:
            self.upload_path.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(destination, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store photo at %s: %s", destination, str(e))
            raise FileStorageError(
                message="Problem with file upload",
                context={"path": str(destination), "os_error": str(e)},
            )

        logger.info("Photo stored: %s (%d bytes)", filename, len(content))
        return destination

    async def cleanup_file(self, path: Path) -> None:
        """Best-effort removal of a stored photo; failures are only logged."""
        try:
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up file: %s", path.name)
        except OSError as e:
            logger.warning("Failed to clean up file %s: %s", path, str(e))

    # ── Workflow ──────────────────────────────────────────────────────────

    async def upload_photo(
        self,
        db: AsyncSession,
        location_id: Any,
        filename: Optional[str],
        content_type: Optional[str],
        content: bytes,
    ) -> str:
        """
        Complete upload: look up → validate → write → record filename.

        Returns:
            The stored filename (`photo_<id><ext>`)
        """
        location = await self.records.get_location(db, location_id)

        self.validate_upload(filename, content_type, content)

        stored_name = self.build_filename(location.id, filename)
        path = await self.store_file(stored_name, content)

        try:
            await self.records.set_photo(db, location.id, stored_name)
        except Exception:
            await self.cleanup_file(path)
            raise

        return stored_name

    def resolve_stored_file(self, filename: str) -> Optional[Path]:
        """Absolute path of a stored photo, or None if outside the upload dir or missing."""
        candidate = (self.upload_path / filename).resolve()
        if candidate.parent != self.upload_path or not candidate.is_file():
            return None
        return candidate


# ── Singleton Instance ────────────────────────────────────────────────────
photo_service = PhotoService(records=location_service)
