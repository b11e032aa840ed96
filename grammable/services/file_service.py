"""
Grammable — Picture Storage Service
=====================================

What:  Validates, stores, resolves and removes uploaded gram pictures.
How:   Checks extension, size and sniffed content type, then writes the bytes
       to a date-organized directory under a UUID filename.
Who:   Called by GramService when a gram is created or destroyed, and by the
       /uploads route when a picture is served.

Stored reference:
    The value saved in grams.picture is the path relative to the storage
    root, e.g. "2024/01/15/a1b2c3d4-....png". It contains no user input.

Directory Structure:
    storage/
    └── 2024/
        └── 01/
            └── 15/
                ├── a1b2c3d4-5678.jpg
                └── e5f6g7h8-9012.png
"""

import logging
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import aiofiles

from grammable.config import settings
from grammable.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

# ── Allowed File Types ────────────────────────────────────────────────────
# Sniffed MIME type → canonical extension
ALLOWED_MIME_TYPES = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/gif": ".gif",
}

ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif"}


class FileService:
    """
    Manages the picture storage lifecycle.

    Lifecycle of an uploaded picture:
        1. GramService.create_gram() → FileService.validate_and_store()
        2. Extension check (fast, rejects obviously wrong files)
        3. Size check (empty and oversized files are rejected)
        4. MIME type check via magic bytes (catches renamed files)
        5. File is written under YYYY/MM/DD/ with a UUID filename
        6. Relative path is returned and stored on the gram
        7. On a later failure or on destroy: cleanup_file() removes it
    """

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
                          If None, uses settings.storage_root.
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with storage_root=%s", self.storage_root)

    def validate_extension(self, filename: str) -> str:
        """
        Returns: Normalized extension (lowercase with dot).
        Raises:  ValidationError if extension is not allowed.
        """
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                errors={
                    "picture": [
                        f"file type '{ext or filename}' is not supported. "
                        f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                    ]
                },
            )
        return ext

    def validate_size(self, content: bytes) -> None:
        """
        Rejects empty files and files larger than settings.max_file_size.

        Raises:
            ValidationError with a human-readable size limit message
        """
        if not content:
            raise ValidationError(errors={"picture": ["is empty"]})

        if len(content) > settings.max_file_size:
            max_mb = settings.max_file_size / (1024 * 1024)
            raise ValidationError(
                errors={
                    "picture": [
                        f"is too large ({len(content) / (1024 * 1024):.1f}MB). "
                        f"Maximum is {max_mb:.0f}MB"
                    ]
                },
            )

    def validate_mime_type(self, file_content: bytes, filename: str) -> str:
        """
        Validate the actual content type by inspecting the file header bytes.

        python-magic matches the first bytes against known signatures
        (PNG starts with 89 50 4E 47, JPEG with FF D8 FF).

        Returns:
            Detected MIME type string (e.g., "image/png")

        Raises:
            ValidationError if the MIME type is not an allowed image type
        """
        try:
            import magic
            mime_type = magic.from_buffer(file_content, mime=True)
        except ImportError:
            # libmagic missing (e.g. slim CI images): trust the extension
            logger.warning(
                "python-magic not available, falling back to extension-based type detection. "
                "Install libmagic for production security."
            )
            ext = Path(filename).suffix.lower()
            mime_map = {
                ".png": "image/png",
                ".jpg": "image/jpeg",
                ".jpeg": "image/jpeg",
                ".gif": "image/gif",
            }
            mime_type = mime_map.get(ext, "application/octet-stream")
        except Exception as e:
            logger.error("MIME type detection failed: %s", str(e))
            raise FileStorageError(
                message="Could not verify file type. Please try again.",
                context={"error": str(e)},
            )

        if mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                errors={
                    "picture": [
                        f"content type '{mime_type}' is not supported; "
                        "the file must be a PNG, JPEG or GIF image"
                    ]
                },
            )

        return mime_type

    def _generate_storage_path(self, extension: str) -> Tuple[Path, str]:
        """Returns (absolute_path, relative_path) for a new YYYY/MM/DD/<uuid><ext> file."""
        now = datetime.now(timezone.utc)
        date_dir = now.strftime("%Y/%m/%d")
        unique_name = f"{uuid.uuid4()}{extension}"

        relative_path = f"{date_dir}/{unique_name}"
        absolute_path = self.storage_root / relative_path

        return absolute_path, relative_path

    def resolve(self, relative_path: str) -> Path:
        """
        Absolute path of a stored reference.

        Raises:
            ValidationError if the reference points outside the storage root
            (e.g. "../../etc/passwd").
        """
        full_path = (self.storage_root / relative_path).resolve()
        if full_path != self.storage_root and self.storage_root not in full_path.parents:
            raise ValidationError(errors={"path": ["is invalid"]})
        return full_path

    async def store_file(self, content: bytes, extension: str) -> Tuple[str, str]:
        """
        Write validated file content to disk with async I/O.

        Returns: Tuple of (absolute_path, relative_path).

        Raises:
            FileStorageError if directory creation or file write fails.
        """
        absolute_path, relative_path = self._generate_storage_path(extension)

        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)

            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)

            logger.info(
                "Picture stored: %s (%d bytes)",
                relative_path,
                len(content),
            )
            return str(absolute_path), relative_path

        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded picture. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

    async def cleanup_file(self, file_path: str) -> None:
        """
        Remove a file from storage if it exists.

        When: A gram with a picture is destroyed, or creating one failed after
              the picture was written.

        Best effort: a missing file is fine and other failures are logged,
        never raised. The caller's database change already stands.
        """
        try:
            path = Path(file_path)
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up file: %s", path.name)
            else:
                logger.debug("Cleanup: file already gone: %s", path.name)
        except Exception as e:
            logger.warning("Failed to clean up file %s: %s", file_path, str(e))

    async def remove_picture(self, relative_path: Optional[str]) -> None:
        """cleanup_file() for a stored reference; no-op for None."""
        if not relative_path:
            return
        try:
            path = self.resolve(relative_path)
        except ValidationError:
            logger.warning("Refusing to remove picture outside storage root: %s", relative_path)
            return
        await self.cleanup_file(str(path))

    async def validate_and_store(
        self,
        filename: str,
        content: bytes,
    ) -> Tuple[str, str]:
        """
        Complete validation and storage pipeline.

        Validation order (cheapest first):
            1. Extension check
            2. Size check
            3. MIME type check (reads only the header bytes)
            4. Store file

        Returns: Tuple of (absolute_path, relative_path_for_db).
        """
        ext = self.validate_extension(filename)
        self.validate_size(content)
        self.validate_mime_type(content, filename)
        return await self.store_file(content, ext)

    def collect_errors(self, filename: str, content: bytes) -> Dict[str, List[str]]:
        """
        Run the picture checks without storing anything.

        Returns the field errors (empty dict when the picture is acceptable),
        so they can be reported together with the message errors.
        """
        try:
            self.validate_extension(filename)
            self.validate_size(content)
            self.validate_mime_type(content, filename)
        except ValidationError as e:
            return e.errors
        return {}


# ── Singleton Instance ────────────────────────────────────────────────────
file_service = FileService()
