"""
Grammable — Picture Storage Unit Tests
========================================

What:  Tests for FileService validation, storage, resolution and cleanup.
How:   Each test gets a FileService rooted in pytest's tmp_path.

Test Strategy:
    ✅ Allowed extensions (.png, .jpg, .jpeg, .gif), case-insensitive
    ✅ Rejected extensions (.bmp, .pdf, .exe, none)
    ✅ Size limits (empty, boundary at max_file_size)
    ✅ MIME sniffing via a stubbed `magic` module, and the extension fallback
    ✅ Stored references stay inside the storage root
"""

import re
import sys
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from grammable.exceptions import ValidationError
from grammable.services.file_service import FileService

STORED_REFERENCE = re.compile(r"^\d{4}/\d{2}/\d{2}/[0-9a-f-]{36}\.(png|jpg|gif)$")


def fake_magic(mime_type: str):
    return SimpleNamespace(from_buffer=lambda content, mime=True: mime_type)


class TestFileValidation:

    @pytest.fixture(autouse=True)
    def _service(self, tmp_path):
        self.service = FileService(storage_root=str(tmp_path))

    # ── Extension Validation ──────────────────────────────────────────────

    @pytest.mark.parametrize("filename", ["photo.png", "photo.jpg", "photo.jpeg", "anim.gif"])
    def test_allowed_extensions(self, filename):
        assert self.service.validate_extension(filename) == "." + filename.rsplit(".", 1)[1]

    def test_extension_is_case_insensitive(self):
        assert self.service.validate_extension("photo.JPG") == ".jpg"
        assert self.service.validate_extension("photo.Png") == ".png"

    @pytest.mark.parametrize("filename", ["image.bmp", "document.pdf", "malware.exe", "noextension"])
    def test_rejected_extensions(self, filename):
        with pytest.raises(ValidationError, match="not supported") as exc_info:
            self.service.validate_extension(filename)
        assert list(exc_info.value.errors) == ["picture"]

    # ── Size Validation ───────────────────────────────────────────────────

    def test_size_within_limit(self):
        self.service.validate_size(b"x" * 1000)

    def test_size_at_limit(self):
        with patch("grammable.services.file_service.settings") as mock_settings:
            mock_settings.max_file_size = 2048
            self.service.validate_size(b"x" * 2048)

    def test_size_over_limit(self):
        with patch("grammable.services.file_service.settings") as mock_settings:
            mock_settings.max_file_size = 2048
            with pytest.raises(ValidationError, match="too large"):
                self.service.validate_size(b"x" * 2049)

    def test_empty_file(self):
        with pytest.raises(ValidationError) as exc_info:
            self.service.validate_size(b"")
        assert exc_info.value.errors == {"picture": ["is empty"]}

    # ── MIME Validation ───────────────────────────────────────────────────

    def test_mime_type_detected_from_content(self):
        with patch.dict(sys.modules, {"magic": fake_magic("image/png")}):
            assert self.service.validate_mime_type(b"\x89PNG", "picture.png") == "image/png"

    def test_renamed_file_is_rejected(self):
        with patch.dict(sys.modules, {"magic": fake_magic("application/pdf")}):
            with pytest.raises(ValidationError, match="not supported"):
                self.service.validate_mime_type(b"%PDF-1.4", "sneaky.png")

    def test_falls_back_to_extension_without_libmagic(self):
        # A None entry makes `import magic` raise ImportError
        with patch.dict(sys.modules, {"magic": None}):
            assert self.service.validate_mime_type(b"anything", "photo.jpeg") == "image/jpeg"

    def test_collect_errors_returns_field_errors(self):
        assert self.service.collect_errors("notes.txt", b"text") == {
            "picture": [
                "file type '.txt' is not supported. Allowed types: .gif, .jpeg, .jpg, .png"
            ]
        }

    def test_collect_errors_empty_for_acceptable_picture(self, png_bytes):
        with patch.dict(sys.modules, {"magic": fake_magic("image/png")}):
            assert self.service.collect_errors("picture.png", png_bytes) == {}


class TestFileStorage:

    @pytest.fixture(autouse=True)
    def _service(self, tmp_path):
        self.root = tmp_path
        self.service = FileService(storage_root=str(tmp_path))

    @pytest.mark.asyncio
    async def test_validate_and_store_writes_date_organized_file(self, png_bytes):
        with patch.dict(sys.modules, {"magic": fake_magic("image/png")}):
            abs_path, rel_path = await self.service.validate_and_store(
                filename="My Holiday Photo.PNG",
                content=png_bytes,
            )

        assert STORED_REFERENCE.match(rel_path)
        assert "Holiday" not in rel_path
        assert (self.root / rel_path).read_bytes() == png_bytes
        assert abs_path == str(self.root.resolve() / rel_path)

    @pytest.mark.asyncio
    async def test_invalid_picture_is_not_stored(self):
        with pytest.raises(ValidationError):
            await self.service.validate_and_store(filename="notes.txt", content=b"text")

        assert list(self.root.rglob("*.*")) == []

    def test_resolve_stays_inside_the_root(self):
        assert self.service.resolve("2024/01/15/a.png") == self.root.resolve() / "2024/01/15/a.png"

    @pytest.mark.parametrize("reference", ["../../etc/passwd", "/etc/passwd", "2024/../../x.png"])
    def test_resolve_rejects_traversal(self, reference):
        with pytest.raises(ValidationError):
            self.service.resolve(reference)

    # ── Cleanup ───────────────────────────────────────────────────────────

    @pytest.mark.asyncio
    async def test_cleanup_file_removes_file(self, tmp_path):
        test_file = tmp_path / "test.jpg"
        test_file.write_bytes(b"test content")

        await self.service.cleanup_file(str(test_file))

        assert not test_file.exists()

    @pytest.mark.asyncio
    async def test_cleanup_file_nonexistent(self, tmp_path):
        # Should not raise
        await self.service.cleanup_file(str(tmp_path / "nonexistent.jpg"))

    @pytest.mark.asyncio
    async def test_remove_picture_by_reference(self):
        stored = self.root / "2024/01/15/a.png"
        stored.parent.mkdir(parents=True)
        stored.write_bytes(b"png")

        await self.service.remove_picture("2024/01/15/a.png")

        assert not stored.exists()

    @pytest.mark.asyncio
    async def test_remove_picture_ignores_none_and_outside_paths(self, tmp_path):
        outside = tmp_path.parent / "keep-me.txt"
        outside.write_text("keep")

        await self.service.remove_picture(None)
        await self.service.remove_picture("../keep-me.txt")

        assert outside.exists()
