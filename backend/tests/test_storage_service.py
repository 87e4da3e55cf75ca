"""
Archinnection Backend: Storage Service Unit Tests
===================================================

What:  Tests for bucket validation, upload reading, key generation,
       path resolution and the upload/delete lifecycle.
How:   Each test gets its own storage root under tmp_path. libmagic is
       patched out where the sniffed type matters, so the suite does not
       depend on the system library.

What we test:
    ✅ Size limits per bucket (empty, boundary, oversize)
    ✅ Oversize uploads rejected before anything is written
    ✅ Declared types: images for avatars/posts, PDF/Word for resumes
    ✅ Sniffed type mismatches rejected
    ✅ read_upload stops once the stream passes the limit
    ✅ Keys cannot escape their bucket
    ✅ Delete is best-effort
"""

import io
import uuid
from unittest.mock import patch

import pytest
from starlette.datastructures import UploadFile

from archinnection.config import settings
from archinnection.exceptions import NotFoundError, ValidationError
from archinnection.services.storage_service import StorageService


class TestSizeValidation:

    def setup_method(self):
        self.service = StorageService()

    def test_empty_file_rejected(self):
        with pytest.raises(ValidationError, match="empty"):
            self.service.validate_size("avatars", 0)

    def test_exactly_at_limit_accepted(self):
        self.service.validate_size("avatars", settings.avatar_max_size)

    def test_one_byte_over_avatar_limit_rejected(self):
        with pytest.raises(ValidationError, match="2MB limit") as exc_info:
            self.service.validate_size("avatars", settings.avatar_max_size + 1)
        assert exc_info.value.context["max_size"] == settings.avatar_max_size

    def test_post_bucket_allows_larger_files_than_avatars(self):
        self.service.validate_size("posts", settings.avatar_max_size + 1)

    def test_resume_over_limit_rejected(self):
        with pytest.raises(ValidationError, match="5MB limit"):
            self.service.validate_size("resumes", settings.resume_max_size + 1)

    def test_unknown_bucket_rejected(self):
        with pytest.raises(ValidationError, match="Unknown storage bucket"):
            self.service.validate_size("videos", 10)


class TestDeclaredType:

    def setup_method(self):
        self.service = StorageService()

    def test_image_accepted_for_avatar(self):
        assert self.service.validate_declared_type("avatars", "me.PNG", "image/png") == ".png"

    def test_jpeg_extension_normalized(self):
        assert self.service.validate_declared_type("posts", "site.jpeg", "image/jpeg") == ".jpg"

    def test_non_image_rejected_for_post(self):
        with pytest.raises(ValidationError, match="image file"):
            self.service.validate_declared_type("posts", "notes.pdf", "application/pdf")

    def test_missing_extension_falls_back_to_content_type(self):
        assert self.service.validate_declared_type("avatars", "photo", "image/png") == ".png"

    def test_pdf_accepted_for_resume(self):
        ext = self.service.validate_declared_type("resumes", "cv.pdf", "application/pdf")
        assert ext == ".pdf"

    def test_docx_accepted_for_resume(self):
        ext = self.service.validate_declared_type(
            "resumes",
            "cv.docx",
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        )
        assert ext == ".docx"

    def test_image_rejected_for_resume(self):
        with pytest.raises(ValidationError, match="PDF or Word"):
            self.service.validate_declared_type("resumes", "cv.png", "image/png")

    def test_resume_with_wrong_extension_rejected(self):
        with pytest.raises(ValidationError, match="not allowed"):
            self.service.validate_declared_type("resumes", "cv.exe", "application/pdf")


class TestSniffedType:

    def setup_method(self):
        self.service = StorageService()

    def test_renamed_file_rejected_for_avatar(self):
        with patch.object(self.service, "sniff_content_type", return_value="application/pdf"):
            with pytest.raises(ValidationError, match="does not match"):
                self.service.validate_content("avatars", b"%PDF-1.4", "photo.png")

    def test_docx_zip_container_accepted_for_resume(self):
        with patch.object(self.service, "sniff_content_type", return_value="application/zip"):
            assert self.service.validate_content("resumes", b"PK\x03\x04", "cv.docx") == "application/zip"


class TestKeysAndPaths:

    def setup_method(self):
        self.owner = uuid.uuid4()

    def test_generated_key_embeds_owner_and_kind(self, temp_storage):
        service = StorageService(storage_root=temp_storage)
        key = service.generate_key("resumes", self.owner, ".pdf")
        assert key.startswith(f"{self.owner}-resume-")
        assert key.endswith(".pdf")

    def test_generated_keys_are_unique(self, temp_storage):
        service = StorageService(storage_root=temp_storage)
        keys = {service.generate_key("posts", self.owner, ".png") for _ in range(50)}
        assert len(keys) == 50

    def test_public_url_points_at_storage_route(self, temp_storage):
        service = StorageService(storage_root=temp_storage)
        assert service.public_url("avatars", "k.png") == "/storage/avatars/k.png"

    @pytest.mark.parametrize("key", ["../secret.txt", "../../etc/passwd", "nested/k.png"])
    def test_keys_outside_bucket_rejected(self, temp_storage, key):
        service = StorageService(storage_root=temp_storage)
        with pytest.raises(ValidationError, match="Invalid object key"):
            service.resolve_path("avatars", key)

    @pytest.mark.asyncio
    async def test_open_missing_object_raises_not_found(self, temp_storage):
        service = StorageService(storage_root=temp_storage)
        with pytest.raises(NotFoundError):
            await service.open_path("avatars", "missing.png")


class TestReadUpload:

    def setup_method(self):
        self.service = StorageService()

    @pytest.mark.asyncio
    async def test_reads_whole_file_under_limit(self, sample_image_bytes):
        upload = UploadFile(file=io.BytesIO(sample_image_bytes), filename="a.png")
        assert await self.service.read_upload("avatars", upload) == sample_image_bytes

    @pytest.mark.asyncio
    async def test_declared_size_over_limit_rejected_without_reading(self):
        stream = io.BytesIO(b"x")
        upload = UploadFile(file=stream, filename="a.png", size=settings.avatar_max_size + 1)
        with pytest.raises(ValidationError, match="exceeds"):
            await self.service.read_upload("avatars", upload)
        assert stream.tell() == 0

    @pytest.mark.asyncio
    async def test_stream_over_limit_rejected_while_reading(self):
        stream = io.BytesIO(b"\0" * (settings.avatar_max_size + 200 * 1024))
        upload = UploadFile(file=stream, filename="a.png")
        with pytest.raises(ValidationError, match="exceeds"):
            await self.service.read_upload("avatars", upload)
        # Reading stopped within one chunk of the limit
        assert stream.tell() < settings.avatar_max_size + 128 * 1024

    @pytest.mark.asyncio
    async def test_empty_stream_rejected(self):
        upload = UploadFile(file=io.BytesIO(b""), filename="a.png")
        with pytest.raises(ValidationError, match="empty"):
            await self.service.read_upload("avatars", upload)


class TestUploadLifecycle:

    def setup_method(self):
        self.owner = uuid.uuid4()

    @pytest.mark.asyncio
    async def test_oversize_upload_rejected_before_write(self, temp_storage):
        service = StorageService(storage_root=temp_storage)
        content = b"\0" * (settings.avatar_max_size + 1)

        with patch("archinnection.services.storage_service.aiofiles.open") as mock_open, \
             patch.object(service, "sniff_content_type") as mock_sniff:
            with pytest.raises(ValidationError, match="exceeds"):
                await service.upload("avatars", self.owner, "big.png", "image/png", content)

            mock_open.assert_not_called()
            mock_sniff.assert_not_called()

    @pytest.mark.asyncio
    async def test_upload_writes_object_and_returns_url(self, temp_storage, sample_image_bytes):
        service = StorageService(storage_root=temp_storage)
        with patch.object(service, "sniff_content_type", return_value="image/png"):
            stored = await service.upload(
                "avatars", self.owner, "me.png", "image/png", sample_image_bytes
            )

        assert stored.bucket == "avatars"
        assert stored.public_url == f"/storage/avatars/{stored.key}"
        assert stored.size == len(sample_image_bytes)
        path = await service.open_path("avatars", stored.key)
        assert path.read_bytes() == sample_image_bytes

    @pytest.mark.asyncio
    async def test_delete_removes_object(self, temp_storage, sample_image_bytes):
        service = StorageService(storage_root=temp_storage)
        with patch.object(service, "sniff_content_type", return_value="image/png"):
            stored = await service.upload(
                "posts", self.owner, "p.png", "image/png", sample_image_bytes
            )

        assert await service.delete("posts", stored.key) is True
        with pytest.raises(NotFoundError):
            await service.open_path("posts", stored.key)

    @pytest.mark.asyncio
    async def test_delete_missing_or_empty_key_is_noop(self, temp_storage):
        service = StorageService(storage_root=temp_storage)
        assert await service.delete("posts", "gone.png") is False
        assert await service.delete("posts", None) is False

    @pytest.mark.asyncio
    async def test_delete_with_traversal_key_does_not_raise(self, temp_storage):
        service = StorageService(storage_root=temp_storage)
        assert await service.delete("posts", "../../outside.png") is False
