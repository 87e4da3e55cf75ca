"""
Archinnection Backend: Object Storage Service
===============================================

What:  Bucketed object storage for avatars, post images and resumes.
How:   Each bucket is a directory under STORAGE_ROOT. Uploads are size
       checked while being read, type checked against the declared content
       type and the sniffed magic bytes, then written under a generated key.
Who:   ProfileService (avatars, resumes), PostService (post images) and
       the /storage route that serves objects back.
When:  On every upload, replace, removal and public read.

Security Model:
    1. Size check:     Runs while reading the upload, before any write
    2. Declared type:  The client's Content-Type must fit the bucket
    3. Sniffed type:   libmagic inspects header bytes (catches renamed files)
    4. Generated keys: No user input in the stored path except a sanitized
                       extension, so keys cannot escape the bucket directory

Buckets:
    avatars  image/*                      max AVATAR_MAX_SIZE (2MB)
    posts    image/*                      max POST_IMAGE_MAX_SIZE (5MB)
    resumes  PDF, Word (.doc, .docx)      max RESUME_MAX_SIZE (5MB)
"""

import logging
import mimetypes
import re
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, FrozenSet, Optional

import aiofiles
import aiofiles.os
from fastapi import UploadFile

from archinnection.config import settings
from archinnection.exceptions import FileStorageError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# Chunk size used when streaming an upload into memory
_READ_CHUNK = 64 * 1024

RESUME_CONTENT_TYPES = frozenset({
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
})

# libmagic reports .docx as a zip container and older .doc as a CDF container
RESUME_SNIFFED_TYPES = RESUME_CONTENT_TYPES | {
    "application/zip",
    "application/x-ole-storage",
    "application/CDFV2",
}

RESUME_EXTENSIONS = frozenset({".pdf", ".doc", ".docx"})


@dataclass(frozen=True)
class BucketRule:
    name: str
    kind: str  # embedded in generated keys: <owner>-<kind>-<millis>-<rand>.<ext>
    images_only: bool
    content_types: FrozenSet[str] = frozenset()
    sniffed_types: FrozenSet[str] = frozenset()
    extensions: FrozenSet[str] = frozenset()

    @property
    def max_size(self) -> int:
        return settings.bucket_size_limits[self.name]


BUCKETS: Dict[str, BucketRule] = {
    "avatars": BucketRule(name="avatars", kind="avatar", images_only=True),
    "posts": BucketRule(name="posts", kind="post", images_only=True),
    "resumes": BucketRule(
        name="resumes",
        kind="resume",
        images_only=False,
        content_types=RESUME_CONTENT_TYPES,
        sniffed_types=RESUME_SNIFFED_TYPES,
        extensions=RESUME_EXTENSIONS,
    ),
}


@dataclass(frozen=True)
class StoredObject:
    bucket: str
    key: str
    public_url: str
    size: int
    content_type: str


def _format_mb(size: int) -> str:
    return f"{size / (1024 * 1024):.0f}MB"


class StorageService:
    """
    Manages the object lifecycle: validate → upload → serve → delete.

    Directory Structure:
        storage/
        ├── avatars/<user>-avatar-1718000000000-a1b2c3d4.png
        ├── posts/<user>-post-1718000000000-e5f6a7b8.jpg
        └── resumes/<user>-resume-1718000000000-c9d0e1f2.pdf
    """

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("StorageService initialized with storage_root=%s", self.storage_root)

    # ── Validation ────────────────────────────────────────────────────────

    def get_bucket(self, bucket: str) -> BucketRule:
        rule = BUCKETS.get(bucket)
        if rule is None:
            raise ValidationError(
                message=f"Unknown storage bucket '{bucket}'",
                field="bucket",
                context={"bucket": bucket, "allowed": sorted(BUCKETS)},
            )
        return rule

    def validate_size(self, bucket: str, size: int) -> None:
        """
        Reject empty or oversize files for the given bucket.

        Raises:
            ValidationError with a human-readable size limit message
        """
        rule = self.get_bucket(bucket)
        if size <= 0:
            raise ValidationError(
                message="The uploaded file is empty.",
                field="file",
                context={"bucket": bucket},
            )
        if size > rule.max_size:
            raise ValidationError(
                message=(
                    f"File size ({size / (1024 * 1024):.1f}MB) exceeds the "
                    f"{_format_mb(rule.max_size)} limit."
                ),
                field="file",
                context={"bucket": bucket, "max_size": rule.max_size, "actual_size": size},
            )

    def validate_declared_type(self, bucket: str, filename: str, content_type: Optional[str]) -> str:
        """
        Check the client's declared content type and return the extension to store under.

        Returns:
            Normalized extension (lowercase with dot), e.g. ".png"
        """
        rule = self.get_bucket(bucket)
        content_type = (content_type or "").split(";")[0].strip().lower()

        if rule.images_only:
            if not content_type.startswith("image/"):
                raise ValidationError(
                    message="Please upload an image file.",
                    field="file",
                    context={"bucket": bucket, "content_type": content_type},
                )
        elif content_type not in rule.content_types:
            raise ValidationError(
                message="Please upload a PDF or Word document (.pdf, .doc, .docx).",
                field="file",
                context={"bucket": bucket, "content_type": content_type},
            )

        ext = self._extension_for(filename, content_type)
        if rule.extensions and ext not in rule.extensions:
            raise ValidationError(
                message=f"File extension '{ext}' is not allowed for {bucket}.",
                field="file",
                context={"extension": ext, "allowed": sorted(rule.extensions)},
            )
        return ext

    def sniff_content_type(self, content: bytes, filename: str) -> str:
        """
        Detect the real MIME type from the file's magic bytes.

        Falls back to the filename when python-magic (libmagic) is unavailable.
        """
        try:
            import magic
            return magic.from_buffer(content[:2048], mime=True)
        except ImportError:
            logger.warning(
                "python-magic not available; falling back to filename-based type detection. "
                "Install libmagic for production security."
            )
            guessed, _ = mimetypes.guess_type(filename)
            return guessed or "application/octet-stream"
        except Exception as e:
            logger.error("MIME type detection failed: %s", str(e))
            raise FileStorageError(
                message="Could not verify file type. Please try again.",
                context={"error": str(e)},
            )

    def validate_content(self, bucket: str, content: bytes, filename: str) -> str:
        rule = self.get_bucket(bucket)
        sniffed = self.sniff_content_type(content, filename)
        allowed = sniffed.startswith("image/") if rule.images_only else sniffed in rule.sniffed_types
        if not allowed:
            raise ValidationError(
                message="The file content does not match an allowed type for this upload.",
                field="file",
                context={"bucket": bucket, "detected_mime": sniffed},
            )
        return sniffed

    @staticmethod
    def _extension_for(filename: str, content_type: str) -> str:
        ext = Path(filename or "").suffix.lower()
        if not re.fullmatch(r"\.[a-z0-9]{1,10}", ext):
            ext = mimetypes.guess_extension(content_type) or ".bin"
        return ".jpg" if ext == ".jpeg" else ext

    # ── Reading uploads ───────────────────────────────────────────────────

    async def read_upload(self, bucket: str, upload: UploadFile) -> bytes:
        """
        Read an UploadFile into memory, enforcing the bucket's size limit.

        The declared size is checked first; the stream is then read in
        chunks and abandoned as soon as it passes the limit, so an
        oversize body is never fully buffered.
        """
        rule = self.get_bucket(bucket)
        if upload.size is not None:
            self.validate_size(bucket, upload.size)

        chunks = []
        total = 0
        while True:
            chunk = await upload.read(_READ_CHUNK)
            if not chunk:
                break
            total += len(chunk)
            if total > rule.max_size:
                self.validate_size(bucket, total)
            chunks.append(chunk)

        content = b"".join(chunks)
        self.validate_size(bucket, len(content))
        return content

    # ── Keys & URLs ───────────────────────────────────────────────────────

    def generate_key(self, bucket: str, owner_id, extension: str) -> str:
        rule = self.get_bucket(bucket)
        millis = int(time.time() * 1000)
        return f"{owner_id}-{rule.kind}-{millis}-{uuid.uuid4().hex[:8]}{extension}"

    def public_url(self, bucket: str, key: str) -> str:
        return f"{settings.public_base_url.rstrip('/')}/storage/{bucket}/{key}"

    def resolve_path(self, bucket: str, key: str) -> Path:
        """
        Map (bucket, key) to a file path inside the bucket directory.

        Raises:
            ValidationError: key escapes the bucket (path traversal)
        """
        self.get_bucket(bucket)
        bucket_dir = (self.storage_root / bucket).resolve()
        path = (bucket_dir / key).resolve()
        if path.parent != bucket_dir:
            raise ValidationError(message="Invalid object key", field="key")
        return path

    # ── Upload / Delete ───────────────────────────────────────────────────

    async def upload(
        self,
        bucket: str,
        owner_id,
        filename: str,
        content_type: Optional[str],
        content: bytes,
    ) -> StoredObject:
        """
        Validate and store an object.

        Validation order (cheapest first, all before the write):
            1. Size against the bucket limit
            2. Declared content type and extension
            3. Sniffed content type via magic bytes

        Raises:
            ValidationError: any check fails (nothing is written)
            FileStorageError: the write itself fails
        """
        self.validate_size(bucket, len(content))
        ext = self.validate_declared_type(bucket, filename, content_type)
        detected = self.validate_content(bucket, content, filename)

        key = self.generate_key(bucket, owner_id, ext)
        path = self.resolve_path(bucket, key)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store object %s/%s: %s", bucket, key, str(e))
            raise FileStorageError(
                message="Failed to save the uploaded file. Please try again.",
                context={"bucket": bucket, "key": key, "os_error": str(e)},
            )

        logger.info("Stored object %s/%s (%d bytes)", bucket, key, len(content))
        return StoredObject(
            bucket=bucket,
            key=key,
            public_url=self.public_url(bucket, key),
            size=len(content),
            content_type=detected,
        )

    async def delete(self, bucket: str, key: Optional[str]) -> bool:
        """
        Remove an object. Best-effort: a missing object is not an error.

        Returns:
            True if a file was removed.
        """
        if not key:
            return False
        try:
            path = self.resolve_path(bucket, key)
            if await aiofiles.os.path.exists(path):
                await aiofiles.os.remove(path)
                logger.info("Deleted object %s/%s", bucket, key)
                return True
            logger.debug("Delete: object already gone: %s/%s", bucket, key)
        except (OSError, ValidationError) as e:
            logger.warning("Failed to delete object %s/%s: %s", bucket, key, str(e))
        return False

    async def open_path(self, bucket: str, key: str) -> Path:
        """Existing object path for serving; NotFoundError otherwise."""
        path = self.resolve_path(bucket, key)
        if not await aiofiles.os.path.isfile(path):
            raise NotFoundError(resource="object", resource_id=f"{bucket}/{key}")
        return path


storage_service = StorageService()
