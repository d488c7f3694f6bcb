"""Cover image storage.

Uploaded cover images are validated, written under the configured upload
directory with a generated name, and exposed read-only at ``/uploads``.
"""

import uuid
from pathlib import Path
from typing import Optional

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from ..logging_config import get_logger

logger = get_logger("cover_storage")

PUBLIC_PREFIX = "/uploads/"
ALLOWED_EXT = {"jpg", "jpeg", "png", "gif", "webp"}
CONTENT_TYPE_EXT = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}
READ_CHUNK_BYTES = 64 * 1024


class UploadValidationError(Exception):
    """Raised when an uploaded file is not an acceptable cover image."""

    def __init__(self, message: str, status_code: int = 400) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class CoverStorage:
    """Filesystem storage for book cover images."""

    def __init__(self, upload_dir: str | Path, max_bytes: int) -> None:
        """Initialize storage rooted at ``upload_dir``.

        Args:
            upload_dir: Directory holding stored covers (created if missing)
            max_bytes: Largest accepted upload in bytes
        """
        self.upload_dir = Path(upload_dir)
        self.max_bytes = max_bytes

    def _extension_for(self, upload: UploadFile) -> str:
        content_type = (upload.content_type or "").lower()
        if not content_type.startswith("image/"):
            raise UploadValidationError("Only image files are allowed")

        suffix = Path(upload.filename or "").suffix.lower().lstrip(".")
        ext = suffix or CONTENT_TYPE_EXT.get(content_type, "")
        if ext not in ALLOWED_EXT:
            raise UploadValidationError(
                f"Unsupported image type. Allowed extensions: {', '.join(sorted(ALLOWED_EXT))}"
            )
        return ext

    async def _read_limited(self, upload: UploadFile) -> bytes:
        chunks = []
        size = 0
        while True:
            chunk = await upload.read(READ_CHUNK_BYTES)
            if not chunk:
                break
            size += len(chunk)
            if size > self.max_bytes:
                raise UploadValidationError(
                    f"Cover image exceeds the maximum size of {self.max_bytes} bytes"
                )
            chunks.append(chunk)
        if size == 0:
            raise UploadValidationError("Cover image is empty")
        return b"".join(chunks)

    async def save(self, upload: UploadFile) -> str:
        """Validate and store an uploaded cover.

        Args:
            upload: Multipart file from the request

        Returns:
            str: Public URL of the stored image (``/uploads/<name>``)

        Raises:
            UploadValidationError: If the file is not an image, has a
                disallowed extension, is empty or is too large
        """
        ext = self._extension_for(upload)
        data = await self._read_limited(upload)

        filename = f"cover-{uuid.uuid4().hex}.{ext}"
        await run_in_threadpool(self._write, filename, data)

        logger.info(
            "Stored cover image",
            extra={"stored_name": filename, "size": len(data), "content_type": upload.content_type},
        )
        return f"{PUBLIC_PREFIX}{filename}"

    def _write(self, filename: str, data: bytes) -> None:
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        (self.upload_dir / filename).write_bytes(data)

    def path_for(self, url: Optional[str]) -> Optional[Path]:
        """Map a public cover URL back to its file, or None if it is not ours."""
        if not url or not url.startswith(PUBLIC_PREFIX):
            return None

        root = self.upload_dir.resolve()
        target = (root / url[len(PUBLIC_PREFIX):]).resolve()
        if target.parent != root:
            logger.warning("Cover path traversal guard triggered", extra={"url": url})
            return None
        return target

    def remove(self, url: Optional[str]) -> bool:
        """Delete a stored cover.

        Returns:
            bool: True if a file was deleted
        """
        target = self.path_for(url)
        if target is None or not target.is_file():
            return False

        target.unlink()
        logger.info("Removed cover image", extra={"stored_name": target.name})
        return True
