"""Category icon storage.

The API only ever stores the URL an uploader returns. `LocalImageUploader`
writes into the static uploads directory served by the app; any other image
host can be plugged in by implementing `ImageUploader`.
"""

import logging
import uuid
from pathlib import Path
from typing import Protocol

from fastapi import UploadFile

from app.core.errors import InvalidInputError, UploadFailure

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}
CHUNK_SIZE = 64 * 1024  # 64KB chunks


def _discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Could not remove upload %s: %s", path, exc)


class ImageUploader(Protocol):
    async def upload(self, file: UploadFile) -> str:
        """Store the image and return its public URL."""
        ...

    async def discard(self, url: str) -> None:
        """Remove an image previously returned by `upload`."""
        ...


class LocalImageUploader:
    def __init__(self, directory: str | Path, base_url: str, max_bytes: int):
        self.directory = Path(directory)
        self.base_url = base_url.rstrip("/")
        self.max_bytes = max_bytes

    def _reject(self, message: str) -> InvalidInputError:
        logger.warning("Icon upload rejected: %s", message)
        return InvalidInputError(message, errors=[{"field": "categoryIcon", "message": message}])

    async def upload(self, file: UploadFile) -> str:
        if file.content_type not in ALLOWED_CONTENT_TYPES:
            raise self._reject(
                f"File type not allowed. Use: {', '.join(sorted(ALLOWED_CONTENT_TYPES))}"
            )

        max_mb = self.max_bytes // (1024 * 1024)
        # Check the declared size first (if available) to reject early
        if file.size and file.size > self.max_bytes:
            raise self._reject(f"File too large. Max {max_mb}MB")

        filename = f"{uuid.uuid4().hex}.{ALLOWED_CONTENT_TYPES[file.content_type]}"
        filepath = self.directory / filename

        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            total_size = 0
            with open(filepath, "wb") as out:
                while True:
                    chunk = await file.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    total_size += len(chunk)
                    if total_size > self.max_bytes:
                        raise self._reject(f"File too large. Max {max_mb}MB")
                    out.write(chunk)
        except InvalidInputError:
            _discard(filepath)
            raise
        except OSError as exc:
            _discard(filepath)
            logger.error("Icon upload failed for %s: %s", file.filename, exc)
            raise UploadFailure() from exc

        logger.info("Icon stored: %s (%d bytes)", filepath, total_size)
        return f"{self.base_url}/{filename}"

    async def discard(self, url: str) -> None:
        # URLs outside this uploader's prefix were never stored here
        prefix = f"{self.base_url}/"
        if not url.startswith(prefix):
            return
        name = url[len(prefix):]
        if not name or "/" in name:
            return
        _discard(self.directory / name)
        logger.info("Icon discarded: %s", name)
