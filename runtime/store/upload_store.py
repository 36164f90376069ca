"""UploadStore: product image files on disk.

Files live flat in one directory and are named

    product-<epoch-ms>-<random 9 digits><ext>

so two uploads never collide. Products reference them by their public
path, `/uploads/products/<filename>`.
"""

import logging
import secrets
import time
from pathlib import Path, PurePosixPath
from typing import Optional

from exceptions.exceptions import InvalidUploadError, NotFoundError


logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/uploads/products/"

ALLOWED_CONTENT_TYPES = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
}
ALLOWED_EXTENSIONS = frozenset([".jpg", ".jpeg", ".png", ".gif"])

DEFAULT_MAX_BYTES = 5 * 1024 * 1024


def public_path(filename: str) -> str:
    """Return the path a product stores for an uploaded file."""
    return PUBLIC_PREFIX + filename


def filename_from_path(image_path: str) -> str:
    """Return the base filename of a product image path."""
    return PurePosixPath(image_path).name


class UploadStore:
    """Write, resolve and delete uploaded product images.

    Parameters
    ----------
    uploads_dir:
        Directory holding the image files. Created on first write.
    max_bytes:
        Largest accepted upload.
    """

    def __init__(self, uploads_dir, max_bytes: int = DEFAULT_MAX_BYTES) -> None:
        self.uploads_dir = Path(uploads_dir)
        self.max_bytes = max_bytes

    def new_filename(self, original_name: Optional[str], content_type: str) -> str:
        ext = PurePosixPath(original_name or "").suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            ext = ALLOWED_CONTENT_TYPES[content_type]
        millis = int(time.time() * 1000)
        return f"product-{millis}-{secrets.randbelow(10**9)}{ext}"

    def save(self, original_name: Optional[str], content_type: Optional[str], data: bytes) -> str:
        """Validate and store an uploaded image; return the new filename."""
        content_type = (content_type or "").lower()
        if content_type not in ALLOWED_CONTENT_TYPES:
            raise InvalidUploadError("only JPG, PNG and GIF images are accepted")
        if len(data) > self.max_bytes:
            raise InvalidUploadError(
                f"file is larger than {self.max_bytes} bytes"
            )
        if not data:
            raise InvalidUploadError("file is empty")

        filename = self.new_filename(original_name, content_type)
        self.uploads_dir.mkdir(parents=True, exist_ok=True)
        (self.uploads_dir / filename).write_bytes(data)
        logger.info("[UPLOAD] Stored %s (%d bytes)", filename, len(data))
        return filename

    def path_for(self, filename: str) -> Path:
        """Resolve a requested filename to a servable image path."""
        if not filename or PurePosixPath(filename).name != filename or filename.startswith("."):
            raise NotFoundError("image", filename)
        if PurePosixPath(filename).suffix.lower() not in ALLOWED_EXTENSIONS:
            raise InvalidUploadError("file type not allowed")
        path = self.uploads_dir / filename
        if not path.is_file():
            raise NotFoundError("image", filename)
        return path

    def delete(self, filename: str) -> bool:
        """Remove an uploaded file; failures are logged, not raised."""
        path = self.uploads_dir / filename_from_path(filename)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning("[UPLOAD] Failed to delete %s: %s", path.name, e)
            return False
        logger.info("[UPLOAD] Deleted %s", path.name)
        return True
