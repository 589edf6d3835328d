"""Uploaded media file storage.

Files are stored as-uploaded (no re-encoding) under UPLOADS_DIR/<user_id>/,
which the app serves through the /uploads static mount.
"""

from __future__ import annotations

import logging
import secrets
import time
from pathlib import Path

from .settings import MEDIA_MAX_BYTES, UPLOADS_DIR

logger = logging.getLogger(__name__)

URL_PREFIX = "/uploads"

# Allowed MIME types and the extension we store them under
ALLOWED_MIME_TYPES: dict[str, str] = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/svg+xml": ".svg",
    "video/mp4": ".mp4",
    "application/pdf": ".pdf",
}

ALLOWED_EXTENSIONS = frozenset({".jpeg", ".jpg", ".png", ".gif", ".webp", ".svg", ".mp4", ".pdf"})


class MediaStorage:
    def __init__(self, root: str | Path = UPLOADS_DIR, max_bytes: int = MEDIA_MAX_BYTES) -> None:
        self.root = Path(root)
        self.max_bytes = max_bytes

    def validate(self, original_name: str | None, mime_type: str | None, size: int) -> str:
        """
        Check type and size. Returns the extension to store the file under.

        Raises:
            ValueError: If the file type is not allowed or the file is too large
        """
        mime_type_lower = (mime_type or "").lower()
        if mime_type_lower not in ALLOWED_MIME_TYPES:
            raise ValueError(f"File type '{mime_type}' is not allowed")

        extension = Path(original_name or "").suffix.lower()
        if extension and extension not in ALLOWED_EXTENSIONS:
            raise ValueError(f"File extension '{extension}' is not allowed")

        if size == 0:
            raise ValueError("Uploaded file is empty")
        if size > self.max_bytes:
            max_mb = self.max_bytes / (1024 * 1024)
            actual_mb = size / (1024 * 1024)
            raise ValueError(f"File size ({actual_mb:.2f} MB) exceeds maximum of {max_mb:g} MB")

        return extension or ALLOWED_MIME_TYPES[mime_type_lower]

    def user_folder(self, user_id: int) -> Path:
        return self.root / str(user_id)

    def save(self, user_id: int, content: bytes, extension: str) -> tuple[str, str]:
        """
        Write the file and return ``(filename, public_url)``.
        """
        folder = self.user_folder(user_id)
        folder.mkdir(parents=True, exist_ok=True)

        filename = f"{int(time.time() * 1000)}-{secrets.token_hex(6)}{extension}"
        file_path = folder / filename
        with open(file_path, "wb") as f:
            f.write(content)

        logger.info(f"Saved media for user {user_id} to {file_path}")
        return filename, self.url_for(user_id, filename)

    def url_for(self, user_id: int, filename: str) -> str:
        return f"{URL_PREFIX}/{user_id}/{filename}"

    def try_delete(self, user_id: int, filename: str) -> bool:
        """
        Best-effort delete. A file that is already gone is not an error.

        Returns True if we deleted a file, False otherwise.
        """
        file_path = self.user_folder(user_id) / Path(filename).name
        try:
            file_path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning(f"Failed to delete media file {file_path}: {e}")
            return False
