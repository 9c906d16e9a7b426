"""
File storage for uploaded avatars and images.

Handlers only see the ``FileStorage`` port; ``LocalFileStorage`` keeps files
under ``STORAGE_ROOT`` which the application serves at ``/storage``.
"""

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from uuid import uuid4

import structlog
from fastapi import UploadFile

from app.config import settings
from app.exceptions import StorageError, ValidationFailedError

logger = structlog.get_logger()

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
}

STUDENT_AVATAR_DIR = "students/avatars"
TEACHER_IMAGE_DIR = "teachers/images"


class FileStorage(ABC):
    """Abstract storage for uploaded files."""

    @abstractmethod
    async def save(self, upload: UploadFile, directory: str, field: str) -> str:
        """Store an uploaded image and return its path relative to the storage root."""
        ...

    @abstractmethod
    async def delete(self, path: str | None) -> None:
        """Remove a stored file. Missing files are ignored."""
        ...


class LocalFileStorage(FileStorage):
    """Stores files on the local filesystem."""

    def __init__(self, root: str | Path, max_bytes: int = settings.MAX_UPLOAD_BYTES):
        self.root = Path(root)
        self.max_bytes = max_bytes

    def _resolve(self, path: str) -> Path:
        target = (self.root / PurePosixPath(path)).resolve()
        if not target.is_relative_to(self.root.resolve()):
            raise StorageError(f"Refusing to touch a file outside storage: {path}")
        return target

    def _extension(self, upload: UploadFile) -> str:
        suffix = Path(upload.filename or "").suffix.lower()
        if suffix in {".jpg", ".jpeg", ".png", ".gif"}:
            return suffix
        return ALLOWED_IMAGE_TYPES[upload.content_type]

    async def save(self, upload: UploadFile, directory: str, field: str) -> str:
        if upload.content_type not in ALLOWED_IMAGE_TYPES:
            raise ValidationFailedError(
                errors={field: [f"The {field} must be a file of type: jpeg, png, jpg, gif."]}
            )

        content = await upload.read()
        if len(content) > self.max_bytes:
            raise ValidationFailedError(
                errors={
                    field: [
                        f"The {field} may not be greater than {self.max_bytes // 1024} kilobytes."
                    ]
                }
            )

        relative = f"{directory}/{uuid4().hex}{self._extension(upload)}"
        target = self._resolve(relative)
        try:
            await asyncio.to_thread(target.parent.mkdir, parents=True, exist_ok=True)
            await asyncio.to_thread(target.write_bytes, content)
        except OSError as e:
            logger.error("Failed to write upload", path=relative, error=str(e))
            raise StorageError(f"Failed to store {field}")

        logger.info(
            "File stored",
            path=relative,
            original_name=upload.filename,
            mime_type=upload.content_type,
            size=len(content),
        )
        return relative

    async def delete(self, path: str | None) -> None:
        if not path:
            return
        target = self._resolve(path)
        try:
            await asyncio.to_thread(target.unlink, missing_ok=True)
            logger.info("File deleted", path=path)
        except OSError as e:
            # Row change is already committed, so an orphaned file is only logged.
            logger.error("Failed to delete stored file", path=path, error=str(e))


def get_storage() -> FileStorage:
    """Dependency returning the configured storage backend."""
    return LocalFileStorage(settings.STORAGE_ROOT, settings.MAX_UPLOAD_BYTES)
