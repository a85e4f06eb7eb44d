import logging
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from fastapi import UploadFile

from app.core.config import Settings
from app.core.errors import ValidationFailedError
from app.modules.media.schemas import UploadedImage

logger = logging.getLogger("app")


def sniff_image_type(content: bytes) -> Optional[str]:
    """Detect the image type from its leading bytes"""
    if content[:3] == b"\xff\xd8\xff":
        return "image/jpeg"
    if content[:8] == b"\x89PNG\r\n\x1a\n":
        return "image/png"
    if content[:4] == b"RIFF" and content[8:12] == b"WEBP":
        return "image/webp"
    return None


@dataclass
class ValidatedImage:
    filename: str
    extension: str
    content: bytes
    mime_type: str


class MediaService:
    def __init__(self, storage, settings: Settings):
        self.storage = storage
        self.settings = settings

    def _invalid(self, field: str, message: str, status_code: Optional[int] = None) -> ValidationFailedError:
        return ValidationFailedError(message, details=[{"field": field, "message": message}], status_code=status_code)

    def validate_image(self, upload: UploadFile, field: str = "image") -> ValidatedImage:
        """
        Check size, declared type, extension and file signature of an uploaded image.

        Files above MAX_UPLOAD_SIZE are rejected with 413.
        """
        filename = Path(upload.filename or "").name
        extension = Path(filename).suffix.lower().lstrip(".")
        if extension not in self.settings.ALLOWED_IMAGE_EXTENSIONS:
            raise self._invalid(
                field, f"File extension must be one of: {', '.join(self.settings.ALLOWED_IMAGE_EXTENSIONS)}"
            )
        if upload.content_type not in self.settings.ALLOWED_IMAGE_TYPES:
            raise self._invalid(field, f"File type must be one of: {', '.join(self.settings.ALLOWED_IMAGE_TYPES)}")

        content = upload.file.read(self.settings.MAX_UPLOAD_SIZE + 1)
        if len(content) > self.settings.MAX_UPLOAD_SIZE:
            limit_mb = self.settings.MAX_UPLOAD_SIZE // (1024 * 1024)
            raise self._invalid(field, f"File exceeds the maximum size of {limit_mb} MB", status_code=413)
        if not content:
            raise self._invalid(field, "File is empty")

        mime_type = sniff_image_type(content)
        if mime_type is None or mime_type not in self.settings.ALLOWED_IMAGE_TYPES:
            raise self._invalid(field, "File content is not a valid image")

        return ValidatedImage(filename=filename, extension=extension, content=content, mime_type=mime_type)

    def _store(self, user_id: int, image: ValidatedImage) -> UploadedImage:
        key = f"{user_id}-{int(time.time() * 1000)}-{uuid.uuid4()}.{image.extension}"
        self.storage.save(key, image.content, image.mime_type)
        logger.info(f"User {user_id} uploaded {image.filename} as {key} ({len(image.content)} bytes)")
        return UploadedImage(
            url=key,
            preview_url=self.storage.preview_url(key),
            filename=image.filename,
            size=len(image.content),
            mime_type=image.mime_type,
        )

    def upload_image(self, user_id: int, upload: UploadFile) -> UploadedImage:
        return self._store(user_id, self.validate_image(upload))

    def upload_images(self, user_id: int, uploads: List[UploadFile]) -> List[UploadedImage]:
        """Validate every file before storing any of them"""
        if not uploads:
            raise self._invalid("images", "At least one image is required")
        if len(uploads) > self.settings.MAX_FILES_PER_BATCH:
            raise self._invalid("images", f"Maximum {self.settings.MAX_FILES_PER_BATCH} images allowed")

        images = [self.validate_image(upload, field="images") for upload in uploads]
        return [self._store(user_id, image) for image in images]

    def get_media(self, key: str) -> Tuple[bytes, str]:
        return self.storage.load(key)
