import logging
import mimetypes
from pathlib import Path
from typing import Optional, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import Settings
from app.core.errors import AppError, ErrorCode, NotFoundError

logger = logging.getLogger("app")


class StorageError(AppError):
    status_code = 500
    code = ErrorCode.INTERNAL_ERROR
    message = "Failed to store file"


def _is_absolute_url(value: str) -> bool:
    return value.startswith("http://") or value.startswith("https://")


class S3Storage:
    """Handles blob storage in an S3-compatible bucket"""

    def __init__(self, settings: Settings):
        self.bucket = settings.STORAGE_BUCKET_NAME
        self.url_expiry_seconds = settings.STORAGE_URL_EXPIRY_MINUTES * 60

        logger.info("Initializing S3Storage with configuration:")
        logger.info(f"  Bucket: {self.bucket}")
        logger.info(f"  Endpoint: {settings.STORAGE_ENDPOINT}")
        logger.info(f"  Access Key ID: {settings.STORAGE_ACCESS_KEY_ID[:5]}...")
        logger.info("  Secret Access Key: *****")

        self.client = boto3.client(
            "s3",
            endpoint_url=settings.STORAGE_ENDPOINT,
            aws_access_key_id=settings.STORAGE_ACCESS_KEY_ID,
            aws_secret_access_key=settings.STORAGE_SECRET_ACCESS_KEY,
            region_name=settings.STORAGE_REGION,
        )

    def save(self, key: str, content: bytes, content_type: str) -> str:
        logger.info(f"Uploading '{key}' to bucket '{self.bucket}'")
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=content,
                ContentType=content_type or "application/octet-stream",
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to upload '{key}': {e}")
            raise StorageError("Failed to upload file")
        return key

    def load(self, key: str) -> Tuple[bytes, str]:
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                raise NotFoundError("File not found")
            logger.error(f"Failed to retrieve '{key}': {e}")
            raise StorageError("Failed to retrieve media file")
        return response["Body"].read(), response.get("ContentType", "application/octet-stream")

    def delete(self, key: str) -> bool:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
            logger.info(f"Deleted '{key}' from bucket '{self.bucket}'")
            return True
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to delete '{key}': {e}")
            return False

    def preview_url(self, key: Optional[str]) -> Optional[str]:
        if not key or _is_absolute_url(key):
            return key
        return self.client.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=self.url_expiry_seconds,
        )


class LocalStorage:
    """Stores blobs on local disk, served back through the media router"""

    def __init__(self, settings: Settings):
        self.root = Path(settings.UPLOAD_DIRECTORY)
        self.root.mkdir(parents=True, exist_ok=True)
        self.media_url = f"{settings.BASE_URL}{settings.API_V1_STR}/media"
        logger.info(f"Blob storage not configured, using local directory {self.root.resolve()}")

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root.resolve() not in path.parents:
            raise NotFoundError("File not found")
        return path

    def save(self, key: str, content: bytes, content_type: str) -> str:
        path = self._path(key)
        try:
            path.write_bytes(content)
        except OSError as e:
            logger.error(f"Failed to save file locally: {e}")
            raise StorageError("Failed to save file locally")
        logger.info(f"Saved file locally at {path}")
        return key

    def load(self, key: str) -> Tuple[bytes, str]:
        path = self._path(key)
        if not path.is_file():
            raise NotFoundError("File not found")
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return path.read_bytes(), content_type

    def delete(self, key: str) -> bool:
        path = self._path(key)
        if not path.exists():
            return False
        try:
            path.unlink()
        except OSError as e:
            logger.error(f"Failed to delete '{key}' locally: {e}")
            return False
        return True

    def preview_url(self, key: Optional[str]) -> Optional[str]:
        if not key or _is_absolute_url(key):
            return key
        return f"{self.media_url}/{key}"


def build_storage(settings: Settings):
    """Pick the S3 backend when credentials are configured, local disk otherwise."""
    if all([settings.STORAGE_ENDPOINT, settings.STORAGE_ACCESS_KEY_ID, settings.STORAGE_SECRET_ACCESS_KEY]):
        return S3Storage(settings)

    missing = [
        name
        for name in ("STORAGE_ENDPOINT", "STORAGE_ACCESS_KEY_ID", "STORAGE_SECRET_ACCESS_KEY")
        if not getattr(settings, name)
    ]
    logger.warning(f"S3 storage not configured - missing: {', '.join(missing)}")
    return LocalStorage(settings)
