"""Media file storage backends.

Both backends store flat filenames (``<uuid>.avif``). The local backend
writes under ``settings.upload_path``, which the app serves at ``/uploads``.
The S3 backend puts the same names into a bucket through boto3.
"""

import asyncio
from pathlib import Path
from typing import Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from paayo.config import settings
from paayo.core.logging import get_logger

logger = get_logger(__name__)


class StorageError(Exception):
    """A file could not be written or removed."""


class MediaStorage(Protocol):
    async def save(self, filename: str, data: bytes, content_type: str) -> None: ...

    async def delete(self, filename: str) -> None: ...

    def url_for(self, filename: str) -> str: ...


class LocalStorage:
    def __init__(self, root: str | Path | None = None) -> None:
        self.root = Path(root or settings.upload_path)

    def ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def path_for(self, filename: str) -> Path:
        # filenames are generated server side; reject anything path-like
        if Path(filename).name != filename:
            raise StorageError(f"Invalid filename: {filename}")
        return self.root / filename

    async def save(self, filename: str, data: bytes, content_type: str) -> None:
        path = self.path_for(filename)
        try:
            await asyncio.to_thread(path.write_bytes, data)
        except OSError as e:
            raise StorageError(f"Could not write {filename}: {e}") from e

    async def delete(self, filename: str) -> None:
        path = self.path_for(filename)
        try:
            await asyncio.to_thread(path.unlink, True)
        except OSError as e:
            raise StorageError(f"Could not delete {filename}: {e}") from e

    def url_for(self, filename: str) -> str:
        return f"/uploads/{filename}"


class S3Storage:
    def __init__(self, bucket: str | None = None) -> None:
        self.bucket = bucket or settings.s3_bucket_name
        self._client = None

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "s3",
                endpoint_url=settings.s3_endpoint_url or None,
                aws_access_key_id=settings.s3_access_key or None,
                aws_secret_access_key=settings.s3_secret_key or None,
                region_name=settings.s3_region,
                config=Config(signature_version="s3v4"),
            )
        return self._client

    async def save(self, filename: str, data: bytes, content_type: str) -> None:
        try:
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=self.bucket,
                Key=filename,
                Body=data,
                ContentType=content_type,
                CacheControl="public, max-age=31536000, immutable",
            )
        except (BotoCoreError, ClientError) as e:
            logger.exception("s3_upload_failed", key=filename, error=str(e))
            raise StorageError(f"Could not upload {filename}") from e

    async def delete(self, filename: str) -> None:
        try:
            await asyncio.to_thread(self.client.delete_object, Bucket=self.bucket, Key=filename)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Could not delete {filename}: {e}") from e

    def url_for(self, filename: str) -> str:
        base = settings.s3_public_url.rstrip("/")
        if base:
            return f"{base}/{filename}"
        return f"/uploads/{filename}"


_storage: MediaStorage | None = None


def get_storage() -> MediaStorage:
    """Process-wide storage backend selected by ``settings.media_storage``."""
    global _storage
    if _storage is None:
        _storage = S3Storage() if settings.media_storage == "s3" else LocalStorage()
    return _storage
