"""
Image storage adapters for local and S3 storage.

Generated and transformed images are copied out of the provider's
short-lived URLs into storage we control before a creation row points
at them.
"""

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Optional
from uuid import uuid4

import aiofiles
import aiohttp
import boto3
from botocore.exceptions import ClientError, NoCredentialsError

from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)

_CONTENT_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
}


def _content_type_for(filename: str) -> str:
    _, ext = os.path.splitext(filename.lower())
    return _CONTENT_TYPES.get(ext, "image/png")


class StorageAdapter(ABC):
    """Abstract base class for storage adapters."""

    @abstractmethod
    async def save_image(self, image_data: bytes, filename: str) -> str:
        """
        Save image data to storage.

        Args:
            image_data: Raw image bytes
            filename: Desired filename (will be sanitized)

        Returns:
            Storage path or key of the saved image
        """

    @abstractmethod
    async def get_image_url(self, path: str) -> str:
        """Return the public URL for a stored image."""

    async def store(self, image_data: bytes, filename: str) -> str:
        """Save an image and return its public URL."""
        path = await self.save_image(image_data, filename)
        return await self.get_image_url(path)


class LocalStorageAdapter(StorageAdapter):
    """
    Local filesystem storage adapter.

    Images are organized by date: <base>/images/YYYY/MM/<name>_<uuid>.png
    and served by the app under /uploads.
    """

    def __init__(self, base_path: Optional[str] = None, base_url: Optional[str] = None):
        self.base_path = Path(base_path or settings.storage_local_path)
        self.base_url = (base_url or settings.public_base_url).rstrip("/")

    def _get_date_path(self) -> Path:
        now = datetime.now()
        return Path("images") / str(now.year) / f"{now.month:02d}"

    def _sanitize_filename(self, filename: str) -> str:
        """Strip path components and make the name unique."""
        filename = os.path.basename(filename or "")
        for char in ("\\", "..", "\0", "\n", "\r", "\t", " "):
            filename = filename.replace(char, "_")

        name, ext = os.path.splitext(filename)
        if ext.lower() not in _CONTENT_TYPES:
            ext = ".png"
        return f"{name or 'image'}_{uuid4().hex}{ext}"

    async def save_image(self, image_data: bytes, filename: str) -> str:
        date_path = self._get_date_path()
        full_dir = self.base_path / date_path
        full_dir.mkdir(parents=True, exist_ok=True)

        safe_filename = self._sanitize_filename(filename)
        async with aiofiles.open(full_dir / safe_filename, "wb") as f:
            await f.write(image_data)

        relative_path = (date_path / safe_filename).as_posix()
        logger.info("Saved image to local storage: %s", relative_path)
        return relative_path

    async def get_image_url(self, path: str) -> str:
        return f"{self.base_url}/uploads/{path}"


class S3StorageAdapter(StorageAdapter):
    """
    AWS S3 storage adapter.

    Objects stay private and are handed out through presigned URLs. boto3
    is blocking, so uploads run in a worker thread.
    """

    PRESIGNED_URL_EXPIRY = 7 * 24 * 3600  # 7 days in seconds

    def __init__(
        self,
        bucket: Optional[str] = None,
        region: Optional[str] = None,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
    ):
        self.bucket = bucket or settings.s3_bucket
        self.region = region or settings.s3_region
        credentials = {}
        access_key = access_key or settings.s3_access_key
        secret_key = secret_key or settings.s3_secret_key
        if access_key and secret_key:
            credentials = {"aws_access_key_id": access_key, "aws_secret_access_key": secret_key}
        # Without explicit keys boto3 falls back to its credential chain
        self.s3_client = boto3.client("s3", region_name=self.region, **credentials)

    def _object_key(self, filename: str) -> str:
        now = datetime.now()
        name, ext = os.path.splitext(os.path.basename(filename or ""))
        return f"images/{now.year}/{now.month:02d}/{name or 'image'}_{uuid4().hex}{ext or '.png'}"

    async def save_image(self, image_data: bytes, filename: str) -> str:
        if not self.bucket:
            raise RuntimeError("S3 bucket not configured")

        key = self._object_key(filename)
        try:
            await asyncio.to_thread(
                self.s3_client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=image_data,
                ContentType=_content_type_for(filename),
            )
        except NoCredentialsError as e:
            raise RuntimeError("AWS credentials not configured") from e
        except ClientError as e:
            raise RuntimeError(f"Failed to upload to S3: {e}") from e

        logger.info("Uploaded image to s3://%s/%s", self.bucket, key)
        return key

    async def get_image_url(self, path: str) -> str:
        return self.s3_client.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket, "Key": path},
            ExpiresIn=self.PRESIGNED_URL_EXPIRY,
        )


# Provider outputs are a few MB; anything far larger is not an image we asked for
MAX_DOWNLOAD_BYTES = 25 * 1024 * 1024


async def download_image(url: str, timeout: float = 30.0) -> bytes:
    """
    Fetch a provider's output image.

    Raises:
        RuntimeError: on a network error, a non-200 status, a non-image
            content type, or a body over ``MAX_DOWNLOAD_BYTES``
    """
    client_timeout = aiohttp.ClientTimeout(total=timeout)
    try:
        async with aiohttp.ClientSession(timeout=client_timeout) as session:
            async with session.get(url) as response:
                if response.status != 200:
                    raise RuntimeError(f"Failed to download image. Status: {response.status}")
                content_type = response.headers.get("content-type", "").lower()
                if content_type and not content_type.startswith("image/"):
                    raise RuntimeError(f"Downloaded content is not an image ({content_type})")
                data = await response.read()
    except aiohttp.ClientError as e:
        raise RuntimeError(f"Network error downloading image: {e}") from e

    if len(data) > MAX_DOWNLOAD_BYTES:
        raise RuntimeError(f"Downloaded image is too large ({len(data)} bytes)")
    logger.debug("Downloaded %d bytes from %s", len(data), url)
    return data


def get_storage_adapter() -> StorageAdapter:
    """
    Return the adapter selected by ``settings.storage_type``.

    Raises:
        ValueError: If storage_type is not recognized
    """
    adapters = {"local": LocalStorageAdapter, "s3": S3StorageAdapter}
    storage_type = settings.storage_type.lower()
    if storage_type not in adapters:
        raise ValueError(f"Unknown storage type: {storage_type}. Must be 'local' or 's3'")
    return adapters[storage_type]()


storage_adapter = get_storage_adapter()
