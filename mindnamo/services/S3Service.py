"""S3 Service for avatar uploads."""

import logging
import uuid
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import UploadFile
from slugify import slugify

from mindnamo.core.config import settings
from mindnamo.core.errors import UpstreamUnavailable

logger = logging.getLogger(__name__)


class S3Storage:
    """Uploads files to the configured bucket. The boto3 client is created on first use."""

    def __init__(self):
        self._client = None

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "s3",
                region_name=settings.AWS_REGION,
                aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
                aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
            )
        return self._client

    def upload(self, file: UploadFile, folder: str = "uploads", owner: Optional[str] = None) -> str:
        if not settings.AWS_S3_BUCKET:
            raise UpstreamUnavailable("File storage is not configured")

        file_ext = file.filename.rsplit(".", 1)[-1].lower()
        base_name = file.filename.rsplit(".", 1)[0]
        safe_name = slugify(base_name) or "file"
        owner_segment = slugify(owner) if owner else "anonymous"
        key = f"{folder}/{owner_segment}/{safe_name}-{uuid.uuid4()}.{file_ext}"

        try:
            self.client.upload_fileobj(
                file.file,
                settings.AWS_S3_BUCKET,
                key,
                ExtraArgs={"ContentType": file.content_type or "application/octet-stream"},
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"❌ S3 upload failed for {key}: {e}")
            raise UpstreamUnavailable("Failed to upload file")

        return f"{settings.AWS_S3_BASE_URL}{key}"


s3_storage = S3Storage()


async def get_storage() -> S3Storage:
    """FastAPI dependency for file storage."""
    return s3_storage
