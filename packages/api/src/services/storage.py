# This project was developed with assistance from AI tools.
"""S3-compatible object storage for wizard attachments.

Wraps a synchronous boto3 client and runs each call in the default
thread-pool executor. A single instance is created at app startup via
``init_storage_service()``; tests patch ``get_storage_service`` instead.
"""

import asyncio
import logging
import os
from functools import partial

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import ClientError

from ..core.config import Settings

logger = logging.getLogger(__name__)


class StorageService:
    """Thin async facade over a boto3 S3 client bound to one bucket."""

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        bucket: str,
        region: str = "us-east-1",
    ):
        self._bucket = bucket
        self._client = boto3.client(
            "s3",
            endpoint_url=endpoint,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
            config=BotoConfig(signature_version="s3v4", s3={"addressing_style": "path"}),
        )
        self._ensure_bucket()

    def _ensure_bucket(self) -> None:
        try:
            self._client.head_bucket(Bucket=self._bucket)
        except ClientError:
            logger.info("Creating S3 bucket: %s", self._bucket)
            self._client.create_bucket(Bucket=self._bucket)

    async def _call(self, method, **kwargs):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(method, Bucket=self._bucket, **kwargs))

    async def upload_file(self, file_data: bytes, object_key: str, content_type: str) -> str:
        """Store ``file_data`` under ``object_key`` and return the key."""
        await self._call(
            self._client.put_object, Key=object_key, Body=file_data, ContentType=content_type
        )
        return object_key

    async def delete_file(self, object_key: str) -> None:
        await self._call(self._client.delete_object, Key=object_key)

    async def get_download_url(self, object_key: str, expires_in: int = 3600) -> str:
        """Presigned GET URL for ``object_key``."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            partial(
                self._client.generate_presigned_url,
                "get_object",
                Params={"Bucket": self._bucket, "Key": object_key},
                ExpiresIn=expires_in,
            ),
        )

    @staticmethod
    def build_object_key(case_id: int, attachment_id: int, filename: str) -> str:
        """``cases/{case_id}/{attachment_id}/{filename}`` with directories stripped."""
        safe_name = os.path.basename(filename) or f"attachment-{attachment_id}"
        return f"cases/{case_id}/{attachment_id}/{safe_name}"


_service: StorageService | None = None


def init_storage_service(cfg: Settings) -> StorageService:
    """Create the singleton (called once from the app lifespan)."""
    global _service  # noqa: PLW0603
    _service = StorageService(
        endpoint=cfg.S3_ENDPOINT,
        access_key=cfg.S3_ACCESS_KEY,
        secret_key=cfg.S3_SECRET_KEY,
        bucket=cfg.S3_BUCKET,
        region=cfg.S3_REGION,
    )
    logger.info("StorageService initialised (bucket=%s)", cfg.S3_BUCKET)
    return _service


def get_storage_service() -> StorageService:
    if _service is None:
        raise RuntimeError("StorageService not initialised -- call init_storage_service() first")
    return _service
