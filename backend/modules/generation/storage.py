"""
S3 object storage for generated images.
"""

import asyncio
import logging
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .exceptions import StorageError

logger = logging.getLogger(__name__)


class S3ObjectStorage:
    """
    Uploads to an S3 bucket and returns public object URLs.

    Args:
        bucket: Bucket name
        region: AWS region of the bucket
        access_key_id: AWS access key; empty uses the default credential chain
        secret_access_key: AWS secret key
        public_base_url: URL prefix for objects, defaults to the bucket's S3 endpoint
        client: Preconfigured boto3 S3 client, mainly for tests
    """

    def __init__(
        self,
        bucket: str,
        region: str = "us-east-1",
        access_key_id: str = "",
        secret_access_key: str = "",
        public_base_url: Optional[str] = None,
        client: Any = None,
    ):
        self._bucket = bucket
        self._public_base_url = (
            public_base_url or f"https://{bucket}.s3.{region}.amazonaws.com"
        ).rstrip("/")

        if client is None:
            kwargs: dict[str, Any] = {"region_name": region}
            if access_key_id and secret_access_key:
                kwargs["aws_access_key_id"] = access_key_id
                kwargs["aws_secret_access_key"] = secret_access_key
            client = boto3.client("s3", **kwargs)
        self._client = client

    async def upload(self, key: str, data: bytes, content_type: str) -> str:
        if not self._bucket:
            raise StorageError(key, "bucket not configured")
        try:
            await asyncio.to_thread(
                self._client.put_object,
                Bucket=self._bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                CacheControl="public, max-age=31536000",
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("Upload of %s to %s failed: %s", key, self._bucket, e)
            raise StorageError(key, str(e)) from e

        logger.info("Uploaded %s (%d bytes)", key, len(data))
        return f"{self._public_base_url}/{key}"

    async def delete(self, key: str) -> None:
        if not self._bucket:
            raise StorageError(key, "bucket not configured")
        try:
            await asyncio.to_thread(self._client.delete_object, Bucket=self._bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            logger.error("Delete of %s from %s failed: %s", key, self._bucket, e)
            raise StorageError(key, str(e)) from e
        logger.info("Deleted %s", key)
