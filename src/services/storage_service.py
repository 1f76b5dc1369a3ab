"""
S3 object storage access.

boto3 is synchronous, so calls are pushed to the default thread pool to keep
the event loop free.
"""
import asyncio
import logging
from typing import Optional

import boto3

from src.config import Settings

logger = logging.getLogger(__name__)


class ObjectStorageService:
    """Reads objects from a single configured S3 bucket/key."""

    def __init__(self, settings: Settings, client=None):
        self.bucket = settings.s3_bucket_name
        self.key = settings.s3_key_name
        self._settings = settings
        self._client = client

    def _get_client(self):
        if self._client is None:
            self._client = boto3.client(
                "s3",
                aws_access_key_id=self._settings.aws_access_key_id,
                aws_secret_access_key=self._settings.aws_secret_access_key,
                region_name=self._settings.aws_region,
            )
        return self._client

    async def get_object_text(
        self,
        bucket: Optional[str] = None,
        key: Optional[str] = None,
        encoding: str = "utf-8",
    ) -> str:
        """
        Fetch an object and decode its body.

        Args:
            bucket: Bucket name (defaults to S3_BUCKET_NAME)
            key: Object key (defaults to S3_KEY_NAME)
            encoding: Body text encoding

        Returns:
            str: The decoded object body
        """
        bucket = bucket or self.bucket
        key = key or self.key
        if not bucket or not key:
            raise RuntimeError("S3_BUCKET_NAME and S3_KEY_NAME must be configured")

        client = self._get_client()
        loop = asyncio.get_event_loop()
        body = await loop.run_in_executor(
            None,
            lambda: client.get_object(Bucket=bucket, Key=key)["Body"].read()
        )
        logger.info(f"Fetched s3://{bucket}/{key} ({len(body)} bytes)")
        return body.decode(encoding)
