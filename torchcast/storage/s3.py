"""
S3-compatible blob store (Cloudflare R2 in production).

boto3 is blocking, so every call runs in a worker thread.
"""

import asyncio
from typing import Optional

import boto3
import structlog
from botocore.exceptions import ClientError

from ..errors import BlobNotFound

logger = structlog.get_logger()


class S3BlobStore:
    """BlobStore backed by an S3-compatible endpoint."""

    def __init__(
        self,
        endpoint_url: Optional[str] = None,
        region: str = "auto",
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        client=None,
    ):
        self.client = client or boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            region_name=region,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
        )

    async def get_text(self, bucket: str, key: str) -> str:
        def _get() -> str:
            try:
                response = self.client.get_object(Bucket=bucket, Key=key)
            except ClientError as e:
                if e.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                    raise BlobNotFound(bucket, key) from e
                raise
            return response["Body"].read().decode("utf-8")

        return await asyncio.to_thread(_get)

    async def put_text(
        self,
        bucket: str,
        key: str,
        text: str,
        content_type: str = "text/plain; charset=utf-8",
    ) -> None:
        await asyncio.to_thread(
            self.client.put_object,
            Bucket=bucket,
            Key=key,
            Body=text.encode("utf-8"),
            ContentType=content_type,
        )
        logger.debug("blob.put", bucket=bucket, key=key, size=len(text))

    async def list_keys(self, bucket: str, prefix: str = "") -> list[str]:
        def _list() -> list[str]:
            keys = []
            paginator = self.client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
                for obj in page.get("Contents", []):
                    keys.append(obj["Key"])
            return keys

        return await asyncio.to_thread(_list)

    async def delete_key(self, bucket: str, key: str) -> None:
        await asyncio.to_thread(self.client.delete_object, Bucket=bucket, Key=key)

    async def close(self) -> None:
        """Nothing to release; boto3 clients hold no open sockets between calls."""
