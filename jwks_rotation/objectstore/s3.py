"""S3 backed object store."""

from __future__ import annotations

import asyncio
from typing import Any, Optional

import boto3
from botocore.exceptions import ClientError

from .store import ObjectStore

NOT_FOUND_CODES = {"NoSuchKey", "404"}


class S3ObjectStore(ObjectStore):
    def __init__(self, client: Optional[Any] = None, **client_kwargs: Any):
        self._client = client if client is not None else boto3.client("s3", **client_kwargs)

    @property
    def client(self) -> Any:
        return self._client

    async def get_object(self, bucket: str, key: str) -> Optional[bytes]:
        try:
            response = await asyncio.to_thread(self._client.get_object, Bucket=bucket, Key=key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in NOT_FOUND_CODES:
                return None
            raise
        body = response["Body"]
        try:
            return await asyncio.to_thread(body.read)
        finally:
            body.close()

    async def put_object(
        self,
        bucket: str,
        key: str,
        body: bytes,
        content_type: str,
        cache_control: Optional[str] = None,
    ) -> None:
        params = {
            "Bucket": bucket,
            "Key": key,
            "Body": body,
            "ContentType": content_type,
        }
        if cache_control:
            params["CacheControl"] = cache_control
        await asyncio.to_thread(self._client.put_object, **params)


__all__ = ["S3ObjectStore"]
