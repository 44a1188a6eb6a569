"""Publishes the JWKS document to its well-known object path."""

from __future__ import annotations

import logging
from typing import Optional

from ..config import DEFAULT_CACHE_CONTROL
from ..errors import ObjectStoreError
from ..monitoring.metrics_exporter import MetricsRegistry
from ..objectstore.store import ObjectStore
from .document import JWKS_CONTENT_TYPE, JwksDocument

logger = logging.getLogger(__name__)


class JwksPublisher:
    """Reads and overwrites the published JWKS object (last writer wins)."""

    def __init__(
        self,
        object_store: ObjectStore,
        bucket: str,
        path: str,
        cache_control: str = DEFAULT_CACHE_CONTROL,
        metrics: Optional[MetricsRegistry] = None,
    ):
        self.object_store = object_store
        self.bucket = bucket
        self.path = path
        self.cache_control = cache_control
        self.metrics = metrics

    async def publish(self, document: JwksDocument) -> JwksDocument:
        await self.object_store.put_object(
            self.bucket,
            self.path,
            document.to_json().encode("utf-8"),
            content_type=JWKS_CONTENT_TYPE,
            cache_control=self.cache_control,
        )
        logger.info(f"Published JWKS to {self.bucket}/{self.path} with {len(document)} key(s)")
        if self.metrics:
            self.metrics.observe_publish(len(document))
        return document

    async def load(self) -> JwksDocument:
        body = await self.object_store.get_object(self.bucket, self.path)
        if body is None:
            return JwksDocument()
        if not body:
            raise ObjectStoreError("Empty response from object store", {"bucket": self.bucket, "key": self.path})
        return JwksDocument.from_json(body.decode("utf-8"))


__all__ = ["JwksPublisher"]
