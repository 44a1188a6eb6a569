"""Object store interface used to publish the JWKS document."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


class ObjectStore(ABC):
    @abstractmethod
    async def get_object(self, bucket: str, key: str) -> Optional[bytes]:
        """Return the object body, or ``None`` when the object does not exist."""

    @abstractmethod
    async def put_object(
        self,
        bucket: str,
        key: str,
        body: bytes,
        content_type: str,
        cache_control: Optional[str] = None,
    ) -> None:
        """Unconditionally overwrite ``bucket/key``."""


__all__ = ["ObjectStore"]
