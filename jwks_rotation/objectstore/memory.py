"""In-process object store for tests and local runs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .store import ObjectStore


@dataclass
class StoredObject:
    body: bytes
    content_type: str
    cache_control: Optional[str] = None


class MemoryObjectStore(ObjectStore):
    def __init__(self) -> None:
        self.objects: Dict[Tuple[str, str], StoredObject] = {}
        self.puts: List[Tuple[str, str]] = []

    async def get_object(self, bucket: str, key: str) -> Optional[bytes]:
        obj = self.objects.get((bucket, key))
        return obj.body if obj else None

    async def put_object(
        self,
        bucket: str,
        key: str,
        body: bytes,
        content_type: str,
        cache_control: Optional[str] = None,
    ) -> None:
        self.objects[(bucket, key)] = StoredObject(body, content_type, cache_control)
        self.puts.append((bucket, key))

    def metadata(self, bucket: str, key: str) -> Optional[StoredObject]:
        return self.objects.get((bucket, key))


__all__ = ["MemoryObjectStore", "StoredObject"]
