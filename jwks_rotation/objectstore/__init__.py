"""
Object store package: where the JWKS document is published.
"""

from .store import ObjectStore
from .memory import MemoryObjectStore, StoredObject
from .s3 import S3ObjectStore

__all__ = [
    "ObjectStore",
    "MemoryObjectStore",
    "StoredObject",
    "S3ObjectStore",
]
