"""
Key material package: stage labels, key records and the key generator.
"""

from .types import (
    Stage,
    KeySpec,
    KeyRecord,
    StoredKey,
    utcnow,
    format_timestamp,
    parse_timestamp,
)
from .generator import KeyGenerator, generate_key_record, new_kid

__all__ = [
    "Stage",
    "KeySpec",
    "KeyRecord",
    "StoredKey",
    "utcnow",
    "format_timestamp",
    "parse_timestamp",
    "KeyGenerator",
    "generate_key_record",
    "new_kid",
]
