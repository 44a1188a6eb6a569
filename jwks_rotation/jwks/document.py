"""JSON Web Key Set document."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..keys.types import KeyRecord

JWKS_CONTENT_TYPE = "application/json"


def to_jwk_entry(record: KeyRecord) -> Dict[str, Any]:
    """Render a key record as a publishable JWK."""
    return {**record.public_jwk, "kid": record.kid, "alg": record.alg, "use": "sig"}


@dataclass
class JwksDocument:
    keys: List[Dict[str, Any]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.keys)

    @property
    def kids(self) -> List[str]:
        return [k.get("kid") for k in self.keys if isinstance(k, dict)]

    def find(self, kid: str) -> Optional[Dict[str, Any]]:
        for key in self.keys:
            if isinstance(key, dict) and key.get("kid") == kid:
                return key
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {"keys": list(self.keys)}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JwksDocument":
        return cls(keys=list(data.get("keys") or []))

    @classmethod
    def from_json(cls, raw: str) -> "JwksDocument":
        return cls.from_dict(json.loads(raw))


__all__ = ["JwksDocument", "to_jwk_entry", "JWKS_CONTENT_TYPE"]
