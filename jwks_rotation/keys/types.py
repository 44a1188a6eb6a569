"""
Key record types shared by the generator, the stores and the JWKS builder.

A ``KeyRecord`` is the JSON value stored at one version of the rotated
secret. Its wire form uses camelCase names so that records written by other
tooling against the same secret remain readable.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class Stage(str, Enum):
    """Stage labels a secret version can carry."""
    NEXT = "NEXT"
    AWSPENDING = "AWSPENDING"
    AWSCURRENT = "AWSCURRENT"
    AWSPREVIOUS = "AWSPREVIOUS"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _required_field(data: Dict[str, Any], *names: str) -> Any:
    # earlier tooling wrote privateKeyPem / publicKeyJwk
    for name in names:
        value = data.get(name)
        if value:
            return value
    raise ValueError(f"Key record is missing {names[0]}")


@dataclass
class KeySpec:
    """Algorithm family plus family-specific parameters."""
    algorithm: str
    modulus_length: Optional[int] = None  # RSA / RSA-PSS
    crv: Optional[str] = None  # EC

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KeySpec":
        return cls(
            algorithm=data["algorithm"],
            modulus_length=data.get("modulusLength"),
            crv=data.get("crv"),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"algorithm": self.algorithm}
        if self.modulus_length is not None:
            out["modulusLength"] = self.modulus_length
        if self.crv is not None:
            out["crv"] = self.crv
        return out


@dataclass
class KeyRecord:
    """One generated signing key pair and its lifecycle timestamps."""
    private_key: str
    public_jwk: Dict[str, Any]
    kid: str
    alg: str
    created_at: datetime
    activated_at: Optional[datetime] = None

    @property
    def is_activated(self) -> bool:
        return self.activated_at is not None

    def activate(self, when: datetime) -> "KeyRecord":
        """Return a copy of this record stamped as signing from ``when``."""
        return KeyRecord(
            private_key=self.private_key,
            public_jwk=dict(self.public_jwk),
            kid=self.kid,
            alg=self.alg,
            created_at=self.created_at,
            activated_at=when,
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "privateKey": self.private_key,
            "publicJwk": self.public_jwk,
            "kid": self.kid,
            "alg": self.alg,
            "createdAt": format_timestamp(self.created_at),
        }
        if self.activated_at is not None:
            out["activatedAt"] = format_timestamp(self.activated_at)
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KeyRecord":
        """Parse a stored record.

        Raises:
            ValueError: if the value is not an object or a required field is missing.
        """
        if not isinstance(data, dict):
            raise ValueError("Key record must be a JSON object")
        activated = data.get("activatedAt")
        return cls(
            private_key=_required_field(data, "privateKey", "privateKeyPem"),
            public_jwk=dict(data.get("publicJwk") or data.get("publicKeyJwk") or {}),
            kid=_required_field(data, "kid"),
            alg=_required_field(data, "alg"),
            created_at=parse_timestamp(_required_field(data, "createdAt")),
            activated_at=parse_timestamp(activated) if activated else None,
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, raw: str) -> "KeyRecord":
        return cls.from_dict(json.loads(raw))


@dataclass
class StoredKey:
    """A key record as read back from the secret store."""
    version_id: str
    record: KeyRecord
    stages: List[str] = field(default_factory=list)


__all__ = [
    "Stage",
    "KeySpec",
    "KeyRecord",
    "StoredKey",
    "utcnow",
    "format_timestamp",
    "parse_timestamp",
]
