"""Probe-token signing and verification against a published JWKS."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

import jwt

from ..errors import JwksVerificationError
from ..keys.types import KeyRecord, utcnow
from .document import JwksDocument

PROBE_TTL_SECONDS = 300
PROBE_SUBJECT = "test-subject"


def sign_token(record: KeyRecord, claims: Dict[str, Any]) -> str:
    """Sign ``claims`` with the record's private key, tagging the header with its kid."""
    return jwt.encode(claims, record.private_key, algorithm=record.alg, headers={"kid": record.kid})


def sign_probe_token(record: KeyRecord, now: Optional[datetime] = None) -> str:
    issued = int((now or utcnow()).timestamp())
    claims = {
        "sub": PROBE_SUBJECT,
        "iat": issued,
        "exp": issued + PROBE_TTL_SECONDS,
        "test": True,
    }
    return sign_token(record, claims)


def verify_with_jwks(token: str, document: JwksDocument, **decode_options: Any) -> Dict[str, Any]:
    """Verify ``token`` using the key in ``document`` that matches its kid.

    Args:
        token: Compact JWS.
        document: The key set a verifier would fetch.
        decode_options: Passed through to ``jwt.decode`` (audience, leeway, ...).
    Returns:
        The decoded claims.
    Raises:
        JwksVerificationError: wrapping the underlying cause.
    """
    try:
        header = jwt.get_unverified_header(token)
    except jwt.PyJWTError as e:
        raise JwksVerificationError(f"JWT verification failed: {e}") from e

    kid = header.get("kid")
    alg = header.get("alg")
    candidates = [
        k for k in document.keys
        if isinstance(k, dict)
        and k.get("kid") == kid and k.get("alg", alg) == alg and k.get("use", "sig") == "sig"
    ]
    if not candidates:
        raise JwksVerificationError("JWT verification failed: no applicable key found in the JSON Web Key Set")

    try:
        jwk = jwt.PyJWK(candidates[0], algorithm=alg)
        return jwt.decode(token, jwk.key, algorithms=[alg], **decode_options)
    except (jwt.PyJWTError, ValueError, TypeError, KeyError) as e:
        raise JwksVerificationError(f"JWT verification failed: {e}") from e


def verify_probe_token(token: str, document: JwksDocument) -> Dict[str, Any]:
    claims = verify_with_jwks(token, document)
    if claims.get("test") is not True:
        raise JwksVerificationError("JWT verification failed: Test payload verification failed")
    return claims


__all__ = [
    "sign_token",
    "sign_probe_token",
    "verify_with_jwks",
    "verify_probe_token",
    "PROBE_TTL_SECONDS",
]
