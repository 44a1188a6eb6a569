"""Signing key pair generation."""

from __future__ import annotations

import logging
import secrets
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from jwt.algorithms import ECAlgorithm, RSAAlgorithm

from ..errors import UnsupportedAlgorithmError
from .types import KeyRecord, KeySpec, utcnow

logger = logging.getLogger(__name__)

DEFAULT_MODULUS_LENGTH = 2048
RSA_PUBLIC_EXPONENT = 65537
KID_BYTES = 16  # 21-22 url-safe characters

# Curve implied by each ECDSA algorithm when the KeySpec does not name one.
DEFAULT_CURVES: Dict[str, str] = {
    "ES256": "P-256",
    "ES384": "P-384",
    "ES512": "P-521",
    "ES256K": "secp256k1",
}

CURVES: Dict[str, Callable[[], ec.EllipticCurve]] = {
    "P-256": ec.SECP256R1,
    "P-384": ec.SECP384R1,
    "P-521": ec.SECP521R1,
    "secp256k1": ec.SECP256K1,
}


def new_kid() -> str:
    return secrets.token_urlsafe(KID_BYTES)[:21]


def _is_rsa_family(algorithm: str) -> bool:
    return algorithm.startswith("RS") or algorithm.startswith("PS")


def _is_ec_family(algorithm: str) -> bool:
    return algorithm.startswith("ES")


def _public_jwk(jwk: Dict[str, Any]) -> Dict[str, Any]:
    # PyJWT marks exported public keys with key_ops; the published set carries use instead
    jwk.pop("key_ops", None)
    return jwk


class KeyGenerator:
    """Produce fresh, never-activated key records for one key spec."""

    def __init__(self, spec: KeySpec, clock: Optional[Callable[[], datetime]] = None):
        self.spec = spec
        self.clock = clock or utcnow

    def generate(self) -> KeyRecord:
        algorithm = self.spec.algorithm
        if _is_rsa_family(algorithm):
            private_key = rsa.generate_private_key(
                public_exponent=RSA_PUBLIC_EXPONENT,
                key_size=self.spec.modulus_length or DEFAULT_MODULUS_LENGTH,
            )
            jwk = RSAAlgorithm.to_jwk(private_key.public_key(), as_dict=True)
        elif _is_ec_family(algorithm):
            curve = self._curve_for(algorithm)
            private_key = ec.generate_private_key(curve())
            jwk = ECAlgorithm.to_jwk(private_key.public_key(), as_dict=True)
        else:
            raise UnsupportedAlgorithmError(algorithm)

        pem = private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        ).decode("ascii")

        record = KeyRecord(
            private_key=pem,
            public_jwk=_public_jwk(dict(jwk)),
            kid=new_kid(),
            alg=algorithm,
            created_at=self.clock(),
        )
        logger.debug("Generated %s key %s", algorithm, record.kid)
        return record

    def _curve_for(self, algorithm: str) -> Callable[[], ec.EllipticCurve]:
        name = self.spec.crv or DEFAULT_CURVES.get(algorithm)
        if name is None or name not in CURVES:
            raise UnsupportedAlgorithmError(f"{algorithm} (curve {name})")
        return CURVES[name]


def generate_key_record(spec: KeySpec, clock: Optional[Callable[[], datetime]] = None) -> KeyRecord:
    """Convenience wrapper around ``KeyGenerator(spec).generate()``."""
    return KeyGenerator(spec, clock).generate()


__all__ = ["KeyGenerator", "generate_key_record", "new_kid", "DEFAULT_CURVES"]
