"""
JWKS package: document model, derivation from secret stages, publication
and verification through the published key set.
"""

from .document import JwksDocument, to_jwk_entry, JWKS_CONTENT_TYPE
from .builder import JwksBuilder, JwksOverrides
from .publisher import JwksPublisher
from .verification import (
    sign_token,
    sign_probe_token,
    verify_with_jwks,
    verify_probe_token,
    PROBE_TTL_SECONDS,
)

__all__ = [
    "JwksDocument",
    "to_jwk_entry",
    "JWKS_CONTENT_TYPE",
    "JwksBuilder",
    "JwksOverrides",
    "JwksPublisher",
    "sign_token",
    "sign_probe_token",
    "verify_with_jwks",
    "verify_probe_token",
    "PROBE_TTL_SECONDS",
]
