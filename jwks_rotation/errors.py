"""
Error types for jwks_rotation.

Not-found conditions from the secret and object stores are translated to
``None`` by the backends. Everything else is raised: either one of the
errors below, or the backend's own exception unchanged.
"""

from typing import Optional


class JwksRotationError(Exception):
    """Base error for all rotation failures."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(JwksRotationError):
    """Missing or malformed configuration."""


class UnsupportedAlgorithmError(JwksRotationError):
    """The key spec names an algorithm family we cannot generate."""

    def __init__(self, algorithm: str):
        super().__init__(f"Unsupported algorithm: {algorithm}", {"algorithm": algorithm})
        self.algorithm = algorithm


class SecretStoreError(JwksRotationError):
    """Secret store rejected a write or a stage move."""


class ObjectStoreError(JwksRotationError):
    """Object store returned something unusable."""


class RotationAbortedError(JwksRotationError):
    """Deliberate abort; the scheduler is expected to retry later."""


class NextKeyTooNewError(RotationAbortedError):
    """The NEXT key has not yet aged past the activation grace period."""

    def __init__(self, age_seconds: float, min_age_seconds: int):
        super().__init__(
            f"Next key is too new ({age_seconds}s < {min_age_seconds}s). Aborting rotation.",
            {"age_seconds": age_seconds, "min_age_seconds": min_age_seconds},
        )


class NextKeyCreatedError(RotationAbortedError):
    """A NEXT key was created instead of rotating."""


class VersionNotFoundError(JwksRotationError):
    """A secret version required by the current step does not exist."""


class JwksVerificationError(JwksRotationError):
    """The pending key could not be verified through the published JWKS."""


class InvalidEventError(JwksRotationError):
    """The trigger delivered an event we do not understand."""


__all__ = [
    "JwksRotationError",
    "ConfigurationError",
    "UnsupportedAlgorithmError",
    "SecretStoreError",
    "ObjectStoreError",
    "RotationAbortedError",
    "NextKeyTooNewError",
    "NextKeyCreatedError",
    "VersionNotFoundError",
    "JwksVerificationError",
    "InvalidEventError",
]
