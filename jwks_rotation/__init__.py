"""
jwks-rotation

Rotates asymmetric JWT signing keys held in a versioned secret store and
publishes the verification keys as a JSON Web Key Set, without ever
unpublishing a key that may still have signed a valid token.
"""

__version__ = "0.1.0"

from .config import RotationConfig, load_config
from .errors import (
    JwksRotationError,
    ConfigurationError,
    UnsupportedAlgorithmError,
    SecretStoreError,
    ObjectStoreError,
    RotationAbortedError,
    NextKeyTooNewError,
    NextKeyCreatedError,
    VersionNotFoundError,
    JwksVerificationError,
    InvalidEventError,
)
from .keys import KeyGenerator, KeyRecord, KeySpec, Stage, StoredKey
from .jwks import JwksBuilder, JwksDocument, JwksOverrides, JwksPublisher
from .rotation import (
    OutcomeStatus,
    RotationStateMachine,
    StepOutcome,
    build_state_machine,
    handle_event,
    lambda_handler,
)

__all__ = [
    "RotationConfig",
    "load_config",
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
    "KeyGenerator",
    "KeyRecord",
    "KeySpec",
    "Stage",
    "StoredKey",
    "JwksBuilder",
    "JwksDocument",
    "JwksOverrides",
    "JwksPublisher",
    "OutcomeStatus",
    "RotationStateMachine",
    "StepOutcome",
    "build_state_machine",
    "handle_event",
    "lambda_handler",
]
