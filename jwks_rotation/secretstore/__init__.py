"""
Secret store package.

Provides the versioned secret store interface used by the rotation steps,
with AWS Secrets Manager, Redis and in-memory implementations.
"""

from .store import SecretStore, StageLike, stage_name
from .memory import MemorySecretStore
from .aws import SecretsManagerStore
from .redis import RedisSecretStore

__all__ = [
    "SecretStore",
    "StageLike",
    "stage_name",
    "MemorySecretStore",
    "SecretsManagerStore",
    "RedisSecretStore",
]
