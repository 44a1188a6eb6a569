"""
Versioned secret store interface.

One logical secret holds many immutable versions. Each version may carry
stage labels (``NEXT``, ``AWSPENDING``, ``AWSCURRENT``, ``AWSPREVIOUS``);
a label is attached to at most one version at a time.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Optional, Union

from ..errors import SecretStoreError
from ..keys.types import KeyRecord, Stage, StoredKey

StageLike = Union[Stage, str]


def stage_name(stage: StageLike) -> str:
    return stage.value if isinstance(stage, Stage) else Stage(stage).value


def decode_record(secret_id: str, version_id: str, raw: str) -> KeyRecord:
    """Parse a stored secret value, naming the version when it is unreadable."""
    try:
        return KeyRecord.from_json(raw)
    except (ValueError, TypeError, AttributeError) as e:
        raise SecretStoreError(
            f"Version {version_id} of {secret_id} is not a valid key record: {e}",
            {"secret_id": secret_id, "version_id": version_id},
        ) from e


class SecretStore(ABC):
    """Operations the rotation core needs from a versioned secret store."""

    @abstractmethod
    async def get(
        self,
        secret_id: str,
        stage: StageLike,
        version_id: Optional[str] = None,
    ) -> Optional[StoredKey]:
        """Return the record at ``stage`` (optionally pinned to ``version_id``).

        Returns ``None`` when the store reports not-found. Any other failure
        propagates.
        """

    @abstractmethod
    async def put(
        self,
        secret_id: str,
        token: str,
        stages: Iterable[StageLike],
        record: KeyRecord,
    ) -> str:
        """Write ``record`` as a new version labelled with ``stages``.

        ``token`` is the idempotency token and becomes the version id.
        Replaying a token with the same payload is a no-op returning the
        same version id.
        """

    @abstractmethod
    async def move_stage(
        self,
        secret_id: str,
        stage: StageLike,
        move_to: str,
        remove_from: Optional[str] = None,
    ) -> None:
        """Atomically move ``stage`` from ``remove_from`` to ``move_to``."""

    async def close(self) -> None:
        """Release client resources, if any."""
        return None


__all__ = ["SecretStore", "StageLike", "stage_name", "decode_record"]
