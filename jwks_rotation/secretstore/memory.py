"""In-process secret store following Secrets Manager stage semantics."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from ..errors import SecretStoreError
from ..keys.types import KeyRecord, Stage, StoredKey
from .store import SecretStore, StageLike, decode_record, stage_name

logger = logging.getLogger(__name__)


@dataclass
class _Secret:
    versions: Dict[str, str] = field(default_factory=dict)  # version id -> JSON payload
    stages: Dict[str, str] = field(default_factory=dict)  # stage -> version id


class MemorySecretStore(SecretStore):
    """Dictionary-backed store for tests and local runs.

    Every successful mutation is appended to ``writes`` or ``moves`` so
    callers can assert on exactly what a step changed.
    """

    def __init__(self) -> None:
        self._secrets: Dict[str, _Secret] = {}
        self.writes: List[Tuple[str, str, List[str]]] = []
        self.moves: List[Dict[str, Optional[str]]] = []

    def _secret(self, secret_id: str) -> _Secret:
        return self._secrets.setdefault(secret_id, _Secret())

    async def get(self, secret_id: str, stage: StageLike, version_id: Optional[str] = None) -> Optional[StoredKey]:
        secret = self._secrets.get(secret_id)
        if secret is None:
            return None
        name = stage_name(stage)
        holder = secret.stages.get(name)
        if holder is None or (version_id is not None and holder != version_id):
            return None
        return StoredKey(
            version_id=holder,
            record=decode_record(secret_id, holder, secret.versions[holder]),
            stages=self.stages_of(secret_id, holder),
        )

    async def put(self, secret_id: str, token: str, stages: Iterable[StageLike], record: KeyRecord) -> str:
        secret = self._secret(secret_id)
        names = [stage_name(s) for s in stages]
        payload = record.to_json()
        existing = secret.versions.get(token)
        if existing is not None:
            if existing != payload:
                raise SecretStoreError(
                    f"Version {token} already exists with different content",
                    {"secret_id": secret_id, "version_id": token},
                )
            return token
        secret.versions[token] = payload
        for name in names:
            secret.stages[name] = token
        self.writes.append((secret_id, token, names))
        logger.debug("Stored version %s of %s with stages %s", token, secret_id, names)
        return token

    async def move_stage(
        self,
        secret_id: str,
        stage: StageLike,
        move_to: str,
        remove_from: Optional[str] = None,
    ) -> None:
        secret = self._secret(secret_id)
        name = stage_name(stage)
        if move_to not in secret.versions:
            raise SecretStoreError(f"Version {move_to} does not exist", {"secret_id": secret_id})
        holder = secret.stages.get(name)
        if holder is not None and holder != remove_from:
            raise SecretStoreError(
                f"Stage {name} is attached to {holder}, not {remove_from}",
                {"secret_id": secret_id},
            )
        secret.stages[name] = move_to
        if name == Stage.AWSCURRENT.value:
            if holder is not None and holder != move_to:
                secret.stages[Stage.AWSPREVIOUS.value] = holder
            if secret.stages.get(Stage.AWSPENDING.value) == move_to:
                del secret.stages[Stage.AWSPENDING.value]
        self.moves.append({"stage": name, "from": remove_from, "to": move_to})

    def put_raw(self, secret_id: str, version_id: str, stages: Iterable[StageLike], payload: str) -> None:
        """Store ``payload`` verbatim, as another writer of the secret might."""
        secret = self._secret(secret_id)
        secret.versions[version_id] = payload
        for name in (stage_name(s) for s in stages):
            secret.stages[name] = version_id

    def stages_of(self, secret_id: str, version_id: str) -> List[str]:
        secret = self._secrets.get(secret_id)
        if secret is None:
            return []
        return sorted(s for s, v in secret.stages.items() if v == version_id)

    def version_ids(self, secret_id: str) -> List[str]:
        secret = self._secrets.get(secret_id)
        return list(secret.versions) if secret else []


__all__ = ["MemorySecretStore"]
