"""Redis-backed versioned secret store.

Layout:
- Each version is a JSON blob at ``{prefix}:{secret_id}:version:{version_id}``.
- Stage labels live in one hash per secret, ``{prefix}:{secret_id}:stages``,
  mapping stage name to version id, so a label can only be on one version.

Writes and stage moves run under WATCH/MULTI so a concurrent writer forces a
retry instead of interleaving.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

import redis.asyncio as redis
from redis.exceptions import WatchError

from ..errors import SecretStoreError
from ..keys.types import KeyRecord, Stage, StoredKey
from .store import SecretStore, StageLike, decode_record, stage_name

logger = logging.getLogger(__name__)


class RedisSecretStore(SecretStore):
    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        prefix: str = "jwks:secret",
        client: Optional["redis.Redis"] = None,
    ):
        self.url = url
        self.prefix = prefix.rstrip(":")
        self._client = client

    async def _get_client(self) -> "redis.Redis":
        if self._client is None:
            self._client = redis.from_url(self.url, decode_responses=True)
        return self._client

    # Key helpers
    def _version_key(self, secret_id: str, version_id: str) -> str:
        return f"{self.prefix}:{secret_id}:version:{version_id}"

    def _stages_key(self, secret_id: str) -> str:
        return f"{self.prefix}:{secret_id}:stages"

    async def get(self, secret_id: str, stage: StageLike, version_id: Optional[str] = None) -> Optional[StoredKey]:
        client = await self._get_client()
        stages: Dict[str, str] = await client.hgetall(self._stages_key(secret_id))
        holder = stages.get(stage_name(stage))
        if holder is None or (version_id is not None and holder != version_id):
            return None
        raw = await client.get(self._version_key(secret_id, holder))
        if not raw:
            return None
        return StoredKey(
            version_id=holder,
            record=decode_record(secret_id, holder, raw),
            stages=sorted(s for s, v in stages.items() if v == holder),
        )

    async def put(self, secret_id: str, token: str, stages: Iterable[StageLike], record: KeyRecord) -> str:
        client = await self._get_client()
        names = [stage_name(s) for s in stages]
        payload = record.to_json()
        version_key = self._version_key(secret_id, token)
        stages_key = self._stages_key(secret_id)
        async with client.pipeline(transaction=True) as pipe:
            while True:
                try:
                    await pipe.watch(version_key)
                    existing = await pipe.get(version_key)
                    if existing is not None:
                        await pipe.unwatch()
                        if existing != payload:
                            raise SecretStoreError(
                                f"Version {token} already exists with different content",
                                {"secret_id": secret_id, "version_id": token},
                            )
                        return token
                    pipe.multi()
                    pipe.set(version_key, payload)
                    for name in names:
                        pipe.hset(stages_key, name, token)
                    await pipe.execute()
                    break
                except WatchError:
                    logger.debug("Concurrent write on %s, retrying", version_key)
                    continue
        logger.debug("Stored version %s of %s with stages %s", token, secret_id, names)
        return token

    async def move_stage(
        self,
        secret_id: str,
        stage: StageLike,
        move_to: str,
        remove_from: Optional[str] = None,
    ) -> None:
        client = await self._get_client()
        name = stage_name(stage)
        stages_key = self._stages_key(secret_id)
        async with client.pipeline(transaction=True) as pipe:
            while True:
                try:
                    await pipe.watch(stages_key)
                    if not await pipe.exists(self._version_key(secret_id, move_to)):
                        raise SecretStoreError(f"Version {move_to} does not exist", {"secret_id": secret_id})
                    current: Dict[str, str] = await pipe.hgetall(stages_key)
                    holder = current.get(name)
                    if holder is not None and holder != remove_from:
                        raise SecretStoreError(
                            f"Stage {name} is attached to {holder}, not {remove_from}",
                            {"secret_id": secret_id},
                        )
                    pipe.multi()
                    pipe.hset(stages_key, name, move_to)
                    if name == Stage.AWSCURRENT.value:
                        if holder is not None and holder != move_to:
                            pipe.hset(stages_key, Stage.AWSPREVIOUS.value, holder)
                        if current.get(Stage.AWSPENDING.value) == move_to:
                            pipe.hdel(stages_key, Stage.AWSPENDING.value)
                    await pipe.execute()
                    return
                except WatchError:
                    logger.debug("Concurrent stage change on %s, retrying", stages_key)
                    continue

    async def version_ids(self, secret_id: str) -> List[str]:
        client = await self._get_client()
        base = self._version_key(secret_id, "")
        pattern = f"{base}*"
        out: List[str] = []
        cursor = 0
        while True:
            cursor, keys = await client.scan(cursor=cursor, match=pattern, count=100)
            out.extend(k[len(base):] for k in keys)
            if cursor == 0:
                break
        return out

    async def clear(self, secret_id: str) -> int:
        """Delete every version and stage label of one secret."""
        client = await self._get_client()
        keys = [self._version_key(secret_id, v) for v in await self.version_ids(secret_id)]
        keys.append(self._stages_key(secret_id))
        return await client.delete(*keys)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


__all__ = ["RedisSecretStore"]
