"""
JWKS derivation from the secret's stages.

The published set is rebuilt from scratch every time from at most three
stages, appended in this order:

- ``NEXT``: always, so verifiers can cache the key before it ever signs.
- ``AWSCURRENT``: only once activated.
- ``AWSPREVIOUS``: only once activated, and only while a token it signed
  could still be valid. That window is
  ``max_token_validity_duration_seconds + min_key_cleanup_grace_period_seconds``
  counted from the current key's activation. When the current key's
  activation time is unknown the previous key stays published.

Each stage can be overridden with an in-hand record, used right after a
store write that a plain re-read might not see yet.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from ..keys.types import KeyRecord, Stage, utcnow
from ..secretstore.store import SecretStore
from .document import JwksDocument, to_jwk_entry

logger = logging.getLogger(__name__)


@dataclass
class JwksOverrides:
    next: Optional[KeyRecord] = None
    current: Optional[KeyRecord] = None
    previous: Optional[KeyRecord] = None


class JwksBuilder:
    def __init__(
        self,
        secret_store: SecretStore,
        max_token_validity_duration_seconds: int,
        min_key_cleanup_grace_period_seconds: int,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.secret_store = secret_store
        self.max_token_validity_duration_seconds = max_token_validity_duration_seconds
        self.min_key_cleanup_grace_period_seconds = min_key_cleanup_grace_period_seconds
        self.clock = clock or utcnow

    @property
    def previous_retention_seconds(self) -> int:
        return self.max_token_validity_duration_seconds + self.min_key_cleanup_grace_period_seconds

    async def _resolve(self, secret_id: str, override: Optional[KeyRecord], stage: Stage) -> Optional[KeyRecord]:
        if override is not None:
            return override
        stored = await self.secret_store.get(secret_id, stage)
        return stored.record if stored else None

    def previous_still_needed(self, current: Optional[KeyRecord]) -> bool:
        if current is None or current.activated_at is None:
            return True
        elapsed = (self.clock() - current.activated_at).total_seconds()
        return elapsed <= self.previous_retention_seconds

    async def build(self, secret_id: str, overrides: Optional[JwksOverrides] = None) -> JwksDocument:
        overrides = overrides or JwksOverrides()
        document = JwksDocument()

        next_key = await self._resolve(secret_id, overrides.next, Stage.NEXT)
        if next_key is not None:
            document.keys.append(to_jwk_entry(next_key))

        current = await self._resolve(secret_id, overrides.current, Stage.AWSCURRENT)
        if current is not None and current.is_activated:
            document.keys.append(to_jwk_entry(current))

        previous = await self._resolve(secret_id, overrides.previous, Stage.AWSPREVIOUS)
        if previous is not None and previous.is_activated:
            if self.previous_still_needed(current):
                document.keys.append(to_jwk_entry(previous))
            else:
                logger.info(f"Dropping previous key {previous.kid}: retention window elapsed")

        logger.debug(f"Built JWKS for {secret_id} with kids {document.kids}")
        return document


__all__ = ["JwksBuilder", "JwksOverrides"]
