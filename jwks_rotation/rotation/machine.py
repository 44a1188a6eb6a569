"""
Rotation state machine.

Drives one secret through the rotation lifecycle. Keys move
NEXT -> AWSPENDING -> AWSCURRENT -> AWSPREVIOUS and the published JWKS is
re-derived after every store mutation:

1. createSecret: promote an aged NEXT key (or a fresh key when nothing has
   ever signed) to AWSPENDING, stamp its activation time, and stage a new
   NEXT key. If there is no NEXT key but the current key is already
   signing, only a NEXT key is created and the rotation is aborted, so the
   new key is published for a full grace period before it can sign.
2. setSecret: nothing to push anywhere.
3. testSecret: sign a probe token with the pending key and verify it
   through the published JWKS, exactly as a verifier would.
4. finishSecret: move AWSCURRENT onto the pending version.

Cleanup re-derives the JWKS from the store so an AWSPREVIOUS key drops out
once its retention window has elapsed. It never writes to the store.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from ..errors import NextKeyTooNewError, VersionNotFoundError, JwksVerificationError
from ..jwks.builder import JwksBuilder, JwksOverrides
from ..jwks.document import JwksDocument
from ..jwks.publisher import JwksPublisher
from ..jwks.verification import sign_probe_token, verify_probe_token
from ..keys.generator import KeyGenerator
from ..keys.types import Stage, StoredKey, utcnow
from ..secretstore.store import SecretStore
from .types import StepOutcome

logger = logging.getLogger(__name__)

NEXT_TOKEN_PREFIX = "next-key-"
NEXT_KEY_CREATED = "Created NEXT key. Aborting rotation as requested."


def next_key_token(source: str) -> str:
    return f"{NEXT_TOKEN_PREFIX}{source}"


class RotationStateMachine:
    def __init__(
        self,
        secret_store: SecretStore,
        builder: JwksBuilder,
        publisher: JwksPublisher,
        generator: KeyGenerator,
        min_activation_grace_period_seconds: int,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.secret_store = secret_store
        self.builder = builder
        self.publisher = publisher
        self.generator = generator
        self.min_activation_grace_period_seconds = min_activation_grace_period_seconds
        self.clock = clock or utcnow

    async def republish(self, secret_id: str, overrides: Optional[JwksOverrides] = None) -> JwksDocument:
        document = await self.builder.build(secret_id, overrides)
        return await self.publisher.publish(document)

    async def create_secret(self, secret_id: str, token: str) -> StepOutcome:
        logger.info(f"Starting createSecret step for {secret_id}")

        current = await self.secret_store.get(secret_id, Stage.AWSCURRENT)
        if current is not None and current.version_id == token:
            logger.info(f"Version {token} is already current, nothing to create")
            return StepOutcome.completed()

        replayed = await self.secret_store.get(secret_id, Stage.AWSPENDING, version_id=token)
        if replayed is not None:
            return await self._resume_create(secret_id, token, current, replayed)

        next_key = await self.secret_store.get(secret_id, Stage.NEXT)

        if next_key is None:
            if current is not None and current.record.is_activated:
                logger.info("No NEXT key exists but current key is signing. Creating NEXT key and aborting rotation.")
                staged = self.generator.generate()
                await self.secret_store.put(
                    secret_id, next_key_token(current.version_id), [Stage.NEXT], staged
                )
                logger.info(f"Stored next key {staged.kid} in NEXT version")
                await self.republish(secret_id, JwksOverrides(current=current.record, next=staged))
                return StepOutcome.aborted(NEXT_KEY_CREATED)

            logger.info("No current key or current key never activated. Creating key for immediate activation.")
            candidate = self.generator.generate()
        else:
            age = (self.clock() - next_key.record.created_at).total_seconds()
            if age < self.min_activation_grace_period_seconds:
                raise NextKeyTooNewError(age, self.min_activation_grace_period_seconds)
            logger.info(f"Reusing NEXT key {next_key.record.kid} for AWSPENDING")
            candidate = next_key.record

        pending = candidate.activate(self.clock())
        await self.secret_store.put(secret_id, token, [Stage.AWSPENDING], pending)
        logger.info(f"Stored key {pending.kid} in AWSPENDING version")

        replacement = self.generator.generate()
        await self.secret_store.put(secret_id, next_key_token(token), [Stage.NEXT], replacement)
        logger.info(f"Stored next key {replacement.kid} in NEXT version")

        # testSecret verifies against the published document, so it must already carry the pending key
        await self.republish(
            secret_id,
            JwksOverrides(
                previous=current.record if current else None,
                current=pending,
                next=replacement,
            ),
        )
        return StepOutcome.completed()

    async def _resume_create(
        self,
        secret_id: str,
        token: str,
        current: Optional[StoredKey],
        pending: StoredKey,
    ) -> StepOutcome:
        logger.info(f"AWSPENDING version {token} already exists, resuming createSecret")
        next_key = await self.secret_store.get(secret_id, Stage.NEXT)
        replacement = next_key.record if next_key else None
        if replacement is None or replacement.kid == pending.record.kid:
            replacement = self.generator.generate()
            await self.secret_store.put(secret_id, next_key_token(token), [Stage.NEXT], replacement)
            logger.info(f"Stored next key {replacement.kid} in NEXT version")

        await self.republish(
            secret_id,
            JwksOverrides(
                previous=current.record if current else None,
                current=pending.record,
                next=replacement,
            ),
        )
        return StepOutcome.completed()

    async def set_secret(self, secret_id: str, token: str) -> StepOutcome:
        logger.info("setSecret step - no action needed for JWKS rotation")
        return StepOutcome.completed()

    async def test_secret(self, secret_id: str, token: str) -> StepOutcome:
        logger.info(f"Starting testSecret step for {secret_id}")

        pending = await self.secret_store.get(secret_id, Stage.AWSPENDING, version_id=token)
        if pending is None:
            raise VersionNotFoundError("AWSPENDING version not found", {"version_id": token})

        logger.info(f"Signing test JWT with private key {pending.record.kid}")
        probe = sign_probe_token(pending.record)

        document = await self.publisher.load()
        if not document.keys:
            raise JwksVerificationError("No keys found in JWKS document")

        verify_probe_token(probe, document)
        logger.info("JWT verification successful")
        return StepOutcome.completed()

    async def finish_secret(self, secret_id: str, token: str) -> StepOutcome:
        logger.info(f"Starting finishSecret step for {secret_id}")

        current = await self.secret_store.get(secret_id, Stage.AWSCURRENT)
        if current is None:
            raise VersionNotFoundError("Current version not found")
        if current.version_id == token:
            logger.info(f"Version {token} is already current")
            return StepOutcome.completed()

        pending = await self.secret_store.get(secret_id, Stage.AWSPENDING, version_id=token)
        if pending is None:
            raise VersionNotFoundError("Pending version not found", {"version_id": token})

        logger.info("Moving AWSPENDING to AWSCURRENT")
        await self.secret_store.move_stage(
            secret_id,
            Stage.AWSCURRENT,
            move_to=pending.version_id,
            remove_from=current.version_id,
        )

        await self.republish(secret_id, JwksOverrides(current=pending.record, previous=current.record))
        logger.info("finishSecret completed successfully")
        return StepOutcome.completed()

    async def cleanup_expired_keys(self, secret_id: str) -> StepOutcome:
        logger.info(f"Starting cleanup of expired keys for {secret_id}")

        current = await self.secret_store.get(secret_id, Stage.AWSCURRENT)
        if current is None:
            logger.info("No current secret found, skipping cleanup")
            return StepOutcome.completed()

        await self.republish(secret_id)
        logger.info("Cleanup completed via JWKS regeneration")
        return StepOutcome.completed()

    async def close(self) -> None:
        await self.secret_store.close()


__all__ = ["RotationStateMachine", "NEXT_KEY_CREATED", "NEXT_TOKEN_PREFIX", "next_key_token"]
