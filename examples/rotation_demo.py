"""Demonstration of a full JWKS signing key rotation with in-memory backends.

Steps:
1. Bootstrap: the secret starts with a never-activated placeholder, so the
   first rotation activates a fresh key right away and stages a NEXT key.
2. A second rotation right away is refused because NEXT has not aged.
3. Advance the clock past the activation grace period and rotate again.
4. A token signed by the retired key keeps verifying until cleanup drops it.

The clock is simulated so the demo runs instantly.
"""

import asyncio
from datetime import datetime, timedelta, timezone

from jwks_rotation.config import RotationConfig
from jwks_rotation.errors import JwksVerificationError, NextKeyTooNewError
from jwks_rotation.jwks.verification import sign_probe_token, verify_probe_token
from jwks_rotation.keys.types import KeySpec, Stage
from jwks_rotation.logger import configure_logging
from jwks_rotation.objectstore.memory import MemoryObjectStore
from jwks_rotation.rotation.handler import build_state_machine
from jwks_rotation.secretstore.memory import MemorySecretStore

SECRET_ID = "demo-signing-keys"


class SimulatedClock:
    def __init__(self):
        self.now = datetime.now(timezone.utc)

    def __call__(self):
        return self.now


async def rotate(machine, token):
    for step in (machine.create_secret, machine.set_secret, machine.test_secret, machine.finish_secret):
        await step(SECRET_ID, token)


async def main():
    configure_logging("WARNING")
    clock = SimulatedClock()
    config = RotationConfig(
        bucket_name="demo-bucket",
        bucket_path=".well-known/jwks.json",
        min_activation_grace_period_seconds=int(timedelta(days=7).total_seconds()),
        max_token_validity_duration_seconds=3600,
        key_spec=KeySpec("ES256"),
    )
    secret_store = MemorySecretStore()
    machine = build_state_machine(config, secret_store=secret_store, object_store=MemoryObjectStore(), clock=clock)

    # the secret is provisioned with a placeholder key that never signs
    await secret_store.put(SECRET_ID, "initial", [Stage.AWSCURRENT], machine.generator.generate())

    await rotate(machine, "rotation-1")
    print("After bootstrap:", (await machine.publisher.load()).kids)

    signer = (await secret_store.get(SECRET_ID, Stage.AWSCURRENT)).record
    token = sign_probe_token(signer)
    print("Token signed by", signer.kid)

    try:
        await machine.create_secret(SECRET_ID, "rotation-2")
    except NextKeyTooNewError as e:
        print("Second rotation refused:", e)

    clock.now += timedelta(seconds=config.min_activation_grace_period_seconds)
    await rotate(machine, "rotation-2")
    print("After second rotation:", (await machine.publisher.load()).kids)
    verify_probe_token(token, await machine.publisher.load())
    print("Token from previous key still verifies")

    retention = config.max_token_validity_duration_seconds + config.min_key_cleanup_grace_period_seconds
    clock.now += timedelta(seconds=retention + 1)
    await machine.cleanup_expired_keys(SECRET_ID)
    print("After cleanup:", (await machine.publisher.load()).kids)
    try:
        verify_probe_token(token, await machine.publisher.load())
    except JwksVerificationError as e:
        print("Token from previous key rejected (expected):", e)

    await machine.close()


if __name__ == "__main__":
    asyncio.run(main())
