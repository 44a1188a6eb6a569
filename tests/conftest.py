from datetime import datetime, timedelta, timezone

import pytest
from prometheus_client import CollectorRegistry

from jwks_rotation.config import RotationConfig
from jwks_rotation.keys.generator import new_kid
from jwks_rotation.keys.types import KeyRecord, KeySpec
from jwks_rotation.monitoring.metrics_exporter import MetricsRegistry
from jwks_rotation.objectstore.memory import MemoryObjectStore
from jwks_rotation.rotation.handler import build_state_machine
from jwks_rotation.secretstore.memory import MemorySecretStore

SECRET_ID = "test-secret"
BUCKET = "test-bucket"
JWKS_PATH = ".well-known/jwks.json"
MIN_ACTIVATION = 604800
MAX_VALIDITY = 3600
CLEANUP_GRACE = 21600


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def config():
    return RotationConfig(
        bucket_name=BUCKET,
        bucket_path=JWKS_PATH,
        min_activation_grace_period_seconds=MIN_ACTIVATION,
        max_token_validity_duration_seconds=MAX_VALIDITY,
        min_key_cleanup_grace_period_seconds=CLEANUP_GRACE,
        key_spec=KeySpec("ES256"),
    )


@pytest.fixture
def secret_store():
    return MemorySecretStore()


@pytest.fixture
def object_store():
    return MemoryObjectStore()


@pytest.fixture
def metrics():
    return MetricsRegistry(CollectorRegistry())


@pytest.fixture
def machine(config, secret_store, object_store, clock, metrics):
    return build_state_machine(
        config,
        secret_store=secret_store,
        object_store=object_store,
        clock=clock,
        metrics=metrics,
    )


@pytest.fixture
def make_record(clock):
    """Build a key record without real key material."""

    def _make(kid=None, created_ago=0, activated_ago=None, alg="RS256"):
        now = clock()
        return KeyRecord(
            private_key="not-a-real-key",
            public_jwk={"kty": "RSA", "n": "sXch", "e": "AQAB"},
            kid=kid or new_kid(),
            alg=alg,
            created_at=now - timedelta(seconds=created_ago),
            activated_at=None if activated_ago is None else now - timedelta(seconds=activated_ago),
        )

    return _make
