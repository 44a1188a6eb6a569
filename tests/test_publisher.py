import json

import pytest

from jwks_rotation.errors import ObjectStoreError
from jwks_rotation.jwks.document import JwksDocument
from jwks_rotation.jwks.publisher import JwksPublisher

from conftest import BUCKET, JWKS_PATH

pytestmark = pytest.mark.asyncio

KEYS = [
    {"kty": "RSA", "n": "sXch", "e": "AQAB", "kid": "a", "alg": "RS256", "use": "sig"},
    {"kty": "EC", "crv": "P-256", "x": "f83O", "y": "x_FE", "kid": "b", "alg": "ES256", "use": "sig"},
]


@pytest.fixture
def publisher(object_store, metrics):
    return JwksPublisher(object_store, BUCKET, JWKS_PATH, metrics=metrics)


async def test_publish_writes_pretty_json_with_headers(publisher, object_store):
    document = JwksDocument(keys=list(KEYS))
    returned = await publisher.publish(document)

    assert returned is document
    stored = object_store.metadata(BUCKET, JWKS_PATH)
    assert stored.content_type == "application/json"
    assert stored.cache_control == "public, max-age=3600"
    assert stored.body.decode("utf-8") == json.dumps({"keys": KEYS}, indent=2)
    assert stored.body.decode("utf-8").startswith('{\n  "keys": [\n    {\n      "kty": "RSA"')


async def test_publish_overwrites(publisher, object_store):
    await publisher.publish(JwksDocument(keys=list(KEYS)))
    await publisher.publish(JwksDocument(keys=KEYS[:1]))
    assert len(object_store.puts) == 2
    assert (await publisher.load()).kids == ["a"]


async def test_publish_records_key_count(publisher, metrics):
    await publisher.publish(JwksDocument(keys=list(KEYS)))
    assert metrics.registry.get_sample_value("jwks_rotation_published_keys") == 2


async def test_load_missing_document_is_empty(publisher):
    document = await publisher.load()
    assert document.keys == []


async def test_load_empty_body_fails(publisher, object_store):
    await object_store.put_object(BUCKET, JWKS_PATH, b"", content_type="application/json")
    with pytest.raises(ObjectStoreError, match="Empty response"):
        await publisher.load()


async def test_load_round_trip(publisher):
    await publisher.publish(JwksDocument(keys=list(KEYS)))
    loaded = await publisher.load()
    assert loaded.keys == KEYS
    assert loaded.find("b")["crv"] == "P-256"
    assert loaded.find("missing") is None
