import io
import uuid
from unittest.mock import Mock

import boto3
import pytest
from botocore.exceptions import ClientError
from botocore.response import StreamingBody
from botocore.stub import Stubber

from jwks_rotation.keys.types import Stage
from jwks_rotation.objectstore.s3 import S3ObjectStore
from jwks_rotation.secretstore.aws import SecretsManagerStore

pytestmark = pytest.mark.asyncio

SECRET_ARN = "arn:aws:secretsmanager:us-east-1:123456789012:secret:jwks-AbCdEf"
CLIENT_KWARGS = dict(
    region_name="us-east-1",
    aws_access_key_id="testing",
    aws_secret_access_key="testing",
)


@pytest.fixture
def sm_client():
    return boto3.client("secretsmanager", **CLIENT_KWARGS)


@pytest.fixture
def s3_client():
    return boto3.client("s3", **CLIENT_KWARGS)


def version_id():
    return str(uuid.uuid4())


async def test_get_translates_not_found(sm_client):
    store = SecretsManagerStore(client=sm_client)
    with Stubber(sm_client) as stub:
        stub.add_client_error(
            "get_secret_value",
            service_error_code="ResourceNotFoundException",
            expected_params={"SecretId": SECRET_ARN, "VersionStage": "NEXT"},
        )
        assert await store.get(SECRET_ARN, Stage.NEXT) is None
        stub.assert_no_pending_responses()


async def test_get_propagates_other_errors(sm_client):
    store = SecretsManagerStore(client=sm_client)
    with Stubber(sm_client) as stub:
        stub.add_client_error("get_secret_value", service_error_code="AccessDeniedException")
        with pytest.raises(ClientError):
            await store.get(SECRET_ARN, Stage.AWSCURRENT)


async def test_get_by_version_and_stage(sm_client, make_record):
    store = SecretsManagerStore(client=sm_client)
    record = make_record(kid="pending-kid", activated_ago=0)
    token = version_id()
    with Stubber(sm_client) as stub:
        stub.add_response(
            "get_secret_value",
            {
                "ARN": SECRET_ARN,
                "Name": "jwks",
                "VersionId": token,
                "SecretString": record.to_json(),
                "VersionStages": ["AWSPENDING"],
            },
            expected_params={"SecretId": SECRET_ARN, "VersionStage": "AWSPENDING", "VersionId": token},
        )
        stored = await store.get(SECRET_ARN, Stage.AWSPENDING, version_id=token)

    assert stored.version_id == token
    assert stored.stages == ["AWSPENDING"]
    assert stored.record == record


async def test_put_sends_token_stages_and_payload(sm_client, make_record):
    store = SecretsManagerStore(client=sm_client)
    record = make_record(kid="next-kid")
    token = f"next-key-{version_id()}"
    with Stubber(sm_client) as stub:
        stub.add_response(
            "put_secret_value",
            {"ARN": SECRET_ARN, "Name": "jwks", "VersionId": token, "VersionStages": ["NEXT"]},
            expected_params={
                "SecretId": SECRET_ARN,
                "ClientRequestToken": token,
                "SecretString": record.to_json(),
                "VersionStages": ["NEXT"],
            },
        )
        assert await store.put(SECRET_ARN, token, [Stage.NEXT], record) == token
        stub.assert_no_pending_responses()


async def test_move_stage(sm_client):
    store = SecretsManagerStore(client=sm_client)
    old, new = version_id(), version_id()
    with Stubber(sm_client) as stub:
        stub.add_response(
            "update_secret_version_stage",
            {"ARN": SECRET_ARN, "Name": "jwks"},
            expected_params={
                "SecretId": SECRET_ARN,
                "VersionStage": "AWSCURRENT",
                "MoveToVersionId": new,
                "RemoveFromVersionId": old,
            },
        )
        await store.move_stage(SECRET_ARN, Stage.AWSCURRENT, move_to=new, remove_from=old)
        stub.assert_no_pending_responses()


async def test_s3_get_missing_object(s3_client):
    store = S3ObjectStore(client=s3_client)
    with Stubber(s3_client) as stub:
        stub.add_client_error(
            "get_object",
            service_error_code="NoSuchKey",
            http_status_code=404,
        )
        assert await store.get_object("jwks-bucket", ".well-known/jwks.json") is None


async def test_s3_get_propagates_other_errors(s3_client):
    store = S3ObjectStore(client=s3_client)
    with Stubber(s3_client) as stub:
        stub.add_client_error("get_object", service_error_code="AccessDenied", http_status_code=403)
        with pytest.raises(ClientError):
            await store.get_object("jwks-bucket", ".well-known/jwks.json")


async def test_s3_get_reads_body(s3_client):
    store = S3ObjectStore(client=s3_client)
    payload = b'{"keys": []}'
    with Stubber(s3_client) as stub:
        stub.add_response(
            "get_object",
            {"Body": StreamingBody(io.BytesIO(payload), len(payload))},
        )
        assert await store.get_object("jwks-bucket", ".well-known/jwks.json") == payload


async def test_s3_put_sets_content_type_and_cache_control():
    client = Mock()
    store = S3ObjectStore(client=client)
    await store.put_object(
        "jwks-bucket",
        ".well-known/jwks.json",
        b'{"keys": []}',
        content_type="application/json",
        cache_control="public, max-age=3600",
    )
    client.put_object.assert_called_once_with(
        Bucket="jwks-bucket",
        Key=".well-known/jwks.json",
        Body=b'{"keys": []}',
        ContentType="application/json",
        CacheControl="public, max-age=3600",
    )
