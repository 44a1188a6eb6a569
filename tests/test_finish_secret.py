import pytest

from jwks_rotation.errors import SecretStoreError, VersionNotFoundError
from jwks_rotation.keys.types import Stage
from jwks_rotation.rotation.types import OutcomeStatus

from conftest import SECRET_ID

pytestmark = pytest.mark.asyncio

TOKEN = "test-token"


@pytest.fixture
async def rotating(secret_store, make_record):
    current = make_record(kid="current", activated_ago=86400)
    pending = make_record(kid="pending", created_ago=86400, activated_ago=0)
    await secret_store.put(SECRET_ID, "cid", [Stage.AWSCURRENT], current)
    await secret_store.put(SECRET_ID, TOKEN, [Stage.AWSPENDING], pending)
    return current, pending


async def test_moves_current_onto_pending(machine, secret_store, rotating):
    outcome = await machine.finish_secret(SECRET_ID, TOKEN)

    assert outcome.status is OutcomeStatus.COMPLETED
    assert secret_store.moves == [{"stage": "AWSCURRENT", "from": "cid", "to": TOKEN}]
    assert (await secret_store.get(SECRET_ID, Stage.AWSCURRENT)).version_id == TOKEN
    assert (await secret_store.get(SECRET_ID, Stage.AWSPREVIOUS)).version_id == "cid"
    assert await secret_store.get(SECRET_ID, Stage.AWSPENDING) is None


async def test_publishes_promotion(machine, rotating):
    await machine.finish_secret(SECRET_ID, TOKEN)
    assert (await machine.publisher.load()).kids == ["pending", "current"]


async def test_keeps_staged_next_key_published(machine, secret_store, rotating, make_record):
    await secret_store.put(SECRET_ID, "nid", [Stage.NEXT], make_record(kid="next"))
    await machine.finish_secret(SECRET_ID, TOKEN)
    assert (await machine.publisher.load()).kids == ["next", "pending", "current"]


async def test_missing_current(machine):
    with pytest.raises(VersionNotFoundError, match="Current version not found"):
        await machine.finish_secret(SECRET_ID, TOKEN)


async def test_missing_pending(machine, secret_store, make_record):
    await secret_store.put(SECRET_ID, "cid", [Stage.AWSCURRENT], make_record(activated_ago=10))
    with pytest.raises(VersionNotFoundError, match="Pending version not found"):
        await machine.finish_secret(SECRET_ID, TOKEN)
    assert secret_store.moves == []


async def test_replay_after_promotion_is_noop(machine, secret_store, object_store, rotating):
    await machine.finish_secret(SECRET_ID, TOKEN)
    puts = len(object_store.puts)

    outcome = await machine.finish_secret(SECRET_ID, TOKEN)

    assert outcome.status is OutcomeStatus.COMPLETED
    assert len(secret_store.moves) == 1
    assert len(object_store.puts) == puts


async def test_store_refuses_move_from_wrong_holder(secret_store, rotating):
    with pytest.raises(SecretStoreError, match="attached to cid"):
        await secret_store.move_stage(SECRET_ID, Stage.AWSCURRENT, move_to=TOKEN, remove_from="other")
