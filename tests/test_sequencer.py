import json
from unittest.mock import Mock

import pytest

from nowink.core import redis as redis_module
from nowink.core.exceptions import SignerBusy
from nowink.services.minting.sequencer import PlatformSignerLock


class FakeRedis:
    """Just enough of redis.Redis for SET NX EX locking."""

    def __init__(self):
        self.store = {}
        self.ttls = {}

    def set(self, key, value, nx=False, ex=None):
        if nx and key in self.store:
            return None
        self.store[key] = value
        self.ttls[key] = ex
        return True

    def get(self, key):
        return self.store.get(key)

    def delete(self, key):
        return 1 if self.store.pop(key, None) is not None else 0


def _lock(client, **kwargs) -> PlatformSignerLock:
    sleeps = kwargs.pop("sleeps", [])
    return PlatformSignerLock(
        "Platform111",
        client=client,
        ttl_seconds=kwargs.pop("ttl_seconds", 120),
        wait_seconds=kwargs.pop("wait_seconds", 2),
        step_seconds=0.5,
        sleep=sleeps.append,
    )


def test_lock_is_held_for_the_block_and_released():
    client = FakeRedis()

    with _lock(client) as lock:
        held, info = lock.holder()
        assert held
        assert info["token"] == lock.token
        assert client.ttls["mint:signer:Platform111:lock"] == 120

    assert client.store == {}


def test_busy_signer_waits_then_gives_up():
    client = FakeRedis()
    client.set("mint:signer:Platform111:lock", json.dumps({"token": "other"}))
    sleeps = []

    with pytest.raises(SignerBusy) as exc_info:
        with _lock(client, sleeps=sleeps):
            pass

    assert sleeps == [0.5, 0.5, 0.5, 0.5]
    assert exc_info.value.address == "Platform111"
    assert json.loads(client.store["mint:signer:Platform111:lock"])["token"] == "other"


def test_release_leaves_a_lock_taken_over_by_another_holder():
    client = FakeRedis()
    lock = _lock(client)
    lock.acquire()
    client.store["mint:signer:Platform111:lock"] = json.dumps({"token": "other"})

    lock.release()

    assert "mint:signer:Platform111:lock" in client.store
    assert not lock.acquired


def test_lock_is_released_when_submission_fails():
    client = FakeRedis()

    with pytest.raises(RuntimeError):
        with _lock(client):
            raise RuntimeError("rpc down")

    assert client.store == {}


def test_close_redis_client_drops_the_singleton(monkeypatch):
    client = Mock()
    monkeypatch.setattr(redis_module, "_redis_client", client)

    redis_module.close_redis_client()

    client.close.assert_called_once_with()
    assert redis_module._redis_client is None
    redis_module.close_redis_client()
    client.close.assert_called_once_with()
