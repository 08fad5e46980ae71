import pytest

from badminton_shop.domain.exceptions import CheckoutInProgressError
from badminton_shop.services.lock_service import LockService, owner_key


class FakeRedis:
    def __init__(self):
        self.store = {}

    def set(self, name, value, nx=False, ex=None):
        if nx and name in self.store:
            return None
        self.store[name] = value
        return True

    def eval(self, script, numkeys, key, token):
        if self.store.get(key) == token:
            del self.store[key]
            return 1
        return 0


@pytest.fixture
def locks():
    service = LockService.__new__(LockService)
    service.redis = FakeRedis()
    return service


def test_owner_key_prefers_user():
    assert owner_key(7, "abc") == "user:7"
    assert owner_key(None, "abc") == "session:abc"


def test_lock_is_exclusive_until_released(locks):
    assert locks.acquire_checkout_lock("user:1", "t1", 30) is True
    assert locks.acquire_checkout_lock("user:1", "t2", 30) is False
    assert locks.release_checkout_lock("user:1", "t2") is False
    assert locks.release_checkout_lock("user:1", "t1") is True
    assert locks.acquire_checkout_lock("user:1", "t2", 30) is True


def test_checkout_lock_context(locks):
    with locks.checkout_lock("session:x"):
        with pytest.raises(CheckoutInProgressError):
            with locks.checkout_lock("session:x"):
                pass
    assert locks.redis.store == {}


def test_checkout_lock_released_on_error(locks):
    with pytest.raises(RuntimeError):
        with locks.checkout_lock("user:2"):
            raise RuntimeError("boom")
    assert locks.redis.store == {}
