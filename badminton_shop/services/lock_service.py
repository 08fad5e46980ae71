# badminton_shop/services/lock_service.py
import uuid
from contextlib import contextmanager

import redis

from badminton_shop.domain.exceptions import CheckoutInProgressError
from badminton_shop.utils.logging import get_logger
from badminton_shop.utils.retry import redis_retry
from badminton_shop.utils.settings import CHECKOUT_LOCK_TTL_SECONDS, REDIS_URL

logger = get_logger(__name__)

# compare-and-delete runs atomically inside redis, so only the holder can release
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


def owner_key(user_id: int | None, session_id: str | None) -> str:
    if user_id is not None:
        return f"user:{user_id}"
    return f"session:{session_id}"


class LockService:
    """
    - checkout lock per cart owner (SET NX EX)
    - release only by the token holder (lua)
    - locks expire on their own if a worker dies mid-checkout
    """

    def __init__(self, url: str | None = None):
        self.redis = redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @redis_retry()
    def acquire_checkout_lock(self, owner: str, token: str, ttl: int) -> bool:
        key = f"checkout:{owner}:lock"
        logger.info(f"Acquire lock {key}")
        return bool(self.redis.set(name=key, value=token, nx=True, ex=ttl))

    @redis_retry()
    def release_checkout_lock(self, owner: str, token: str) -> bool:
        key = f"checkout:{owner}:lock"
        logger.info(f"Release lock {key}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)

    @contextmanager
    def checkout_lock(self, owner: str, ttl: int = CHECKOUT_LOCK_TTL_SECONDS):
        token = uuid.uuid4().hex
        if not self.acquire_checkout_lock(owner, token, ttl):
            raise CheckoutInProgressError()
        try:
            yield
        finally:
            try:
                self.release_checkout_lock(owner, token)
            except redis.RedisError as e:
                # the key still expires after ttl
                logger.warning(f"Failed to release checkout lock for {owner}: {e}")
