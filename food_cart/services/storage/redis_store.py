"""
Redis Key-Value Store

Production store backed by ``redis.asyncio``. Keys are namespaced so that
the cart can share a Redis database with other services.
"""

import logging
from typing import Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from food_cart.exceptions import StorageError
from food_cart.services.storage.base import BaseKeyValueStore

logger = logging.getLogger(__name__)


class RedisKeyValueStore(BaseKeyValueStore):
    """
    Redis-backed key-value store.

    Args:
        redis: An existing client (tests pass a fakeredis instance)
        url: Connection URL used when no client is given
        namespace: Prefix joined to every key with ":"
    """

    def __init__(
        self,
        redis: Optional[Redis] = None,
        url: str = "redis://localhost:6379/0",
        namespace: str = "food_cart",
    ):
        self.redis = redis if redis is not None else Redis.from_url(url, decode_responses=True)
        self.namespace = namespace
        logger.info(f"RedisKeyValueStore initialized (namespace={namespace})")

    @property
    def provider_name(self) -> str:
        return "redis"

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}" if self.namespace else key

    async def get(self, key: str) -> Optional[str]:
        try:
            value = await self.redis.get(self._key(key))
        except RedisError as e:
            raise StorageError(f"Redis read failed: {e}", key=key) from e
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def set(self, key: str, value: str) -> None:
        try:
            await self.redis.set(self._key(key), value)
        except RedisError as e:
            raise StorageError(f"Redis write failed: {e}", key=key) from e

    async def delete(self, key: str) -> None:
        try:
            await self.redis.delete(self._key(key))
        except RedisError as e:
            raise StorageError(f"Redis delete failed: {e}", key=key) from e

    async def health_check(self) -> bool:
        try:
            return bool(await self.redis.ping())
        except RedisError as e:
            logger.error(f"Redis health check failed: {e}")
            return False

    async def close(self) -> None:
        await self.redis.aclose()
