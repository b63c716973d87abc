"""
In-Memory Key-Value Store

Dict-backed store used in development mode and in tests. One instance can
be shared by several cart engines to simulate an app restart on the same
device.

Behavior:
    - Optional simulated latency (so writes can overlap)
    - Optional random write failures (storage full, OS denial)
    - Records every successful write for inspection
"""

import asyncio
import random
import logging
from typing import Optional

from food_cart.exceptions import StorageError
from food_cart.services.storage.base import BaseKeyValueStore

logger = logging.getLogger(__name__)


class InMemoryKeyValueStore(BaseKeyValueStore):
    """
    Mock implementation of the key-value store.

    Attributes:
        failure_rate: Probability that a write fails (0.0-1.0)
        min_latency: Minimum simulated latency in seconds
        max_latency: Maximum simulated latency in seconds
        writes: Values written so far, in completion order, as (key, value)

    Example:
        >>> store = InMemoryKeyValueStore()
        >>> await store.set("cart", "[]")
        >>> await store.get("cart")
        '[]'
    """

    def __init__(
        self,
        failure_rate: float = 0.0,
        min_latency: float = 0.0,
        max_latency: float = 0.0,
        initial: Optional[dict[str, str]] = None,
    ):
        self.failure_rate = failure_rate
        self.min_latency = min_latency
        self.max_latency = max_latency
        self.fail_reads = False
        self.writes: list[tuple[str, str]] = []
        self._data: dict[str, str] = dict(initial or {})

        logger.info(
            f"InMemoryKeyValueStore initialized "
            f"(failure_rate={failure_rate:.0%}, "
            f"latency={min_latency}-{max_latency}s)"
        )

    @property
    def provider_name(self) -> str:
        return "memory"

    async def _simulate_latency(self) -> None:
        if self.max_latency <= 0:
            # Still yield so concurrent writers interleave like real I/O.
            await asyncio.sleep(0)
            return
        await asyncio.sleep(random.uniform(self.min_latency, self.max_latency))

    def _should_fail(self) -> bool:
        return self.failure_rate > 0 and random.random() < self.failure_rate

    async def get(self, key: str) -> Optional[str]:
        await self._simulate_latency()
        if self.fail_reads:
            raise StorageError("Mock: simulated read failure", key=key)
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        await self._simulate_latency()
        if self._should_fail():
            logger.debug(f"Mock: simulated write failure for {key}")
            raise StorageError("Mock: simulated write failure", key=key)
        self._data[key] = value
        self.writes.append((key, value))

    async def delete(self, key: str) -> None:
        await self._simulate_latency()
        self._data.pop(key, None)

    async def health_check(self) -> bool:
        return True

    def peek(self, key: str) -> Optional[str]:
        """Synchronously read a value without latency (test helper)."""
        return self._data.get(key)
