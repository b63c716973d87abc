"""
Cart Mirror Writer

Keeps the durable copy of the cart in step with the in-memory list.

Writes are single-flight: at most one ``store.set`` is in progress at any
time. Snapshots scheduled while a write is in flight replace each other, so
only the most recent one is written next (latest wins). Completion order
therefore always matches mutation order and a stale snapshot can never land
after a newer one.
"""

import asyncio
import logging
from typing import Optional

from food_cart.services.storage.base import BaseKeyValueStore

logger = logging.getLogger(__name__)


class MirrorWriter:
    """
    Single-flight, latest-wins writer for one storage key.

    Attributes:
        store: Key-value store written to
        key: The storage key
        completed_writes: Number of successful writes
        failed_writes: Number of writes that raised
        last_error: Exception of the most recent failed write
    """

    def __init__(self, store: BaseKeyValueStore, key: str):
        self.store = store
        self.key = key
        self.completed_writes = 0
        self.failed_writes = 0
        self.last_error: Optional[BaseException] = None

        self._pending: Optional[str] = None
        self._has_pending = False
        self._task: Optional[asyncio.Task] = None

    @property
    def has_pending(self) -> bool:
        """True while a write is queued or in flight."""
        return self._has_pending or self._in_flight()

    def _in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    def schedule(self, payload: str) -> None:
        """
        Queue ``payload`` to be written. Returns immediately.

        Without a running event loop the payload stays queued until
        ``flush()`` is awaited.
        """
        self._pending = payload
        self._has_pending = True

        if self._in_flight():
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(f"No running event loop; write of {self.key} deferred until flush")
            return

        self._task = loop.create_task(self._drain())

    async def _drain(self) -> None:
        while self._has_pending:
            payload = self._pending
            self._pending = None
            self._has_pending = False
            await self._write(payload)

    async def _write(self, payload: str) -> None:
        try:
            await self.store.set(self.key, payload)
        except Exception as e:
            # In-memory cart stays authoritative; no retry.
            self.failed_writes += 1
            self.last_error = e
            logger.exception(
                f"Error saving {self.key} to {self.store.provider_name} store"
            )
        else:
            self.completed_writes += 1
            logger.debug(f"Mirrored {self.key} ({len(payload)} bytes)")

    async def flush(self) -> None:
        """Wait until every scheduled payload has been written (or has failed)."""
        while True:
            if self._in_flight():
                await self._task
                continue
            if self._has_pending:
                self._task = asyncio.get_running_loop().create_task(self._drain())
                continue
            return
