"""
Socket.IO Order Channel

Production order channel using ``python-socketio``'s asyncio client.
Submissions are serialized: one ``createBill`` is outstanding at a time,
and the next ``billCreated`` event is taken as its answer.
"""

import asyncio
import logging
from typing import Any, Optional

import socketio
from socketio import exceptions as socketio_exceptions
from pydantic import ValidationError

from food_cart.core.config import get_settings
from food_cart.exceptions import ChannelError
from food_cart.schemas import OrderSubmission, OrderSubmissionResult
from food_cart.services.realtime.base import BaseOrderChannel

logger = logging.getLogger(__name__)

CREATE_EVENT = "createBill"
CREATED_EVENT = "billCreated"


class SocketIOOrderChannel(BaseOrderChannel):
    """
    Socket.IO implementation of the order channel.

    Args:
        url: Server URL (defaults to the configured realtime URL)
        timeout: Seconds to wait for ``billCreated``
        client: Optional pre-built ``socketio.AsyncClient``
    """

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[socketio.AsyncClient] = None,
    ):
        settings = get_settings()
        self.url = url or settings.effective_realtime_url
        self.timeout = timeout if timeout is not None else settings.order_submit_timeout

        self._sio = client if client is not None else socketio.AsyncClient(reconnection=True)
        self._sio.on("connect", self._on_connect)
        self._sio.on(CREATED_EVENT, self._on_bill_created)

        self._lock = asyncio.Lock()
        self._waiter: Optional[asyncio.Future] = None

        logger.info(f"SocketIOOrderChannel initialized ({self.url})")

    @property
    def provider_name(self) -> str:
        return "socketio"

    async def _on_connect(self) -> None:
        logger.info("Connected to order channel")

    async def _on_bill_created(self, data: Any) -> None:
        if self._waiter is not None and not self._waiter.done():
            self._waiter.set_result(data)
        else:
            logger.warning(f"Unsolicited {CREATED_EVENT} event ignored")

    async def _ensure_connected(self) -> None:
        if self._sio.connected:
            return
        try:
            await self._sio.connect(self.url, transports=["websocket"])
        except socketio_exceptions.ConnectionError as e:
            raise ChannelError(f"Cannot connect to order channel: {e}") from e

    async def submit_order(self, submission: OrderSubmission) -> OrderSubmissionResult:
        async with self._lock:
            await self._ensure_connected()

            self._waiter = asyncio.get_running_loop().create_future()
            try:
                await self._sio.emit(CREATE_EVENT, submission.to_wire())
                response = await asyncio.wait_for(self._waiter, timeout=self.timeout)
            except asyncio.TimeoutError as e:
                logger.error(f"No {CREATED_EVENT} answer within {self.timeout}s")
                raise ChannelError(f"Order channel timed out after {self.timeout}s") from e
            except socketio_exceptions.SocketIOError as e:
                raise ChannelError(f"Order channel error: {e}") from e
            finally:
                self._waiter = None

        try:
            return OrderSubmissionResult.model_validate(response)
        except ValidationError as e:
            raise ChannelError(f"Unexpected {CREATED_EVENT} payload: {e}") from e

    async def health_check(self) -> bool:
        return self._sio.connected

    async def close(self) -> None:
        if self._sio.connected:
            await self._sio.disconnect()
