"""
Order Channel Factory

Returns MockOrderChannel in development and SocketIOOrderChannel otherwise.
"""

import logging
from functools import lru_cache

from food_cart.core.config import get_settings
from food_cart.services.backend import get_backend_client
from food_cart.services.backend.mock import MockBackendClient
from food_cart.services.realtime.base import BaseOrderChannel
from food_cart.services.realtime.mock import MockOrderChannel
from food_cart.services.realtime.socketio_channel import SocketIOOrderChannel

logger = logging.getLogger(__name__)


@lru_cache()
def get_order_channel() -> BaseOrderChannel:
    """Get the configured order channel."""
    settings = get_settings()

    if settings.is_development:
        logger.info("Order Channel: Using MockOrderChannel (development mode)")
        backend = get_backend_client()
        return MockOrderChannel(
            backend=backend if isinstance(backend, MockBackendClient) else None,
        )

    logger.info(f"Order Channel: Using SocketIOOrderChannel ({settings.env_mode.value} mode)")
    return SocketIOOrderChannel()


def reset_order_channel() -> None:
    """Clear the cached channel instance."""
    get_order_channel.cache_clear()


__all__ = [
    "get_order_channel",
    "reset_order_channel",
    "BaseOrderChannel",
    "MockOrderChannel",
    "SocketIOOrderChannel",
]
