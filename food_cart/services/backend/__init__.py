"""
Backend Client Factory

Returns MockBackendClient in development and HttpBackendClient otherwise.

Usage:
    from food_cart.services.backend import get_backend_client

    backend = get_backend_client()
    voucher = await backend.get_voucher("WELCOME10")
"""

import logging
from functools import lru_cache

from food_cart.core.config import get_settings
from food_cart.services.backend.base import BaseBackendClient
from food_cart.services.backend.mock import MockBackendClient
from food_cart.services.backend.http import HttpBackendClient

logger = logging.getLogger(__name__)


@lru_cache()
def get_backend_client() -> BaseBackendClient:
    """Get the configured backend client."""
    settings = get_settings()

    if settings.is_development:
        logger.info("Backend Client: Using MockBackendClient (development mode)")
        return MockBackendClient()

    logger.info(f"Backend Client: Using HttpBackendClient ({settings.env_mode.value} mode)")
    return HttpBackendClient()


def reset_backend_client() -> None:
    """Clear the cached client instance."""
    get_backend_client.cache_clear()


__all__ = [
    "get_backend_client",
    "reset_backend_client",
    "BaseBackendClient",
    "MockBackendClient",
    "HttpBackendClient",
]
