"""
Storage Service Factory

Provides a single entry point for obtaining the key-value store the cart is
mirrored to.

Usage:
    from food_cart.services.storage import get_storage_service

    store = get_storage_service()
    await store.set("cart", "[]")

Environment Switching:
    - STORAGE_BACKEND=memory → InMemoryKeyValueStore (lost on restart)
    - STORAGE_BACKEND=file → FileKeyValueStore under DATA_DIRECTORY
    - STORAGE_BACKEND=redis → RedisKeyValueStore at REDIS_URL
    - unset → memory in development, file otherwise
"""

import logging
from functools import lru_cache

from food_cart.core.config import StorageBackend, get_settings
from food_cart.services.storage.base import BaseKeyValueStore
from food_cart.services.storage.mock import InMemoryKeyValueStore
from food_cart.services.storage.file import FileKeyValueStore
from food_cart.services.storage.redis_store import RedisKeyValueStore

logger = logging.getLogger(__name__)


@lru_cache()
def get_storage_service() -> BaseKeyValueStore:
    """
    Get the configured key-value store instance.

    The instance is cached so every caller shares the same store.

    Returns:
        BaseKeyValueStore: Configured store
    """
    settings = get_settings()
    backend = settings.effective_storage_backend

    if backend == StorageBackend.MEMORY:
        logger.info("Storage Service: Using InMemoryKeyValueStore")
        return InMemoryKeyValueStore()
    if backend == StorageBackend.REDIS:
        logger.info("Storage Service: Using RedisKeyValueStore")
        return RedisKeyValueStore(
            url=settings.redis_url,
            namespace=settings.redis_namespace,
        )

    logger.info(f"Storage Service: Using FileKeyValueStore ({settings.data_directory})")
    return FileKeyValueStore(
        settings.data_directory,
        lock_timeout=settings.storage_lock_timeout,
    )


def reset_storage_service() -> None:
    """
    Clear the cached store instance.

    Useful for testing or when configuration changes at runtime.
    """
    get_storage_service.cache_clear()
    logger.debug("Storage service cache cleared")


__all__ = [
    "get_storage_service",
    "reset_storage_service",
    "BaseKeyValueStore",
    "InMemoryKeyValueStore",
    "FileKeyValueStore",
    "RedisKeyValueStore",
]
