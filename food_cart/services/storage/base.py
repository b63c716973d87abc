"""
Key-Value Store Abstract Base Class

Defines the interface contract for the durable mirror the cart is persisted
to. Values are JSON text; the store never interprets them.

Design Pattern: Strategy Pattern
    - InMemoryKeyValueStore for development and tests
    - FileKeyValueStore and RedisKeyValueStore for real deployments
"""

from abc import ABC, abstractmethod
from typing import Optional


class BaseKeyValueStore(ABC):
    """
    Abstract base class for key-value stores.

    Implementations raise ``StorageError`` from ``get``/``set``/``delete``
    when the underlying medium fails. Callers decide whether to recover.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the name of the storage provider (e.g. "memory", "file")."""
        pass

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """
        Read the value stored under ``key``.

        Returns:
            The stored text, or None if the key is absent
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove ``key``. Deleting a missing key is not an error."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Verify the store is usable.

        Returns:
            bool: True if reads and writes are expected to succeed
        """
        pass

    async def close(self) -> None:
        """Release any held connections."""
        return None
