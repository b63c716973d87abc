"""
File Key-Value Store with Concurrency Control

One JSON document per key under the data directory. Every read and write
holds a ``filelock.FileLock`` so that several processes on the same
machine never observe a half-written file. Writes go to a temp file first
and are moved into place with an atomic replace.
"""

import asyncio
import logging
import os
import re
from pathlib import Path
from typing import Optional

from filelock import FileLock, Timeout

from food_cart.exceptions import StorageError
from food_cart.services.storage.base import BaseKeyValueStore

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class FileKeyValueStore(BaseKeyValueStore):
    """
    File-backed key-value store.

    Example:
        >>> store = FileKeyValueStore("data")
        >>> await store.set("cart", "[]")   # writes data/cart.json
    """

    def __init__(self, directory: str | Path, lock_timeout: int = 10):
        self.directory = Path(directory)
        self.lock_timeout = lock_timeout
        logger.info(f"FileKeyValueStore initialized (directory={self.directory})")

    @property
    def provider_name(self) -> str:
        return "file"

    def _ensure_directory(self) -> None:
        if not self.directory.exists():
            self.directory.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created data directory: {self.directory}")

    def _paths(self, key: str) -> tuple[Path, Path]:
        name = _UNSAFE_CHARS.sub("_", key) or "_"
        data_file = self.directory / f"{name}.json"
        return data_file, self.directory / f"{name}.json.lock"

    def _lock(self, lock_file: Path) -> FileLock:
        return FileLock(str(lock_file), timeout=self.lock_timeout)

    # -------------------------------------------------------------------------
    # Blocking implementations (run in a worker thread)
    # -------------------------------------------------------------------------

    def _read_sync(self, key: str) -> Optional[str]:
        data_file, lock_file = self._paths(key)
        if not data_file.exists():
            return None

        try:
            with self._lock(lock_file):
                if not data_file.exists():
                    return None
                return data_file.read_text(encoding="utf-8")
        except Timeout:
            raise StorageError(f"Lock timeout ({self.lock_timeout}s)", key=key)
        except OSError as e:
            raise StorageError(f"Error reading {data_file}: {e}", key=key) from e

    def _write_sync(self, key: str, value: str) -> None:
        self._ensure_directory()
        data_file, lock_file = self._paths(key)
        tmp_file = data_file.with_suffix(".json.tmp")

        try:
            with self._lock(lock_file):
                logger.debug(f"Lock acquired for {key}")
                tmp_file.write_text(value, encoding="utf-8")
                os.replace(tmp_file, data_file)
            logger.debug(f"Lock released for {key}")
        except Timeout:
            raise StorageError(f"Lock timeout ({self.lock_timeout}s)", key=key)
        except OSError as e:
            raise StorageError(f"Error writing {data_file}: {e}", key=key) from e

    def _delete_sync(self, key: str) -> None:
        data_file, lock_file = self._paths(key)
        try:
            with self._lock(lock_file):
                if data_file.exists():
                    data_file.unlink()
        except Timeout:
            raise StorageError(f"Lock timeout ({self.lock_timeout}s)", key=key)
        except OSError as e:
            raise StorageError(f"Error deleting {data_file}: {e}", key=key) from e

    # -------------------------------------------------------------------------
    # Async interface
    # -------------------------------------------------------------------------

    async def get(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self._read_sync, key)

    async def set(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._write_sync, key, value)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._delete_sync, key)

    async def health_check(self) -> bool:
        try:
            self._ensure_directory()
        except OSError as e:
            logger.error(f"File store health check failed: {e}")
            return False
        return os.access(self.directory, os.W_OK)
