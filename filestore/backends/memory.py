"""In-process storage backend, used for tests and single-node runs."""

import logging
from fnmatch import fnmatchcase
from typing import Dict, List, Optional

from common.checksum import compute_checksum
from filestore.backends.base import StorageBackend, StoredValue
from filestore.exceptions import KeyNotFoundError

logger = logging.getLogger(__name__)


def _freeze(value: StoredValue) -> StoredValue:
    if isinstance(value, str):
        return value
    return bytes(value)


class InMemoryStorageBackend(StorageBackend):
    """
    Dict-backed backend. Text and binary values share one keyspace and
    are told apart by their stored type.
    """

    def __init__(self):
        self._store: Dict[str, StoredValue] = {}
        self._lists: Dict[str, List[StoredValue]] = {}

    async def get(self, key: str) -> Optional[str]:
        value = self._store.get(key)
        return value if isinstance(value, str) else None

    async def get_buffer(self, key: str) -> Optional[bytes]:
        value = self._store.get(key)
        return value if isinstance(value, bytes) else None

    async def set(self, key: str, value: StoredValue) -> None:
        self._store[key] = _freeze(value)
        logger.debug(f"Set {key} ({len(value)} {'chars' if isinstance(value, str) else 'bytes'})")

    async def rpush(self, key: str, value: StoredValue) -> None:
        self._lists.setdefault(key, []).append(_freeze(value))

    async def get_list_all(self, key: str) -> List[str]:
        return [
            item.decode('utf-8') if isinstance(item, bytes) else item
            for item in self._lists.get(key, [])
        ]

    async def keys(self, pattern: str) -> List[str]:
        return [key for key in self._store if fnmatchcase(key, pattern)]

    async def verify_checksum(self, key: str) -> str:
        value = self._store.get(key)
        if value is None:
            raise KeyNotFoundError(f"Key not found: {key}")
        data = value.encode('utf-8') if isinstance(value, str) else value
        return compute_checksum(data)
