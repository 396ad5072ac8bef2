"""Key/value storage capability consumed by the file store."""

from abc import ABC, abstractmethod
from typing import List, Optional, Union

StoredValue = Union[str, bytes]


class StorageBackend(ABC):
    """
    Minimal key/value contract: scalar get/set, list append/read and
    key lookup by glob pattern.

    Each call is independently durable once it returns. There is no
    ordering or atomicity across keys.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the text value stored at key, or None."""

    @abstractmethod
    async def get_buffer(self, key: str) -> Optional[bytes]:
        """Return the binary value stored at key, or None."""

    @abstractmethod
    async def set(self, key: str, value: StoredValue) -> None:
        """Store a text or binary value at key, replacing any previous value."""

    @abstractmethod
    async def rpush(self, key: str, value: StoredValue) -> None:
        """Append value to the list stored at key."""

    @abstractmethod
    async def get_list_all(self, key: str) -> List[str]:
        """Return every element of the list stored at key, in order."""

    @abstractmethod
    async def keys(self, pattern: str) -> List[str]:
        """Return keys matching a glob pattern (``*`` matches any run)."""

    @abstractmethod
    async def verify_checksum(self, key: str) -> str:
        """
        Compute the SHA-1 checksum of the value stored at key.

        Raises:
            KeyNotFoundError: If key does not exist
        """

    async def close(self) -> None:
        """Release backend resources."""
        return None
