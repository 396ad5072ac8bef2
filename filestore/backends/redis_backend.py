"""Redis-backed storage backend."""

import logging
from dataclasses import dataclass
from typing import List, Optional

import redis.asyncio as redis

from common.checksum import compute_checksum
from common.constants import CHUNK_KEY_PREFIX, META_KEY_PREFIX
from filestore.backends.base import StorageBackend, StoredValue
from filestore.exceptions import KeyNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StorageConnectionConfig:
    """Connection settings for a Redis backend."""
    host: str
    port: int
    db: int = 0
    file_ttl_seconds: int = 0
    tls: bool = False
    password: Optional[str] = None

    @property
    def url(self) -> str:
        scheme = "rediss" if self.tls else "redis"
        auth = f":{self.password}@" if self.password else ""
        return f"{scheme}://{auth}{self.host}:{self.port}/{self.db}"


class RedisStorageBackend(StorageBackend):
    """
    Storage backend on top of a Redis server.

    Redis keeps every value as raw bytes, so ``get`` decodes UTF-8 and
    returns None for values that are not valid text, while ``get_buffer``
    returns the raw bytes. File keys (chunks and metadata) expire after
    ``file_ttl_seconds`` when it is positive.
    """

    def __init__(self, config: StorageConnectionConfig, client: Optional[redis.Redis] = None):
        self.config = config
        if client is None:
            client = redis.Redis(
                host=config.host,
                port=config.port,
                db=config.db,
                password=config.password,
                ssl=config.tls,
                decode_responses=False,
            )
        self._client = client
        logger.info(f"Initialized Redis backend [host={config.host}:{config.port} db={config.db} tls={config.tls}]")

    def _expiry_for(self, key: str) -> Optional[int]:
        if self.config.file_ttl_seconds <= 0:
            return None
        if key.startswith(f"{CHUNK_KEY_PREFIX}:") or key.startswith(f"{META_KEY_PREFIX}:"):
            return self.config.file_ttl_seconds
        return None

    async def get(self, key: str) -> Optional[str]:
        value = await self._client.get(key)
        if value is None:
            return None
        try:
            return value.decode('utf-8')
        except UnicodeDecodeError:
            return None

    async def get_buffer(self, key: str) -> Optional[bytes]:
        value = await self._client.get(key)
        if value is None:
            return None
        return bytes(value)

    async def set(self, key: str, value: StoredValue) -> None:
        await self._client.set(key, value, ex=self._expiry_for(key))

    async def rpush(self, key: str, value: StoredValue) -> None:
        await self._client.rpush(key, value)

    async def get_list_all(self, key: str) -> List[str]:
        items = await self._client.lrange(key, 0, -1)
        return [item.decode('utf-8') if isinstance(item, bytes) else item for item in items]

    async def keys(self, pattern: str) -> List[str]:
        found = []
        async for key in self._client.scan_iter(match=pattern):
            found.append(key.decode('utf-8') if isinstance(key, bytes) else key)
        return found

    async def verify_checksum(self, key: str) -> str:
        value = await self._client.get(key)
        if value is None:
            raise KeyNotFoundError(f"Key not found: {key}")
        return compute_checksum(value)

    async def close(self) -> None:
        await self._client.aclose()
