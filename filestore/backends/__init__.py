"""Storage backend implementations."""

from filestore.backends.base import StorageBackend, StoredValue
from filestore.backends.memory import InMemoryStorageBackend
from filestore.backends.redis_backend import RedisStorageBackend, StorageConnectionConfig

__all__ = [
    "StorageBackend",
    "StoredValue",
    "InMemoryStorageBackend",
    "RedisStorageBackend",
    "StorageConnectionConfig",
]
