"""Explicit construction of the storage backend and file storage service."""

from typing import Optional

from fastapi import Request

from filestore import config
from filestore.backends.base import StorageBackend
from filestore.backends.memory import InMemoryStorageBackend
from filestore.backends.redis_backend import RedisStorageBackend, StorageConnectionConfig
from filestore.memory_monitor import MemoryMonitor
from filestore.services.file_storage import FileStorage


def build_storage_backend(backend_name: Optional[str] = None) -> StorageBackend:
    """
    Create the storage backend selected by configuration.

    Args:
        backend_name: "memory" or "redis". Defaults to FILESTORE_BACKEND

    Returns:
        StorageBackend instance

    Raises:
        ValueError: If the backend name is unknown
    """
    backend_name = (backend_name or config.STORAGE_BACKEND).lower()

    if backend_name == "memory":
        return InMemoryStorageBackend()

    if backend_name == "redis":
        connection = StorageConnectionConfig(
            host=config.REDIS_HOST,
            port=config.REDIS_PORT,
            db=config.REDIS_DB,
            file_ttl_seconds=config.REDIS_FILE_TTL_SECONDS,
            tls=config.REDIS_TLS,
            password=config.REDIS_PASSWORD,
        )
        return RedisStorageBackend(connection)

    raise ValueError(f"Unknown storage backend: {backend_name}")


def build_file_storage(backend: Optional[StorageBackend] = None) -> FileStorage:
    """Create a FileStorage wired to the given (or configured) backend."""
    return FileStorage(
        backend=backend or build_storage_backend(),
        max_chunk_size=config.MAX_CHUNK_SIZE_BYTES,
        memory_monitor=MemoryMonitor(threshold=config.MEMORY_PRESSURE_THRESHOLD),
        memory_check_interval=config.MEMORY_CHECK_INTERVAL,
    )


def get_file_storage(request: Request) -> FileStorage:
    """FastAPI dependency returning the FileStorage attached to the app."""
    return request.app.state.file_storage
