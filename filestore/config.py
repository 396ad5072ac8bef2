"""Configuration settings for the file store service."""

import os

from common.constants import (
    MAX_CHUNK_SIZE_BYTES as BACKEND_VALUE_LIMIT_BYTES,
    DEFAULT_UPLOAD_CHUNK_SIZE_BYTES,
    DEFAULT_TRANSFER_PARALLELISM,
    DEFAULT_MEMORY_PRESSURE_THRESHOLD,
    DEFAULT_MEMORY_CHECK_INTERVAL,
)


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


FILESTORE_HOST = os.environ.get("FILESTORE_HOST", "0.0.0.0")

FILESTORE_PORT = int(os.environ.get("FILESTORE_PORT", "8000"))

# "memory" or "redis"
STORAGE_BACKEND = os.environ.get("FILESTORE_BACKEND", "memory").lower()

MAX_CHUNK_SIZE_BYTES = min(
    int(os.environ.get("FILESTORE_MAX_CHUNK_SIZE", str(BACKEND_VALUE_LIMIT_BYTES))),
    BACKEND_VALUE_LIMIT_BYTES,
)

UPLOAD_CHUNK_SIZE_BYTES = int(
    os.environ.get("FILESTORE_UPLOAD_CHUNK_SIZE", str(DEFAULT_UPLOAD_CHUNK_SIZE_BYTES))
)

TRANSFER_PARALLELISM = int(
    os.environ.get("FILESTORE_TRANSFER_PARALLELISM", str(DEFAULT_TRANSFER_PARALLELISM))
)

MEMORY_PRESSURE_THRESHOLD = float(
    os.environ.get("FILESTORE_MEMORY_THRESHOLD", str(DEFAULT_MEMORY_PRESSURE_THRESHOLD))
)

MEMORY_CHECK_INTERVAL = int(
    os.environ.get("FILESTORE_MEMORY_CHECK_INTERVAL", str(DEFAULT_MEMORY_CHECK_INTERVAL))
)

REDIS_HOST = os.environ.get("REDIS_HOST", "localhost")

REDIS_PORT = int(os.environ.get("REDIS_PORT", "6379"))

REDIS_DB = int(os.environ.get("REDIS_DB", "0"))

REDIS_PASSWORD = os.environ.get("REDIS_PASSWORD") or None

REDIS_TLS = _env_bool("REDIS_TLS", False)

# 0 disables expiry
REDIS_FILE_TTL_SECONDS = int(os.environ.get("REDIS_FILE_TTL_SECONDS", "0"))
