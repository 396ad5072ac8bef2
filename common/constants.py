"""Project-wide constants (key layout, size limits, defaults)."""

CHUNK_KEY_PREFIX: str = "chunk"
META_KEY_PREFIX: str = "meta"
FILE_INDEX_KEY: str = "uploaded_files"

# Redis refuses string values above 512 MiB
MAX_CHUNK_SIZE_BYTES: int = 512 * 1024 * 1024
DEFAULT_UPLOAD_CHUNK_SIZE_BYTES: int = 10_000_000
DEFAULT_TRANSFER_PARALLELISM: int = 4

DEFAULT_MEMORY_PRESSURE_THRESHOLD: float = 0.9
DEFAULT_MEMORY_CHECK_INTERVAL: int = 16

CHECKSUM_HEX_LENGTH: int = 40
