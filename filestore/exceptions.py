"""Custom exception classes for the file store."""


class FileStoreException(Exception):
    """
    Base exception class for all file store errors.
    """
    pass


class ValidationError(FileStoreException):
    """
    Raised when an upload request is rejected before any write happens.
    """
    pass


class ChunkSizeTooLargeError(ValidationError):
    """
    Raised when the requested chunk size exceeds the backend value limit.
    """
    pass


class MemoryPressureError(FileStoreException):
    """
    Raised when process memory usage crosses the configured threshold
    while an upload is being buffered. The caller may retry later.
    """
    retryable = True


class FileNotFoundError(FileStoreException):
    """
    Raised when a requested file does not exist.
    """
    pass


class ChunkNotFoundError(FileNotFoundError):
    """
    Raised when a chunk referenced by file metadata is absent.
    """
    pass


class IntegrityError(FileStoreException):
    """
    Raised when stored data exists but cannot be trusted.
    """
    pass


class ChecksumMismatchError(IntegrityError):
    """
    Raised when reassembled content does not match the stored checksum.
    """
    pass


class InvalidMetadataError(IntegrityError):
    """
    Raised when a metadata record is malformed or inconsistent.
    """
    pass


class KeyNotFoundError(FileStoreException):
    """
    Raised by a storage backend when a required key is absent.
    """
    pass
