"""Service layer for chunked file storage."""

from filestore.services.file_storage import FileStorage

__all__ = [
    "FileStorage",
]
