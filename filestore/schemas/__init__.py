"""Pydantic schemas for API requests and responses."""

from filestore.schemas.files import UploadFileResponse, ListFilesResponse
from filestore.schemas.common import ErrorResponse

__all__ = [
    "UploadFileResponse",
    "ListFilesResponse",
    "ErrorResponse",
]
