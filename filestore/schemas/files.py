"""Pydantic schemas for file operation endpoints."""

from typing import List
from pydantic import BaseModel


class UploadFileResponse(BaseModel):
    """Response model for file upload."""
    ok: bool = True
    file_name: str
    total_chunks: int
    total_size: int
    checksum: str


class ListFilesResponse(BaseModel):
    """Response model for file listing."""
    files: List[str]
