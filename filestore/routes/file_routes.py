"""File operation API routes."""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import Response

from filestore.dependencies import get_file_storage
from filestore.schemas.files import ListFilesResponse, UploadFileResponse
from filestore.services.file_storage import FileStorage

router = APIRouter(tags=["Files"])


def has_request_body(request: Request) -> bool:
    """
    True when the request announces a non-empty body.
    """
    if "transfer-encoding" in request.headers:
        return True

    content_length = request.headers.get("content-length")
    if content_length is None:
        return False

    try:
        return int(content_length) > 0
    except ValueError:
        return False


@router.post("/upload/{file_name}", response_model=UploadFileResponse)
async def upload_file(
    file_name: str,
    request: Request,
    file_storage: FileStorage = Depends(get_file_storage)
):
    """
    Upload a file from the raw request body.

    Parameters:
        - file_name: Name to store the file under
        - body: Raw file bytes (application/octet-stream)

    Returns:
        - ok: Always true on success
        - file_name, total_chunks, total_size, checksum: Stored layout

    Raises:
        - 400: Invalid upload parameters
        - 422: Missing upload body
        - 503: Memory pressure, retry later
    """
    if not has_request_body(request):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Missing upload body"
        )

    metadata = await file_storage.upload_file(
        request.stream(),
        file_name,
        request.app.state.upload_chunk_size,
        request.app.state.transfer_parallelism,
    )

    return UploadFileResponse(
        ok=True,
        file_name=metadata.file_name,
        total_chunks=metadata.total_chunks,
        total_size=metadata.total_size,
        checksum=metadata.checksum,
    )


@router.get("/download/{file_name}")
async def download_file(
    file_name: str,
    request: Request,
    file_storage: FileStorage = Depends(get_file_storage)
):
    """
    Download a file by name.

    Returns:
        - Exact file bytes as application/octet-stream

    Raises:
        - 404: File or one of its chunks not found
        - 500: Stored data failed checksum verification
    """
    content = await file_storage.download_file(file_name, request.app.state.transfer_parallelism)

    return Response(content=content, media_type="application/octet-stream")


@router.get("/files", response_model=ListFilesResponse)
async def list_files(file_storage: FileStorage = Depends(get_file_storage)):
    """List names of uploaded files."""
    files = await file_storage.list_uploaded_files()
    return ListFilesResponse(files=files)
