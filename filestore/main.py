"""Entry point for the file store service."""

import time
import uuid
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from common.logging_config import setup_logging
from filestore.config import (
    FILESTORE_HOST,
    FILESTORE_PORT,
    TRANSFER_PARALLELISM,
    UPLOAD_CHUNK_SIZE_BYTES,
)
from filestore.dependencies import build_file_storage
from filestore.exceptions import (
    FileStoreException,
    ValidationError,
    MemoryPressureError,
    FileNotFoundError,
    ChecksumMismatchError,
    InvalidMetadataError,
)
from filestore.routes import file_router
from filestore.schemas.common import ErrorResponse
from filestore.services.file_storage import FileStorage

logger = setup_logging('filestore')

MEMORY_PRESSURE_RETRY_AFTER_SECONDS = 5


def _error_response(status_code: int, exc: Exception, code: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(detail=str(exc), code=code).model_dump(),
        headers=headers,
    )


async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()

    logger.info(f"Request started: {request.method} {request.url.path} [request_id={request_id}]")

    response = await call_next(request)

    duration = time.time() - start_time

    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
    )

    response.headers["X-Request-ID"] = request_id

    return response


async def file_not_found_handler(request: Request, exc: FileNotFoundError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(f"File not found error: {exc} [request_id={request_id}] path={request.url.path}")
    return _error_response(status.HTTP_404_NOT_FOUND, exc, "FILE_NOT_FOUND")


async def validation_error_handler(request: Request, exc: ValidationError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(f"Validation error: {exc} [request_id={request_id}] path={request.url.path}")
    return _error_response(status.HTTP_400_BAD_REQUEST, exc, "VALIDATION_ERROR")


async def memory_pressure_handler(request: Request, exc: MemoryPressureError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(f"Memory pressure error: {exc} [request_id={request_id}] path={request.url.path}")
    return _error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        exc,
        "MEMORY_PRESSURE",
        headers={"Retry-After": str(MEMORY_PRESSURE_RETRY_AFTER_SECONDS)},
    )


async def checksum_mismatch_handler(request: Request, exc: ChecksumMismatchError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(f"Checksum mismatch error: {exc} [request_id={request_id}] path={request.url.path}")
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc, "CHECKSUM_MISMATCH")


async def invalid_metadata_handler(request: Request, exc: InvalidMetadataError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(f"Invalid metadata error: {exc} [request_id={request_id}] path={request.url.path}")
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc, "INVALID_METADATA")


async def file_store_exception_handler(request: Request, exc: FileStoreException):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"File store exception: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=True
    )
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc, "INTERNAL_ERROR")


def create_app(
    file_storage: Optional[FileStorage] = None,
    upload_chunk_size: int = UPLOAD_CHUNK_SIZE_BYTES,
    transfer_parallelism: int = TRANSFER_PARALLELISM,
) -> FastAPI:
    """
    Build the FastAPI application around an explicit FileStorage.

    Args:
        file_storage: Service to expose; built from configuration when omitted
        upload_chunk_size: Chunk size used for HTTP uploads
        transfer_parallelism: Chunk operations in flight per upload/download

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Chunked File Store",
        description="Chunked binary object store on top of a key/value backend",
        version="1.0.0"
    )

    app.state.file_storage = file_storage or build_file_storage()
    app.state.upload_chunk_size = upload_chunk_size
    app.state.transfer_parallelism = transfer_parallelism

    app.middleware("http")(log_requests)

    app.add_exception_handler(FileNotFoundError, file_not_found_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(MemoryPressureError, memory_pressure_handler)
    app.add_exception_handler(ChecksumMismatchError, checksum_mismatch_handler)
    app.add_exception_handler(InvalidMetadataError, invalid_metadata_handler)
    app.add_exception_handler(FileStoreException, file_store_exception_handler)

    app.include_router(file_router)

    @app.on_event("startup")
    async def startup_event():
        backend_name = type(app.state.file_storage.backend).__name__
        logger.info(f"File store starting up [backend={backend_name}]")

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("File store shutting down...")
        await app.state.file_storage.backend.close()

    @app.get("/health")
    async def health_check():
        """
        Health check endpoint for container healthcheck.
        """
        return {"status": "healthy", "service": "filestore"}

    return app


app = create_app()


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "filestore.main:app",
        host=FILESTORE_HOST,
        port=FILESTORE_PORT,
    )


if __name__ == "__main__":
    main()
