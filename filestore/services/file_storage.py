"""Chunked file upload/download over a key/value storage backend."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Awaitable, Callable, List, Optional, Sequence, Tuple, Union

from common.checksum import compute_checksum, verify_checksum
from common.constants import CHUNK_KEY_PREFIX, META_KEY_PREFIX, FILE_INDEX_KEY, CHECKSUM_HEX_LENGTH
from common.types import FileMetadata
from filestore.backends.base import StorageBackend
from filestore.config import MAX_CHUNK_SIZE_BYTES, MEMORY_CHECK_INTERVAL
from filestore.exceptions import (
    ChecksumMismatchError,
    ChunkNotFoundError,
    ChunkSizeTooLargeError,
    FileNotFoundError,
    InvalidMetadataError,
    ValidationError,
)
from filestore.memory_monitor import MemoryMonitor

logger = logging.getLogger(__name__)

STREAM_READ_SIZE_BYTES = 64 * 1024
GLOB_SPECIAL_CHARS = "*?[]\\"


def chunk_key(file_name: str, index: int) -> str:
    return f"{CHUNK_KEY_PREFIX}:{file_name}:{index}"


def meta_key(file_name: str) -> str:
    return f"{META_KEY_PREFIX}:{file_name}"


def chunk_key_pattern(file_name: str) -> str:
    """
    Glob pattern matching every chunk key of file_name.

    Glob metacharacters in the name become single-character wildcards, so
    the pattern may also match chunks of other files. Filter the results
    with parse_chunk_index.
    """
    safe_name = "".join("?" if char in GLOB_SPECIAL_CHARS else char for char in file_name)
    return f"{CHUNK_KEY_PREFIX}:{safe_name}:*"


def parse_chunk_index(key: str, file_name: str) -> Optional[int]:
    """Chunk index encoded in key, or None if key is not a chunk key of file_name."""
    prefix = f"{CHUNK_KEY_PREFIX}:{file_name}:"
    if not key.startswith(prefix):
        return None
    suffix = key[len(prefix):]
    if not (suffix.isascii() and suffix.isdigit()):
        return None
    return int(suffix)


def normalize_parallelism(parallel: Optional[int]) -> int:
    """Values below 1 (or None) mean sequential."""
    if parallel is None or parallel < 1:
        return 1
    return parallel


def split_into_chunks(data: Union[bytes, bytearray, memoryview], chunk_size: int) -> List[bytes]:
    """
    Split data into contiguous chunks of chunk_size bytes.

    The last chunk is shorter when len(data) is not a multiple of
    chunk_size. Empty data yields no chunks. Slices are taken through a
    memoryview so only the chunk copies are allocated.
    """
    with memoryview(data) as view:
        return [bytes(view[offset:offset + chunk_size]) for offset in range(0, len(view), chunk_size)]


async def iterate_fragments(file_stream: Any) -> AsyncIterator[bytes]:
    """
    Yield byte fragments from any supported upload source.

    Accepts a bytes-like object, an async iterable of fragments, a
    readable file object, or a plain iterable of fragments.
    """
    if isinstance(file_stream, (bytes, bytearray, memoryview)):
        yield bytes(file_stream)
        return

    if hasattr(file_stream, "__aiter__"):
        async for fragment in file_stream:
            yield fragment
        return

    if hasattr(file_stream, "read"):
        while True:
            fragment = file_stream.read(STREAM_READ_SIZE_BYTES)
            if asyncio.iscoroutine(fragment):
                fragment = await fragment
            if not fragment:
                break
            yield fragment
        return

    for fragment in file_stream:
        yield fragment


async def run_in_batches(
    indices: Sequence[int],
    parallel: int,
    operation: Callable[[int], Awaitable[Any]],
) -> AsyncIterator[List[Tuple[int, Any]]]:
    """
    Run operation over indices, at most `parallel` at a time.

    Each batch is awaited as a whole before the next one starts. Yields
    (index, result) pairs per batch, where result is the raised exception
    if the operation failed.
    """
    for start in range(0, len(indices), parallel):
        batch = indices[start:start + parallel]
        results = await asyncio.gather(*(operation(index) for index in batch), return_exceptions=True)
        yield list(zip(batch, results))


class FileStorage:
    """
    Stores files as fixed-size chunks plus a metadata record and a
    file index entry.

    Key layout:
        chunk:{file_name}:{index}  binary chunk payload
        meta:{file_name}           JSON FileMetadata
        uploaded_files             list of uploaded file names
    """

    def __init__(
        self,
        backend: StorageBackend,
        max_chunk_size: int = MAX_CHUNK_SIZE_BYTES,
        memory_monitor: Optional[MemoryMonitor] = None,
        memory_check_interval: int = MEMORY_CHECK_INTERVAL,
    ):
        self.backend = backend
        self.max_chunk_size = max_chunk_size
        self.memory_monitor = memory_monitor or MemoryMonitor()
        self.memory_check_interval = max(1, memory_check_interval)

    async def upload_file(
        self,
        file_stream: Any,
        file_name: str,
        chunk_size: int,
        parallel: int = 1,
    ) -> FileMetadata:
        """
        Upload a file from a stream of byte fragments.

        Args:
            file_stream: Source of the file content (see iterate_fragments)
            file_name: Name the file is stored under
            chunk_size: Maximum size of each stored chunk in bytes
            parallel: Number of chunk writes in flight at once

        Returns:
            Metadata of the stored file

        Raises:
            ValidationError: If file_name or chunk_size is invalid
            MemoryPressureError: If memory usage crosses the threshold while buffering
            Exception: Any backend error, after best-effort cleanup
        """
        self._validate_upload(file_name, chunk_size)
        parallel = normalize_parallelism(parallel)

        buffer = await self._drain(file_stream, file_name)
        checksum = compute_checksum(buffer)
        chunks = split_into_chunks(buffer, chunk_size)
        del buffer

        total_size = sum(len(chunk) for chunk in chunks)
        logger.info(
            f"Uploading file {file_name} ({total_size} bytes, {len(chunks)} chunks, "
            f"chunk_size={chunk_size}, parallel={parallel})"
        )

        written_indices: List[int] = []

        try:
            await self._write_chunks(file_name, chunks, parallel, written_indices)

            metadata = FileMetadata(
                file_name=file_name,
                total_chunks=len(chunks),
                chunk_size=chunk_size,
                total_size=total_size,
                checksum=checksum,
                created_at=datetime.now(timezone.utc),
            )
            await self.backend.set(meta_key(file_name), metadata.serialize())
        except Exception as e:
            logger.error(f"Upload failed for file {file_name}: {e}")

            if written_indices:
                logger.info(f"Cleaning up {len(written_indices)} chunks of file {file_name}")
                await self._cleanup_chunks(file_name, written_indices, parallel)

            raise

        await self._clear_stale_chunks(file_name, metadata.total_chunks, parallel)
        await self.backend.rpush(FILE_INDEX_KEY, file_name)

        logger.info(f"Successfully uploaded file {file_name} with {metadata.total_chunks} chunks")
        return metadata

    def _validate_upload(self, file_name: str, chunk_size: int) -> None:
        if not file_name:
            raise ValidationError("File name must not be empty")

        if isinstance(chunk_size, bool) or not isinstance(chunk_size, int) or chunk_size <= 0:
            raise ValidationError(f"Chunk size must be a positive integer, got {chunk_size!r}")

        if chunk_size > self.max_chunk_size:
            raise ChunkSizeTooLargeError(
                f"Chunk size {chunk_size} exceeds maximum of {self.max_chunk_size} bytes"
            )

    async def _drain(self, file_stream: Any, file_name: str) -> bytearray:
        """
        Read the whole upload into memory.

        Memory usage is checked before the first fragment and then every
        memory_check_interval fragments.
        """
        context = f"buffering upload of {file_name}"
        buffer = bytearray()
        fragments = 0

        self.memory_monitor.check(context)

        async for fragment in iterate_fragments(file_stream):
            buffer += fragment
            fragments += 1
            if fragments % self.memory_check_interval == 0:
                self.memory_monitor.check(context)

        logger.debug(f"Buffered {len(buffer)} bytes in {fragments} fragments for {file_name}")
        return buffer

    async def _write_chunks(
        self,
        file_name: str,
        chunks: List[bytes],
        parallel: int,
        written_indices: List[int],
    ) -> None:
        async def write(index: int) -> None:
            await self.backend.set(chunk_key(file_name, index), chunks[index])
            logger.debug(f"Wrote chunk {index + 1}/{len(chunks)} of {file_name} ({len(chunks[index])} bytes)")

        async for batch in run_in_batches(range(len(chunks)), parallel, write):
            failure: Optional[Tuple[int, BaseException]] = None

            for index, result in batch:
                if isinstance(result, BaseException):
                    if failure is None:
                        failure = (index, result)
                else:
                    written_indices.append(index)

            if failure is not None:
                index, error = failure
                logger.error(f"Failed to write chunk {index} of {file_name}: {error}")
                raise error

    async def _cleanup_chunks(self, file_name: str, indices: List[int], parallel: int) -> List[int]:
        """
        Overwrite chunk slots with empty payloads.

        Failures are logged and never raised.

        Returns:
            Indices that could not be cleaned up
        """
        async def blank(index: int) -> None:
            await self.backend.set(chunk_key(file_name, index), b"")

        failed = []
        async for batch in run_in_batches(sorted(indices), parallel, blank):
            for index, result in batch:
                if isinstance(result, BaseException):
                    logger.error(f"Failed to clean up chunk {index} of {file_name}: {result}")
                    failed.append(index)

        if failed:
            logger.warning(f"{len(failed)} chunks of {file_name} were left behind after cleanup")

        return failed

    async def _clear_stale_chunks(self, file_name: str, total_chunks: int, parallel: int) -> None:
        """
        Blank chunk slots at or past total_chunks left by a longer earlier
        version of file_name.

        Runs after the new metadata is stored. Failures are logged and
        never raised.
        """
        try:
            keys = await self.backend.keys(chunk_key_pattern(file_name))
        except Exception as e:
            logger.error(f"Failed to list chunks of {file_name} for stale chunk cleanup: {e}")
            return

        indices = (parse_chunk_index(key, file_name) for key in keys)
        stale = sorted(index for index in indices if index is not None and index >= total_chunks)
        if not stale:
            return

        logger.info(f"Clearing {len(stale)} stale chunks of file {file_name} from a previous upload")
        await self._cleanup_chunks(file_name, stale, parallel)

    async def get_file_metadata(self, file_name: str) -> FileMetadata:
        """
        Fetch and validate the metadata record of a file.

        Raises:
            FileNotFoundError: If no metadata exists for file_name
            InvalidMetadataError: If the record is malformed or inconsistent
        """
        raw = await self.backend.get(meta_key(file_name))
        if raw is None:
            raise FileNotFoundError(f"File {file_name} not found")

        try:
            metadata = FileMetadata.deserialize(raw)
        except (ValueError, KeyError, TypeError) as e:
            raise InvalidMetadataError(f"Invalid metadata for file {file_name}: {e}") from e

        if metadata.total_chunks < 0 or metadata.total_size < 0 or metadata.chunk_size <= 0:
            raise InvalidMetadataError(
                f"Invalid metadata for file {file_name}: totalChunks={metadata.total_chunks}, "
                f"totalSize={metadata.total_size}, chunkSize={metadata.chunk_size}"
            )

        if len(metadata.checksum) != CHECKSUM_HEX_LENGTH:
            raise InvalidMetadataError(f"Invalid metadata for file {file_name}: malformed checksum")

        expected_chunks = -(-metadata.total_size // metadata.chunk_size)
        if metadata.total_chunks != expected_chunks:
            raise InvalidMetadataError(
                f"Invalid metadata for file {file_name}: {metadata.total_chunks} chunks "
                f"cannot hold {metadata.total_size} bytes at chunk size {metadata.chunk_size}"
            )

        return metadata

    async def download_file(self, file_name: str, parallel: int = 1) -> bytes:
        """
        Download and reassemble a file, verifying its checksum.

        Args:
            file_name: Name of the file to download
            parallel: Number of chunk reads in flight at once

        Returns:
            Complete file content

        Raises:
            FileNotFoundError: If the file does not exist
            ChunkNotFoundError: If a chunk is absent or was blanked by cleanup
            InvalidMetadataError: If the metadata record is unusable
            ChecksumMismatchError: If the reassembled content is corrupted
        """
        metadata = await self.get_file_metadata(file_name)
        parallel = normalize_parallelism(parallel)
        total_chunks = metadata.total_chunks

        logger.info(
            f"Starting download of file {file_name} ({total_chunks} chunks, "
            f"{metadata.total_size} bytes, parallel={parallel})"
        )

        async def fetch(index: int) -> Tuple[int, bytes]:
            data = await self.backend.get_buffer(chunk_key(file_name, index))
            if not data:
                raise ChunkNotFoundError(
                    f"Chunk {index} of file {file_name} not found ({total_chunks} chunks expected)"
                )
            logger.debug(f"Fetched chunk {index + 1}/{total_chunks} of {file_name} ({len(data)} bytes)")
            return index, data

        chunks: List[bytes] = []

        async for batch in run_in_batches(range(total_chunks), parallel, fetch):
            for index, result in batch:
                if isinstance(result, BaseException):
                    logger.error(f"Failed to fetch chunk {index} of {file_name}: {result}")
                    raise result

            for _, data in sorted((result for _, result in batch), key=lambda item: item[0]):
                chunks.append(data)

        content = b"".join(chunks)

        if len(content) != metadata.total_size:
            raise ChecksumMismatchError(
                f"File {file_name} is corrupted: expected {metadata.total_size} bytes, got {len(content)}"
            )

        if not verify_checksum(content, metadata.checksum):
            raise ChecksumMismatchError(
                f"File {file_name} is corrupted: checksum {compute_checksum(content)} "
                f"does not match {metadata.checksum}"
            )

        logger.info(f"Successfully downloaded file {file_name}: {len(content)} bytes")
        return content

    async def list_uploaded_files(self) -> List[str]:
        """
        List uploaded file names from the file index.

        Names appear once each, in the order they were first uploaded.
        """
        names = await self.backend.get_list_all(FILE_INDEX_KEY)
        return list(dict.fromkeys(names))
