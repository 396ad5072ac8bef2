"""SHA-1 checksum helpers for chunked file content."""

import hashlib
from typing import Union

BytesLike = Union[bytes, bytearray, memoryview]


def compute_checksum(data: BytesLike) -> str:
    """
    Compute SHA-1 checksum for given data.

    Only the logical window of the input is hashed: a memoryview over a
    larger buffer contributes exactly its own bytes.

    Args:
        data: Bytes, bytearray or memoryview to compute checksum for

    Returns:
        Hexadecimal string representation of SHA-1 hash (40 characters)
    """
    view = memoryview(data)
    if not view.c_contiguous:
        view = memoryview(view.tobytes())
    return hashlib.sha1(view.cast("B")).hexdigest()


def verify_checksum(data: BytesLike, expected: str) -> bool:
    """
    Verify that data matches expected checksum.

    Args:
        data: Bytes to verify
        expected: Expected SHA-1 checksum (hex string)

    Returns:
        True if checksum matches, False otherwise
    """
    return compute_checksum(data) == expected.lower()
