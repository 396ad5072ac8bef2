"""Helpers shared by test modules."""


async def byte_stream(data: bytes, fragment_size: int = 7):
    """
    Async stream of fragments whose sizes do not line up with chunk sizes.
    """
    for offset in range(0, len(data), fragment_size):
        yield data[offset:offset + fragment_size]
