"""Shared pytest fixtures for all tests."""

import os

import pytest

from filestore.backends.memory import InMemoryStorageBackend
from filestore.memory_monitor import MemoryMonitor
from filestore.services.file_storage import FileStorage


@pytest.fixture
def backend():
    """
    Create an empty in-memory backend.

    Returns:
        InMemoryStorageBackend instance
    """
    return InMemoryStorageBackend()


@pytest.fixture
def memory_monitor():
    """Memory monitor reporting a fixed, low usage ratio."""
    return MemoryMonitor(threshold=0.9, usage_reader=lambda: 0.25)


@pytest.fixture
def file_storage(backend, memory_monitor):
    """
    Create a FileStorage on the in-memory backend.

    Args:
        backend: In-memory backend fixture
        memory_monitor: Stub memory monitor fixture

    Returns:
        FileStorage instance with a 1 MiB chunk size ceiling
    """
    return FileStorage(
        backend=backend,
        max_chunk_size=1024 * 1024,
        memory_monitor=memory_monitor,
        memory_check_interval=4,
    )


@pytest.fixture
def random_bytes():
    """Pseudo-random 1024-byte buffer."""
    return os.urandom(1024)
