"""Unit tests for the memory pressure monitor."""

from unittest.mock import patch, MagicMock

import pytest

from filestore.exceptions import MemoryPressureError
from filestore.memory_monitor import MemoryMonitor, process_memory_ratio


def test_check_passes_below_threshold():
    monitor = MemoryMonitor(threshold=0.8, usage_reader=lambda: 0.5)

    monitor.check("buffering upload")

    assert monitor.is_under_pressure() is False


def test_check_raises_above_threshold():
    monitor = MemoryMonitor(threshold=0.8, usage_reader=lambda: 0.85)

    with pytest.raises(MemoryPressureError, match="while buffering upload of a.bin"):
        monitor.check("buffering upload of a.bin")

    assert monitor.is_under_pressure() is True


def test_threshold_is_exclusive():
    monitor = MemoryMonitor(threshold=0.8, usage_reader=lambda: 0.8)

    monitor.check()


@pytest.mark.parametrize("threshold", [0.0, -0.1, 1.5])
def test_invalid_threshold(threshold):
    with pytest.raises(ValueError):
        MemoryMonitor(threshold=threshold)


def _patch_memory(rss, total, percent=99.0):
    process = MagicMock()
    process.memory_info.return_value = MagicMock(rss=rss)
    return (
        patch("filestore.memory_monitor.psutil.Process", return_value=process),
        patch("filestore.memory_monitor.psutil.virtual_memory", return_value=MagicMock(total=total, percent=percent)),
    )


def test_process_memory_ratio_uses_resident_memory():
    process_patch, virtual_patch = _patch_memory(rss=420, total=1000)
    with process_patch, virtual_patch:
        assert process_memory_ratio() == pytest.approx(0.42)


def test_process_memory_ratio_ignores_system_wide_usage():
    # A busy host must not reject uploads while this process is small.
    process_patch, virtual_patch = _patch_memory(rss=100, total=1000, percent=97.0)
    with process_patch, virtual_patch:
        monitor = MemoryMonitor(threshold=0.9)
        assert monitor.usage_ratio() == pytest.approx(0.1)
        assert monitor.is_under_pressure() is False
        monitor.check("buffering upload")


def test_default_reader_is_process_memory():
    process_patch, virtual_patch = _patch_memory(rss=950, total=1000)
    with process_patch, virtual_patch:
        monitor = MemoryMonitor(threshold=0.9)
        assert monitor.usage_ratio() == pytest.approx(0.95)
        assert monitor.is_under_pressure() is True
