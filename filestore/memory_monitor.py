"""Memory pressure check used as admission control while buffering uploads."""

import logging
from typing import Callable, Optional

import psutil

from filestore.config import MEMORY_PRESSURE_THRESHOLD
from filestore.exceptions import MemoryPressureError

logger = logging.getLogger(__name__)


def process_memory_ratio() -> float:
    """Resident memory of this process as a fraction of total system memory (0.0 - 1.0)."""
    rss = psutil.Process().memory_info().rss
    return rss / psutil.virtual_memory().total


class MemoryMonitor:
    """
    Compares the current memory usage ratio against a threshold.

    Args:
        threshold: Usage ratio above which uploads are aborted
        usage_reader: Callable returning the current usage ratio, defaults to
            this process's resident memory reported by psutil
    """

    def __init__(
        self,
        threshold: float = MEMORY_PRESSURE_THRESHOLD,
        usage_reader: Optional[Callable[[], float]] = None,
    ):
        if not 0.0 < threshold <= 1.0:
            raise ValueError(f"Memory threshold must be in (0, 1], got {threshold}")
        self.threshold = threshold
        self._usage_reader = usage_reader or process_memory_ratio

    def usage_ratio(self) -> float:
        return self._usage_reader()

    def is_under_pressure(self) -> bool:
        return self.usage_ratio() > self.threshold

    def check(self, context: str = "") -> None:
        """
        Raise if memory usage is above the threshold.

        Args:
            context: Short description of the operation, for the error message

        Raises:
            MemoryPressureError: If usage ratio exceeds the threshold
        """
        ratio = self.usage_ratio()
        if ratio > self.threshold:
            logger.warning(f"Memory usage {ratio:.1%} above threshold {self.threshold:.1%} [{context}]")
            raise MemoryPressureError(
                f"Memory usage {ratio:.1%} exceeds threshold {self.threshold:.1%}"
                + (f" while {context}" if context else "")
            )
