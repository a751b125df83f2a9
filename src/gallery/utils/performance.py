import logging
import time
from typing import Optional

from prometheus_client import Counter, Histogram

logger = logging.getLogger(__name__)

# Prometheus Metrics
TRANSCODE_DURATION_SECONDS = Histogram(
    "image_transcode_seconds",
    "Time spent resizing and re-encoding an image",
    ["outcome"],
)

FALLBACK_TOTAL = Counter(
    "image_fallback_total",
    "Original files served after a failed transcode",
    ["result"],
)

SCAN_DURATION_SECONDS = Histogram(
    "directory_scan_seconds",
    "Time spent walking a directory and extracting metadata",
)


class PerformanceMonitor:
    """Helper to measure wall time of a unit of work."""

    def __init__(self):
        self.start_time = 0.0
        self.end_time = 0.0

    def start(self) -> "PerformanceMonitor":
        self.start_time = time.perf_counter()
        return self

    def stop(self) -> float:
        self.end_time = time.perf_counter()
        return self.duration

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    def report(self, label: str, count: Optional[int] = None) -> str:
        count_str = f" (N={count})" if count is not None else ""
        msg = f"[{label}]{count_str} Time: {self.duration:.4f}s"
        logger.debug(msg)
        return msg
