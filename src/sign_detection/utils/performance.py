"""
Cycle Timing
=============

Rolling-window timing for the detection loop: cycle rate, cycle latency
and the number of ticks skipped because a cycle overran its period.
"""

import logging
import threading
import time
from collections import deque
from typing import Optional

logger = logging.getLogger(__name__)


class Timer:
    """
    High-precision timer for measuring code execution time.

    Example:
        >>> with Timer("estimate") as t:
        ...     hands = detector.estimate(image)
        >>> print(f"Took {t.elapsed_ms:.2f}ms")
    """

    def __init__(self, name: str = ""):
        self.name = name
        self._start_time: Optional[float] = None
        self._end_time: Optional[float] = None

    def start(self) -> "Timer":
        self._start_time = time.perf_counter()
        self._end_time = None
        return self

    def stop(self) -> float:
        """Stop the timer and return elapsed time in seconds."""
        self._end_time = time.perf_counter()
        return self.elapsed

    @property
    def elapsed(self) -> float:
        """Elapsed time in seconds (running time if not stopped)."""
        if self._start_time is None:
            return 0.0
        end = self._end_time if self._end_time is not None else time.perf_counter()
        return end - self._start_time

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed * 1000

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False


class CycleMonitor:
    """
    Tracks detection cycle timing over a rolling window.

    Example:
        >>> monitor = CycleMonitor()
        >>> monitor.record(cycle_seconds)
        >>> monitor.record_skipped(2)
        >>> print(monitor.get_report())
    """

    def __init__(self, window_size: int = 30):
        self.window_size = window_size
        self._durations: deque = deque(maxlen=window_size)
        self._starts: deque = deque(maxlen=window_size)
        self._total_cycles = 0
        self._skipped_cycles = 0
        self._lock = threading.Lock()

    def reset(self) -> None:
        with self._lock:
            self._durations.clear()
            self._starts.clear()
            self._total_cycles = 0
            self._skipped_cycles = 0

    def record(self, duration: float, started_at: Optional[float] = None) -> None:
        """Record one completed cycle of ``duration`` seconds."""
        with self._lock:
            self._durations.append(duration)
            self._starts.append(time.perf_counter() - duration if started_at is None else started_at)
            self._total_cycles += 1

    def record_skipped(self, count: int = 1) -> None:
        with self._lock:
            self._skipped_cycles += count
        logger.debug("Skipped %d tick(s): previous cycle still running", count)

    @property
    def total_cycles(self) -> int:
        with self._lock:
            return self._total_cycles

    @property
    def skipped_cycles(self) -> int:
        with self._lock:
            return self._skipped_cycles

    @property
    def latency_ms(self) -> float:
        """Average cycle duration in milliseconds."""
        with self._lock:
            if not self._durations:
                return 0.0
            return (sum(self._durations) / len(self._durations)) * 1000

    @property
    def rate(self) -> float:
        """Cycles per second over the window."""
        with self._lock:
            if len(self._starts) < 2:
                return 0.0
            span = self._starts[-1] - self._starts[0]
            return (len(self._starts) - 1) / span if span > 0 else 0.0

    def get_report(self) -> str:
        """Get formatted timing report string."""
        total = self.total_cycles
        skipped = self.skipped_cycles
        return (
            f"Detection Cycles\n"
            f"{'=' * 40}\n"
            f"Rate: {self.rate:.1f}/s\n"
            f"Cycle Latency: {self.latency_ms:.1f}ms\n"
            f"Total: {total}\n"
            f"Skipped: {skipped} ({100 * skipped / max(1, total + skipped):.1f}%)\n"
        )
