"""Performance monitoring utilities for the BoQ analysis operations."""
import time
import logging
import threading
import functools
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger("boq-pareto-api.perf")


def timed_async(operation: str) -> Callable:
    """
    Decorator that measures an async operation, logs the duration and records
    it (or the failure) on the module-level tracker.

    Usage::

        @timed_async("process")
        async def process(self, project_id):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception:
                tracker.record_error(operation)
                raise
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            tracker.record_run(operation, duration_ms)
            logger.debug(
                "operation timed",
                extra={
                    "function": func.__qualname__,
                    "operation": operation,
                    "duration_ms": duration_ms,
                },
            )
            return result
        return wrapper
    return decorator


class PerformanceTracker:
    """
    Thread-safe in-memory tracker for per-operation metrics.

    Tracks:
    - Completed runs and their durations per operation (process, wbs, insights, ...)
    - Slowest single run across all operations
    - Error count broken down by operation
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._durations: Dict[str, list] = {}   # operation -> [duration_ms, ...]
        self._error_counts: Dict[str, int] = {}  # operation -> count
        self._slowest_operation: Optional[str] = None
        self._slowest_ms: float = 0.0

    # ------------------------------------------------------------------
    # Public write API
    # ------------------------------------------------------------------

    def record_run(self, operation: str, duration_ms: float) -> None:
        with self._lock:
            self._durations.setdefault(operation, []).append(duration_ms)
            if duration_ms > self._slowest_ms:
                self._slowest_ms = duration_ms
                self._slowest_operation = operation

    def record_error(self, operation: str) -> None:
        with self._lock:
            self._error_counts[operation] = self._error_counts.get(operation, 0) + 1

    # ------------------------------------------------------------------
    # Public read API
    # ------------------------------------------------------------------

    def get_metrics(self) -> Dict[str, Any]:
        """
        Return a snapshot of all collected metrics.

        Returns
        -------
        dict with keys:
            runs_by_operation      : dict  {operation: count}
            avg_duration_ms        : dict  {operation: avg_ms}
            slowest_operation      : str | None
            slowest_ms             : float
            error_count            : int   (total across all operations)
            error_count_by_operation : dict  {operation: count}
        """
        with self._lock:
            avgs: Dict[str, float] = {}
            for op, durations in self._durations.items():
                avgs[op] = round(sum(durations) / len(durations), 2) if durations else 0.0

            return {
                "runs_by_operation": {op: len(d) for op, d in self._durations.items()},
                "avg_duration_ms": avgs,
                "slowest_operation": self._slowest_operation,
                "slowest_ms": round(self._slowest_ms, 2),
                "error_count": sum(self._error_counts.values()),
                "error_count_by_operation": dict(self._error_counts),
            }

    def reset(self) -> None:
        """Reset all counters (useful in tests)."""
        with self._lock:
            self._durations.clear()
            self._error_counts.clear()
            self._slowest_operation = None
            self._slowest_ms = 0.0


# Module-level singleton — import this instance everywhere else.
tracker = PerformanceTracker()
