"""
Performance Monitoring Utilities

Timing decorators and context managers for upstream calls and uploads.
Every measurement is logged and recorded in the global tracker, which
backs the /stats/performance endpoint.
"""

import time
import logging
import functools
import inspect
import threading
from typing import Optional, Callable, Any, Dict, List
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class PerformanceTracker:
    """
    Collect named timing measurements and summarize them.

    Measurements may be recorded from the request threadpool, so access is
    guarded by a lock.
    """

    def __init__(self):
        self._measurements: Dict[str, List[float]] = {}
        self._lock = threading.Lock()

    def record(self, name: str, elapsed: float) -> None:
        """
        Record one measurement.

        Args:
            name: Name of the operation
            elapsed: Duration in seconds
        """
        with self._lock:
            self._measurements.setdefault(name, []).append(elapsed)

    def report(self, log_level: str = "INFO") -> dict:
        """
        Summarize and log all measurements.

        Args:
            log_level: Logging level for the report

        Returns:
            Dictionary of per-operation statistics in milliseconds
        """
        log_func = getattr(logger, log_level.lower())

        with self._lock:
            snapshot = {name: list(values) for name, values in self._measurements.items()}

        report = {}
        for name, measurements in sorted(snapshot.items()):
            count = len(measurements)
            total = sum(measurements)
            avg = total / count if count > 0 else 0

            report[name] = {
                "count": count,
                "total_ms": total * 1000,
                "avg_ms": avg * 1000,
                "min_ms": min(measurements) * 1000,
                "max_ms": max(measurements) * 1000,
            }

            log_func(
                f"{name}: count={count}, avg={avg*1000:.2f}ms, "
                f"min={min(measurements)*1000:.2f}ms, max={max(measurements)*1000:.2f}ms"
            )

        return report

    def clear(self) -> None:
        """Clear all measurements."""
        with self._lock:
            self._measurements.clear()


# Global performance tracker for the application
_global_tracker = PerformanceTracker()


def get_tracker() -> PerformanceTracker:
    """Get the global performance tracker."""
    return _global_tracker


def _finish(name: str, start_time: float, log_level: str) -> None:
    elapsed = time.perf_counter() - start_time
    _global_tracker.record(name, elapsed)
    getattr(logger, log_level.lower())(f"{name} took {elapsed*1000:.2f}ms")


def timer(name: Optional[str] = None, log_level: str = "DEBUG"):
    """
    Decorator to time function execution.

    Usage:
        @timer("Calendar: fetch upstream")
        def fetch():
            pass

    Args:
        name: Custom name for the timer (defaults to function name)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    def decorator(func: Callable) -> Callable:
        timer_name = name or func.__name__

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs) -> Any:
            start_time = time.perf_counter()
            try:
                return func(*args, **kwargs)
            finally:
                _finish(timer_name, start_time, log_level)

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs) -> Any:
            start_time = time.perf_counter()
            try:
                return await func(*args, **kwargs)
            finally:
                _finish(timer_name, start_time, log_level)

        if inspect.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator


@contextmanager
def timer_context(name: str, log_level: str = "DEBUG"):
    """
    Context manager to time a code block.

    Usage:
        with timer_context("Upload: write file"):
            pass

    Args:
        name: Name for the timer
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    start_time = time.perf_counter()
    try:
        yield
    finally:
        _finish(name, start_time, log_level)
