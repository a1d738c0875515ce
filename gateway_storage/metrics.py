"""
Prometheus metrics for gateway storage.

Tracks per-function query duration and outcome. The collectors are
registered in the default registry once, when this module is first
imported.
"""

import functools
import time
from typing import Callable, Tuple, TypeVar

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

T = TypeVar("T")

gateway_storage_queries_total = Counter(
    "gateway_storage_queries_total",
    "Total gateway storage function calls",
    ["function", "status"],
)

gateway_storage_query_duration_seconds = Histogram(
    "gateway_storage_query_duration_seconds",
    "Per gateway storage function query duration in seconds",
    ["function"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)


def track_db_operation(function: str, success: bool, duration: float):
    """Track database operation metrics."""
    status = "success" if success else "failure"
    gateway_storage_queries_total.labels(function=function, status=status).inc()
    gateway_storage_query_duration_seconds.labels(function=function).observe(duration)


def query_timer(function: str, func: Callable[[], T]) -> T:
    """
    Run ``func`` and record its duration and outcome under ``function``.

    The result or exception of ``func`` is passed through unchanged.

    Args:
        function: Label value identifying the storage function
        func: Zero-argument callable performing the storage call

    Returns:
        Whatever ``func`` returns
    """
    start = time.perf_counter()
    success = False
    try:
        result = func()
        success = True
        return result
    finally:
        track_db_operation(function, success, time.perf_counter() - start)


def timed(function: str):
    """Decorator form of :func:`query_timer`."""

    def decorator(wrapped):
        @functools.wraps(wrapped)
        def wrapper(*args, **kwargs):
            return query_timer(function, lambda: wrapped(*args, **kwargs))

        return wrapper

    return decorator


def render_metrics() -> Tuple[bytes, str]:
    """
    Render the default registry in the Prometheus text format.

    Returns:
        Tuple of (payload, content type) for a scrape endpoint
    """
    return generate_latest(), CONTENT_TYPE_LATEST
