"""Monotonic high-resolution clock in milliseconds."""

import time

_NS_PER_MS = 1_000_000


def now() -> float:
    """
    Read the current instant in milliseconds.

    Backed by ``time.perf_counter_ns``: monotonic, sub-microsecond resolution.
    Only the difference between two readings is meaningful.
    """
    return time.perf_counter_ns() / _NS_PER_MS
