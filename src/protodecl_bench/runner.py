"""
Single-shot import timing.

measure_import brackets one synchronous importer call between two clock
readings. It keeps no state, so indexed and non-indexed variants are timed by
two independent calls and paired up by the caller.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from .importer import SchemaSource, load_schema
from .timer import now

logger = logging.getLogger(__name__)

Loader = Callable[[SchemaSource], Any]


def measure_import(
    source: SchemaSource,
    loader: Loader | None = None,
    *,
    clock: Callable[[], float] = now,
) -> float:
    """
    Measure the wall-clock time of importing one schema source.

    The importer's return value is discarded and its exceptions propagate
    unchanged, in which case no duration is produced.

    Args:
        source: Schema source handed to the loader as-is
        loader: Importer to time (default: load_schema)
        clock: Millisecond clock (default: timer.now)

    Returns:
        Elapsed milliseconds, fractional precision preserved
    """
    load = loader if loader is not None else load_schema

    start = clock()
    load(source)
    end = clock()

    duration = end - start
    if logger.isEnabledFor(logging.DEBUG):
        label = f"<{len(source)} bytes>" if isinstance(source, bytes) else repr(source)[:80]
        logger.debug("Imported %s in %.3f ms", label, duration)
    return duration
