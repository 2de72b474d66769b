"""Epoch timestamp types and bucket arithmetic.

The ingestion core works exclusively in EpochMillis. Chart consumers want
whole epoch seconds, and the single conversion point is millis_to_seconds().
"""

import time
from typing import NewType

EpochMillis = NewType("EpochMillis", int)
EpochSeconds = NewType("EpochSeconds", int)


def now_millis() -> EpochMillis:
    """Return the current wall-clock time in epoch milliseconds."""
    return EpochMillis(int(time.time() * 1000))


def snap_to_bucket(timestamp_ms: EpochMillis, bucket_width_ms: int) -> EpochMillis:
    """Floor a timestamp to the start of its bucket.

    Idempotent: snapping an already-snapped timestamp returns it unchanged.
    """
    if bucket_width_ms <= 0:
        raise ValueError(f"bucket width must be positive, got {bucket_width_ms}")
    return EpochMillis((timestamp_ms // bucket_width_ms) * bucket_width_ms)


def millis_to_seconds(timestamp_ms: EpochMillis) -> EpochSeconds:
    """Convert epoch milliseconds to whole epoch seconds for chart rendering.

    Raises:
        TypeError: If the value is not an integer (e.g. a float or a
            seconds value that was already converted to something else).
        ValueError: If the value is negative.
    """
    if isinstance(timestamp_ms, bool) or not isinstance(timestamp_ms, int):
        raise TypeError(f"expected integer epoch milliseconds, got {timestamp_ms!r}")
    if timestamp_ms < 0:
        raise ValueError(f"epoch milliseconds must be non-negative, got {timestamp_ms}")
    return EpochSeconds(timestamp_ms // 1000)
