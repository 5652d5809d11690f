"""Throughput arithmetic for consecutive samples."""

from __future__ import annotations

from perf_engine.models.sample import RateSample


def compute_rate(
    previous_items: int,
    current_items: int,
    previous_time: float,
    current_time: float,
    precision: int = 2,
) -> RateSample:
    """Return items/second between two observations.

    The rate is exactly ``0.0`` when the time delta is non-positive or the
    job reported fewer items than before.  It is never negative.
    """
    items_delta = current_items - previous_items
    seconds_delta = current_time - previous_time
    if seconds_delta <= 0 or items_delta <= 0:
        rate = 0.0
    else:
        rate = round(items_delta / seconds_delta, precision)
    return RateSample(items_delta=items_delta, seconds_delta=seconds_delta, items_per_second=rate)


def average_rate(items_processed: int, elapsed_seconds: float, precision: int = 2) -> float:
    """Items processed per second over the whole session."""
    if elapsed_seconds <= 0 or items_processed <= 0:
        return 0.0
    return round(items_processed / elapsed_seconds, precision)
