"""Velero job creation and benchmark verdicts."""

from __future__ import annotations

from perf_engine.velero.benchmark import (
    RateClass,
    classify_rate,
    classify_with_settings,
    ensure_backup_completed,
    wait_for_job,
)
from perf_engine.velero.velero_client import VeleroClient, timestamped_name

__all__ = [
    "RateClass",
    "VeleroClient",
    "classify_rate",
    "classify_with_settings",
    "ensure_backup_completed",
    "timestamped_name",
    "wait_for_job",
]
