"""Benchmark helpers: job start-up checks and rate classification."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum

from perf_engine.config import Settings
from perf_engine.errors import JobNotFoundError, TransientQueryError, VeleroCommandError
from perf_engine.kube import JobStatusSource
from perf_engine.models.job import JobHandle, JobKind, JobPhase, JobStatus
from perf_engine.retry import RetryConfig, retry_with_backoff


class RateClass(str, Enum):
    """Coarse verdict on an average processing rate."""

    SLOW = "SLOW"
    MODERATE = "MODERATE"
    FAST = "FAST"


def classify_rate(
    average_rate: float,
    slow_below: float = 10.0,
    moderate_below: float = 50.0,
) -> RateClass:
    """Classify *average_rate* (objects/second)."""
    if average_rate < slow_below:
        return RateClass.SLOW
    if average_rate < moderate_below:
        return RateClass.MODERATE
    return RateClass.FAST


def classify_with_settings(average_rate: float, settings: Settings) -> RateClass:
    return classify_rate(average_rate, settings.slow_rate_below, settings.moderate_rate_below)


def wait_for_job(
    store: JobStatusSource,
    handle: JobHandle,
    config: RetryConfig | None = None,
    sleep: Callable[[float], None] | None = None,
) -> JobStatus:
    """Poll until a just-created job becomes visible in the cluster.

    Raises
    ------
    JobNotFoundError
        If the job is still missing after all retries.
    """
    kwargs = {} if sleep is None else {"sleep": sleep}
    return retry_with_backoff(
        lambda: store.get_status(handle),
        config or RetryConfig(),
        retryable_exceptions=(JobNotFoundError, TransientQueryError),
        **kwargs,
    )


def ensure_backup_completed(store: JobStatusSource, backup_name: str, namespace: str) -> JobStatus:
    """Return the status of *backup_name*, which must be ``Completed`` to restore from.

    Raises
    ------
    JobNotFoundError
        If the backup does not exist.
    VeleroCommandError
        If the backup exists but is not completed, or cannot be queried.
    """
    handle = JobHandle(name=backup_name, namespace=namespace, kind=JobKind.BACKUP)
    try:
        status = store.get_status(handle)
    except TransientQueryError as exc:
        raise VeleroCommandError(f"Cannot query backup '{backup_name}': {exc}") from exc
    if status.phase is not JobPhase.COMPLETED:
        raise VeleroCommandError(f"Backup '{backup_name}' is not completed (Status: {status.phase.value})")
    return status
