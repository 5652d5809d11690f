"""Query capability protocols used by the progress monitor.

The monitor depends on these protocols, never on the kubectl-backed
implementations, so tests and alternative backends can supply their own.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from perf_engine.models.job import JobHandle, JobStatus
from perf_engine.models.sample import ResourceUsage


@runtime_checkable
class JobStatusSource(Protocol):
    """Return the current phase and progress of a backup or restore."""

    def get_status(self, handle: JobHandle) -> JobStatus:
        """Query the job once.

        Raises:
            JobNotFoundError: The job does not exist.
            TransientQueryError: The query failed or returned malformed data.
        """
        ...


@runtime_checkable
class ResourceUsageSource(Protocol):
    """Return CPU/memory usage of the pods doing the work."""

    def get_usage(self, namespace: str, selector: str) -> ResourceUsage:
        """Query resource usage once.

        Unavailable fields are returned as placeholders.  May raise
        :class:`TransientQueryError` when nothing could be queried.
        """
        ...
