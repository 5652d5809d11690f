"""Progress monitor for Velero backups and restores.

Polls the job at a fixed interval until it reaches a terminal phase
(Completed, Failed or PartiallyFailed), recording one performance sample
and one resource sample per tick, flagging the first slow sample past the
degradation mark, and writing a summary at the end.

The loop is single-threaded with a blocking sleep between polls.  All
per-session state lives in a :class:`MonitorSession` threaded through
:meth:`ProgressMonitor.tick`; only the previous measured sample is kept as
the rate baseline.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import IO, Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from perf_engine.config import Settings
from perf_engine.errors import ConfigError, JobNotFoundError, TransientQueryError
from perf_engine.kube import (
    JobStatusSource,
    KubectlJobStore,
    KubectlResourceSource,
    ResourceUsageSource,
    validate_resource_name,
)
from perf_engine.models.job import JobHandle, JobKind, JobStatus
from perf_engine.models.sample import (
    DegradationEvent,
    DegradationThresholds,
    ResourceUsage,
    SessionSummary,
    StatusSample,
)
from perf_engine.monitor.rate import average_rate, compute_rate
from perf_engine.monitor.session_logs import SessionLogs
from perf_engine.shell import require_binary

logger = logging.getLogger(__name__)

TickCallback = Callable[[StatusSample, ResourceUsage], None]


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------


class MonitorOptions(BaseModel):
    """Validated inputs of a monitoring session."""

    job_name: str = Field(..., min_length=1)
    namespace: str = Field(default="openshift-adp", min_length=1)
    kind: JobKind = JobKind.BACKUP
    poll_interval_seconds: int = Field(default=10, gt=0)
    output_dir: Path = Path("./backup-performance-logs")
    verbose: bool = False
    thresholds: DegradationThresholds = Field(default_factory=DegradationThresholds)
    resource_selector: str = "app.kubernetes.io/name=velero"
    rate_precision: int = Field(default=2, ge=0)

    @field_validator("job_name")
    @classmethod
    def _kubernetes_name(cls, v: str) -> str:
        validate_resource_name(v)
        return v

    @property
    def handle(self) -> JobHandle:
        return JobHandle(name=self.job_name, namespace=self.namespace, kind=self.kind)

    @classmethod
    def build(cls, settings: Settings, **values: Any) -> MonitorOptions:
        """Merge CLI values over *settings*, raising :class:`ConfigError` on bad input.

        ``None`` values fall back to the settings default.
        """
        if not values.get("job_name"):
            raise ConfigError("Job name is required")

        defaults: dict[str, Any] = {
            "namespace": settings.velero_namespace,
            "poll_interval_seconds": settings.poll_interval_seconds,
            "output_dir": settings.output_dir,
            "resource_selector": settings.velero_pod_selector,
            "rate_precision": settings.rate_precision,
        }
        item_mark = values.pop("item_mark", None)
        low_rate = values.pop("low_rate", None)
        merged = {**defaults, **{k: v for k, v in values.items() if v is not None}}

        try:
            merged["thresholds"] = DegradationThresholds(
                item_mark=settings.degradation_item_mark if item_mark is None else item_mark,
                low_rate=settings.degradation_rate_threshold if low_rate is None else low_rate,
            )
            return cls(**merged)
        except ValidationError as exc:
            first = exc.errors()[0]
            location = ".".join(str(part) for part in first["loc"]) or "options"
            raise ConfigError(f"Invalid {location}: {first['msg']}") from exc


# ---------------------------------------------------------------------------
# Session context
# ---------------------------------------------------------------------------


@dataclass
class MonitorSession:
    """Mutable state of one monitoring session."""

    handle: JobHandle
    started_at: datetime
    start_clock: float
    last_items: int = 0
    last_clock: float = 0.0
    last_elapsed: float = 0.0
    ticks: int = 0
    degradation: DegradationEvent | None = None

    def __post_init__(self) -> None:
        # The preflight status, read at start_clock, is the first rate baseline.
        self.last_clock = self.start_clock

    def advance(self, sample: StatusSample, clock: float) -> None:
        self.last_items = sample.items_processed
        self.last_clock = clock


# ---------------------------------------------------------------------------
# Monitor
# ---------------------------------------------------------------------------


class ProgressMonitor:
    """Observe a job until it reaches a terminal phase."""

    def __init__(
        self,
        options: MonitorOptions,
        job_store: JobStatusSource,
        resource_source: ResourceUsageSource,
        *,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], datetime] = datetime.now,
        sleep: Callable[[float], None] = time.sleep,
        on_tick: TickCallback | None = None,
        console_stream: IO[str] | None = None,
    ) -> None:
        self.options = options
        self._store = job_store
        self._resources = resource_source
        self._clock = clock
        self._now = wall_clock
        self._sleep = sleep
        self._on_tick = on_tick
        self._console_stream = console_stream

    @property
    def job_store(self) -> JobStatusSource:
        return self._store

    def preflight(self) -> JobStatus:
        """Verify the job exists before any log file is created and return its status.

        Raises
        ------
        JobNotFoundError
            If the job is missing or cannot be queried at all.
        """
        handle = self.options.handle
        try:
            return self._store.get_status(handle)
        except TransientQueryError as exc:
            logger.error("Initial status query failed: %s", exc)
            raise JobNotFoundError(handle.kind.value, handle.name, handle.namespace) from exc

    def run(self) -> SessionSummary:
        """Run the polling loop and return the session summary."""
        baseline = self.preflight()

        handle = self.options.handle
        started_at = self._now()
        session = MonitorSession(
            handle=handle,
            started_at=started_at,
            start_clock=self._clock(),
            last_items=baseline.items_processed,
        )
        logs = SessionLogs(
            self.options.output_dir,
            handle,
            self.options.poll_interval_seconds,
            verbose=self.options.verbose,
            console_stream=self._console_stream,
        )
        logs.open(started_at)

        with logs:
            logs.logger.info("Starting %s monitoring for: %s", handle.kind.value, handle.name)
            logs.logger.info("Output directory: %s", self.options.output_dir)
            try:
                while True:
                    summary = self.tick(session, logs)
                    if summary is not None:
                        return summary
                    self._sleep(self.options.poll_interval_seconds)
            except KeyboardInterrupt:
                logs.logger.warning(
                    "Monitoring interrupted after %d tick(s); %s %s continues running",
                    session.ticks,
                    handle.kind.value,
                    handle.name,
                )
                raise

    def tick(self, session: MonitorSession, logs: SessionLogs) -> SessionSummary | None:
        """Take one sample; return the summary when the job is terminal."""
        handle = session.handle
        clock = self._clock()
        timestamp = self._now()
        elapsed = max(clock - session.start_clock, session.last_elapsed)

        degraded = False
        try:
            status = self._store.get_status(handle)
        except (TransientQueryError, JobNotFoundError) as exc:
            logs.logger.warning("Status query failed, recording placeholder sample: %s", exc)
            status = JobStatus.unknown()
            degraded = True

        if degraded:
            rate = 0.0
            measured = False
        else:
            rate_sample = compute_rate(
                session.last_items,
                status.items_processed,
                session.last_clock,
                clock,
                self.options.rate_precision,
            )
            rate = rate_sample.items_per_second
            measured = rate_sample.seconds_delta > 0

        sample = StatusSample(
            timestamp=timestamp,
            phase=status.phase,
            items_processed=status.items_processed,
            total_items=status.total_items,
            elapsed_seconds=round(elapsed, 3),
            items_per_second=rate,
            degraded=degraded,
        )
        logs.write_sample(sample)

        usage = self._query_resources(logs)
        logs.write_resources(timestamp, usage)

        if measured:
            self._check_degradation(session, sample, logs)

        logs.logger.debug(
            "Status: %s | Progress: %d/%d | Rate: %s obj/s | Elapsed: %.0fs",
            sample.phase.value,
            sample.items_processed,
            sample.total_items,
            sample.items_per_second,
            sample.elapsed_seconds,
        )
        if self._on_tick is not None:
            self._on_tick(sample, usage)

        if not degraded:
            session.advance(sample, clock)
        session.last_elapsed = elapsed
        session.ticks += 1

        if not sample.phase.is_terminal:
            return None

        summary = self._summarize(session, sample)
        logs.write_summary(summary)
        logs.logger.info("%s finished with status: %s", handle.kind.value.capitalize(), sample.phase.value)
        logs.logger.info("Performance summary saved to: %s", logs.summary_log)
        return summary

    def _query_resources(self, logs: SessionLogs) -> ResourceUsage:
        try:
            return self._resources.get_usage(self.options.namespace, self.options.resource_selector)
        except TransientQueryError as exc:
            logs.logger.debug("Resource usage unavailable: %s", exc)
            return ResourceUsage.unavailable()

    def _check_degradation(self, session: MonitorSession, sample: StatusSample, logs: SessionLogs) -> None:
        if session.degradation is not None:
            return
        thresholds = self.options.thresholds
        if not thresholds.is_slow(sample.items_processed, sample.items_per_second):
            return

        session.degradation = DegradationEvent(
            timestamp=sample.timestamp,
            items_processed=sample.items_processed,
            items_per_second=sample.items_per_second,
            elapsed_seconds=sample.elapsed_seconds,
            thresholds=thresholds,
        )
        logs.logger.warning(
            "Performance degradation detected! Objects/sec: %s at %d objects (threshold: <%s obj/s after %d objects)",
            sample.items_per_second,
            sample.items_processed,
            thresholds.low_rate,
            thresholds.item_mark,
        )

    def _summarize(self, session: MonitorSession, sample: StatusSample) -> SessionSummary:
        return SessionSummary(
            job=session.handle,
            final_phase=sample.phase,
            total_items=sample.total_items,
            items_processed=sample.items_processed,
            elapsed_seconds=sample.elapsed_seconds,
            average_rate=average_rate(
                sample.items_processed,
                sample.elapsed_seconds,
                self.options.rate_precision,
            ),
            degradation_detected=session.degradation is not None,
            degradation=session.degradation,
            generated_at=self._now(),
        )


def create_monitor(
    options: MonitorOptions,
    settings: Settings,
    **kwargs: Any,
) -> ProgressMonitor:
    """Build a monitor backed by kubectl, checking the binary is installed.

    Raises
    ------
    DependencyMissingError
        If ``kubectl`` is not on ``PATH``.
    """
    kubectl = require_binary(settings.kubectl_binary)
    return ProgressMonitor(
        options,
        KubectlJobStore(kubectl, timeout=settings.query_timeout_seconds),
        KubectlResourceSource(kubectl, timeout=settings.query_timeout_seconds),
        **kwargs,
    )
