"""Log files written during a monitoring session.

Four files are produced under the output directory, each prefixed with the
job name:

* ``<job>-performance.log`` -- comment header then one CSV record per tick.
* ``<job>-resources.log`` -- one CSV record of server pod usage per tick.
* ``<job>-detailed.log`` -- ``[timestamp] [LEVEL] message`` lines.
* ``<job>-summary.log`` -- key/value block, overwritten at session end.

The performance and resource logs are append-only and owned exclusively by
the monitoring process, so no locking is done.
"""

from __future__ import annotations

import csv
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import IO, Any

from perf_engine.models.job import JobHandle
from perf_engine.models.sample import ResourceUsage, SessionSummary, StatusSample

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

PERFORMANCE_COLUMNS = (
    "timestamp",
    "status",
    "progress",
    "items_processed",
    "total_items",
    "items_per_second",
    "phase",
    "elapsed_seconds",
)
RESOURCE_COLUMNS = ("timestamp", "cpu_usage", "memory_usage", "pod_status")

_LINE_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"


def format_number(value: float) -> str:
    """Render whole numbers without a fractional part, others with two decimals."""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}"


def performance_log_path(output_dir: Path, job_name: str) -> Path:
    return output_dir / f"{job_name}-performance.log"


def summary_log_path(output_dir: Path, job_name: str) -> Path:
    return output_dir / f"{job_name}-summary.log"


class SessionLogs:
    """Owns the file handles and the leveled logger of one session."""

    def __init__(
        self,
        output_dir: Path,
        handle: JobHandle,
        poll_interval_seconds: int,
        *,
        verbose: bool = False,
        console_stream: IO[str] | None = None,
    ) -> None:
        self.output_dir = output_dir
        self.handle = handle
        self.poll_interval_seconds = poll_interval_seconds
        self.verbose = verbose
        self._console_stream = console_stream

        self.performance_log = performance_log_path(output_dir, handle.name)
        self.resource_log = output_dir / f"{handle.name}-resources.log"
        self.detailed_log = output_dir / f"{handle.name}-detailed.log"
        self.summary_log = summary_log_path(output_dir, handle.name)

        self.logger = logging.getLogger(f"perf_engine.session.{handle.name}")
        self._handlers: list[logging.Handler] = []

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self, started_at: datetime) -> None:
        """Create the output directory, write log headers and attach handlers."""
        self.output_dir.mkdir(parents=True, exist_ok=True)

        title = "Backup" if self.handle.kind.value == "backup" else "Restore"
        with self.performance_log.open("w", encoding="utf-8", newline="") as fh:
            fh.write(f"# Velero {title} Performance Monitoring - {started_at.strftime(TIMESTAMP_FORMAT)}\n")
            fh.write(f"# {title}: {self.handle.name}\n")
            fh.write(f"# Monitoring interval: {self.poll_interval_seconds}s\n")
            csv.writer(fh, lineterminator="\n").writerow(PERFORMANCE_COLUMNS)

        with self.resource_log.open("w", encoding="utf-8", newline="") as fh:
            fh.write(f"# Resource Usage Monitoring - {started_at.strftime(TIMESTAMP_FORMAT)}\n")
            csv.writer(fh, lineterminator="\n").writerow(RESOURCE_COLUMNS)

        self._attach_handlers()

    def close(self) -> None:
        """Flush and detach the logging handlers."""
        for handler in self._handlers:
            handler.flush()
            self.logger.removeHandler(handler)
            handler.close()
        self._handlers.clear()

    def __enter__(self) -> SessionLogs:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _attach_handlers(self) -> None:
        formatter = logging.Formatter(_LINE_FORMAT, datefmt=TIMESTAMP_FORMAT)

        file_handler = logging.FileHandler(self.detailed_log, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)

        console_handler = logging.StreamHandler(self._console_stream or sys.stderr)
        console_handler.setLevel(logging.DEBUG if self.verbose else logging.INFO)
        console_handler.setFormatter(formatter)

        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False
        for handler in (file_handler, console_handler):
            self.logger.addHandler(handler)
            self._handlers.append(handler)

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def write_sample(self, sample: StatusSample) -> None:
        row = (
            sample.timestamp.strftime(TIMESTAMP_FORMAT),
            sample.phase.value,
            sample.progress,
            sample.items_processed,
            sample.total_items,
            format_number(sample.items_per_second),
            sample.phase.value,
            format_number(sample.elapsed_seconds),
        )
        with self.performance_log.open("a", encoding="utf-8", newline="") as fh:
            csv.writer(fh, lineterminator="\n").writerow(row)

    def write_resources(self, timestamp: datetime, usage: ResourceUsage) -> None:
        row = (timestamp.strftime(TIMESTAMP_FORMAT), usage.cpu, usage.memory, usage.pod_phase)
        with self.resource_log.open("a", encoding="utf-8", newline="") as fh:
            csv.writer(fh, lineterminator="\n").writerow(row)

    def write_summary(self, summary: SessionSummary) -> None:
        """Overwrite the summary log with *summary*."""
        kind = summary.job.kind
        title = kind.value.capitalize()
        lines = [
            f"=== {kind.value.upper()} PERFORMANCE SUMMARY ===",
            f"{title} Name: {summary.job.name}",
            f"Namespace: {summary.job.namespace}",
            f"Final Status: {summary.final_phase.value}",
            f"Total Objects: {summary.total_items}",
            f"{kind.processed_label}: {summary.items_processed}",
            f"Total Duration: {format_number(summary.elapsed_seconds)}s",
            f"Average Rate: {format_number(summary.average_rate)} obj/s",
            f"Performance Degradation: {str(summary.degradation_detected).lower()}",
        ]
        event = summary.degradation
        if event is not None:
            lines.append(
                f"Degradation Detected At: {event.items_processed} objects "
                f"({format_number(event.items_per_second)} obj/s, "
                f"{format_number(event.elapsed_seconds)}s elapsed, "
                f"threshold: <{format_number(event.thresholds.low_rate)} obj/s "
                f"after {event.thresholds.item_mark} objects)"
            )
        lines.append(f"Generated: {summary.generated_at.strftime(TIMESTAMP_FORMAT)}")
        self.summary_log.write_text("\n".join(lines) + "\n", encoding="utf-8")
