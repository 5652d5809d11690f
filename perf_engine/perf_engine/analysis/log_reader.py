"""Read performance logs written by the progress monitor."""

from __future__ import annotations

import csv
import logging
from pathlib import Path

from pydantic import ValidationError

from perf_engine.models.analysis import PerformanceRecord
from perf_engine.monitor.session_logs import PERFORMANCE_COLUMNS

logger = logging.getLogger(__name__)

PERFORMANCE_LOG_SUFFIX = "-performance.log"


def job_name_from_log(path: Path) -> str:
    """Return the job name encoded in a ``<job>-performance.log`` file name."""
    name = path.name
    if name.endswith(PERFORMANCE_LOG_SUFFIX):
        return name[: -len(PERFORMANCE_LOG_SUFFIX)]
    return path.stem


def read_performance_log(path: Path) -> list[PerformanceRecord]:
    """Parse the data rows of *path*.

    Comment lines, the column header and rows that do not parse are
    skipped; a log from an interrupted session is still readable.
    """
    records: list[PerformanceRecord] = []
    with path.open(encoding="utf-8", newline="") as fh:
        data_lines = (line for line in fh if line.strip() and not line.startswith("#"))
        for line_no, row in enumerate(csv.reader(data_lines), start=1):
            if row and row[0] == PERFORMANCE_COLUMNS[0]:
                continue
            if len(row) != len(PERFORMANCE_COLUMNS):
                logger.debug("Skipping row %d of %s: %d fields", line_no, path, len(row))
                continue
            timestamp, status, _progress, items, total, rate, _phase, elapsed = row
            try:
                records.append(
                    PerformanceRecord(
                        timestamp=timestamp,
                        status=status,
                        items_processed=int(items),
                        total_items=int(total),
                        items_per_second=float(rate),
                        elapsed_seconds=float(elapsed),
                    )
                )
            except (ValueError, ValidationError):
                logger.debug("Skipping malformed row %d of %s: %s", line_no, path, row)
    return records
