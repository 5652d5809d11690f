"""Backup/restore progress monitoring."""

from __future__ import annotations

from perf_engine.monitor.progress_monitor import (
    MonitorOptions,
    MonitorSession,
    ProgressMonitor,
    create_monitor,
)
from perf_engine.monitor.rate import average_rate, compute_rate
from perf_engine.monitor.session_logs import SessionLogs, performance_log_path, summary_log_path

__all__ = [
    "MonitorOptions",
    "MonitorSession",
    "ProgressMonitor",
    "SessionLogs",
    "average_rate",
    "compute_rate",
    "create_monitor",
    "performance_log_path",
    "summary_log_path",
]
