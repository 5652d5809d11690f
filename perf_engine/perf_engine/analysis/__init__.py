"""Performance log analysis."""

from __future__ import annotations

from perf_engine.analysis.analyzer import (
    analyze_directory,
    analyze_log_file,
    analyze_records,
    render_analysis_report,
    write_directory_summary,
    write_visualization_csv,
)
from perf_engine.analysis.log_reader import job_name_from_log, read_performance_log

__all__ = [
    "analyze_directory",
    "analyze_log_file",
    "analyze_records",
    "job_name_from_log",
    "read_performance_log",
    "render_analysis_report",
    "write_directory_summary",
    "write_visualization_csv",
]
