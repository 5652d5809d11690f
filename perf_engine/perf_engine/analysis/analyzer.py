"""Post-session analysis of performance logs.

For every monitored job the analyzer reports basic metrics, every slow
sample past the degradation mark, the average rate before and after the
mark and the resulting performance drop.  It also exports a CSV suitable
for charting and a summary across all jobs in a log directory.
"""

from __future__ import annotations

import csv
import logging
from datetime import datetime
from pathlib import Path

from perf_engine.analysis.log_reader import (
    PERFORMANCE_LOG_SUFFIX,
    job_name_from_log,
    read_performance_log,
)
from perf_engine.errors import AnalysisError
from perf_engine.models.analysis import LogAnalysis, PerformanceRecord, SlowPeriod
from perf_engine.models.sample import DegradationThresholds
from perf_engine.monitor.rate import average_rate
from perf_engine.monitor.session_logs import TIMESTAMP_FORMAT, format_number

logger = logging.getLogger(__name__)

VISUALIZATION_COLUMNS = (
    "timestamp",
    "elapsed_seconds",
    "objects_processed",
    "rate_obj_per_sec",
    "cumulative_rate",
)

SUMMARY_FILE_NAME = "performance-summary.txt"


def _mean(values: list[float]) -> float | None:
    if not values:
        return None
    return sum(values) / len(values)


def analyze_records(
    job_name: str,
    records: list[PerformanceRecord],
    thresholds: DegradationThresholds | None = None,
    precision: int = 2,
) -> LogAnalysis:
    """Compute metrics for one job from its performance records."""
    thresholds = thresholds or DegradationThresholds()
    if not records:
        return LogAnalysis(job_name=job_name, thresholds=thresholds)

    last = records[-1]
    avg: float | None = None
    if last.items_processed > 0 and last.elapsed_seconds > 0:
        avg = average_rate(last.items_processed, last.elapsed_seconds, precision)

    slow = [
        SlowPeriod(items_processed=r.items_processed, items_per_second=r.items_per_second)
        for r in records
        if thresholds.is_slow(r.items_processed, r.items_per_second)
    ]

    before = _mean([r.items_per_second for r in records if 0 < r.items_processed <= thresholds.item_mark])
    after = _mean([r.items_per_second for r in records if r.items_processed > thresholds.item_mark])

    drop: float | None = None
    if before is not None and after is not None and before > 0:
        drop = round((before - after) / before * 100, precision)

    return LogAnalysis(
        job_name=job_name,
        intervals=len(records),
        final_status=last.status,
        items_processed=last.items_processed,
        total_items=last.total_items,
        elapsed_seconds=last.elapsed_seconds,
        average_rate=avg,
        thresholds=thresholds,
        slow_periods=slow,
        before_mark_rate=round(before, precision) if before is not None else None,
        after_mark_rate=round(after, precision) if after is not None else None,
        performance_drop_percent=drop,
    )


def write_visualization_csv(records: list[PerformanceRecord], path: Path, precision: int = 2) -> Path:
    """Write elapsed time, items and instantaneous/cumulative rates per sample."""
    with path.open("w", encoding="utf-8", newline="") as fh:
        writer = csv.writer(fh, lineterminator="\n")
        writer.writerow(VISUALIZATION_COLUMNS)
        for r in records:
            writer.writerow(
                (
                    r.timestamp,
                    format_number(r.elapsed_seconds),
                    r.items_processed,
                    format_number(r.items_per_second),
                    format_number(average_rate(r.items_processed, r.elapsed_seconds, precision)),
                )
            )
    return path


def _format_optional_rate(value: float | None) -> str:
    return "N/A" if value is None else format_number(value)


def render_analysis_report(analysis: LogAnalysis, csv_path: Path | None, report_path: Path) -> str:
    """Render the plain-text report for one job."""
    t = analysis.thresholds
    lines = [
        f"=== PERFORMANCE ANALYSIS: {analysis.job_name} ===",
        f"Generated: {datetime.now().strftime(TIMESTAMP_FORMAT)}",
        "",
    ]
    if analysis.intervals == 0:
        lines.append("No performance data found in log")
        return "\n".join(lines) + "\n"

    lines += [
        "BASIC METRICS:",
        f"- Total monitoring intervals: {analysis.intervals}",
        f"- Final status: {analysis.final_status}",
        f"- Objects processed: {analysis.items_processed}",
        f"- Total objects: {analysis.total_items}",
        f"- Total duration: {format_number(analysis.elapsed_seconds)}s",
    ]
    if analysis.average_rate is not None:
        lines.append(f"- Average processing rate: {format_number(analysis.average_rate)} objects/second")
    lines += ["", "PERFORMANCE DEGRADATION ANALYSIS:"]
    if analysis.degradation_detected:
        periods = ", ".join(
            f"{p.items_processed} objects ({format_number(p.items_per_second)} obj/s)" for p in analysis.slow_periods
        )
        lines += [
            "- Performance degradation detected: YES",
            f"- Slow periods count: {len(analysis.slow_periods)} intervals",
            f"- Slow periods: {periods}",
        ]
    else:
        lines.append("- Performance degradation detected: NO")
    lines.append(f"- Threshold: <{format_number(t.low_rate)} obj/s after {t.item_mark} objects")

    lines += [
        "",
        "PERFORMANCE PHASES:",
        f"- First {t.item_mark} objects average rate: {_format_optional_rate(analysis.before_mark_rate)} obj/s",
        f"- After {t.item_mark} objects average rate: {_format_optional_rate(analysis.after_mark_rate)} obj/s",
    ]
    if analysis.performance_drop_percent is not None:
        lines.append(
            f"- Performance drop after {t.item_mark} objects: {format_number(analysis.performance_drop_percent)}%"
        )

    lines += ["", "DATA FILES:", f"- Analysis report: {report_path}"]
    if csv_path is not None:
        lines.append(f"- CSV data: {csv_path}")
    return "\n".join(lines) + "\n"


def analyze_log_file(
    perf_log: Path,
    output_dir: Path,
    thresholds: DegradationThresholds | None = None,
    precision: int = 2,
) -> LogAnalysis:
    """Analyze one performance log and write its report and CSV into *output_dir*."""
    job_name = job_name_from_log(perf_log)
    records = read_performance_log(perf_log)
    analysis = analyze_records(job_name, records, thresholds, precision)

    output_dir.mkdir(parents=True, exist_ok=True)
    report_path = output_dir / f"{job_name}-analysis.txt"
    csv_path: Path | None = None
    if records:
        csv_path = write_visualization_csv(records, output_dir / f"{job_name}-data.csv", precision)
    report_path.write_text(render_analysis_report(analysis, csv_path, report_path), encoding="utf-8")

    logger.info("Analysis completed for %s: %s", job_name, report_path)
    return analysis


def write_directory_summary(analyses: list[LogAnalysis], log_dir: Path, output_dir: Path) -> Path:
    """Write ``performance-summary.txt`` covering every analyzed job."""
    lines = [
        "=== VELERO PERFORMANCE ANALYSIS SUMMARY ===",
        f"Generated: {datetime.now().strftime(TIMESTAMP_FORMAT)}",
        f"Log directory: {log_dir}",
        "",
        "ANALYZED JOBS:",
    ]
    for a in analyses:
        lines.append(f"- {a.job_name}")
        lines.append(
            f"  Status: {a.final_status}, Objects: {a.items_processed}, "
            f"Duration: {format_number(a.elapsed_seconds)}s, "
            f"Degradation: {'YES' if a.degradation_detected else 'NO'}"
        )
    lines += ["", "ANALYSIS COMPLETE", f"Individual reports available in: {output_dir}"]

    path = output_dir / SUMMARY_FILE_NAME
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def analyze_directory(
    log_dir: Path,
    output_dir: Path,
    *,
    job_name: str | None = None,
    thresholds: DegradationThresholds | None = None,
    precision: int = 2,
) -> list[LogAnalysis]:
    """Analyze one job (when *job_name* is given) or every log in *log_dir*.

    Raises
    ------
    AnalysisError
        If *log_dir* does not exist or contains no matching performance log.
    """
    if not log_dir.is_dir():
        raise AnalysisError(f"Log directory '{log_dir}' does not exist")

    if job_name is not None:
        perf_log = log_dir / f"{job_name}{PERFORMANCE_LOG_SUFFIX}"
        if not perf_log.is_file():
            raise AnalysisError(f"Performance log not found for job: {job_name}")
        logs = [perf_log]
    else:
        logs = sorted(log_dir.glob(f"*{PERFORMANCE_LOG_SUFFIX}"))
        if not logs:
            raise AnalysisError(f"No performance logs found in directory: {log_dir}")

    analyses = [analyze_log_file(p, output_dir, thresholds, precision) for p in logs]
    write_directory_summary(analyses, log_dir, output_dir)
    return analyses
