"""Unit tests for perf_engine.analysis."""

from __future__ import annotations

from pathlib import Path

import pytest
from perf_engine.analysis import analyze_directory, analyze_records, read_performance_log
from perf_engine.analysis.analyzer import SUMMARY_FILE_NAME
from perf_engine.analysis.log_reader import job_name_from_log
from perf_engine.errors import AnalysisError
from perf_engine.models.analysis import PerformanceRecord
from perf_engine.models.sample import DegradationThresholds

HEADER = (
    "# Velero Backup Performance Monitoring - 2025-03-01 12:00:00\n"
    "# Backup: perf-test\n"
    "# Monitoring interval: 10s\n"
    "timestamp,status,progress,items_processed,total_items,items_per_second,phase,elapsed_seconds\n"
)


def _row(ts: str, items: int, rate: float, elapsed: float, status: str = "InProgress") -> str:
    return f"{ts},{status},{items}/10000,{items},10000,{rate},{status},{elapsed}\n"


def _write_log(directory: Path, job: str, rows: list[str]) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{job}-performance.log"
    path.write_text(HEADER + "".join(rows), encoding="utf-8")
    return path


def _record(items: int, rate: float, elapsed: float, status: str = "InProgress") -> PerformanceRecord:
    return PerformanceRecord(
        timestamp="2025-03-01 12:00:00",
        status=status,
        items_processed=items,
        total_items=10000,
        items_per_second=rate,
        elapsed_seconds=elapsed,
    )


class TestLogReader:
    def test_job_name_from_log(self):
        assert job_name_from_log(Path("/x/perf-test-150k-performance.log")) == "perf-test-150k"
        assert job_name_from_log(Path("/x/other.log")) == "other"

    def test_reads_data_rows(self, tmp_path: Path):
        path = _write_log(
            tmp_path,
            "perf-test",
            [_row("2025-03-01 12:00:10", 1000, 100.0, 10), _row("2025-03-01 12:00:20", 2500, 150.0, 20)],
        )
        records = read_performance_log(path)
        assert [r.items_processed for r in records] == [1000, 2500]
        assert records[1].items_per_second == 150.0

    def test_skips_malformed_rows(self, tmp_path: Path):
        path = _write_log(
            tmp_path,
            "perf-test",
            [
                _row("2025-03-01 12:00:10", 1000, 100.0, 10),
                "truncated,row\n",
                "2025-03-01 12:00:20,InProgress,x/y,many,10000,1,InProgress,20\n",
                "\n",
                _row("2025-03-01 12:00:30", 3000, 200.0, 30),
            ],
        )
        assert [r.items_processed for r in read_performance_log(path)] == [1000, 3000]


class TestAnalyzeRecords:
    def test_empty(self):
        analysis = analyze_records("job", [])
        assert analysis.intervals == 0
        assert analysis.average_rate is None
        assert analysis.degradation_detected is False

    def test_basic_metrics(self):
        analysis = analyze_records("job", [_record(1000, 100, 10), _record(10000, 900, 20, "Completed")])
        assert analysis.intervals == 2
        assert analysis.final_status == "Completed"
        assert analysis.items_processed == 10000
        assert analysis.average_rate == 500.0
        assert analysis.after_mark_rate == 900.0
        assert analysis.before_mark_rate == 100.0

    def test_slow_periods_after_mark(self):
        records = [
            _record(2000, 200, 10),
            _record(4000, 200, 20),
            _record(4010, 1, 30),  # slow but below the mark
            _record(5000, 99, 40),
            _record(5010, 1, 50),
            _record(5020, 1, 60),
            _record(8000, 298, 70),
        ]
        analysis = analyze_records("job", records)

        assert analysis.degradation_detected is True
        assert [(p.items_processed, p.items_per_second) for p in analysis.slow_periods] == [(5010, 1.0), (5020, 1.0)]
        assert analysis.before_mark_rate == 125.0
        assert analysis.after_mark_rate == 100.0
        assert analysis.performance_drop_percent == 20.0

    def test_custom_thresholds(self):
        records = [_record(50, 10, 5), _record(150, 3, 10)]
        analysis = analyze_records("job", records, DegradationThresholds(item_mark=100, low_rate=5))
        assert len(analysis.slow_periods) == 1
        assert analysis.performance_drop_percent == 70.0

    def test_no_drop_without_both_phases(self):
        analysis = analyze_records("job", [_record(100, 10, 10)])
        assert analysis.after_mark_rate is None
        assert analysis.performance_drop_percent is None


class TestAnalyzeDirectory:
    def test_missing_directory(self, tmp_path: Path):
        with pytest.raises(AnalysisError, match="does not exist"):
            analyze_directory(tmp_path / "nope", tmp_path / "out")

    def test_no_logs(self, tmp_path: Path):
        with pytest.raises(AnalysisError, match="No performance logs found"):
            analyze_directory(tmp_path, tmp_path / "out")

    def test_unknown_job(self, tmp_path: Path):
        _write_log(tmp_path, "perf-a", [_row("2025-03-01 12:00:10", 1000, 100.0, 10)])
        with pytest.raises(AnalysisError, match="Performance log not found for job: perf-b"):
            analyze_directory(tmp_path, tmp_path / "out", job_name="perf-b")

    def test_all_jobs(self, tmp_path: Path):
        logs = tmp_path / "logs"
        out = tmp_path / "out"
        _write_log(logs, "perf-b", [_row("2025-03-01 12:00:10", 6000, 2.0, 10)])
        _write_log(logs, "perf-a", [_row("2025-03-01 12:00:10", 1000, 100.0, 10, "Completed")])

        analyses = analyze_directory(logs, out)

        assert [a.job_name for a in analyses] == ["perf-a", "perf-b"]
        assert (out / "perf-a-analysis.txt").is_file()
        assert (out / "perf-b-data.csv").is_file()
        summary = (out / SUMMARY_FILE_NAME).read_text(encoding="utf-8")
        assert "- perf-a" in summary
        assert "Status: Completed, Objects: 1000, Duration: 10s, Degradation: NO" in summary
        assert "Degradation: YES" in summary

    def test_report_and_csv(self, tmp_path: Path):
        _write_log(
            tmp_path,
            "perf-a",
            [_row("2025-03-01 12:00:10", 1000, 100.0, 10), _row("2025-03-01 12:00:20", 5500, 3.0, 20)],
        )
        out = tmp_path / "out"

        analyze_directory(tmp_path, out, job_name="perf-a")

        report = (out / "perf-a-analysis.txt").read_text(encoding="utf-8")
        assert "=== PERFORMANCE ANALYSIS: perf-a ===" in report
        assert "- Total monitoring intervals: 2" in report
        assert "- Average processing rate: 275 objects/second" in report
        assert "- Performance degradation detected: YES" in report
        assert "- Slow periods: 5500 objects (3 obj/s)" in report
        assert "- Performance drop after 5000 objects: 97%" in report

        csv_lines = (out / "perf-a-data.csv").read_text(encoding="utf-8").splitlines()
        assert csv_lines[0] == "timestamp,elapsed_seconds,objects_processed,rate_obj_per_sec,cumulative_rate"
        assert csv_lines[1] == "2025-03-01 12:00:10,10,1000,100,100"
        assert csv_lines[2] == "2025-03-01 12:00:20,20,5500,3,275"

    def test_header_only_log(self, tmp_path: Path):
        _write_log(tmp_path, "perf-empty", [])
        out = tmp_path / "out"

        (analysis,) = analyze_directory(tmp_path, out)

        assert analysis.intervals == 0
        assert "No performance data found" in (out / "perf-empty-analysis.txt").read_text(encoding="utf-8")
        assert not (out / "perf-empty-data.csv").exists()
