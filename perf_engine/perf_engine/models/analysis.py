"""Models produced when analyzing performance logs after a session."""

from __future__ import annotations

from pydantic import BaseModel, Field

from perf_engine.models.sample import DegradationThresholds


class PerformanceRecord(BaseModel):
    """One data row read back from a ``*-performance.log`` file."""

    timestamp: str
    status: str
    items_processed: int = Field(..., ge=0)
    total_items: int = Field(..., ge=0)
    items_per_second: float = Field(..., ge=0.0)
    elapsed_seconds: float = Field(..., ge=0.0)


class SlowPeriod(BaseModel):
    """A sample past the item mark whose rate fell below the threshold."""

    items_processed: int
    items_per_second: float


class LogAnalysis(BaseModel):
    """Aggregated metrics for one monitored job."""

    job_name: str
    intervals: int = Field(default=0, ge=0)
    final_status: str = "Unknown"
    items_processed: int = 0
    total_items: int = 0
    elapsed_seconds: float = 0.0
    average_rate: float | None = Field(
        default=None,
        description="Items processed divided by elapsed seconds at the last sample.",
    )
    thresholds: DegradationThresholds = Field(default_factory=DegradationThresholds)
    slow_periods: list[SlowPeriod] = Field(default_factory=list)
    before_mark_rate: float | None = None
    after_mark_rate: float | None = None
    performance_drop_percent: float | None = None

    @property
    def degradation_detected(self) -> bool:
        return bool(self.slow_periods)
