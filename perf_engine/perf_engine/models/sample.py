"""Per-tick observation records and the final session summary.

A monitoring session produces one ``StatusSample`` and one
``ResourceUsage`` per polling tick, at most one ``DegradationEvent``, and
exactly one ``SessionSummary`` once the job reaches a terminal phase.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from perf_engine.models.job import JobHandle, JobPhase

RESOURCE_PLACEHOLDER = "N/A"


class DegradationThresholds(BaseModel):
    """Item mark and low-rate threshold used to flag slow processing."""

    model_config = ConfigDict(frozen=True)

    item_mark: int = Field(
        default=5000,
        ge=0,
        description="Degradation is only considered once more items than this are processed.",
    )
    low_rate: float = Field(
        default=5.0,
        gt=0.0,
        description="Rates strictly below this value (items/second) count as slow.",
    )

    def is_slow(self, items_processed: int, items_per_second: float) -> bool:
        return items_processed > self.item_mark and items_per_second < self.low_rate


class RateSample(BaseModel):
    """Throughput between two consecutive samples."""

    items_delta: int
    seconds_delta: float
    items_per_second: float = Field(..., ge=0.0)


class StatusSample(BaseModel):
    """One polling observation of the job."""

    timestamp: datetime
    phase: JobPhase
    items_processed: int = Field(..., ge=0)
    total_items: int = Field(..., ge=0)
    elapsed_seconds: float = Field(..., ge=0.0)
    items_per_second: float = Field(default=0.0, ge=0.0)
    degraded: bool = Field(
        default=False,
        description="True when the status query failed and placeholders were recorded.",
    )

    @property
    def progress(self) -> str:
        return f"{self.items_processed}/{self.total_items}"


class ResourceUsage(BaseModel):
    """CPU/memory of the Velero server pod, or placeholders when unavailable."""

    cpu: str = RESOURCE_PLACEHOLDER
    memory: str = RESOURCE_PLACEHOLDER
    pod_phase: str = RESOURCE_PLACEHOLDER

    @classmethod
    def unavailable(cls) -> ResourceUsage:
        return cls()

    @property
    def available(self) -> bool:
        return self.cpu != RESOURCE_PLACEHOLDER


class DegradationEvent(BaseModel):
    """First slow sample observed after the item mark was crossed."""

    timestamp: datetime
    items_processed: int = Field(..., ge=0)
    items_per_second: float = Field(..., ge=0.0)
    elapsed_seconds: float = Field(..., ge=0.0)
    thresholds: DegradationThresholds


class SessionSummary(BaseModel):
    """Final record of a monitoring session."""

    job: JobHandle
    final_phase: JobPhase
    total_items: int = Field(..., ge=0)
    items_processed: int = Field(..., ge=0)
    elapsed_seconds: float = Field(..., ge=0.0)
    average_rate: float = Field(..., ge=0.0)
    degradation_detected: bool
    degradation: DegradationEvent | None = None
    generated_at: datetime
