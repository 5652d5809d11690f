"""Domain models for the Velero performance tooling."""

from perf_engine.models.analysis import LogAnalysis, PerformanceRecord, SlowPeriod
from perf_engine.models.job import (
    TERMINAL_PHASES,
    JobHandle,
    JobKind,
    JobPhase,
    JobStatus,
)
from perf_engine.models.sample import (
    RESOURCE_PLACEHOLDER,
    DegradationEvent,
    DegradationThresholds,
    RateSample,
    ResourceUsage,
    SessionSummary,
    StatusSample,
)

__all__ = [
    "DegradationEvent",
    "DegradationThresholds",
    "JobHandle",
    "JobKind",
    "JobPhase",
    "JobStatus",
    "LogAnalysis",
    "PerformanceRecord",
    "RESOURCE_PLACEHOLDER",
    "RateSample",
    "ResourceUsage",
    "SessionSummary",
    "SlowPeriod",
    "StatusSample",
    "TERMINAL_PHASES",
]
