"""Cluster queries for job status and resource usage."""

from __future__ import annotations

from perf_engine.kube._protocols import JobStatusSource, ResourceUsageSource
from perf_engine.kube.kubectl_client import (
    KubectlJobStore,
    KubectlResourceSource,
    validate_resource_name,
)

__all__ = [
    "JobStatusSource",
    "KubectlJobStore",
    "KubectlResourceSource",
    "ResourceUsageSource",
    "validate_resource_name",
]
