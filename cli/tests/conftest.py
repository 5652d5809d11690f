"""Shared fixtures for CLI tests.

``fake_cluster`` replaces the kubectl-backed monitor factory with one that
drives a real :class:`ProgressMonitor` against scripted job responses, a
10-second step clock and a no-op sleep, so commands run end to end without
a cluster.
"""

from __future__ import annotations

import io
import itertools
from pathlib import Path

import pytest

from perf_engine.models.job import JobHandle, JobStatus
from perf_engine.models.sample import ResourceUsage
from perf_engine.monitor import ProgressMonitor


class ScriptedJobStore:
    """Returns (or raises) one scripted response per status query."""

    def __init__(self) -> None:
        self.responses: list[JobStatus | BaseException] = []
        self.queried: list[JobHandle] = []

    def get_status(self, handle: JobHandle) -> JobStatus:
        self.queried.append(handle)
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


class FixedResources:
    def get_usage(self, namespace: str, selector: str) -> ResourceUsage:
        return ResourceUsage(cpu="250m", memory="512Mi", pod_phase="Running")


@pytest.fixture(autouse=True)
def _isolated_cwd(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    # Keep a developer's .env and default output directories out of the tests.
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def fake_cluster(monkeypatch: pytest.MonkeyPatch) -> ScriptedJobStore:
    store = ScriptedJobStore()

    def _create_monitor(options, settings, **kwargs):
        return ProgressMonitor(
            options,
            store,
            FixedResources(),
            clock=itertools.count(0, 10).__next__,
            sleep=lambda _seconds: None,
            console_stream=io.StringIO(),
            **kwargs,
        )

    monkeypatch.setattr("perf_cli.app.create_monitor", _create_monitor)
    return store
